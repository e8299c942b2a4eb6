"""Domain model for the paper search index.

Two families of types live here:

- Index types (``IndexedPaper``, ``IndexedCollection``, ``LibraryIndex``) are
  frozen and built once per library snapshot. They are owned by the index
  cache and must never be mutated by callers.
- Per-query types (``PaperCandidate``, ``AttachmentCandidate``,
  ``CollectionCandidate``) are fresh, mutable projections handed to callers.
  Their ``score`` fields are reset and recomputed on every query.

Slotted dataclasses keep the per-keystroke path cheap when a library holds
tens of thousands of papers.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from typing import Any


_COMPACTED_FIELDS = ("title", "short_title", "citation_key", "doi", "creator", "venue", "year")


def _strip_whitespace(value: str) -> str:
    return "".join(value.split())


@dataclass(frozen=True, slots=True)
class NormalizedFields:
    """Canonical forms computed once at index-build time.

    Each field also gets a whitespace-free twin (``title_compact`` and so on)
    that the scorer reads instead of recomputing it on every query.
    """

    title: str = ""
    short_title: str = ""
    citation_key: str = ""
    doi: str = ""
    creator: str = ""
    venue: str = ""
    year: str = ""
    title_compact: str = field(init=False, default="")
    short_title_compact: str = field(init=False, default="")
    citation_key_compact: str = field(init=False, default="")
    doi_compact: str = field(init=False, default="")
    creator_compact: str = field(init=False, default="")
    venue_compact: str = field(init=False, default="")
    year_compact: str = field(init=False, default="")

    def __post_init__(self) -> None:
        for name in _COMPACTED_FIELDS:
            object.__setattr__(self, f"{name}_compact", _strip_whitespace(getattr(self, name)))


@dataclass(frozen=True, slots=True)
class IndexedAttachment:
    attachment_id: int
    title: str
    normalized_title: str
    normalized_title_compact: str = field(init=False, default="")

    def __post_init__(self) -> None:
        object.__setattr__(self, "normalized_title_compact", _strip_whitespace(self.normalized_title))


@dataclass(frozen=True, slots=True)
class IndexedPaper:
    """A regular library item with at least one eligible attachment."""

    item_id: int
    title: str
    attachments: tuple[IndexedAttachment, ...]
    normalized: NormalizedFields
    modified_at: int = 0
    collection_ids: tuple[int, ...] = ()
    citation_key: str | None = None
    first_creator: str | None = None
    year: str | None = None

    def __post_init__(self) -> None:
        if not self.attachments:
            raise ValueError(f"Indexed paper {self.item_id} must have at least one attachment")

    @property
    def is_unfiled(self) -> bool:
        return not self.collection_ids


@dataclass(frozen=True, slots=True)
class IndexedCollection:
    collection_id: int
    name: str
    parent_id: int = 0
    child_collection_ids: tuple[int, ...] = ()
    child_item_ids: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class LibraryIndex:
    """Immutable snapshot of one library, rebuilt wholesale on every change."""

    library_id: int
    candidates: tuple[IndexedPaper, ...] = ()
    collections: tuple[IndexedCollection, ...] = ()

    @classmethod
    def empty(cls, library_id: int) -> LibraryIndex:
        return cls(library_id=library_id)

    @property
    def is_empty(self) -> bool:
        return not self.candidates and not self.collections


@dataclass(slots=True)
class AttachmentCandidate:
    attachment_id: int
    title: str
    score: int = 0


@dataclass(slots=True)
class PaperCandidate:
    """Per-query view of an indexed paper with exclusions and scores applied."""

    item_id: int
    title: str
    attachments: list[AttachmentCandidate] = field(default_factory=list)
    citation_key: str | None = None
    first_creator: str | None = None
    year: str | None = None
    score: int = 0
    modified_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class CollectionCandidate:
    """Folder node returned by browse mode.

    ``collection_id`` is ``0`` for the synthetic node that holds unfiled papers.
    """

    collection_id: int
    name: str
    child_collections: list[CollectionCandidate] = field(default_factory=list)
    papers: list[PaperCandidate] = field(default_factory=list)

    def walk(self) -> Iterator[CollectionCandidate]:
        """Yield this node and every descendant once, depth first."""
        seen: set[int] = set()
        stack: list[CollectionCandidate] = [self]
        while stack:
            node = stack.pop()
            if id(node) in seen:
                continue
            seen.add(id(node))
            yield node
            stack.extend(reversed(node.child_collections))

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection_id": self.collection_id,
            "name": self.name,
            "child_collections": [child.to_dict() for child in self.child_collections],
            "papers": [paper.to_dict() for paper in self.papers],
        }


@dataclass(frozen=True, slots=True)
class CandidateScore:
    score: int
    matched_token_count: int


@dataclass(frozen=True, slots=True)
class SlashToken:
    """An in-progress ``/query`` trigger inside composer text."""

    query: str
    slash_start: int
    caret_end: int
