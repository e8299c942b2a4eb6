"""Read-only capabilities of library records, plus their concrete variants.

The indexer only ever talks to :class:`LibraryItem` and
:class:`LibraryCollection`. Real records and synthetic "portal" records (the
whole-library conversation target and per-paper conversation targets) both
satisfy that protocol, so the indexer and scorer never need to know which is
which. Callers that do care inspect ``kind``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Protocol, runtime_checkable

from paper_search.search.normalization import normalize_positive_int


PAPER_CONVERSATION_KEY_BASE = 1_500_000_000
GLOBAL_CONVERSATION_KEY_BASE = 2_000_000_000


class ItemKind(str, Enum):
    REAL = "real"
    GLOBAL_PORTAL = "global_portal"
    PAPER_PORTAL = "paper_portal"


@dataclass(frozen=True, slots=True)
class Creator:
    first_name: str = ""
    last_name: str = ""


@runtime_checkable
class LibraryItem(Protocol):
    """Capabilities the indexer needs from an item."""

    kind: ItemKind
    id: int
    library_id: int
    date_modified: str
    first_creator: str
    attachment_content_type: str
    attachment_filename: str

    def is_regular_item(self) -> bool: ...  # pragma: no cover - interface definition

    def is_attachment(self) -> bool: ...  # pragma: no cover - interface definition

    def get_field(self, name: str) -> str: ...  # pragma: no cover - interface definition

    def get_creators(self) -> Sequence[Creator]: ...  # pragma: no cover - interface definition

    def get_attachments(self) -> Sequence[int]: ...  # pragma: no cover - interface definition

    def get_collections(self) -> Sequence[int]: ...  # pragma: no cover - interface definition


@runtime_checkable
class LibraryCollection(Protocol):
    """Capabilities the indexer needs from a folder."""

    id: int
    name: str
    parent_id: int

    def get_child_collections(self) -> Sequence[int]: ...  # pragma: no cover - interface definition

    def get_child_items(self) -> Sequence[int]: ...  # pragma: no cover - interface definition


ItemResolver = Callable[[int], "LibraryItem | None"]


@dataclass(frozen=True)
class RecordItem:
    """A real item as stored in the library (regular item or attachment)."""

    kind: ClassVar[ItemKind] = ItemKind.REAL

    id: int
    library_id: int = 1
    regular: bool = True
    fields: Mapping[str, str] = field(default_factory=dict)
    creators: tuple[Creator, ...] = ()
    attachment_ids: tuple[int, ...] = ()
    collection_ids: tuple[int, ...] = ()
    date_modified: str = ""
    first_creator: str = ""
    attachment_content_type: str = ""
    attachment_filename: str = ""

    def is_regular_item(self) -> bool:
        return self.regular

    def is_attachment(self) -> bool:
        return not self.regular

    def get_field(self, name: str) -> str:
        return self.fields.get(name, "")

    def get_creators(self) -> Sequence[Creator]:
        return self.creators

    def get_attachments(self) -> Sequence[int]:
        return self.attachment_ids

    def get_collections(self) -> Sequence[int]:
        return self.collection_ids


@dataclass(frozen=True)
class RecordCollection:
    id: int
    name: str
    parent_id: int = 0
    child_collection_ids: tuple[int, ...] = ()
    child_item_ids: tuple[int, ...] = ()

    def get_child_collections(self) -> Sequence[int]:
        return self.child_collection_ids

    def get_child_items(self) -> Sequence[int]:
        return self.child_item_ids


@dataclass(frozen=True)
class GlobalPortalItem:
    """Synthetic target standing for a whole library; never a regular item."""

    kind: ClassVar[ItemKind] = ItemKind.GLOBAL_PORTAL

    id: int
    library_id: int
    date_modified: str = ""
    first_creator: str = ""
    attachment_content_type: str = ""
    attachment_filename: str = ""

    def is_regular_item(self) -> bool:
        return False

    def is_attachment(self) -> bool:
        return False

    def get_field(self, name: str) -> str:
        if name == "title":
            return "Global Library Portal"
        if name == "libraryCatalog":
            return "Library"
        return ""

    def get_creators(self) -> Sequence[Creator]:
        return ()

    def get_attachments(self) -> Sequence[int]:
        return ()

    def get_collections(self) -> Sequence[int]:
        return ()


@dataclass(frozen=True)
class PaperPortalItem:
    """Synthetic conversation target that mirrors a real paper.

    Fields and attachments are read through ``resolve`` from the base paper
    on every access, so the portal follows edits to the paper.
    """

    kind: ClassVar[ItemKind] = ItemKind.PAPER_PORTAL

    id: int
    library_id: int
    base_item_id: int
    session_version: int
    resolve: ItemResolver = field(compare=False, repr=False)
    attachment_content_type: str = ""
    attachment_filename: str = ""

    def _base(self) -> LibraryItem | None:
        if not self.base_item_id:
            return None
        return self.resolve(self.base_item_id)

    @property
    def date_modified(self) -> str:
        base = self._base()
        return base.date_modified if base is not None else ""

    @property
    def first_creator(self) -> str:
        base = self._base()
        return base.first_creator if base is not None else ""

    def is_regular_item(self) -> bool:
        return True

    def is_attachment(self) -> bool:
        return False

    def get_field(self, name: str) -> str:
        base = self._base()
        if base is not None:
            value = base.get_field(name)
            if value:
                return str(value)
        if name == "title":
            return "Paper chat"
        return ""

    def get_creators(self) -> Sequence[Creator]:
        base = self._base()
        return base.get_creators() if base is not None else ()

    def get_attachments(self) -> Sequence[int]:
        base = self._base()
        if base is None or not base.is_regular_item():
            return ()
        return base.get_attachments()

    def get_collections(self) -> Sequence[int]:
        return ()


def create_global_portal_item(library_id: object, conversation_key: object) -> GlobalPortalItem:
    return GlobalPortalItem(
        id=normalize_positive_int(conversation_key) or GLOBAL_CONVERSATION_KEY_BASE,
        library_id=normalize_positive_int(library_id) or 1,
    )


def create_paper_portal_item(
    base_item: LibraryItem | None,
    conversation_key: object,
    session_version: object,
    resolve: ItemResolver,
) -> PaperPortalItem:
    return PaperPortalItem(
        id=normalize_positive_int(conversation_key) or PAPER_CONVERSATION_KEY_BASE,
        library_id=normalize_positive_int(getattr(base_item, "library_id", None)) or 1,
        base_item_id=normalize_positive_int(getattr(base_item, "id", None)) or 0,
        session_version=normalize_positive_int(session_version) or 1,
        resolve=resolve,
    )


def is_global_portal_item(item: object) -> bool:
    if getattr(item, "kind", None) is not ItemKind.GLOBAL_PORTAL:
        return False
    normalized_id = normalize_positive_int(getattr(item, "id", None))
    return bool(normalized_id and normalized_id >= GLOBAL_CONVERSATION_KEY_BASE)


def is_paper_portal_item(item: object) -> bool:
    if getattr(item, "kind", None) is not ItemKind.PAPER_PORTAL:
        return False
    return bool(
        normalize_positive_int(getattr(item, "id", None))
        and normalize_positive_int(getattr(item, "base_item_id", None))
    )


def get_paper_portal_base_item_id(item: object) -> int | None:
    if not is_paper_portal_item(item):
        return None
    return normalize_positive_int(getattr(item, "base_item_id", None))


def get_paper_portal_session_version(item: object) -> int | None:
    if not is_paper_portal_item(item):
        return None
    return normalize_positive_int(getattr(item, "session_version", None))


def resolve_paper_portal_base_item(item: object, resolve: ItemResolver) -> LibraryItem | None:
    """Return the real paper behind a paper portal, if it still exists and is regular."""
    base_item_id = get_paper_portal_base_item_id(item)
    if not base_item_id:
        return None
    resolved = resolve(base_item_id)
    if resolved is None or not resolved.is_regular_item():
        return None
    return resolved
