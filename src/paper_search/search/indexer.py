"""Build query-ready library indexes from a library store.

The indexer reads one snapshot of a library (all items, all folders) and turns
every regular item that owns at least one eligible attachment into an
:class:`IndexedPaper` whose comparable fields are canonicalized up front. The
scorer never canonicalizes item data again, which keeps per-keystroke queries
cheap.

A build is all-or-nothing: if the store fails while the library is being read,
the whole build degrades to an empty index. Individual field accessors that
fail only blank out that field.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
import time

from paper_search.adapters.library_store import AbstractLibraryStore
from paper_search.domain.items import Creator, LibraryCollection, LibraryItem
from paper_search.domain.model import (
    IndexedAttachment,
    IndexedCollection,
    IndexedPaper,
    LibraryIndex,
    NormalizedFields,
)
from paper_search.observability.metrics import INDEX_BUILD_ERRORS, INDEX_BUILD_LATENCY, INDEX_DOCUMENT_COUNT
from paper_search.observability.tracing import create_span
from paper_search.search.normalization import (
    canonicalize,
    extract_year,
    normalize_positive_ids,
    normalize_positive_int,
    normalize_text,
    to_modified_timestamp,
)


logger = logging.getLogger(__name__)

DEFAULT_ATTACHMENT_CONTENT_TYPE = "application/pdf"
VENUE_FIELDS: tuple[str, ...] = (
    "publicationTitle",
    "journalAbbreviation",
    "proceedingsTitle",
    "conferenceName",
)


def get_field_text(item: LibraryItem, field_name: str) -> str:
    try:
        return normalize_text(item.get_field(field_name))
    except Exception:
        logger.debug("Field %s unavailable on item %s", field_name, getattr(item, "id", "?"), exc_info=True)
        return ""


def resolve_attachment_title(attachment: LibraryItem, index: int, total: int) -> str:
    """Attachment title, else its filename, else a positional ``PDF`` label."""
    title = get_field_text(attachment, "title")
    if title:
        return title
    filename = normalize_text(getattr(attachment, "attachment_filename", ""))
    if filename:
        return filename
    if total > 1:
        return f"PDF {index + 1}"
    return "PDF"


def creator_display_name(creator: Creator | None) -> str:
    if creator is None:
        return ""
    first_name = normalize_text(getattr(creator, "first_name", ""))
    last_name = normalize_text(getattr(creator, "last_name", ""))
    joined = " ".join(part for part in (first_name, last_name) if part).strip()
    return joined or last_name


def collect_creators(item: LibraryItem) -> list[str]:
    """Unique creator names in store order, the item's first creator in front."""
    creators: list[str] = []
    seen: set[str] = set()
    try:
        for creator in item.get_creators():
            name = creator_display_name(creator)
            normalized_name = canonicalize(name)
            if not normalized_name or normalized_name in seen:
                continue
            seen.add(normalized_name)
            creators.append(name)
    except Exception:
        logger.debug("Creators unavailable on item %s", getattr(item, "id", "?"), exc_info=True)

    try:
        first_creator = normalize_text(getattr(item, "first_creator", ""))
    except Exception:
        first_creator = ""
    first_creator = first_creator or get_field_text(item, "firstCreator")
    normalized_first = canonicalize(first_creator)
    if normalized_first and normalized_first not in seen:
        creators.insert(0, first_creator)
    return creators


def collect_venue(item: LibraryItem) -> str:
    """Venue-like fields joined with spaces, duplicates (by canonical form) dropped."""
    deduped: list[str] = []
    seen: set[str] = set()
    for field_name in VENUE_FIELDS:
        value = get_field_text(item, field_name)
        normalized = canonicalize(value)
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        deduped.append(value)
    return " ".join(deduped)


def get_collection_ids(item: LibraryItem) -> tuple[int, ...]:
    try:
        return tuple(normalize_positive_ids(item.get_collections()))
    except Exception:
        logger.debug("Collections unavailable on item %s", getattr(item, "id", "?"), exc_info=True)
        return ()


def get_modified_at(item: LibraryItem) -> int:
    try:
        return to_modified_timestamp(getattr(item, "date_modified", ""))
    except Exception:
        return 0


def build_indexed_collection(collection: LibraryCollection) -> IndexedCollection:
    collection_id = collection.id
    return IndexedCollection(
        collection_id=collection_id,
        name=normalize_text(collection.name) or f"Collection {collection_id}",
        parent_id=normalize_positive_int(collection.parent_id) or 0,
        child_collection_ids=tuple(normalize_positive_ids(collection.get_child_collections())),
        child_item_ids=tuple(normalize_positive_ids(collection.get_child_items())),
    )


class LibraryIndexer:
    """Turns one library snapshot from ``store`` into a :class:`LibraryIndex`."""

    def __init__(
        self,
        store: AbstractLibraryStore,
        *,
        attachment_content_type: str = DEFAULT_ATTACHMENT_CONTENT_TYPE,
    ) -> None:
        self._store = store
        self._attachment_content_type = attachment_content_type

    async def build_index(self, library_id: int) -> LibraryIndex:
        started = time.perf_counter()
        with create_span("paper_search.index.build", attributes={"paper_search.library_id": library_id}) as span:
            try:
                items = await self._store.get_all_items(library_id)
                collections = await self._store.get_collections(library_id) or ()
                candidates = [candidate for item in items if (candidate := self.build_candidate(item)) is not None]
                indexed_collections = [build_indexed_collection(collection) for collection in collections]
            except Exception as exc:
                logger.error("Failed to build paper search index for library %s: %s", library_id, exc, exc_info=True)
                INDEX_BUILD_ERRORS.labels(reason=exc.__class__.__name__).inc()
                INDEX_BUILD_LATENCY.labels(outcome="error").observe(time.perf_counter() - started)
                span.set_attribute("paper_search.index.degraded", True)
                return LibraryIndex.empty(library_id)

            duration = time.perf_counter() - started
            span.set_attribute("paper_search.index.papers", len(candidates))
            span.set_attribute("paper_search.index.collections", len(indexed_collections))

        INDEX_BUILD_LATENCY.labels(outcome="ok").observe(duration)
        INDEX_DOCUMENT_COUNT.labels(library=str(library_id)).set(len(candidates))
        logger.info(
            "Built paper search index for library %s (%d papers from %d items, %d collections, %.3fs)",
            library_id,
            len(candidates),
            len(items),
            len(indexed_collections),
            duration,
        )
        return LibraryIndex(
            library_id=library_id,
            candidates=tuple(candidates),
            collections=tuple(indexed_collections),
        )

    def eligible_attachments(self, item: LibraryItem) -> list[LibraryItem]:
        if not item.is_regular_item():
            return []
        out: list[LibraryItem] = []
        for attachment_id in item.get_attachments():
            attachment = self._store.get_item(attachment_id)
            if (
                attachment is not None
                and attachment.is_attachment()
                and attachment.attachment_content_type == self._attachment_content_type
            ):
                out.append(attachment)
        return out

    def build_candidate(self, item: LibraryItem) -> IndexedPaper | None:
        """Index ``item``, or return ``None`` when it is not a paper with attachments."""
        if not item.is_regular_item():
            return None
        attachments = self._build_attachments(self.eligible_attachments(item))
        if not attachments:
            return None

        title = get_field_text(item, "title") or f"Item {item.id}"
        citation_key = get_field_text(item, "citationKey")
        creators = collect_creators(item)
        year = extract_year(get_field_text(item, "date"))
        short_title = get_field_text(item, "shortTitle")
        doi = get_field_text(item, "DOI")
        venue = collect_venue(item)

        return IndexedPaper(
            item_id=item.id,
            title=title,
            attachments=attachments,
            normalized=NormalizedFields(
                title=canonicalize(title),
                short_title=canonicalize(short_title),
                citation_key=canonicalize(citation_key),
                doi=canonicalize(doi),
                creator=canonicalize(" ".join(creators)),
                venue=canonicalize(venue),
                year=canonicalize(year or ""),
            ),
            modified_at=get_modified_at(item),
            collection_ids=get_collection_ids(item),
            citation_key=citation_key or None,
            first_creator=creators[0] if creators else None,
            year=year,
        )

    @staticmethod
    def _build_attachments(attachments: Sequence[LibraryItem]) -> tuple[IndexedAttachment, ...]:
        indexed: list[IndexedAttachment] = []
        for index, attachment in enumerate(attachments):
            title = resolve_attachment_title(attachment, index, len(attachments))
            indexed.append(
                IndexedAttachment(
                    attachment_id=attachment.id,
                    title=title,
                    normalized_title=canonicalize(title),
                )
            )
        return tuple(indexed)
