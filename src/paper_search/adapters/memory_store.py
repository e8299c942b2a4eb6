"""In-memory library store backed by validated snapshot records.

Hosts that can export their library (for example as JSON) load it through
:class:`LibrarySnapshot`; tests use the same path to build deterministic
fixtures. The store counts full-library reads so cache behavior can be
asserted.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
import logging

import orjson
from pydantic import BaseModel, ConfigDict, Field

from paper_search.adapters.library_store import AbstractLibraryStore
from paper_search.domain.items import Creator, LibraryCollection, LibraryItem, RecordCollection, RecordItem


logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class CreatorRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    first_name: str = ""
    last_name: str = ""


class AttachmentRecord(BaseModel):
    """A child attachment of a regular item."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(gt=0)
    title: str = ""
    filename: str = ""
    content_type: str = PDF_CONTENT_TYPE
    date_modified: str = ""


class ItemRecord(BaseModel):
    """A regular library item and its attachments."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(gt=0)
    title: str = ""
    short_title: str = ""
    citation_key: str = ""
    doi: str = ""
    date: str = ""
    first_creator: str = ""
    publication_title: str = ""
    journal_abbreviation: str = ""
    proceedings_title: str = ""
    conference_name: str = ""
    creators: list[CreatorRecord] = Field(default_factory=list)
    attachments: list[AttachmentRecord] = Field(default_factory=list)
    collection_ids: list[int] = Field(default_factory=list)
    date_modified: str = ""
    extra_fields: dict[str, str] = Field(default_factory=dict)

    def to_fields(self) -> dict[str, str]:
        """Map record attributes onto the store's field names."""
        fields = dict(self.extra_fields)
        fields.update(
            {
                "title": self.title,
                "shortTitle": self.short_title,
                "citationKey": self.citation_key,
                "DOI": self.doi,
                "date": self.date,
                "firstCreator": self.first_creator,
                "publicationTitle": self.publication_title,
                "journalAbbreviation": self.journal_abbreviation,
                "proceedingsTitle": self.proceedings_title,
                "conferenceName": self.conference_name,
            }
        )
        return {key: value for key, value in fields.items() if value}


class CollectionRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(gt=0)
    name: str = ""
    parent_id: int = 0
    child_collection_ids: list[int] = Field(default_factory=list)
    child_item_ids: list[int] = Field(default_factory=list)


class LibrarySnapshot(BaseModel):
    """Everything the store knows about one library."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    library_id: int = Field(default=1, gt=0)
    name: str | None = None
    items: list[ItemRecord] = Field(default_factory=list)
    collections: list[CollectionRecord] = Field(default_factory=list)


class InMemoryLibraryStore(AbstractLibraryStore):
    """Dictionary-backed store.

    Attributes:
        fetch_count: Number of ``get_all_items`` calls served (or attempted).
        fail_with: When set, ``get_all_items`` raises this exception.
        gate: When set, ``get_all_items`` waits on the event before answering,
            which lets tests hold a build in flight.
    """

    def __init__(self, snapshots: Iterable[LibrarySnapshot] = ()) -> None:
        self._items_by_library: dict[int, dict[int, LibraryItem]] = {}
        self._collections_by_library: dict[int, list[LibraryCollection]] = {}
        self._items: dict[int, LibraryItem] = {}
        self._names: dict[int, str] = {}
        self.fetch_count = 0
        self.fail_with: BaseException | None = None
        self.gate: asyncio.Event | None = None
        for snapshot in snapshots:
            self.load(snapshot)

    @classmethod
    def from_json(cls, payload: bytes | str) -> InMemoryLibraryStore:
        """Build a store from a JSON document holding one snapshot or a list of them."""
        data = orjson.loads(payload)
        raw_snapshots = data if isinstance(data, list) else [data]
        return cls(LibrarySnapshot.model_validate(raw) for raw in raw_snapshots)

    def load(self, snapshot: LibrarySnapshot) -> None:
        """Replace the contents of ``snapshot.library_id`` with ``snapshot``."""
        library_id = snapshot.library_id
        for item_id in self._items_by_library.pop(library_id, {}):
            self._items.pop(item_id, None)

        if snapshot.name:
            self._names[library_id] = snapshot.name
        for record in snapshot.items:
            self.add_item(_record_to_item(record, library_id), library_id)
            for attachment in record.attachments:
                self.add_item(_attachment_to_item(attachment, library_id), library_id)
        self._collections_by_library[library_id] = [
            RecordCollection(
                id=collection.id,
                name=collection.name,
                parent_id=collection.parent_id,
                child_collection_ids=tuple(collection.child_collection_ids),
                child_item_ids=tuple(collection.child_item_ids),
            )
            for collection in snapshot.collections
        ]
        logger.debug(
            "Loaded library %s snapshot (%d items, %d collections)",
            library_id,
            len(snapshot.items),
            len(snapshot.collections),
        )

    def add_item(self, item: LibraryItem, library_id: int | None = None) -> None:
        target_library = library_id if library_id is not None else item.library_id
        self._items_by_library.setdefault(target_library, {})[item.id] = item
        self._items[item.id] = item

    def remove_item(self, item_id: int) -> None:
        self._items.pop(item_id, None)
        for items in self._items_by_library.values():
            items.pop(item_id, None)

    def set_library_name(self, library_id: int, name: str) -> None:
        self._names[library_id] = name

    async def get_all_items(self, library_id: int) -> Sequence[LibraryItem]:
        self.fetch_count += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return list(self._items_by_library.get(library_id, {}).values())

    async def get_collections(self, library_id: int) -> Sequence[LibraryCollection]:
        return list(self._collections_by_library.get(library_id, []))

    def get_item(self, item_id: int) -> LibraryItem | None:
        return self._items.get(item_id)

    def get_library_name(self, library_id: int) -> str | None:
        return self._names.get(library_id)


def _record_to_item(record: ItemRecord, library_id: int) -> RecordItem:
    return RecordItem(
        id=record.id,
        library_id=library_id,
        regular=True,
        fields=record.to_fields(),
        creators=tuple(Creator(first_name=c.first_name, last_name=c.last_name) for c in record.creators),
        attachment_ids=tuple(attachment.id for attachment in record.attachments),
        collection_ids=tuple(record.collection_ids),
        date_modified=record.date_modified,
        first_creator=record.first_creator,
    )


def _attachment_to_item(attachment: AttachmentRecord, library_id: int) -> RecordItem:
    return RecordItem(
        id=attachment.id,
        library_id=library_id,
        regular=False,
        fields={"title": attachment.title} if attachment.title else {},
        date_modified=attachment.date_modified,
        attachment_content_type=attachment.content_type,
        attachment_filename=attachment.filename,
    )
