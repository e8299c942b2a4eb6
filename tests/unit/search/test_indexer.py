"""Unit tests for the library indexer."""

from dataclasses import dataclass

import pytest

from paper_search.adapters.memory_store import (
    AttachmentRecord,
    CollectionRecord,
    CreatorRecord,
    InMemoryLibraryStore,
    ItemRecord,
    LibrarySnapshot,
)
from paper_search.domain.items import (
    Creator,
    RecordItem,
    create_global_portal_item,
    create_paper_portal_item,
)
from paper_search.search.indexer import (
    LibraryIndexer,
    collect_creators,
    collect_venue,
    creator_display_name,
    resolve_attachment_title,
)


@dataclass(frozen=True)
class ExplodingCreatorsItem(RecordItem):
    def get_creators(self):
        raise RuntimeError("creator table locked")

    def get_field(self, name):
        if name == "date":
            raise RuntimeError("date unavailable")
        return super().get_field(name)


@dataclass(frozen=True)
class ExplodingAttachmentsItem(RecordItem):
    def get_attachments(self):
        raise RuntimeError("attachment lookup failed")


def by_id(index):
    return {candidate.item_id: candidate for candidate in index.candidates}


@pytest.mark.asyncio
async def test_build_index_keeps_only_papers_with_eligible_attachments(store):
    index = await LibraryIndexer(store).build_index(1)

    assert sorted(by_id(index)) == [1, 2, 3, 5]
    assert all(candidate.attachments for candidate in index.candidates)
    assert store.fetch_count == 1


@pytest.mark.asyncio
async def test_build_index_derives_display_and_normalized_fields(store):
    index = await LibraryIndexer(store).build_index(1)
    paper = by_id(index)[1]

    assert paper.title == "Attention Is All You Need"
    assert paper.citation_key == "vaswani2017attention"
    assert paper.first_creator == "Vaswani"
    assert paper.year == "2017"
    assert paper.modified_at == 1704189600000
    assert paper.collection_ids == (11,)
    assert [attachment.title for attachment in paper.attachments] == ["Full Text PDF"]
    assert paper.normalized.title == "attention is all you need"
    assert paper.normalized.creator == "vaswani ashish vaswani noam shazeer"
    assert paper.normalized.venue == "advances in neural information processing systems neurips"
    assert paper.normalized.citation_key == "vaswani2017attention"


@pytest.mark.asyncio
async def test_build_index_maps_collections(store):
    index = await LibraryIndexer(store).build_index(1)

    collections = {collection.collection_id: collection for collection in index.collections}
    assert collections[10].child_collection_ids == (11,)
    assert collections[11].parent_id == 10
    assert collections[11].child_item_ids == (1,)
    assert collections[12].parent_id == 0


@pytest.mark.asyncio
async def test_build_index_applies_title_fallbacks(paper_factory):
    store = InMemoryLibraryStore(
        [
            LibrarySnapshot(
                items=[
                    ItemRecord(
                        id=7,
                        attachments=[AttachmentRecord(id=70), AttachmentRecord(id=71, filename="supplement.pdf")],
                    ),
                    paper_factory(8, "Single", (80,)),
                ],
                collections=[CollectionRecord(id=20, name="   ")],
            )
        ]
    )

    index = await LibraryIndexer(store).build_index(1)
    papers = by_id(index)

    assert papers[7].title == "Item 7"
    assert [attachment.title for attachment in papers[7].attachments] == ["PDF 1", "supplement.pdf"]
    assert [attachment.title for attachment in papers[8].attachments] == ["PDF"]
    assert index.collections[0].name == "Collection 20"


@pytest.mark.asyncio
async def test_build_index_respects_configured_content_type(store):
    index = await LibraryIndexer(store, attachment_content_type="text/html").build_index(1)
    assert sorted(by_id(index)) == [4]


@pytest.mark.asyncio
async def test_store_failure_degrades_to_empty_index(store):
    store.fail_with = ConnectionError("database is locked")

    index = await LibraryIndexer(store).build_index(1)

    assert index.library_id == 1
    assert index.is_empty


@pytest.mark.asyncio
async def test_per_item_failure_empties_the_whole_index(store):
    store.add_item(ExplodingAttachmentsItem(id=50, library_id=1, fields={"title": "Broken"}), 1)

    index = await LibraryIndexer(store).build_index(1)

    assert index.is_empty


@pytest.mark.asyncio
async def test_per_field_failure_only_blanks_that_field(store):
    store.add_item(
        ExplodingCreatorsItem(id=60, library_id=1, fields={"title": "Resilient"}, attachment_ids=(101,)),
        1,
    )

    index = await LibraryIndexer(store).build_index(1)
    paper = by_id(index)[60]

    assert paper.title == "Resilient"
    assert paper.first_creator is None
    assert paper.year is None
    assert paper.normalized.creator == ""


@pytest.mark.asyncio
async def test_unknown_library_builds_empty_index(store):
    index = await LibraryIndexer(store).build_index(99)
    assert index.is_empty
    assert index.library_id == 99


@pytest.mark.asyncio
async def test_portal_items_follow_the_same_rules(store):
    base = store.get_item(1)
    store.add_item(create_paper_portal_item(base, 1_500_000_001, 2, store.get_item), 1)
    store.add_item(create_global_portal_item(1, 2_000_000_001), 1)

    index = await LibraryIndexer(store).build_index(1)
    papers = by_id(index)

    assert 2_000_000_001 not in papers
    portal = papers[1_500_000_001]
    assert portal.title == "Attention Is All You Need"
    assert portal.is_unfiled
    assert [attachment.attachment_id for attachment in portal.attachments] == [101]


def test_creator_display_name_falls_back_to_last_name():
    assert creator_display_name(Creator(first_name=" Ada ", last_name="Lovelace")) == "Ada Lovelace"
    assert creator_display_name(Creator(last_name="Plato")) == "Plato"
    assert creator_display_name(None) == ""


def test_collect_creators_dedupes_by_canonical_form():
    item = RecordItem(
        id=1,
        creators=(
            Creator("José", "García"),
            Creator("Jose", "Garcia"),
            Creator("", ""),
            Creator("Ada", "Lovelace"),
        ),
        first_creator="Lovelace",
    )
    assert collect_creators(item) == ["Lovelace", "José García", "Ada Lovelace"]


def test_collect_creators_does_not_repeat_known_first_creator():
    item = RecordItem(id=1, creators=(Creator("Ada", "Lovelace"),), fields={"firstCreator": "Ada Lovelace"})
    assert collect_creators(item) == ["Ada Lovelace"]


def test_collect_venue_joins_unique_fields():
    item = RecordItem(
        id=1,
        fields={
            "publicationTitle": "Nature",
            "journalAbbreviation": "NATURE",
            "conferenceName": "ICML",
        },
    )
    assert collect_venue(item) == "Nature ICML"


def test_resolve_attachment_title_prefers_title_then_filename():
    titled = RecordItem(id=1, regular=False, fields={"title": "Main"}, attachment_filename="main.pdf")
    named = RecordItem(id=2, regular=False, attachment_filename="main.pdf")
    bare = RecordItem(id=3, regular=False)

    assert resolve_attachment_title(titled, 0, 1) == "Main"
    assert resolve_attachment_title(named, 0, 1) == "main.pdf"
    assert resolve_attachment_title(bare, 0, 1) == "PDF"
    assert resolve_attachment_title(bare, 2, 3) == "PDF 3"


def test_creator_records_round_into_store_items():
    store = InMemoryLibraryStore(
        [LibrarySnapshot(items=[ItemRecord(id=1, creators=[CreatorRecord(first_name="A", last_name="B")])])]
    )
    assert store.get_item(1).get_creators() == (Creator(first_name="A", last_name="B"),)
