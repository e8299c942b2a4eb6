"""Shared test fixtures and configuration."""

import os

import pytest


# Complete test environment that overrides every config value
TEST_ENV = {
    "PAPER_SEARCH_DEFAULT_SEARCH_LIMIT": "20",
    "PAPER_SEARCH_ATTACHMENT_CONTENT_TYPE": "application/pdf",
    "PAPER_SEARCH_DEFAULT_LIBRARY_NAME": "My Library",
    "PAPER_SEARCH_INVALIDATE_ON_TYPES": "item,file,collection",
    "PAPER_SEARCH_INVALIDATE_ON_EVENTS": "add,modify,delete,move,remove,trash,refresh",
    "PAPER_SEARCH_LOG_LEVEL": "info",
    "PAPER_SEARCH_LOG_JSON": "true",
}

# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value

# Now we can safely import config-dependent modules
from paper_search.adapters.memory_store import (  # noqa: E402
    AttachmentRecord,
    CollectionRecord,
    CreatorRecord,
    InMemoryLibraryStore,
    ItemRecord,
    LibrarySnapshot,
)
from paper_search.config import Settings  # noqa: E402
from paper_search.service_layer.paper_search_service import PaperSearchService  # noqa: E402


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset the environment to test defaults before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


def make_paper(
    item_id: int,
    title: str,
    attachment_ids: tuple[int, ...] = (),
    *,
    attachment_titles: tuple[str, ...] = (),
    **fields,
) -> ItemRecord:
    """Build a regular item with PDF attachments (ids and optional titles)."""
    attachments = [
        AttachmentRecord(id=attachment_id, title=attachment_titles[i] if i < len(attachment_titles) else "")
        for i, attachment_id in enumerate(attachment_ids or (item_id + 100,))
    ]
    return ItemRecord(id=item_id, title=title, attachments=attachments, **fields)


@pytest.fixture
def research_snapshot() -> LibrarySnapshot:
    """Library 1: three filed/unfiled papers, a note-only item and a folder tree.

    Folders: Neural (10) -> Transformers (11), Vision (12).
    """
    return LibrarySnapshot(
        library_id=1,
        name="Research",
        items=[
            make_paper(
                1,
                "Attention Is All You Need",
                (101,),
                attachment_titles=("Full Text PDF",),
                citation_key="vaswani2017attention",
                date="2017-06-12",
                first_creator="Vaswani",
                creators=[
                    CreatorRecord(first_name="Ashish", last_name="Vaswani"),
                    CreatorRecord(first_name="Noam", last_name="Shazeer"),
                ],
                publication_title="Advances in Neural Information Processing Systems",
                conference_name="NeurIPS",
                collection_ids=[11],
                date_modified="2024-01-02T10:00:00Z",
            ),
            make_paper(
                2,
                "Working Memory Dynamics",
                (102, 103),
                attachment_titles=("Preprint", "Published Version"),
                date="2019",
                creators=[CreatorRecord(first_name="Alan", last_name="Baddeley")],
                date_modified="2023-05-01T08:00:00Z",
            ),
            make_paper(
                3,
                "Cien años de soledad",
                (104,),
                doi="10.1000/solitude",
                creators=[CreatorRecord(first_name="José", last_name="García Márquez")],
                date="1967",
                date_modified="2022-01-01T00:00:00Z",
            ),
            ItemRecord(
                id=4,
                title="Web snapshot only",
                attachments=[AttachmentRecord(id=106, title="Snapshot", content_type="text/html")],
            ),
            make_paper(
                5,
                "Deep Residual Learning for Image Recognition",
                (105,),
                short_title="ResNet",
                date="2016",
                collection_ids=[12],
                date_modified="2021-03-04T00:00:00Z",
            ),
        ],
        collections=[
            CollectionRecord(id=10, name="Neural", child_collection_ids=[11]),
            CollectionRecord(id=11, name="Transformers", parent_id=10, child_item_ids=[1]),
            CollectionRecord(id=12, name="Vision", child_item_ids=[5]),
        ],
    )


@pytest.fixture
def store(research_snapshot) -> InMemoryLibraryStore:
    return InMemoryLibraryStore([research_snapshot])


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def service(store, settings) -> PaperSearchService:
    return PaperSearchService(store, settings)


@pytest.fixture
def make_service(settings):
    """Factory building a service over an ad-hoc list of snapshots."""

    def _make(*snapshots: LibrarySnapshot, **overrides) -> tuple[PaperSearchService, InMemoryLibraryStore]:
        store = InMemoryLibraryStore(snapshots)
        active_settings = settings.model_copy(update=overrides) if overrides else settings
        return PaperSearchService(store, active_settings), store

    return _make


@pytest.fixture
def paper_factory():
    return make_paper
