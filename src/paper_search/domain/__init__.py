"""Domain layer - value objects and item variants with no infrastructure dependencies.

This layer contains:
- Index types built once per library snapshot (frozen)
- Per-query projections handed to callers (mutable, scored per query)
- The read-only item and collection capabilities a store must provide,
  with real records and synthetic portal items as tagged variants
"""

from paper_search.domain.items import (
    GLOBAL_CONVERSATION_KEY_BASE,
    PAPER_CONVERSATION_KEY_BASE,
    Creator,
    GlobalPortalItem,
    ItemKind,
    LibraryCollection,
    LibraryItem,
    PaperPortalItem,
    RecordCollection,
    RecordItem,
    create_global_portal_item,
    create_paper_portal_item,
    is_global_portal_item,
    is_paper_portal_item,
    resolve_paper_portal_base_item,
)
from paper_search.domain.model import (
    AttachmentCandidate,
    CollectionCandidate,
    IndexedAttachment,
    IndexedCollection,
    IndexedPaper,
    LibraryIndex,
    NormalizedFields,
    PaperCandidate,
    SlashToken,
)


__all__ = [
    "GLOBAL_CONVERSATION_KEY_BASE",
    "PAPER_CONVERSATION_KEY_BASE",
    "AttachmentCandidate",
    "CollectionCandidate",
    "Creator",
    "GlobalPortalItem",
    "IndexedAttachment",
    "IndexedCollection",
    "IndexedPaper",
    "ItemKind",
    "LibraryCollection",
    "LibraryIndex",
    "LibraryItem",
    "NormalizedFields",
    "PaperCandidate",
    "PaperPortalItem",
    "RecordCollection",
    "RecordItem",
    "SlashToken",
    "create_global_portal_item",
    "create_paper_portal_item",
    "is_global_portal_item",
    "is_paper_portal_item",
    "resolve_paper_portal_base_item",
]
