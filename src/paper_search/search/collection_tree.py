"""Assemble the folder forest shown in browse mode.

Every folder record becomes one node. Children are wired from each record's
child-folder list, papers from its child-item list. Folders whose parent id is
missing or unknown are roots. Papers filed nowhere are gathered into a
synthetic node with id ``0`` named after the library, appended last.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging

from paper_search.domain.model import (
    AttachmentCandidate,
    CollectionCandidate,
    IndexedPaper,
    LibraryIndex,
    PaperCandidate,
)
from paper_search.search.normalization import collation_key, normalize_positive_int


logger = logging.getLogger(__name__)

UNFILED_COLLECTION_ID = 0


def build_visible_candidate(candidate: IndexedPaper, exclude_attachment_id: object = None) -> PaperCandidate | None:
    """Project ``candidate`` for one query, dropping the excluded attachment.

    Returns ``None`` when no attachment is left to show.
    """
    exclude_id = normalize_positive_int(exclude_attachment_id)
    attachments = [
        AttachmentCandidate(attachment_id=attachment.attachment_id, title=attachment.title)
        for attachment in candidate.attachments
        if exclude_id is None or attachment.attachment_id != exclude_id
    ]
    if not attachments:
        return None
    return PaperCandidate(
        item_id=candidate.item_id,
        title=candidate.title,
        attachments=attachments,
        citation_key=candidate.citation_key,
        first_creator=candidate.first_creator,
        year=candidate.year,
        modified_at=candidate.modified_at,
    )


def build_visible_candidates(index: LibraryIndex, exclude_attachment_id: object = None) -> dict[int, PaperCandidate]:
    visible: dict[int, PaperCandidate] = {}
    for candidate in index.candidates:
        projected = build_visible_candidate(candidate, exclude_attachment_id)
        if projected is not None:
            visible[candidate.item_id] = projected
    return visible


def _reaches(start: CollectionCandidate, target: CollectionCandidate) -> bool:
    """True when ``target`` is ``start`` or one of its wired descendants."""
    seen: set[int] = set()
    stack = [start]
    while stack:
        node = stack.pop()
        if node is target:
            return True
        if id(node) in seen:
            continue
        seen.add(id(node))
        stack.extend(node.child_collections)
    return False


def build_collection_tree(
    index: LibraryIndex,
    visible: Mapping[int, PaperCandidate],
    library_name: str,
) -> list[CollectionCandidate]:
    """Return the top-level folders of ``index``, the unfiled node last.

    Args:
        index: Library snapshot to arrange
        visible: Per-query paper projections keyed by item id; papers missing
            here (every attachment excluded) are left out of every folder
        library_name: Display name of the synthetic unfiled node

    Returns:
        Root folders in store order, followed by the unfiled node when any
        unfiled paper is visible
    """
    nodes: dict[int, CollectionCandidate] = {
        collection.collection_id: CollectionCandidate(collection_id=collection.collection_id, name=collection.name)
        for collection in index.collections
    }

    for collection in index.collections:
        node = nodes[collection.collection_id]
        for child_id in collection.child_collection_ids:
            child = nodes.get(child_id)
            if child is None:
                continue
            if _reaches(child, node):
                logger.warning(
                    "Skipping folder edge %s -> %s in library %s: it would form a cycle",
                    collection.collection_id,
                    child_id,
                    index.library_id,
                )
                continue
            node.child_collections.append(child)
        for item_id in collection.child_item_ids:
            paper = visible.get(item_id)
            if paper is not None:
                node.papers.append(paper)

    roots = [
        nodes[collection.collection_id]
        for collection in index.collections
        if not collection.parent_id or collection.parent_id not in nodes
    ]

    unfiled = [visible[c.item_id] for c in index.candidates if c.is_unfiled and c.item_id in visible]
    if unfiled:
        unfiled.sort(key=lambda paper: collation_key(paper.title))
        roots.append(
            CollectionCandidate(
                collection_id=UNFILED_COLLECTION_ID,
                name=library_name,
                papers=unfiled,
            )
        )
    return roots
