"""Unit tests for browse tree assembly."""

import logging

import pytest

from paper_search.domain.model import IndexedAttachment, IndexedCollection, IndexedPaper, LibraryIndex, NormalizedFields
from paper_search.search.collection_tree import (
    UNFILED_COLLECTION_ID,
    build_collection_tree,
    build_visible_candidate,
    build_visible_candidates,
)


def paper(item_id, title, *, attachment_ids=None, collection_ids=()):
    attachment_ids = attachment_ids or (item_id * 10,)
    return IndexedPaper(
        item_id=item_id,
        title=title,
        attachments=tuple(
            IndexedAttachment(attachment_id=attachment_id, title=f"PDF {attachment_id}", normalized_title="")
            for attachment_id in attachment_ids
        ),
        normalized=NormalizedFields(),
        collection_ids=tuple(collection_ids),
    )


def tree_for(index, exclude_attachment_id=None, name="My Library"):
    return build_collection_tree(index, build_visible_candidates(index, exclude_attachment_id), name)


def test_visible_candidate_copies_attachments_with_zero_scores():
    candidate = paper(1, "A", attachment_ids=(10, 11))

    visible = build_visible_candidate(candidate)

    assert [attachment.attachment_id for attachment in visible.attachments] == [10, 11]
    assert all(attachment.score == 0 for attachment in visible.attachments)
    assert visible.score == 0


@pytest.mark.parametrize("excluded", [11, 11.0, "11"])
def test_visible_candidate_drops_only_the_excluded_attachment(excluded):
    visible = build_visible_candidate(paper(1, "A", attachment_ids=(10, 11)), excluded)
    assert [attachment.attachment_id for attachment in visible.attachments] == [10]


@pytest.mark.parametrize("excluded", [0, -1, None, "nope", float("nan")])
def test_invalid_exclusion_is_ignored(excluded):
    visible = build_visible_candidate(paper(1, "A", attachment_ids=(10, 11)), excluded)
    assert len(visible.attachments) == 2


def test_visible_candidate_without_attachments_is_dropped():
    assert build_visible_candidate(paper(1, "A", attachment_ids=(10,)), 10) is None


def test_nested_folders_and_unfiled_node():
    index = LibraryIndex(
        library_id=1,
        candidates=(
            paper(6, "Folder Paper", collection_ids=(11,)),
            paper(7, "Loose Paper"),
        ),
        collections=(
            IndexedCollection(collection_id=10, name="Neural", child_collection_ids=(11,)),
            IndexedCollection(collection_id=11, name="Transformers", parent_id=10, child_item_ids=(6,)),
            IndexedCollection(collection_id=12, name="Reinforcement Learning"),
        ),
    )

    roots = tree_for(index)

    assert [node.name for node in roots] == ["Neural", "Reinforcement Learning", "My Library"]
    neural = roots[0]
    assert [child.name for child in neural.child_collections] == ["Transformers"]
    assert [p.item_id for p in neural.child_collections[0].papers] == [6]
    assert roots[-1].collection_id == UNFILED_COLLECTION_ID
    assert [p.item_id for p in roots[-1].papers] == [7]


def test_unfiled_node_is_omitted_when_empty():
    index = LibraryIndex(
        library_id=1,
        candidates=(paper(6, "Filed", collection_ids=(10,)),),
        collections=(IndexedCollection(collection_id=10, name="Only", child_item_ids=(6,)),),
    )
    assert [node.collection_id for node in tree_for(index)] == [10]


def test_unfiled_papers_sorted_case_insensitively():
    index = LibraryIndex(
        library_id=1,
        candidates=(paper(1, "beta"), paper(2, "Alpha"), paper(3, "gamma"), paper(4, "Beta two")),
    )

    roots = tree_for(index, name="Research")

    assert roots[0].name == "Research"
    assert [p.title for p in roots[0].papers] == ["Alpha", "beta", "Beta two", "gamma"]


def test_unfiled_accented_titles_sort_with_their_base_letter():
    index = LibraryIndex(library_id=1, candidates=(paper(1, "Zeta"), paper(2, "Étude"), paper(3, "Euler")))

    roots = tree_for(index)

    assert [p.title for p in roots[0].papers] == ["Étude", "Euler", "Zeta"]


def test_broken_parent_reference_becomes_root():
    index = LibraryIndex(
        library_id=1,
        collections=(IndexedCollection(collection_id=5, name="Orphan", parent_id=999),),
    )
    assert [node.name for node in tree_for(index)] == ["Orphan"]


def test_unknown_child_ids_are_skipped():
    index = LibraryIndex(
        library_id=1,
        candidates=(paper(1, "A", collection_ids=(10,)),),
        collections=(IndexedCollection(collection_id=10, name="Top", child_collection_ids=(404,), child_item_ids=(1, 2)),),
    )

    roots = tree_for(index)

    assert roots[0].child_collections == []
    assert [p.item_id for p in roots[0].papers] == [1]


def test_excluded_single_attachment_paper_leaves_folder():
    index = LibraryIndex(
        library_id=1,
        candidates=(
            paper(1, "Gone", attachment_ids=(10,), collection_ids=(5,)),
            paper(2, "Kept", attachment_ids=(20, 21), collection_ids=(5,)),
        ),
        collections=(IndexedCollection(collection_id=5, name="Folder", child_item_ids=(1, 2)),),
    )

    roots = tree_for(index, exclude_attachment_id=10)

    assert [p.item_id for p in roots[0].papers] == [2]


def test_folder_cycle_is_cut_and_logged(caplog):
    index = LibraryIndex(
        library_id=1,
        collections=(
            IndexedCollection(collection_id=1, name="Root", child_collection_ids=(2,)),
            IndexedCollection(collection_id=2, name="Middle", parent_id=1, child_collection_ids=(3,)),
            IndexedCollection(collection_id=3, name="Leaf", parent_id=2, child_collection_ids=(1,)),
        ),
    )

    with caplog.at_level(logging.WARNING, logger="paper_search.search.collection_tree"):
        roots = tree_for(index)

    assert [node.name for node in roots] == ["Root"]
    assert [node.name for node in roots[0].walk()] == ["Root", "Middle", "Leaf"]
    assert roots[0].child_collections[0].child_collections[0].child_collections == []
    assert "cycle" in caplog.text


def test_self_parenting_folder_is_not_wired_to_itself():
    index = LibraryIndex(
        library_id=1,
        collections=(IndexedCollection(collection_id=1, name="Loop", child_collection_ids=(1,)),),
    )

    roots = tree_for(index)

    assert [node.name for node in roots] == ["Loop"]
    assert roots[0].child_collections == []


def test_tree_serializes_to_plain_dicts():
    index = LibraryIndex(library_id=1, candidates=(paper(1, "A"),))
    payload = tree_for(index)[0].to_dict()
    assert payload["collection_id"] == 0
    assert payload["papers"][0]["item_id"] == 1
    assert payload["papers"][0]["attachments"][0]["attachment_id"] == 10
