"""Tests for rendering binder subtrees as markdown."""

from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.core.tree.markdown import render_subtree_as_markdown


def test_render_full_subtree(store: ItemStore) -> None:
    md = render_subtree_as_markdown(store, "root-draft")
    lines = md.splitlines()
    assert lines[0] == "- Draft (folder)"
    assert lines[1] == "    - [x] Chapter 1: The Beginning (folder, Chapter)"
    assert lines[2] == "        - [ ] The Incident (document, Scene, 7 words)"
    assert lines[3] == "          > Hero meets the villain in a dimly lit tavern."
    assert lines[4] == "    - [ ] Chapter 2: The Journey (folder, Chapter)"


def test_render_without_synopsis(store: ItemStore) -> None:
    md = render_subtree_as_markdown(store, "ch-1", include_synopsis=False)
    assert ">" not in md


def test_render_truncates_at_max_depth(store: ItemStore) -> None:
    md = render_subtree_as_markdown(store, "root-draft", max_depth=1)
    assert "The Incident" not in md
    assert "- ... (1 more child, id=ch-1)" in md


def test_render_unknown_item_is_empty(store: ItemStore) -> None:
    assert render_subtree_as_markdown(store, "missing") == ""
