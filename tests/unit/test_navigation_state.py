"""Tests for selection, hoist, bookmarks, search filtering and view modes."""

import pytest

from manuscript_binder.core.navigation.filter import (
    tree_contains_match,
    visible_children,
    visible_roots,
)
from manuscript_binder.core.navigation.modes import derive_mode
from manuscript_binder.core.navigation.state import NavigationState
from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.errors import NotFound
from manuscript_binder.models.item import ItemKind, ViewMode


@pytest.fixture
def nav(store: ItemStore) -> NavigationState:
    return NavigationState(store)


# --- selection ---


def test_plain_click_replaces_selection(nav: NavigationState) -> None:
    nav.select("ch-1")
    nav.select("ch-2", multi=True)
    assert nav.select("res-1") == ["res-1"]
    assert nav.focused_id == "res-1"


def test_multi_click_toggles_but_never_empties(nav: NavigationState) -> None:
    nav.select("ch-1")
    assert nav.select("ch-2", multi=True) == ["ch-1", "ch-2"]
    assert nav.select("ch-1", multi=True) == ["ch-2"]
    assert nav.select("ch-2", multi=True) == ["ch-2"]


def test_range_click_adds_without_removing(nav: NavigationState) -> None:
    nav.select("ch-1")
    assert nav.select("ch-2", range_=True) == ["ch-1", "ch-2"]
    assert nav.select("ch-1", range_=True) == ["ch-1", "ch-2"]


def test_select_unknown_item(nav: NavigationState) -> None:
    with pytest.raises(NotFound):
        nav.select("missing")
    assert nav.selection == []


def test_view_root_is_independent_of_selection(nav: NavigationState) -> None:
    nav.select("scene-1-1")
    nav.set_view_root("ch-1")
    assert nav.view_root == "ch-1"
    assert nav.selection == ["scene-1-1"]
    nav.set_view_root(None)
    assert nav.view_root is None


def test_bookmarks_toggle(nav: NavigationState) -> None:
    assert nav.toggle_bookmark("scene-1-1") is True
    assert nav.is_bookmarked("scene-1-1")
    assert nav.toggle_bookmark("scene-1-1") is False
    assert nav.bookmarks == []
    with pytest.raises(NotFound):
        nav.toggle_bookmark("missing")


def test_forget_prunes_every_reference(nav: NavigationState) -> None:
    nav.select("ch-2")
    nav.select("res-1", multi=True)
    nav.set_view_root("ch-2")
    nav.set_hoist("ch-2")
    nav.toggle_bookmark("ch-2")

    nav.forget(["ch-2"], fallback="root-draft")

    assert nav.selection == ["res-1"]
    assert nav.bookmarks == []
    assert nav.view_root == "root-draft"
    assert nav.hoisted_id is None


# --- filtering ---


def test_search_keeps_roots_with_matching_descendants(store: ItemStore) -> None:
    roots = visible_roots(store, hoisted_id=None, search_term="incident")
    assert roots == ["root-draft"]
    assert visible_children(store, "root-draft", search_term="incident") == ["ch-1"]
    assert visible_children(store, "ch-1", search_term="incident") == ["scene-1-1"]


def test_search_is_case_insensitive(store: ItemStore) -> None:
    assert tree_contains_match(store, "root-research", "HISTORICAL")
    assert not tree_contains_match(store, "root-trash", "historical")


def test_no_search_term_shows_everything(store: ItemStore) -> None:
    assert visible_roots(store, hoisted_id=None, search_term="") == list(store.root_ids)
    assert visible_children(store, "root-draft", search_term="") == ["ch-1", "ch-2"]


def test_hoist_overrides_roots_and_search(store: ItemStore) -> None:
    assert visible_roots(store, hoisted_id="ch-1", search_term="research") == ["ch-1"]


def test_filter_is_recomputed_after_edits(store: ItemStore) -> None:
    assert visible_roots(store, hoisted_id=None, search_term="journey") == ["root-draft"]
    store.update("ch-2", title="Chapter 2: The Voyage")
    assert visible_roots(store, hoisted_id=None, search_term="journey") == []


# --- view modes ---


@pytest.mark.parametrize(
    ("current", "kind", "expected"),
    [
        (ViewMode.CORKBOARD, ItemKind.MINDMAP, ViewMode.MINDMAP),
        (ViewMode.EDITOR, ItemKind.TIMELINE, ViewMode.TIMELINE),
        (ViewMode.CORKBOARD, ItemKind.DOCUMENT, ViewMode.EDITOR),
        (ViewMode.EDITOR, ItemKind.FOLDER, ViewMode.CORKBOARD),
        (ViewMode.CORKBOARD, ItemKind.FOLDER, ViewMode.CORKBOARD),
        (ViewMode.MINDMAP, ItemKind.TRASH, ViewMode.MINDMAP),
        (ViewMode.OUTLINER, ItemKind.DOCUMENT, ViewMode.OUTLINER),
    ],
)
def test_derive_mode(current: ViewMode, kind: ItemKind, expected: ViewMode) -> None:
    assert derive_mode(current, kind, 1) is expected


def test_derive_mode_ignores_multi_selection() -> None:
    assert derive_mode(ViewMode.CORKBOARD, ItemKind.DOCUMENT, 2) is ViewMode.CORKBOARD
    assert (
        derive_mode(ViewMode.CORKBOARD, ItemKind.DOCUMENT, 1, extending=True)
        is ViewMode.CORKBOARD
    )
