"""Tests for committing freeform card positions."""

import pytest

from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.core.tree.spatial import SpatialOrderCommitter
from manuscript_binder.errors import NotFound
from manuscript_binder.models.item import ItemKind


@pytest.fixture
def committer(store: ItemStore) -> SpatialOrderCommitter:
    return SpatialOrderCommitter(store)


def _cards(store: ItemStore, count: int) -> list[str]:
    return [store.create("ch-2", ItemKind.DOCUMENT, f"Card {n}") for n in range(count)]


def test_commit_orders_by_ascending_y(store: ItemStore, committer: SpatialOrderCommitter) -> None:
    a, b, c = _cards(store, 3)
    committer.set_spatial_position(a, 10, 100)
    committer.set_spatial_position(b, 10, 5)
    committer.set_spatial_position(c, 10, 50)

    order = committer.commit_freeform_order("ch-2", tolerance=20)

    assert order == (b, c, a)
    assert store.child_ids("ch-2") == (b, c, a)


def test_near_aligned_cards_are_ordered_by_x(
    store: ItemStore, committer: SpatialOrderCommitter
) -> None:
    a, b, c, d = _cards(store, 4)
    committer.set_spatial_position(a, 300, 12)
    committer.set_spatial_position(b, 100, 0)
    committer.set_spatial_position(c, 200, 8)
    committer.set_spatial_position(d, 0, 200)

    committer.commit_freeform_order("ch-2", tolerance=20)

    assert store.child_ids("ch-2") == (b, c, a, d)


def test_positions_do_not_change_order_until_commit(
    store: ItemStore, committer: SpatialOrderCommitter
) -> None:
    a, b = _cards(store, 2)
    committer.set_spatial_position(a, 0, 500)
    committer.set_spatial_position(b, 0, 0)
    assert store.child_ids("ch-2") == (a, b)
    committer.commit_freeform_order("ch-2")
    assert store.child_ids("ch-2") == (b, a)


def test_unpositioned_cards_sit_at_origin(
    store: ItemStore, committer: SpatialOrderCommitter
) -> None:
    a, b = _cards(store, 2)
    committer.set_spatial_position(a, 400, 400)
    committer.commit_freeform_order("ch-2")
    assert store.child_ids("ch-2") == (b, a)


def test_commit_unknown_parent(committer: SpatialOrderCommitter) -> None:
    with pytest.raises(NotFound):
        committer.commit_freeform_order("missing")


def test_set_position_unknown_item(committer: SpatialOrderCommitter) -> None:
    with pytest.raises(NotFound):
        committer.set_spatial_position("missing", 1, 2)
