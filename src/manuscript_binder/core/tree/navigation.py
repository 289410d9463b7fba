"""Tree navigation: breadcrumbs, siblings, subtree totals."""

from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.models.item import Breadcrumb, Item


def get_breadcrumbs(store: ItemStore, item_id: str) -> tuple[Breadcrumb, ...]:
    """Get ancestor breadcrumbs for an item.

    Returns breadcrumbs in order from root to immediate parent (excludes the item itself).
    """
    store.require(item_id)
    return tuple(
        Breadcrumb(item_id=ancestor_id, title=store.require(ancestor_id).title, depth=depth)
        for depth, ancestor_id in enumerate(store.ancestors(item_id))
    )


def get_siblings(
    store: ItemStore,
    item_id: str,
    *,
    count: int = 3,
) -> tuple[tuple[Item, ...], tuple[Item, ...]]:
    """Get siblings before and after an item.

    Returns (siblings_before, siblings_after) tuples.
    """
    store.require(item_id)
    parent_id = store.parent_of(item_id)
    if parent_id is None:
        return (), ()

    siblings = store.children_of(parent_id)
    index = next(i for i, s in enumerate(siblings) if s.id == item_id)
    return siblings[max(0, index - count) : index], siblings[index + 1 : index + 1 + count]


def subtree_word_count(store: ItemStore, item_id: str) -> int:
    """Total words of documents in a subtree, as shown on folder cards."""
    return sum(item.word_count for item in store.iter_subtree(item_id) if item.content is not None)
