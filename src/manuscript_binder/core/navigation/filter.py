"""Search filtering and hoisting over the binder tree."""

from manuscript_binder.core.store.item_store import ItemStore


def tree_contains_match(store: ItemStore, item_id: str, term: str) -> bool:
    """True if the item's title or any descendant's title contains ``term``.

    Matching is case-insensitive. An empty term matches everything.
    """
    if not term:
        return True
    needle = term.casefold()
    return any(needle in item.title.casefold() for item in store.iter_subtree(item_id))


def visible_roots(store: ItemStore, *, hoisted_id: str | None, search_term: str) -> list[str]:
    """Root ids the binder should show.

    A hoisted item replaces the whole root list. Otherwise, with a search
    term, only roots whose subtree contains a match are kept.
    """
    if hoisted_id is not None:
        return [hoisted_id]
    if search_term:
        return [r for r in store.root_ids if tree_contains_match(store, r, search_term)]
    return list(store.root_ids)


def visible_children(store: ItemStore, item_id: str, *, search_term: str) -> list[str]:
    """Children of ``item_id`` that lie on a path to a search match."""
    children = store.child_ids(item_id)
    if not search_term:
        return list(children)
    return [c for c in children if tree_contains_match(store, c, search_term)]
