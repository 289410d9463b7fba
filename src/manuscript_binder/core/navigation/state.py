"""Selection, view root, hoist, bookmarks and search term."""

from collections.abc import Iterable

from loguru import logger

from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.errors import NotFound


class NavigationState:
    """Navigation state over an ItemStore.

    Holds only ids; nothing here changes items or their ``modified_at``.
    """

    def __init__(self, store: ItemStore) -> None:
        self.store = store
        self.selection: list[str] = []
        self.focused_id: str | None = None
        self.view_root: str | None = None
        self.hoisted_id: str | None = None
        self.bookmarks: list[str] = []
        self.search_term: str = ""

    def _require(self, item_id: str) -> None:
        if item_id not in self.store:
            raise NotFound(item_id)

    def select(self, item_id: str, *, multi: bool = False, range_: bool = False) -> list[str]:
        """Update the selection for a click on ``item_id``.

        ``multi`` toggles membership but never removes the last member,
        ``range_`` adds without removing, and a plain click replaces the
        selection. Returns the new selection.
        """
        self._require(item_id)
        selection = list(self.selection)
        if multi:
            if item_id in selection:
                if len(selection) > 1:
                    selection.remove(item_id)
            else:
                selection.append(item_id)
        elif range_:
            if item_id not in selection:
                selection.append(item_id)
        else:
            selection = [item_id]

        self.selection = selection
        self.focused_id = item_id
        return list(selection)

    def replace_selection(self, item_ids: Iterable[str]) -> None:
        ids = list(dict.fromkeys(item_ids))
        for item_id in ids:
            self._require(item_id)
        self.selection = ids
        self.focused_id = ids[-1] if ids else None

    def set_view_root(self, item_id: str | None) -> None:
        if item_id is not None:
            self._require(item_id)
        self.view_root = item_id

    def set_hoist(self, item_id: str | None) -> None:
        if item_id is not None:
            self._require(item_id)
        self.hoisted_id = item_id

    def set_search_term(self, term: str) -> None:
        self.search_term = term

    def toggle_bookmark(self, item_id: str) -> bool:
        """Add or remove a bookmark. Returns True if now bookmarked."""
        if item_id in self.bookmarks:
            self.bookmarks.remove(item_id)
            return False
        self._require(item_id)
        self.bookmarks.append(item_id)
        return True

    def is_bookmarked(self, item_id: str) -> bool:
        return item_id in self.bookmarks

    def forget(self, item_ids: Iterable[str], *, fallback: str | None = None) -> None:
        """Drop ids that no longer exist from every part of the state.

        A forgotten view root is replaced by ``fallback``.
        """
        gone = set(item_ids)
        if not gone:
            return
        self.selection = [i for i in self.selection if i not in gone]
        self.bookmarks = [i for i in self.bookmarks if i not in gone]
        if self.focused_id in gone:
            self.focused_id = self.selection[-1] if self.selection else None
        if self.view_root in gone:
            self.view_root = fallback
        if self.hoisted_id in gone:
            self.hoisted_id = None
        logger.debug("Navigation forgot {}", sorted(gone))
