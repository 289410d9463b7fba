"""The binder: one owned tree plus navigation state, with change listeners."""

import functools
import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any, ParamSpec, TypeVar

from loguru import logger

from manuscript_binder.config import DEFAULT_SPLIT_TITLE, FREEFORM_ROW_TOLERANCE
from manuscript_binder.core.navigation.filter import visible_children, visible_roots
from manuscript_binder.core.navigation.modes import derive_mode
from manuscript_binder.core.navigation.state import NavigationState
from manuscript_binder.core.persistence.snapshot import (
    SNAPSHOT_VERSION,
    build_store,
    dump_store,
    field_to_dict,
    fields_from_list,
)
from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.core.tree.markdown import render_subtree_as_markdown
from manuscript_binder.core.tree.mutator import TreeMutator
from manuscript_binder.core.tree.navigation import (
    get_breadcrumbs,
    get_siblings,
    subtree_word_count,
)
from manuscript_binder.core.tree.spatial import SpatialOrderCommitter
from manuscript_binder.errors import BinderError, SnapshotError
from manuscript_binder.models.item import (
    Breadcrumb,
    ChangeEvent,
    CustomMetadataField,
    ExternalSync,
    Item,
    ItemKind,
    MovePosition,
    ViewMode,
    utcnow,
)
from manuscript_binder.protocols import ChangeListener, IdFactory

P = ParamSpec("P")
R = TypeVar("R")


def _mutation(action: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Run a Binder method under the mutation lock, then notify listeners."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            binder: Binder = args[0]  # type: ignore[assignment]
            with binder._lock:
                result = func(*args, **kwargs)
                binder._notify(action, args[1:2], result)
            return result

        return wrapper

    return decorator


class Binder:
    """Read/write API over the manuscript tree.

    All structural and navigation changes go through this object. Mutations
    are serialized by a lock so they are observed in the order issued, and
    listeners are called after each one completes.
    """

    def __init__(
        self,
        store: ItemStore | None = None,
        *,
        view_mode: ViewMode = ViewMode.CORKBOARD,
    ) -> None:
        self.store = store or ItemStore()
        self.mutator = TreeMutator(self.store)
        self.spatial = SpatialOrderCommitter(self.store)
        self.navigation = NavigationState(self.store)
        self._view_mode = view_mode
        self._lock = threading.RLock()
        self._listeners: list[ChangeListener] = []
        self._custom_fields: list[CustomMetadataField] = []

        first_root = self.store.root_ids[0]
        self.navigation.replace_selection([first_root])
        self.navigation.set_view_root(first_root)

    # --- Observers ---

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, action: str, first_arg: tuple[Any, ...], result: Any) -> None:
        ids: list[str] = [a for a in first_arg if isinstance(a, str)]
        if isinstance(result, str) and result not in ids:
            ids.append(result)
        elif isinstance(result, (list, tuple)):
            ids.extend(r for r in result if isinstance(r, str) and r not in ids)
        event = ChangeEvent(action=action, item_ids=tuple(ids))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Binder listener failed on {}", action)

    # --- Reads ---

    def get(self, item_id: str) -> Item | None:
        return self.store.get(item_id)

    def children_of(self, item_id: str) -> tuple[Item, ...]:
        return self.store.children_of(item_id)

    def visible_roots(self) -> list[str]:
        return visible_roots(
            self.store,
            hoisted_id=self.navigation.hoisted_id,
            search_term=self.navigation.search_term,
        )

    def visible_children(self, item_id: str) -> list[str]:
        return visible_children(self.store, item_id, search_term=self.navigation.search_term)

    def selection(self) -> list[str]:
        return list(self.navigation.selection)

    def focused_id(self) -> str | None:
        return self.navigation.focused_id

    def view_root(self) -> str | None:
        return self.navigation.view_root

    def hoisted_id(self) -> str | None:
        return self.navigation.hoisted_id

    def bookmarks(self) -> list[str]:
        return list(self.navigation.bookmarks)

    def is_bookmarked(self, item_id: str) -> bool:
        return self.navigation.is_bookmarked(item_id)

    def search_term(self) -> str:
        return self.navigation.search_term

    def view_mode(self) -> ViewMode:
        return self._view_mode

    def breadcrumbs(self, item_id: str) -> tuple[Breadcrumb, ...]:
        return get_breadcrumbs(self.store, item_id)

    def siblings(
        self, item_id: str, *, count: int = 3
    ) -> tuple[tuple[Item, ...], tuple[Item, ...]]:
        return get_siblings(self.store, item_id, count=count)

    def subtree_word_count(self, item_id: str) -> int:
        return subtree_word_count(self.store, item_id)

    def scrivenings(self) -> list[Item]:
        """Selected items in selection order, for the combined editor."""
        return [item for i in self.navigation.selection if (item := self.store.get(i))]

    def custom_metadata_fields(self) -> list[CustomMetadataField]:
        return list(self._custom_fields)

    def render_markdown(self, item_id: str, *, max_depth: int | None = None) -> str:
        return render_subtree_as_markdown(self.store, item_id, max_depth=max_depth)

    def validate(self) -> list[str]:
        return self.store.validate()

    # --- Item writes ---

    @_mutation("create")
    def create(self, parent_id: str | None, kind: ItemKind, title: str) -> str:
        return self.store.create(parent_id, kind, title)

    @_mutation("update")
    def update(self, item_id: str, **fields: Any) -> Item:
        return self.store.update(item_id, **fields)

    @_mutation("update")
    def set_expanded(self, item_id: str, expanded: bool) -> Item:
        return self.store.set_expanded(item_id, expanded)

    @_mutation("update")
    def set_sync_settings(self, item_id: str, settings: ExternalSync | None) -> Item:
        return self.store.update(item_id, external_sync=settings)

    @_mutation("custom_field")
    def add_custom_metadata_field(self, field: CustomMetadataField) -> str:
        """Register a project-wide metadata field. Returns its id.

        Items store values for it in ``custom_metadata`` under the field id.
        """
        if any(f.id == field.id for f in self._custom_fields):
            msg = f"Custom metadata field already exists: {field.id!r}"
            raise ValueError(msg)
        self._custom_fields.append(field)
        logger.debug("Added custom metadata field {} ({})", field.id, field.type)
        return field.id

    @_mutation("update")
    def set_spatial_position(self, item_id: str, x: float, y: float) -> Item:
        return self.spatial.set_spatial_position(item_id, x, y)

    # --- Structural writes ---

    @_mutation("move")
    def move(self, dragged_id: str, target_id: str, position: MovePosition | str) -> str:
        return self.mutator.move(dragged_id, target_id, position)

    def try_move(self, dragged_id: str, target_id: str, position: MovePosition | str) -> bool:
        """Drag-and-drop variant of :meth:`move` that drops illegal moves silently."""
        try:
            self.move(dragged_id, target_id, position)
        except BinderError as e:
            logger.debug("Ignored drop of {} onto {}: {}", dragged_id, target_id, e)
            return False
        return True

    @_mutation("delete")
    def delete(self, item_id: str) -> str:
        return self.mutator.delete(item_id)

    @_mutation("split")
    def split(
        self,
        item_id: str,
        content_before: str,
        content_after: str,
        new_title: str = DEFAULT_SPLIT_TITLE,
    ) -> str:
        new_id = self.mutator.split(item_id, content_before, content_after, new_title)
        self.navigation.replace_selection([new_id])
        return new_id

    @_mutation("merge")
    def merge(self, target_id: str, source_ids: Iterable[str]) -> tuple[str, ...]:
        removed = self.mutator.merge(target_id, source_ids)
        self.navigation.forget(removed, fallback=target_id)
        self.navigation.replace_selection([target_id])
        return removed

    @_mutation("import")
    def import_and_split(self, parent_id: str, raw_text: str, separator: str) -> list[str]:
        return self.mutator.import_and_split(parent_id, raw_text, separator)

    @_mutation("commit_order")
    def commit_freeform_order(
        self, parent_id: str, *, tolerance: float = FREEFORM_ROW_TOLERANCE
    ) -> tuple[str, ...]:
        return self.spatial.commit_freeform_order(parent_id, tolerance=tolerance)

    # --- Navigation writes ---

    @_mutation("select")
    def select(
        self,
        item_id: str,
        *,
        multi: bool = False,
        range_: bool = False,
        auto_switch: bool = True,
    ) -> list[str]:
        selection = self.navigation.select(item_id, multi=multi, range_=range_)
        if auto_switch:
            self._view_mode = derive_mode(
                self._view_mode,
                self.store.require(item_id).kind,
                len(selection),
                extending=multi or range_,
            )
        return selection

    @_mutation("view_root")
    def set_view_root(self, item_id: str | None) -> None:
        self.navigation.set_view_root(item_id)

    @_mutation("hoist")
    def set_hoist(self, item_id: str | None) -> None:
        self.navigation.set_hoist(item_id)

    @_mutation("bookmark")
    def toggle_bookmark(self, item_id: str) -> bool:
        return self.navigation.toggle_bookmark(item_id)

    @_mutation("search")
    def set_search_term(self, term: str) -> None:
        self.navigation.set_search_term(term)

    @_mutation("view_mode")
    def set_view_mode(self, mode: ViewMode | str) -> None:
        self._view_mode = ViewMode(mode)

    # --- Snapshots ---

    def to_snapshot(self) -> dict[str, Any]:
        """Flat item map, root ids and navigation state, JSON-compatible."""
        with self._lock:
            data = dump_store(self.store)
            data["custom_metadata_fields"] = [field_to_dict(f) for f in self._custom_fields]
            nav = self.navigation
            data["navigation"] = {
                "selection": list(nav.selection),
                "focused_id": nav.focused_id,
                "view_root": nav.view_root,
                "hoisted_id": nav.hoisted_id,
                "bookmarks": list(nav.bookmarks),
                "search_term": nav.search_term,
                "view_mode": self._view_mode.value,
            }
            return data

    @classmethod
    def from_snapshot(
        cls,
        data: dict[str, Any],
        *,
        repair: bool = False,
        id_factory: IdFactory | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> "Binder":
        """Load a binder, re-validating every reference.

        Raises:
            SnapshotError: the snapshot is invalid and ``repair`` is False.
        """
        if data.get("version", SNAPSHOT_VERSION) != SNAPSHOT_VERSION:
            logger.warning("Loading snapshot version {}", data.get("version"))
        store, _ = build_store(data, repair=repair, id_factory=id_factory, clock=clock)
        custom_fields = fields_from_list(data.get("custom_metadata_fields"))
        nav_data = data.get("navigation") or {}
        if not isinstance(nav_data, dict):
            raise SnapshotError([f"Malformed navigation state: {nav_data!r}"])

        try:
            view_mode = ViewMode(nav_data.get("view_mode", ViewMode.CORKBOARD))
        except ValueError:
            logger.warning("Unknown view mode {!r}, using corkboard", nav_data.get("view_mode"))
            view_mode = ViewMode.CORKBOARD
        binder = cls(store, view_mode=view_mode)
        binder._custom_fields = custom_fields

        def known(item_id: str | None) -> str | None:
            if item_id is None or item_id in store:
                return item_id
            logger.warning("Dropping unknown id {} from navigation state", item_id)
            return None

        nav = binder.navigation
        selection = [i for i in nav_data.get("selection", []) if known(i)]
        if selection or "selection" in nav_data:
            nav.replace_selection(selection)
        nav.focused_id = known(nav_data.get("focused_id")) or nav.focused_id
        if "view_root" in nav_data:
            nav.view_root = known(nav_data["view_root"])
        nav.hoisted_id = known(nav_data.get("hoisted_id"))
        nav.bookmarks = [i for i in dict.fromkeys(nav_data.get("bookmarks", [])) if known(i)]
        nav.search_term = nav_data.get("search_term", "")
        return binder
