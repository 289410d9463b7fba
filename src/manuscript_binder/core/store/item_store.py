"""Authoritative id -> item mapping for the binder."""

import dataclasses
import uuid
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime
from typing import Any

from loguru import logger

from manuscript_binder.config import (
    DRAFT_ROOT_ID,
    RESEARCH_ROOT_ID,
    ROOT_TITLES,
    TRASH_ROOT_ID,
)
from manuscript_binder.errors import IllegalRootOperation, InvalidParent, NotFound
from manuscript_binder.models.item import (
    EDITABLE_FIELDS,
    STRUCTURAL_FIELDS,
    Item,
    ItemKind,
    utcnow,
)
from manuscript_binder.protocols import IdFactory


def _default_id() -> str:
    return uuid.uuid4().hex[:12]


def default_roots(now: datetime | None = None) -> list[Item]:
    """Build the Draft, Research and Trash root items of a new project."""
    now = now or utcnow()
    kinds = {
        DRAFT_ROOT_ID: ItemKind.FOLDER,
        RESEARCH_ROOT_ID: ItemKind.FOLDER,
        TRASH_ROOT_ID: ItemKind.TRASH,
    }
    return [
        Item(
            id=root_id,
            kind=kinds[root_id],
            title=title,
            status=None,
            expanded=root_id != TRASH_ROOT_ID,
            created_at=now,
            modified_at=now,
        )
        for root_id, title in ROOT_TITLES.items()
    ]


class ItemStore:
    """Owns every item record and the canonical parent/child relation.

    ``children`` tuples are the source of truth for order. The parent index
    and each record's ``parent_id`` are derived from them and are only
    written by :meth:`link_child` and :meth:`unlink_child`.
    """

    def __init__(
        self,
        roots: Iterable[Item] | None = None,
        *,
        id_factory: IdFactory | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._id_factory = id_factory or _default_id
        self._clock = clock
        self._items: dict[str, Item] = {}
        self._parents: dict[str, str] = {}

        root_items = list(roots) if roots is not None else default_roots(clock())
        if not root_items:
            msg = "A binder needs at least one root item"
            raise ValueError(msg)
        for root in root_items:
            if root.id in self._items:
                msg = f"Duplicate root id: {root.id!r}"
                raise ValueError(msg)
            self._items[root.id] = dataclasses.replace(root, parent_id=None, children=())
        self._root_ids: tuple[str, ...] = tuple(r.id for r in root_items)

        trash = [r.id for r in root_items if r.kind is ItemKind.TRASH]
        self._trash_id: str | None = trash[0] if trash else None

    # --- Reads ---

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self._items.values()))

    @property
    def root_ids(self) -> tuple[str, ...]:
        return self._root_ids

    @property
    def trash_id(self) -> str | None:
        return self._trash_id

    def now(self) -> datetime:
        return self._clock()

    def is_root(self, item_id: str) -> bool:
        return item_id in self._root_ids

    def get(self, item_id: str) -> Item | None:
        return self._items.get(item_id)

    def require(self, item_id: str) -> Item:
        """Return the item or raise NotFound."""
        item = self._items.get(item_id)
        if item is None:
            raise NotFound(item_id)
        return item

    def parent_of(self, item_id: str) -> str | None:
        return self._parents.get(item_id)

    def child_ids(self, item_id: str) -> tuple[str, ...]:
        return self.require(item_id).children

    def children_of(self, item_id: str) -> tuple[Item, ...]:
        """Direct children of an item, in canonical order."""
        return tuple(self._items[c] for c in self.child_ids(item_id))

    def ancestors(self, item_id: str) -> list[str]:
        """Ancestor ids from the forest root down to the immediate parent."""
        chain: list[str] = []
        current = self._parents.get(item_id)
        while current is not None:
            chain.append(current)
            current = self._parents.get(current)
        chain.reverse()
        return chain

    def is_descendant(self, item_id: str, ancestor_id: str) -> bool:
        """True if ``ancestor_id`` is a proper ancestor of ``item_id``."""
        current = self._parents.get(item_id)
        while current is not None:
            if current == ancestor_id:
                return True
            current = self._parents.get(current)
        return False

    def iter_subtree(self, item_id: str) -> Iterator[Item]:
        """Yield an item and all of its descendants in pre-order."""
        stack = [item_id]
        while stack:
            current = self.require(stack.pop())
            yield current
            stack.extend(reversed(current.children))

    # --- Record lifecycle ---

    def new_id(self) -> str:
        while True:
            item_id = self._id_factory()
            if item_id not in self._items:
                return item_id
            logger.debug("Id collision on {}, retrying", item_id)

    def create(self, parent_id: str | None, kind: ItemKind, title: str) -> str:
        """Create an empty item and append it to ``parent_id``'s children.

        With ``parent_id=None`` the item is left orphaned; the caller has to
        attach it before it is reachable from any root.
        """
        if parent_id is not None and parent_id not in self._items:
            raise InvalidParent(parent_id, "parent does not exist")
        now = self._clock()
        item = Item(
            id=self.new_id(),
            kind=kind,
            title=title,
            created_at=now,
            modified_at=now,
        )
        self.insert(item, parent_id=parent_id)
        logger.debug("Created {} {!r} under {}", item.id, title, parent_id)
        return item.id

    def insert(self, item: Item, *, parent_id: str | None, index: int | None = None) -> Item:
        """Store a new record and link it under ``parent_id`` at ``index``.

        Used for items that arrive pre-populated (split, import). Any
        ``parent_id``/``children`` carried by the record are ignored.
        """
        if item.id in self._items:
            msg = f"Item id already in use: {item.id!r}"
            raise ValueError(msg)
        if parent_id is not None and parent_id not in self._items:
            raise InvalidParent(parent_id, "parent does not exist")
        self._items[item.id] = dataclasses.replace(item, parent_id=None, children=())
        if parent_id is not None:
            self.link_child(parent_id, item.id, index=index)
        return self._items[item.id]

    def update(self, item_id: str, **fields: Any) -> Item:
        """Replace non-structural fields of an item and refresh ``modified_at``."""
        item = self.require(item_id)
        structural = STRUCTURAL_FIELDS.intersection(fields)
        if structural:
            msg = f"Structural fields cannot be updated directly: {sorted(structural)!r}"
            raise ValueError(msg)
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            msg = f"Unknown item fields: {sorted(unknown)!r}"
            raise ValueError(msg)
        if "custom_metadata" in fields:
            fields["custom_metadata"] = dict(fields["custom_metadata"])
        if "keywords" in fields:
            fields["keywords"] = tuple(fields["keywords"])
        updated = dataclasses.replace(item, **fields, modified_at=self._clock())
        self._items[item_id] = updated
        return updated

    def set_expanded(self, item_id: str, expanded: bool) -> Item:
        """Set the binder disclosure flag without touching ``modified_at``."""
        item = self.require(item_id)
        if item.expanded != expanded:
            item = dataclasses.replace(item, expanded=expanded)
            self._items[item_id] = item
        return item

    def remove(self, item_id: str) -> Item:
        """Purge a record and unlink it from its parent.

        Only the tree mutator calls this; children must already be moved out.
        """
        item = self.require(item_id)
        if self.is_root(item_id):
            raise IllegalRootOperation(item_id, "remove")
        if item.children:
            msg = f"Cannot remove {item_id!r}: it still has {len(item.children)} children"
            raise ValueError(msg)
        self.unlink_child(item_id)
        del self._items[item_id]
        return item

    # --- Structural write path ---

    def link_child(self, parent_id: str, child_id: str, *, index: int | None = None) -> None:
        """Insert a detached item into ``parent_id``'s children at ``index``."""
        parent = self.require(parent_id)
        child = self.require(child_id)
        if self.is_root(child_id):
            raise IllegalRootOperation(child_id, "reparent")
        if child_id in self._parents:
            msg = f"Item {child_id!r} is still attached to {self._parents[child_id]!r}"
            raise ValueError(msg)
        if child_id == parent_id or self.is_descendant(parent_id, child_id):
            raise InvalidParent(parent_id, f"{child_id!r} cannot contain itself")

        siblings = list(parent.children)
        if index is None or index > len(siblings):
            index = len(siblings)
        siblings.insert(max(index, 0), child_id)
        self._items[parent_id] = dataclasses.replace(parent, children=tuple(siblings))
        self._items[child_id] = dataclasses.replace(child, parent_id=parent_id)
        self._parents[child_id] = parent_id

    def unlink_child(self, child_id: str) -> tuple[str, int] | None:
        """Detach an item from its parent.

        Returns (old_parent_id, old_index), or None if it had no parent.
        """
        child = self.require(child_id)
        parent_id = self._parents.pop(child_id, None)
        if parent_id is None:
            return None
        parent = self._items[parent_id]
        siblings = list(parent.children)
        index = siblings.index(child_id)
        del siblings[index]
        self._items[parent_id] = dataclasses.replace(parent, children=tuple(siblings))
        self._items[child_id] = dataclasses.replace(child, parent_id=None)
        return parent_id, index

    def reorder_children(self, parent_id: str, order: Iterable[str]) -> None:
        """Replace a parent's children with a permutation of themselves."""
        parent = self.require(parent_id)
        new_order = tuple(order)
        if sorted(new_order) != sorted(parent.children):
            msg = f"New order for {parent_id!r} is not a permutation of its children"
            raise ValueError(msg)
        self._items[parent_id] = dataclasses.replace(parent, children=new_order)

    # --- Integrity ---

    def validate(self) -> list[str]:
        """Return a description of every tree invariant violation."""
        problems: list[str] = []
        seen: dict[str, str] = {}

        for item in self._items.values():
            if len(set(item.children)) != len(item.children):
                problems.append(f"{item.id!r} lists a child more than once")
            for child_id in item.children:
                if child_id not in self._items:
                    problems.append(f"{item.id!r} references missing child {child_id!r}")
                    continue
                if child_id in seen and seen[child_id] != item.id:
                    problems.append(
                        f"{child_id!r} is listed under both {seen[child_id]!r} and {item.id!r}"
                    )
                seen[child_id] = item.id
                if self._items[child_id].parent_id != item.id:
                    problems.append(f"{child_id!r} does not point back to parent {item.id!r}")
                if self._parents.get(child_id) != item.id:
                    problems.append(f"Parent index out of sync for {child_id!r}")

        for item in self._items.values():
            if item.parent_id is None:
                continue
            if item.parent_id not in self._items:
                problems.append(f"{item.id!r} points to missing parent {item.parent_id!r}")
            elif seen.get(item.id) != item.parent_id:
                problems.append(f"{item.id!r} is missing from its parent's children")

        for root_id in self._root_ids:
            if root_id not in self._items:
                problems.append(f"Root {root_id!r} is missing")
            elif self._items[root_id].parent_id is not None or root_id in seen:
                problems.append(f"Root {root_id!r} has been reparented")

        for item_id in self._items:
            visited = {item_id}
            current = self._parents.get(item_id)
            while current is not None:
                if current in visited:
                    problems.append(f"Cycle through {item_id!r}")
                    break
                visited.add(current)
                current = self._parents.get(current)

        return problems
