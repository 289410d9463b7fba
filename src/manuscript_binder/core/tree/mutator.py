"""Structural operations on the binder tree: move, split, merge, import."""

import dataclasses
from collections.abc import Iterable

from loguru import logger

from manuscript_binder.config import DEFAULT_SPLIT_TITLE, MERGE_SEPARATOR
from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.core.tree.text import count_words, split_sections
from manuscript_binder.errors import IllegalRootOperation, InvalidParent
from manuscript_binder.models.item import Item, ItemKind, MovePosition, Status


class TreeMutator:
    """Restructures the tree held by an ItemStore.

    Every operation validates all of its preconditions before the first
    write, so a rejected call leaves the store untouched.
    """

    def __init__(self, store: ItemStore) -> None:
        self.store = store

    def _resolve_destination(
        self, dragged_id: str, target_id: str, position: MovePosition
    ) -> str:
        """Return the parent ``dragged_id`` would land under, or raise."""
        store = self.store
        store.require(dragged_id)
        if target_id not in store:
            raise InvalidParent(target_id, "target does not exist")
        if dragged_id == target_id:
            raise InvalidParent(target_id, "an item cannot be dropped onto itself")
        if store.is_root(dragged_id):
            raise IllegalRootOperation(dragged_id, "move")

        if position is MovePosition.INSIDE:
            new_parent = target_id
        else:
            parent = store.parent_of(target_id)
            if parent is None:
                reason = (
                    "the root set is fixed"
                    if store.is_root(target_id)
                    else "target is not attached to the tree"
                )
                raise InvalidParent(target_id, reason)
            new_parent = parent

        if new_parent == dragged_id or store.is_descendant(new_parent, dragged_id):
            raise InvalidParent(new_parent, f"it is inside {dragged_id!r}")
        return new_parent

    def move(self, dragged_id: str, target_id: str, position: MovePosition | str) -> str:
        """Move an item before, after or inside a target item.

        Returns the id of the item's new parent.

        Raises:
            NotFound: ``dragged_id`` is unknown.
            InvalidParent: the target is unknown, is the dragged item, lies
                inside the dragged item, or is a root for before/after.
            IllegalRootOperation: ``dragged_id`` is a root item.
        """
        position = MovePosition(position)
        new_parent = self._resolve_destination(dragged_id, target_id, position)
        store = self.store

        store.unlink_child(dragged_id)
        if position is MovePosition.INSIDE:
            store.link_child(new_parent, dragged_id)
            store.set_expanded(new_parent, True)
        else:
            target_index = store.child_ids(new_parent).index(target_id)
            index = target_index if position is MovePosition.BEFORE else target_index + 1
            store.link_child(new_parent, dragged_id, index=index)

        logger.debug("Moved {} {} {} (parent {})", dragged_id, position, target_id, new_parent)
        return new_parent

    def delete(self, item_id: str) -> str:
        """Move an item into the Trash root. Returns the trash id."""
        store = self.store
        store.require(item_id)
        if store.is_root(item_id):
            raise IllegalRootOperation(item_id, "delete")
        if store.trash_id is None:
            raise InvalidParent(None, "this binder has no trash")
        return self.move(item_id, store.trash_id, MovePosition.INSIDE)

    def split(
        self,
        item_id: str,
        content_before: str,
        content_after: str,
        new_title: str = DEFAULT_SPLIT_TITLE,
    ) -> str:
        """Split an item in two at a caret position.

        The original keeps ``content_before``; a new sibling holding
        ``content_after`` is inserted right after it. Returns the new id.
        """
        store = self.store
        original = store.require(item_id)
        if store.is_root(item_id):
            raise IllegalRootOperation(item_id, "split")
        parent_id = store.parent_of(item_id)
        if parent_id is None:
            raise InvalidParent(None, f"{item_id!r} has no parent to hold the split")

        store.update(item_id, content=content_before, word_count=count_words(content_before))

        now = store.now()
        sibling = dataclasses.replace(
            original,
            id=store.new_id(),
            title=new_title,
            content=content_after,
            word_count=count_words(content_after),
            external_sync=None,
            created_at=now,
            modified_at=now,
        )
        index = store.child_ids(parent_id).index(item_id) + 1
        store.insert(sibling, parent_id=parent_id, index=index)

        logger.debug("Split {} into {} and {}", item_id, item_id, sibling.id)
        return sibling.id

    def merge(self, target_id: str, source_ids: Iterable[str]) -> tuple[str, ...]:
        """Fold the sources into the target and delete them.

        Content is appended in the given order, separated by MERGE_SEPARATOR.
        Children of a merged source move to the end of the target's children.
        Returns the ids that were removed from the store.
        """
        store = self.store
        store.require(target_id)

        sources: list[str] = []
        for source_id in source_ids:
            if source_id == target_id or source_id in sources:
                continue
            store.require(source_id)
            if store.is_root(source_id):
                raise IllegalRootOperation(source_id, "merge")
            if store.is_descendant(target_id, source_id):
                raise InvalidParent(target_id, f"it is inside merge source {source_id!r}")
            sources.append(source_id)

        target = store.require(target_id)
        content = target.content
        word_count = target.word_count

        for source_id in sources:
            source = store.require(source_id)
            if source.content:
                content = (content or "") + MERGE_SEPARATOR + source.content
                word_count += source.word_count
            for child_id in source.children:
                store.unlink_child(child_id)
                store.link_child(target_id, child_id)
            store.remove(source_id)

        store.update(target_id, content=content, word_count=word_count)
        logger.debug("Merged {} into {}", sources, target_id)
        return tuple(sources)

    def import_and_split(self, parent_id: str, raw_text: str, separator: str) -> list[str]:
        """Create one document per separator-delimited section of ``raw_text``.

        New documents are appended to ``parent_id`` in text order. Returns
        their ids.
        """
        store = self.store
        if parent_id not in store:
            raise InvalidParent(parent_id, "parent does not exist")
        sections = split_sections(raw_text, separator)

        new_ids: list[str] = []
        for section in sections:
            now = store.now()
            item = Item(
                id=store.new_id(),
                kind=ItemKind.DOCUMENT,
                title=section.title,
                content=section.content,
                status=Status.TODO,
                word_count=section.word_count,
                created_at=now,
                modified_at=now,
            )
            store.insert(item, parent_id=parent_id)
            new_ids.append(item.id)

        store.set_expanded(parent_id, True)
        logger.debug("Imported {} sections under {}", len(new_ids), parent_id)
        return new_ids
