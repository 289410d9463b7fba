"""Binder tree model and mutation engine for long-form manuscripts."""

from manuscript_binder.binder import Binder
from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.errors import (
    BinderError,
    IllegalRootOperation,
    InvalidParent,
    NotFound,
    SnapshotError,
)
from manuscript_binder.models.item import (
    CustomMetadataField,
    Item,
    ItemKind,
    MovePosition,
    PlanningMeta,
    ViewMode,
)

__all__ = [
    "Binder",
    "BinderError",
    "CustomMetadataField",
    "IllegalRootOperation",
    "InvalidParent",
    "Item",
    "ItemKind",
    "ItemStore",
    "MovePosition",
    "NotFound",
    "PlanningMeta",
    "SnapshotError",
    "ViewMode",
]
