"""Domain models for the binder tree."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class ItemKind(StrEnum):
    FOLDER = "folder"
    DOCUMENT = "document"
    MINDMAP = "mindmap"
    TIMELINE = "timeline"
    TRASH = "trash"


class Status(StrEnum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class Label(StrEnum):
    CHAPTER = "Chapter"
    SCENE = "Scene"
    CHARACTER = "Character"
    LOCATION = "Location"
    IDEA = "Idea"


class MovePosition(StrEnum):
    """Where a dragged item lands relative to the drop target."""

    BEFORE = "before"
    INSIDE = "inside"
    AFTER = "after"


class ViewMode(StrEnum):
    EDITOR = "editor"
    CORKBOARD = "corkboard"
    OUTLINER = "outliner"
    MINDMAP = "mindmap"
    TIMELINE = "timeline"


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class SpatialPosition:
    """Card position on the freeform corkboard or mind map canvas."""

    x: float
    y: float


@dataclass(frozen=True)
class ExternalSync:
    """Settings for syncing an item with a file outside the project."""

    enabled: bool
    path: str
    last_sync: datetime | None = None


class FieldType(StrEnum):
    TEXT = "text"
    DATE = "date"
    CHECKBOX = "checkbox"
    LIST = "list"


@dataclass(frozen=True)
class PlanningMeta:
    """Layout of an item drawn on a mind map or timeline."""

    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    color: str | None = None
    # Ids of mind map nodes this one is linked to.
    connections: tuple[str, ...] = ()
    timeline_lane: str | None = None


@dataclass(frozen=True)
class CustomMetadataField:
    """A project-wide metadata column; items key their values by ``id``."""

    id: str
    name: str
    type: FieldType = FieldType.TEXT
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class Item:
    """A single node in the binder tree.

    Records are immutable; the store swaps in a new record on every change.
    ``children`` is the only source of sibling order.
    """

    id: str
    kind: ItemKind
    title: str
    parent_id: str | None = None
    children: tuple[str, ...] = ()
    content: str | None = None
    synopsis: str = ""
    status: Status | None = Status.TODO
    label: Label | None = None
    word_count: int = 0
    word_count_target: int | None = None
    custom_metadata: Mapping[str, str | bool] = field(default_factory=dict)
    keywords: tuple[str, ...] = ()
    card_image: str | None = None
    icon: str | None = None
    expanded: bool = True
    spatial_position: SpatialPosition | None = None
    external_sync: ExternalSync | None = None
    meta: PlanningMeta | None = None
    has_snapshots: bool = False
    has_comments: bool = False
    created_at: datetime = field(default_factory=utcnow)
    modified_at: datetime = field(default_factory=utcnow)


# Fields callers may change through ItemStore.update().
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "content",
        "synopsis",
        "status",
        "label",
        "word_count",
        "word_count_target",
        "custom_metadata",
        "keywords",
        "icon",
        "expanded",
        "spatial_position",
        "external_sync",
        "card_image",
        "meta",
        "has_snapshots",
        "has_comments",
    }
)

# Fields owned by the tree mutator.
STRUCTURAL_FIELDS: frozenset[str] = frozenset({"id", "parent_id", "children"})


@dataclass(frozen=True)
class Breadcrumb:
    """A single ancestor in a breadcrumb trail."""

    item_id: str
    title: str
    depth: int


@dataclass(frozen=True)
class ChangeEvent:
    """Notification sent to binder listeners after a mutation."""

    action: str
    item_ids: tuple[str, ...] = ()
