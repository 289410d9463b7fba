"""Convert the item store to and from JSON-compatible snapshots.

Snapshot layout::

    {
        "version": 1,
        "root_ids": ["root-draft", ...],
        "items": {"<id>": {...item fields...}, ...},
        "custom_metadata_fields": [{"id": ..., "name": ..., "type": ...}, ...],
        "navigation": {...}
    }

Loading re-checks referential integrity. With ``repair=False`` any problem
raises SnapshotError; with ``repair=True`` the tree is rebuilt from the
``children`` lists, dropping bad references and moving stranded items to
the trash.
"""

import json
from collections import deque
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.errors import SnapshotError
from manuscript_binder.models.item import (
    CustomMetadataField,
    ExternalSync,
    FieldType,
    Item,
    ItemKind,
    Label,
    PlanningMeta,
    SpatialPosition,
    Status,
    utcnow,
)
from manuscript_binder.protocols import IdFactory

SNAPSHOT_VERSION = 1


def _dt_to_str(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _str_to_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def item_to_dict(item: Item) -> dict[str, Any]:
    """Serialize an item with enums by value and datetimes as ISO 8601."""
    data: dict[str, Any] = {
        "id": item.id,
        "parent_id": item.parent_id,
        "kind": item.kind.value,
        "title": item.title,
        "children": list(item.children),
        "content": item.content,
        "synopsis": item.synopsis,
        "status": item.status.value if item.status is not None else None,
        "label": item.label.value if item.label is not None else None,
        "word_count": item.word_count,
        "word_count_target": item.word_count_target,
        "custom_metadata": dict(item.custom_metadata),
        "keywords": list(item.keywords),
        "card_image": item.card_image,
        "icon": item.icon,
        "expanded": item.expanded,
        "spatial_position": None,
        "external_sync": None,
        "meta": None,
        "has_snapshots": item.has_snapshots,
        "has_comments": item.has_comments,
        "created_at": _dt_to_str(item.created_at),
        "modified_at": _dt_to_str(item.modified_at),
    }
    if item.spatial_position is not None:
        data["spatial_position"] = {"x": item.spatial_position.x, "y": item.spatial_position.y}
    if item.external_sync is not None:
        data["external_sync"] = {
            "enabled": item.external_sync.enabled,
            "path": item.external_sync.path,
            "last_sync": _dt_to_str(item.external_sync.last_sync),
        }
    if item.meta is not None:
        data["meta"] = {
            "x": item.meta.x,
            "y": item.meta.y,
            "width": item.meta.width,
            "height": item.meta.height,
            "color": item.meta.color,
            "connections": list(item.meta.connections),
            "timeline_lane": item.meta.timeline_lane,
        }
    return data


def _meta_from_dict(data: dict[str, Any] | None) -> PlanningMeta | None:
    if not data:
        return None
    return PlanningMeta(
        x=data.get("x"),
        y=data.get("y"),
        width=data.get("width"),
        height=data.get("height"),
        color=data.get("color"),
        connections=tuple(data.get("connections") or ()),
        timeline_lane=data.get("timeline_lane"),
    )


def item_from_dict(data: dict[str, Any]) -> Item:
    """Parse an item record. Raises KeyError/ValueError on malformed input."""
    position = data.get("spatial_position")
    sync = data.get("external_sync")
    now = utcnow()
    return Item(
        id=data["id"],
        kind=ItemKind(data["kind"]),
        title=data.get("title", ""),
        parent_id=data.get("parent_id"),
        children=tuple(data.get("children", [])),
        content=data.get("content"),
        synopsis=data.get("synopsis", ""),
        status=Status(data["status"]) if data.get("status") else None,
        label=Label(data["label"]) if data.get("label") else None,
        word_count=data.get("word_count", 0),
        word_count_target=data.get("word_count_target"),
        custom_metadata=dict(data.get("custom_metadata") or {}),
        keywords=tuple(data.get("keywords") or ()),
        card_image=data.get("card_image"),
        icon=data.get("icon"),
        expanded=data.get("expanded", True),
        spatial_position=SpatialPosition(x=position["x"], y=position["y"]) if position else None,
        external_sync=(
            ExternalSync(
                enabled=sync["enabled"],
                path=sync["path"],
                last_sync=_str_to_dt(sync.get("last_sync")),
            )
            if sync
            else None
        ),
        meta=_meta_from_dict(data.get("meta")),
        has_snapshots=bool(data.get("has_snapshots", False)),
        has_comments=bool(data.get("has_comments", False)),
        created_at=_str_to_dt(data.get("created_at")) or now,
        modified_at=_str_to_dt(data.get("modified_at")) or now,
    )


def dump_store(store: ItemStore) -> dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "root_ids": list(store.root_ids),
        "items": {item.id: item_to_dict(item) for item in store},
    }


def field_to_dict(field: CustomMetadataField) -> dict[str, Any]:
    return {
        "id": field.id,
        "name": field.name,
        "type": field.type.value,
        "options": list(field.options),
    }


def fields_from_list(data: list[dict[str, Any]] | None) -> list[CustomMetadataField]:
    """Parse the custom metadata field registry.

    Raises:
        SnapshotError: a record is malformed or an id is used twice.
    """
    fields: list[CustomMetadataField] = []
    try:
        for raw in data or []:
            fields.append(
                CustomMetadataField(
                    id=raw["id"],
                    name=raw.get("name", raw["id"]),
                    type=FieldType(raw.get("type", FieldType.TEXT)),
                    options=tuple(raw.get("options") or ()),
                )
            )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SnapshotError([f"Malformed custom metadata field: {e!r}"]) from e
    ids = [f.id for f in fields]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise SnapshotError([f"Duplicate custom metadata field ids: {duplicates!r}"])
    return fields


def build_store(
    data: dict[str, Any],
    *,
    repair: bool = False,
    id_factory: IdFactory | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> tuple[ItemStore, list[str]]:
    """Rebuild an ItemStore from a snapshot, checking every reference.

    Returns the store and the list of problems found (all of them repaired
    when ``repair`` is set).

    Raises:
        SnapshotError: a problem was found and ``repair`` is False, or the
            snapshot is beyond repair (no roots, malformed records).
    """
    try:
        records = {key: item_from_dict(raw) for key, raw in data["items"].items()}
        root_ids: list[str] = list(data["root_ids"])
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SnapshotError([f"Malformed snapshot: {e!r}"]) from e

    problems: list[str] = []
    for key, record in records.items():
        if key != record.id:
            raise SnapshotError([f"Record key {key!r} does not match id {record.id!r}"])

    missing_roots = [r for r in root_ids if r not in records]
    if missing_roots:
        raise SnapshotError([f"Missing root items: {missing_roots!r}"])
    if not root_ids:
        raise SnapshotError(["Snapshot has no root items"])

    store = ItemStore(
        [records[r] for r in root_ids], id_factory=id_factory, clock=clock
    )
    for record in records.values():
        if record.id not in store:
            store.insert(record, parent_id=None)

    placed: set[str] = set(root_ids)

    def attach_subtree(top_id: str) -> None:
        todo: deque[str] = deque([top_id])
        while todo:
            parent_id = todo.popleft()
            for child_id in records[parent_id].children:
                if child_id not in records:
                    problems.append(f"{parent_id!r} references missing child {child_id!r}")
                    continue
                if child_id in placed:
                    problems.append(f"{child_id!r} is referenced more than once")
                    continue
                if records[child_id].parent_id != parent_id:
                    problems.append(
                        f"{child_id!r} is listed under {parent_id!r} "
                        f"but points to {records[child_id].parent_id!r}"
                    )
                store.link_child(parent_id, child_id)
                placed.add(child_id)
                todo.append(child_id)

    for root_id in root_ids:
        if records[root_id].parent_id is not None:
            problems.append(f"Root {root_id!r} points to parent {records[root_id].parent_id!r}")
        attach_subtree(root_id)

    fallback = store.trash_id or root_ids[-1]
    while len(placed) < len(records):
        stranded = [i for i in records if i not in placed]
        # Prefer the top of a stranded subtree so its shape survives.
        top = next(
            (i for i in stranded if records[i].parent_id not in stranded),
            stranded[0],
        )
        parent_id = records[top].parent_id
        if parent_id in placed:
            problems.append(f"{top!r} is missing from the children of {parent_id!r}")
        else:
            problems.append(f"{top!r} has missing parent {parent_id!r}")
            parent_id = fallback
        store.link_child(parent_id, top)
        placed.add(top)
        attach_subtree(top)

    if problems and not repair:
        raise SnapshotError(problems)
    for problem in problems:
        logger.warning("Repaired snapshot: {}", problem)
    return store, problems


def write_snapshot(path: Path, data: dict[str, Any]) -> None:
    path.write_text(json.dumps(data, sort_keys=True, indent=4) + "\n", encoding="utf-8")


def read_snapshot(path: Path) -> dict[str, Any]:
    """Read a project file.

    Raises:
        SnapshotError: the file is not JSON or does not hold a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotError([f"Malformed snapshot file {path}: {e}"]) from e
    if not isinstance(data, dict):
        raise SnapshotError([f"Malformed snapshot file {path}: expected a JSON object"])
    return data
