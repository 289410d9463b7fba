"""Commit freeform card positions back into canonical sibling order."""

from loguru import logger

from manuscript_binder.config import FREEFORM_ROW_TOLERANCE
from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.models.item import Item, SpatialPosition

_ORIGIN = SpatialPosition(x=0.0, y=0.0)


def _position(item: Item) -> SpatialPosition:
    return item.spatial_position or _ORIGIN


def order_by_rows(items: list[Item], *, tolerance: float = FREEFORM_ROW_TOLERANCE) -> list[str]:
    """Return item ids in reading order: top row first, left to right.

    Items are grouped into rows; an item joins the current row when its y is
    less than ``tolerance`` below the y of the row's first item. Ties keep
    their existing relative order.
    """
    by_y = sorted(items, key=lambda i: _position(i).y)

    rows: list[list[Item]] = []
    for item in by_y:
        if rows and _position(item).y - _position(rows[-1][0]).y < tolerance:
            rows[-1].append(item)
        else:
            rows.append([item])

    ordered: list[str] = []
    for row in rows:
        ordered.extend(i.id for i in sorted(row, key=lambda i: _position(i).x))
    return ordered


class SpatialOrderCommitter:
    """Turns ad-hoc 2D positions into the parent's children order.

    Positions never affect canonical order until :meth:`commit_freeform_order`
    is called.
    """

    def __init__(self, store: ItemStore) -> None:
        self.store = store

    def set_spatial_position(self, item_id: str, x: float, y: float) -> Item:
        return self.store.update(item_id, spatial_position=SpatialPosition(x=x, y=y))

    def commit_freeform_order(
        self, parent_id: str, *, tolerance: float = FREEFORM_ROW_TOLERANCE
    ) -> tuple[str, ...]:
        """Reorder ``parent_id``'s children by their freeform positions.

        Children without a position are treated as sitting at the origin.
        Returns the committed order.
        """
        children = list(self.store.children_of(parent_id))
        order = order_by_rows(children, tolerance=tolerance)
        self.store.reorder_children(parent_id, order)
        logger.debug("Committed freeform order for {}: {}", parent_id, order)
        return tuple(order)
