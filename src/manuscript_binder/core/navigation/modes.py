"""Presentation mode policy applied after a selection change."""

from manuscript_binder.models.item import ItemKind, ViewMode


def derive_mode(
    current_mode: ViewMode,
    item_kind: ItemKind,
    selection_size: int,
    *,
    extending: bool = False,
) -> ViewMode:
    """Pick the view mode for a newly selected item.

    Mind maps and timelines open in their own views, documents in the
    editor, and folders leave the editor for the corkboard. Nothing changes
    in outline mode, for multi/range selections, or when more than one item
    is selected.
    """
    if current_mode is ViewMode.OUTLINER or extending or selection_size != 1:
        return current_mode
    if item_kind is ItemKind.MINDMAP:
        return ViewMode.MINDMAP
    if item_kind is ItemKind.TIMELINE:
        return ViewMode.TIMELINE
    if item_kind is ItemKind.DOCUMENT:
        return ViewMode.EDITOR
    if item_kind is ItemKind.FOLDER and current_mode is ViewMode.EDITOR:
        return ViewMode.CORKBOARD
    return current_mode
