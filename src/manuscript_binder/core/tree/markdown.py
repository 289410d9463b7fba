"""Render binder subtrees as markdown."""

import io

from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.core.tree.text import strip_markup
from manuscript_binder.models.item import Status


def render_subtree_as_markdown(
    store: ItemStore,
    item_id: str,
    *,
    max_depth: int | None = None,
    include_synopsis: bool = True,
) -> str:
    """Render an item and its descendants as indented markdown.

    Args:
        store: Item store holding the tree.
        item_id: The root item to start rendering from.
        max_depth: Max levels below the start item to include (None = unlimited).
        include_synopsis: Whether to include item synopses.

    Returns:
        Markdown string with bullet-list hierarchy.
    """
    if item_id not in store:
        return ""

    out = io.StringIO()
    stack: list[tuple[str, int]] = [(item_id, 0)]
    while stack:
        current_id, depth = stack.pop()
        item = store.require(current_id)
        indent = "    " * depth

        # Format status checkbox
        prefix = "- "
        if item.status is not None:
            prefix = "- [x] " if item.status is Status.DONE else "- [ ] "

        details = [item.kind.value]
        if item.label is not None:
            details.append(item.label.value)
        if item.content is not None:
            details.append(f"{item.word_count} words")
        out.write(f"{indent}{prefix}{item.title} ({', '.join(details)})\n")

        if include_synopsis and item.synopsis:
            for line in strip_markup(item.synopsis).split("\n"):
                out.write(f"{indent}  > {line}\n")

        if not item.children:
            continue

        # Truncation indicator when children are cut off by max_depth
        if max_depth is not None and depth == max_depth:
            child_indent = "    " * (depth + 1)
            count = len(item.children)
            noun = "child" if count == 1 else "children"
            out.write(f"{child_indent}- ... ({count} more {noun}, id={item.id})\n")
            continue

        stack.extend((child_id, depth + 1) for child_id in reversed(item.children))

    return out.getvalue()
