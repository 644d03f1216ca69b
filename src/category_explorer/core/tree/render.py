"""Render the explored tree as an indented outline."""

import io

from category_explorer.core.selection import SelectionTracker
from category_explorer.core.tree.store import TreeStore
from category_explorer.models.node import NodeId, VisualState

CHECKBOXES: dict[VisualState, str] = {
    VisualState.NONE: "[ ]",
    VisualState.SOME: "[-]",
    VisualState.ALL: "[x]",
    VisualState.DISABLED: "[/]",
}


def render_outline(
    store: TreeStore,
    tracker: SelectionTracker,
    *,
    node_id: NodeId | None = None,
    max_depth: int | None = None,
    include_articles: bool = False,
) -> str:
    """Render a node and its known descendants as an indented bullet list.

    Args:
        store: The tree to render.
        tracker: Selection used for checkbox states and incomplete markers.
        node_id: The node to start from (default: the explored category).
        max_depth: Max levels below the start node to include (None = unlimited).
        include_articles: Whether to list each category's known articles.

    Returns:
        One line per category: checkbox, label, id, and a ``!`` for incomplete
        selections.
    """
    start = node_id or store.top_id or store.root_id
    out = io.StringIO()

    todo: list[tuple[NodeId, int]] = [(start, 0)]
    seen: set[NodeId] = set()
    while todo:
        current, depth = todo.pop(0)
        if current in seen:
            continue
        seen.add(current)
        node = store.get(current)
        indent = "    " * depth

        checkbox = CHECKBOXES[tracker.visual_state(current)]
        marker = " !" if tracker.is_incomplete(current) else ""
        out.write(f"{indent}- {checkbox} {node.name}  (id={node.id}){marker}\n")

        if include_articles:
            for title in node.metadata.values():
                out.write(f"{indent}  > {title}\n")

        # Truncation indicator when children are cut off by max_depth
        if max_depth is not None and depth == max_depth:
            if node.children:
                child_indent = "    " * (depth + 1)
                count = len(node.children)
                noun = "child" if count == 1 else "children"
                out.write(f"{child_indent}- ... ({count} more {noun}, id={node.id})\n")
            continue

        todo = [(child_id, depth + 1) for child_id in node.children] + todo

    return out.getvalue()
