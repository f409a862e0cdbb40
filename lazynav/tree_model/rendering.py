"""Plain-text formatting helpers for visible tree rows."""

from __future__ import annotations

from .types import TreeRow

LOADING_SUFFIX = " …"


def format_tree_row(row: TreeRow) -> str:
    """Render one visible row with an expansion marker and status suffixes."""
    node = row.node
    indent = "  " * row.depth
    if node.is_expandable:
        marker = "▾ " if node.is_expanded and not node.loading else "▸ "
    else:
        # Align leaves under the parent arrow column.
        marker = "  "
    suffix = ""
    if node.loading:
        suffix = LOADING_SUFFIX
    elif node.error:
        suffix = f"  [error: {node.error}]"
    return f"{indent}{marker}{node.label}{suffix}"


def format_tree_rows(rows: list[TreeRow]) -> str:
    return "\n".join(format_tree_row(row) for row in rows)
