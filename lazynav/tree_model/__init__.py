"""In-memory navigation tree: node types, arena model, and row formatting.

Nodes are immutable values; ``TreeModel.modify`` is the only way to change
one, and it commits a whole draft (fields plus replacement children) at once.
"""

from __future__ import annotations

from .model import NODE_ID_SEPARATOR, NodeMutator, TreeModel, child_node_id
from .rendering import format_tree_row, format_tree_rows
from .types import NodeDraft, NodeKind, TreeNode, TreeRow

__all__ = [
    "NODE_ID_SEPARATOR",
    "NodeDraft",
    "NodeKind",
    "NodeMutator",
    "TreeModel",
    "TreeNode",
    "TreeRow",
    "child_node_id",
    "format_tree_row",
    "format_tree_rows",
]
