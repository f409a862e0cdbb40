"""Node datatypes shared by the tree model, expansion, and rendering code."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any


class NodeKind(enum.Enum):
    """Closed set of navigation node variants."""

    SOURCE = "source"
    PROJECT = "project"
    FOLDER = "folder"
    FILE = "file"
    APP = "app"


@dataclass(frozen=True)
class TreeNode:
    """One committed node. Children live in the owning ``TreeModel`` arena."""

    id: str
    label: str
    kind: NodeKind
    is_expandable: bool = False
    is_expanded: bool = False
    loading: bool = False
    data: Any = None
    error: str | None = None
    # False until the first successful listing has been written.
    has_children_listing: bool = False


@dataclass
class NodeDraft:
    """Mutable working copy handed to ``TreeModel.modify`` mutators.

    ``children`` is ``None`` to keep the committed children untouched, or a
    list that replaces them wholesale.
    """

    id: str
    label: str
    kind: NodeKind
    is_expandable: bool
    is_expanded: bool
    loading: bool
    data: Any
    error: str | None
    has_children_listing: bool
    children: list[TreeNode] | None = field(default=None)

    @classmethod
    def from_node(cls, node: TreeNode) -> "NodeDraft":
        return cls(
            id=node.id,
            label=node.label,
            kind=node.kind,
            is_expandable=node.is_expandable,
            is_expanded=node.is_expanded,
            loading=node.loading,
            data=node.data,
            error=node.error,
            has_children_listing=node.has_children_listing,
        )

    def to_node(self, original: TreeNode) -> TreeNode:
        return replace(
            original,
            label=self.label,
            kind=self.kind,
            is_expandable=self.is_expandable,
            is_expanded=self.is_expanded,
            loading=self.loading,
            data=self.data,
            error=self.error,
            has_children_listing=self.has_children_listing,
        )


@dataclass(frozen=True)
class TreeRow:
    """One visible row produced by flattening the expanded tree."""

    node: TreeNode
    depth: int


__all__ = [
    "NodeKind",
    "TreeNode",
    "NodeDraft",
    "TreeRow",
]
