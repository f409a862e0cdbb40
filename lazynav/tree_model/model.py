"""Arena-backed navigation tree with atomic per-node mutation.

Nodes are stored flat and indexed by id; structure lives in two index maps
(parent -> child ids, child -> parent id) so nodes never hold references to
each other. All reads and writes go through one re-entrant lock, which makes
each ``modify`` call a single step from any observer's point of view.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator

from ..errors import DuplicateNodeIdError, UnknownNodeError
from .types import NodeDraft, TreeNode, TreeRow

NODE_ID_SEPARATOR = "/"

NodeMutator = Callable[[NodeDraft], None]


def child_node_id(parent_id: str, key: str) -> str:
    """Return the hierarchical id for child ``key`` under ``parent_id``."""
    return f"{parent_id}{NODE_ID_SEPARATOR}{key}"


class TreeModel:
    """Mutable forest of ``TreeNode`` values keyed by globally unique id."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._nodes: dict[str, TreeNode] = {}
        self._children: dict[str, tuple[str, ...]] = {}
        self._parent: dict[str, str] = {}
        self._root_ids: tuple[str, ...] = ()

    # reads
    def __contains__(self, node_id: object) -> bool:
        with self._lock:
            return node_id in self._nodes

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def find(self, node_id: str) -> TreeNode | None:
        """Return the node for ``node_id`` or ``None`` when it is absent."""
        with self._lock:
            return self._nodes.get(node_id)

    def roots(self) -> tuple[TreeNode, ...]:
        with self._lock:
            return tuple(self._nodes[node_id] for node_id in self._root_ids)

    def children(self, node_id: str) -> tuple[TreeNode, ...] | None:
        """Return committed children, or ``None`` if no listing was ever written."""
        with self._lock:
            child_ids = self._children.get(node_id)
            if child_ids is None:
                return None
            return tuple(self._nodes[child_id] for child_id in child_ids)

    def parent_id(self, node_id: str) -> str | None:
        with self._lock:
            return self._parent.get(node_id)

    def node_ids(self) -> list[str]:
        with self._lock:
            return list(self._nodes)

    def visible_rows(self) -> list[TreeRow]:
        """Flatten the forest depth-first, descending only into expanded, settled nodes."""
        with self._lock:
            rows: list[TreeRow] = []
            for root_id in self._root_ids:
                self._collect_rows(root_id, 0, rows)
            return rows

    def _collect_rows(self, node_id: str, depth: int, rows: list[TreeRow]) -> None:
        node = self._nodes[node_id]
        rows.append(TreeRow(node=node, depth=depth))
        if not node.is_expanded or node.loading:
            return
        for child_id in self._children.get(node_id, ()):
            self._collect_rows(child_id, depth + 1, rows)

    # writes
    def initialize(self, roots: Iterable[TreeNode]) -> None:
        """Replace the whole forest with ``roots`` (no children yet)."""
        root_list = list(roots)
        _ensure_unique_ids(node.id for node in root_list)
        with self._lock:
            self._nodes = {node.id: node for node in root_list}
            self._children = {}
            self._parent = {}
            self._root_ids = tuple(node.id for node in root_list)

    def modify(self, node_id: str, mutator: NodeMutator) -> TreeNode:
        """Apply ``mutator`` to a draft of ``node_id`` and commit it atomically.

        Raises ``UnknownNodeError`` when the node is absent and
        ``DuplicateNodeIdError`` when new children would clash with ids outside
        the replaced subtree; in both cases the tree is left unchanged.
        """
        with self._lock:
            original = self._nodes.get(node_id)
            if original is None:
                raise UnknownNodeError(node_id)
            draft = NodeDraft.from_node(original)
            mutator(draft)
            if draft.children is not None:
                draft.has_children_listing = True
            updated = draft.to_node(original)
            if draft.children is not None:
                self._replace_children(node_id, draft.children)
            self._nodes[node_id] = updated
            return updated

    def modify_if_present(self, node_id: str, mutator: NodeMutator) -> TreeNode | None:
        """Like ``modify`` but returns ``None`` for an absent node."""
        with self._lock:
            if node_id not in self._nodes:
                return None
            return self.modify(node_id, mutator)

    def _replace_children(self, node_id: str, children: list[TreeNode]) -> None:
        retired = set(self._descendant_ids(node_id))
        new_ids = [child.id for child in children]
        _ensure_unique_ids(new_ids)
        for child_id in new_ids:
            if child_id == node_id or (child_id in self._nodes and child_id not in retired):
                raise DuplicateNodeIdError(child_id)

        for stale_id in retired:
            self._nodes.pop(stale_id, None)
            self._children.pop(stale_id, None)
            self._parent.pop(stale_id, None)
        for child in children:
            self._nodes[child.id] = child
            self._parent[child.id] = node_id
        self._children[node_id] = tuple(new_ids)

    def _descendant_ids(self, node_id: str) -> Iterator[str]:
        stack = list(self._children.get(node_id, ()))
        while stack:
            current = stack.pop()
            yield current
            stack.extend(self._children.get(current, ()))


def _ensure_unique_ids(node_ids: Iterable[str]) -> None:
    seen: set[str] = set()
    for node_id in node_ids:
        if node_id in seen:
            raise DuplicateNodeIdError(node_id)
        seen.add(node_id)


__all__ = [
    "NODE_ID_SEPARATOR",
    "NodeMutator",
    "TreeModel",
    "child_node_id",
]
