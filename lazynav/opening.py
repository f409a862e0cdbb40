"""Open tree nodes and search results as workbox tabs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from .errors import NavigationError, OpenFailure
from .search.types import SearchResult
from .sources.types import FilesystemEntry
from .tree_model import NodeKind, TreeNode

logger = logging.getLogger(__name__)


class Workbox(Protocol):
    def open_or_create_tab(self, target_id: str) -> Any: ...

    def open_tab(self, tab: Any) -> None: ...


def open_target_for(node: TreeNode) -> str | None:
    """Return the tab target for an openable node, ``None`` for other kinds."""
    kind = node.kind
    if kind is NodeKind.APP:
        return node.id
    if kind is NodeKind.FILE:
        if isinstance(node.data, FilesystemEntry):
            return node.data.path
        return node.id
    if kind in (NodeKind.SOURCE, NodeKind.PROJECT, NodeKind.FOLDER):
        return None
    raise ValueError(f"unhandled node kind {kind!r}")


class NodeOpener:
    """Fire-and-forget tab opening; failures go to ``notify``, never raise."""

    def __init__(self, workbox: Workbox, notify: Callable[[NavigationError], None]) -> None:
        self.workbox = workbox
        self.notify = notify

    def open_node(self, node: TreeNode) -> bool:
        target = open_target_for(node)
        if target is None:
            return False
        return self._open(target)

    def open_search_result(self, result: SearchResult) -> bool:
        return self._open(result.id)

    def _open(self, target: str) -> bool:
        try:
            tab = self.workbox.open_or_create_tab(target)
            self.workbox.open_tab(tab)
        except Exception as exc:
            self.notify(OpenFailure(target, exc))
            return False
        logger.debug("opened %r", target)
        return True


__all__ = ["NodeOpener", "OpenFailure", "Workbox", "open_target_for"]
