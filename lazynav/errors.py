"""Failure taxonomy for navigation-tree synchronization.

Every failure is locally recoverable: fetch failures by re-toggling the node,
search failures by typing again, persistence failures by the next toggle.
"""

from __future__ import annotations


class NavigationError(Exception):
    """Base class for all recoverable navigation failures."""


class FetchFailure(NavigationError):
    """A listing call for one node was rejected."""

    def __init__(self, node_id: str, cause: BaseException | None = None) -> None:
        self.node_id = node_id
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to list children of {node_id!r}{detail}")


class FetchTimeout(FetchFailure):
    """A listing call did not resolve before its deadline."""

    def __init__(self, node_id: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(node_id, TimeoutError(f"no response after {timeout_seconds:g}s"))


class SearchProviderFailure(NavigationError):
    """One search provider failed for one query."""

    def __init__(self, provider: str, term: str, cause: BaseException | None = None) -> None:
        self.provider = provider
        self.term = term
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"search provider {provider!r} failed for {term!r}{detail}")


class SearchTimeout(SearchProviderFailure):
    """A search provider did not answer before the query deadline."""

    def __init__(self, provider: str, term: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(provider, term, TimeoutError(f"no response after {timeout_seconds:g}s"))


class PersistenceFailure(NavigationError):
    """The expanded-id set (or config) could not be written."""

    def __init__(self, cause: BaseException | None = None) -> None:
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to persist navigation state{detail}")


class OpenFailure(NavigationError):
    """The workbox could not materialize a tab for a target."""

    def __init__(self, target: str, cause: BaseException) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"failed to open {target!r}: {cause}")


class DuplicateNodeIdError(NavigationError):
    """A tree mutation would introduce an id that already exists."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"duplicate node id {node_id!r}")


class UnknownNodeError(NavigationError, KeyError):
    """An explicit intent (expand/collapse/modify) targeted a missing node."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"unknown node id {node_id!r}")

    def __str__(self) -> str:
        return f"unknown node id {self.node_id!r}"


__all__ = [
    "NavigationError",
    "FetchFailure",
    "FetchTimeout",
    "SearchProviderFailure",
    "SearchTimeout",
    "PersistenceFailure",
    "OpenFailure",
    "DuplicateNodeIdError",
    "UnknownNodeError",
]
