"""Durable expanded-node set with atomic read-modify-write updates."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Protocol

from .. import config
from ..errors import PersistenceFailure

logger = logging.getLogger(__name__)

ExpandedSetMutator = Callable[[set[str]], None]
FailureReporter = Callable[[PersistenceFailure], None]


def add_node_id(node_id: str) -> ExpandedSetMutator:
    """Mutator that records ``node_id`` as expanded."""

    def mutate(expanded: set[str]) -> None:
        expanded.add(node_id)

    return mutate


def remove_node_id(node_id: str) -> ExpandedSetMutator:
    """Mutator that forgets ``node_id``."""

    def mutate(expanded: set[str]) -> None:
        expanded.discard(node_id)

    return mutate


class ExpandedNodeStore(Protocol):
    def get_expanded_ids(self) -> frozenset[str]: ...

    def update_expanded_set(self, mutator: ExpandedSetMutator) -> None: ...


class MemoryExpandedNodeStore:
    """Process-local store; the ordering of ids follows first insertion."""

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._ids: list[str] = list(dict.fromkeys(initial))

    def get_expanded_ids(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._ids)

    def ordered_ids(self) -> list[str]:
        with self._lock:
            return list(self._ids)

    def update_expanded_set(self, mutator: ExpandedSetMutator) -> None:
        with self._lock:
            self._ids = _apply_mutator(self._ids, mutator)


class ConfigExpandedNodeStore:
    """Store backed by the ``expanded_nodes`` key of the JSON config file.

    The in-memory list is authoritative for this process. A failed write is
    reported and the in-memory state is kept, so navigation continues with
    the last known expansion state.
    """

    def __init__(self, on_failure: FailureReporter | None = None) -> None:
        self._lock = threading.Lock()
        self._on_failure = on_failure
        self._ids: list[str] = config.load_expanded_node_ids()

    def get_expanded_ids(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._ids)

    def ordered_ids(self) -> list[str]:
        with self._lock:
            return list(self._ids)

    def update_expanded_set(self, mutator: ExpandedSetMutator) -> None:
        with self._lock:
            updated = _apply_mutator(self._ids, mutator)
            if updated == self._ids:
                return
            self._ids = updated
            try:
                config.save_expanded_node_ids(updated)
            except PersistenceFailure as failure:
                logger.warning("keeping in-memory expansion state: %s", failure)
                if self._on_failure is not None:
                    self._on_failure(failure)


def _apply_mutator(current: list[str], mutator: ExpandedSetMutator) -> list[str]:
    """Run ``mutator`` on a set copy; keep surviving ids in order, append new ones."""
    working = set(current)
    mutator(working)
    kept = [node_id for node_id in current if node_id in working]
    added = sorted(working.difference(current))
    return kept + added


__all__ = [
    "ExpandedSetMutator",
    "ExpandedNodeStore",
    "MemoryExpandedNodeStore",
    "ConfigExpandedNodeStore",
    "add_node_id",
    "remove_node_id",
]
