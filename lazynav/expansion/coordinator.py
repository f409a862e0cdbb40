"""Expansion coordinator: expand/collapse intents to listings to tree writes.

Listing calls run on a thread pool. Each completion is posted to a queue and
applied by the single consumer thread in ``poll``, so per-node writes follow
completion order. Every request carries an id and a deadline; a request that
misses its deadline fails with ``FetchTimeout`` and its late completion is
ignored.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from queue import Empty, Queue

from ..config import DEFAULT_FETCH_TIMEOUT_SECONDS, DEFAULT_MAX_WORKERS
from ..errors import (
    DuplicateNodeIdError,
    FetchFailure,
    FetchTimeout,
    NavigationError,
    PersistenceFailure,
    UnknownNodeError,
)
from ..sources.types import DataGateway
from ..tree_model import NodeDraft, TreeModel, TreeNode
from .listing import build_children, listing_call
from .persistence import ExpandedNodeStore, add_node_id, remove_node_id

logger = logging.getLogger(__name__)

FailureNotifier = Callable[[NavigationError], None]
IDLE_POLL_SECONDS = 0.02


@dataclass(frozen=True)
class ExpansionEvent:
    """One user toggle: ``expanded`` is the state the user asked for."""

    node_id: str
    expanded: bool


@dataclass(frozen=True)
class _FetchCompletion:
    request_id: int
    listing: Sequence[object] | None
    error: BaseException | None


@dataclass(frozen=True)
class _PendingFetch:
    request_id: int
    node_id: str
    deadline: float
    future: Future


def log_failure(failure: NavigationError) -> None:
    """Default notifier: report the failure through the module logger."""
    logger.warning("%s", failure)


class ExpansionCoordinator:
    """Sole writer of ``children``/``loading``/``is_expanded`` on the tree model."""

    def __init__(
        self,
        model: TreeModel,
        gateway: DataGateway,
        store: ExpandedNodeStore,
        *,
        expanded_snapshot: frozenset[str] | None = None,
        notify: FailureNotifier | None = None,
        fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
        clock: Callable[[], float] = time.monotonic,
        executor: Executor | None = None,
    ) -> None:
        self.model = model
        self.gateway = gateway
        self.store = store
        # Seeds is_expanded for every child created this session; never re-read.
        self.expanded_snapshot = (
            frozenset(expanded_snapshot) if expanded_snapshot is not None else store.get_expanded_ids()
        )
        self.notify = notify or log_failure
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self._clock = clock
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="lazynav-listing",
        )
        self._lock = threading.Lock()
        self._next_request_id = 1
        self._pending: dict[int, _PendingFetch] = {}
        self._completions: Queue[_FetchCompletion] = Queue()

    # intents
    def handle(self, event: ExpansionEvent) -> None:
        if event.expanded:
            self.expand(event.node_id)
        else:
            self.collapse(event.node_id)

    def toggle(self, node_id: str) -> None:
        node = self._require(node_id)
        self.handle(ExpansionEvent(node_id=node_id, expanded=not node.is_expanded))

    def expand(self, node_id: str) -> None:
        """Mark ``node_id`` expanded, persist it, and start its listing fetch."""
        node = self._require(node_id)
        if not node.is_expandable:
            return

        def mark_expanded(draft: NodeDraft) -> None:
            draft.is_expanded = True
            draft.error = None

        self.model.modify(node_id, mark_expanded)
        self._persist(add_node_id(node_id))
        self._start_fetch(node_id)

    def collapse(self, node_id: str) -> None:
        """Mark ``node_id`` collapsed; an in-flight fetch becomes stale."""
        node = self._require(node_id)
        if not node.is_expandable:
            return

        def mark_collapsed(draft: NodeDraft) -> None:
            draft.is_expanded = False

        self.model.modify(node_id, mark_collapsed)
        self._persist(remove_node_id(node_id))

    def restore_expanded(self, nodes: Sequence[TreeNode]) -> None:
        """Fetch children for nodes seeded expanded from the snapshot."""
        for node in nodes:
            if node.is_expandable and node.is_expanded:
                self._start_fetch(node.id)

    # fetch lifecycle
    def _start_fetch(self, node_id: str) -> None:
        node = self.model.find(node_id)
        if node is None or node.loading:
            return
        call = listing_call(self.gateway, node)
        if call is None:
            return

        def mark_loading(draft: NodeDraft) -> None:
            draft.loading = True
            draft.error = None

        self.model.modify(node_id, mark_loading)
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            future = self._executor.submit(call)
            self._pending[request_id] = _PendingFetch(
                request_id=request_id,
                node_id=node_id,
                deadline=self._clock() + self.fetch_timeout_seconds,
                future=future,
            )
        logger.debug("listing %r (request %d)", node_id, request_id)
        future.add_done_callback(lambda done: self._completions.put(_completion_from(request_id, done)))

    def poll(self, timeout_seconds: float = 0.0) -> bool:
        """Apply finished fetches in completion order and expire overdue ones.

        Returns ``True`` when any node was updated.
        """
        processed = False
        if timeout_seconds > 0 and self.pending_count():
            try:
                first = self._completions.get(timeout=timeout_seconds)
            except Empty:
                first = None
            if first is not None:
                processed = self._apply_completion(first) or processed

        while True:
            try:
                completion = self._completions.get_nowait()
            except Empty:
                break
            processed = self._apply_completion(completion) or processed

        return self._expire_overdue() or processed

    def _apply_completion(self, completion: _FetchCompletion) -> bool:
        with self._lock:
            pending = self._pending.pop(completion.request_id, None)
        if pending is None:
            logger.debug("ignoring late listing for request %d", completion.request_id)
            return False
        if completion.error is not None:
            self._fail(pending.node_id, FetchFailure(pending.node_id, completion.error))
            return True
        self._write_listing(pending.node_id, completion.listing or ())
        return True

    def _write_listing(self, node_id: str, listing: Sequence[object]) -> None:
        node = self.model.find(node_id)
        if node is None:
            logger.debug("node %r left the tree before its listing arrived", node_id)
            return
        try:
            children = build_children(node, listing, self.expanded_snapshot)
        except (TypeError, ValueError) as exc:
            self._fail(node_id, FetchFailure(node_id, exc))
            return

        written: list[TreeNode] = []

        def settle(draft: NodeDraft) -> None:
            draft.loading = False
            if not draft.is_expanded:
                # Collapsed while in flight: the result is stale.
                return
            draft.children = list(children)
            draft.error = None
            written.extend(children)

        try:
            self.model.modify_if_present(node_id, settle)
        except DuplicateNodeIdError as exc:
            self._fail(node_id, FetchFailure(node_id, exc))
            return
        if not written:
            logger.debug("discarded stale listing for collapsed node %r", node_id)
            return
        self.restore_expanded(written)

    def _fail(self, node_id: str, failure: FetchFailure) -> None:
        def mark_failed(draft: NodeDraft) -> None:
            draft.loading = False
            draft.is_expanded = False
            draft.error = str(failure.cause) if failure.cause is not None else str(failure)

        self.model.modify_if_present(node_id, mark_failed)
        self.notify(failure)

    def _expire_overdue(self) -> bool:
        now = self._clock()
        with self._lock:
            overdue = [pending for pending in self._pending.values() if pending.deadline <= now]
            for pending in overdue:
                del self._pending[pending.request_id]
        for pending in overdue:
            pending.future.cancel()
            self._fail(pending.node_id, FetchTimeout(pending.node_id, self.fetch_timeout_seconds))
        return bool(overdue)

    # helpers
    def _require(self, node_id: str) -> TreeNode:
        node = self.model.find(node_id)
        if node is None:
            raise UnknownNodeError(node_id)
        return node

    def _persist(self, mutator: Callable[[set[str]], None]) -> None:
        try:
            self.store.update_expanded_set(mutator)
        except PersistenceFailure as failure:
            self.notify(failure)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def is_idle(self) -> bool:
        return self.pending_count() == 0 and self._completions.empty()

    def wait_idle(self, timeout_seconds: float) -> bool:
        """Pump ``poll`` until no fetch is pending or ``timeout_seconds`` passes."""
        deadline = time.monotonic() + max(0.0, timeout_seconds)
        while True:
            self.poll()
            if self.is_idle():
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self.poll(timeout_seconds=min(IDLE_POLL_SECONDS, remaining))

    def close(self) -> None:
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for entry in pending:
            entry.future.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)


def _completion_from(request_id: int, future: Future) -> _FetchCompletion:
    if future.cancelled():
        return _FetchCompletion(request_id=request_id, listing=None, error=None)
    error = future.exception()
    if error is not None:
        return _FetchCompletion(request_id=request_id, listing=None, error=error)
    return _FetchCompletion(request_id=request_id, listing=future.result(), error=None)


__all__ = [
    "ExpansionCoordinator",
    "ExpansionEvent",
    "FailureNotifier",
    "log_failure",
]
