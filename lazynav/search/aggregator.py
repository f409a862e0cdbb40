"""Debounced multi-provider search with latest-query-wins publication.

Input flows through: clear published results, debounce, drop a repeat of the
previous settled value, trim, fan out to every provider, join, score, merge,
publish. Provider calls run on a thread pool; their completions are queued
with the query generation and applied in ``poll`` on the consumer thread.
A completion from any generation other than the active one is dropped.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from queue import Empty, Queue

from ..config import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_MAX_WORKERS, DEFAULT_SEARCH_TIMEOUT_SECONDS
from ..errors import NavigationError, SearchProviderFailure, SearchTimeout
from .scoring import DEFAULT_SCORER, RelevanceScorer, rank_results
from .types import SearchJoinPolicy, SearchProvider, SearchResult

logger = logging.getLogger(__name__)

ResultsListener = Callable[["list[SearchResult] | None"], None]
IDLE_POLL_SECONDS = 0.02
_NOTHING_SETTLED = object()


@dataclass(frozen=True)
class _ProviderCompletion:
    generation: int
    provider_idx: int
    results: Sequence[SearchResult] | None
    error: BaseException | None


@dataclass
class _ActiveQuery:
    generation: int
    term: str
    deadline: float
    futures: list[Future]
    outcomes: dict[int, Sequence[SearchResult] | BaseException] = field(default_factory=dict)
    merged: list[SearchResult] | None = None
    failed: bool = False


class SearchAggregator:
    """Turns raw keystroke values into one ranked, current result list.

    ``results`` is ``None`` while a search is pending or nothing was asked,
    and a list once the latest query has joined.
    """

    def __init__(
        self,
        providers: Sequence[SearchProvider],
        *,
        on_results: ResultsListener | None = None,
        notify: Callable[[NavigationError], None] | None = None,
        scorer: RelevanceScorer = DEFAULT_SCORER,
        join_policy: SearchJoinPolicy = SearchJoinPolicy.FAIL_FAST,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        timeout_seconds: float = DEFAULT_SEARCH_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
        clock: Callable[[], float] = time.monotonic,
        executor: Executor | None = None,
    ) -> None:
        self.providers = list(providers)
        self.on_results = on_results
        self.notify = notify or _log_search_failure
        self.scorer = scorer
        self.join_policy = join_policy
        self.debounce_seconds = debounce_seconds
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="lazynav-search",
        )
        self._lock = threading.Lock()
        self._completions: Queue[_ProviderCompletion] = Queue()
        self._generation = 0
        self._active: _ActiveQuery | None = None
        self._pending_value: str | None = None
        self._pending_due = 0.0
        self._last_settled: object = _NOTHING_SETTLED
        self.results: list[SearchResult] | None = None
        self.applied_term: str | None = None

    # input
    def submit(self, value: str) -> None:
        """Feed one raw input value (typically every keystroke)."""
        self._publish(None)
        self._pending_value = value
        self._pending_due = self._clock() + self.debounce_seconds

    def clear(self) -> None:
        """Drop pending input, cancel the active query, and clear results."""
        self._pending_value = None
        self._cancel_active()
        self._last_settled = _NOTHING_SETTLED
        self.applied_term = None
        self._publish(None)

    # pump
    def poll(self, timeout_seconds: float = 0.0) -> bool:
        """Settle due input, absorb provider completions, publish when joined.

        Returns ``True`` when results were published.
        """
        if timeout_seconds > 0 and self._active is not None and self._active.merged is None:
            try:
                first = self._completions.get(timeout=timeout_seconds)
            except Empty:
                first = None
            if first is not None:
                self._absorb(first)

        while True:
            try:
                completion = self._completions.get_nowait()
            except Empty:
                break
            self._absorb(completion)

        if self._pending_value is not None and self._clock() >= self._pending_due:
            value = self._pending_value
            self._pending_value = None
            self._settle(value)

        return self._maybe_publish()

    def _absorb(self, completion: _ProviderCompletion) -> None:
        active = self._active
        if active is None or completion.generation != active.generation or active.merged is not None:
            return
        if completion.error is not None:
            active.outcomes[completion.provider_idx] = completion.error
        else:
            active.outcomes[completion.provider_idx] = completion.results or ()

    def _settle(self, value: str) -> None:
        active = self._active
        if value == self._last_settled and (active is None or not active.failed):
            # Same value as the last settled input: the active query's result
            # is published again (or when it finishes) instead of re-dispatching.
            # A query that reported a failure is dispatched again.
            return

        self._last_settled = value
        self.applied_term = value
        self._cancel_active()
        term = value.strip()
        if not term:
            return
        self._dispatch(term)

    def _dispatch(self, term: str) -> None:
        with self._lock:
            self._generation += 1
            generation = self._generation
        active = _ActiveQuery(
            generation=generation,
            term=term,
            deadline=self._clock() + self.timeout_seconds,
            futures=[],
        )
        self._active = active
        logger.debug("dispatching search %r (generation %d)", term, generation)
        for provider_idx, provider in enumerate(self.providers):
            future = self._executor.submit(provider.search, term)
            active.futures.append(future)
            future.add_done_callback(
                lambda done, idx=provider_idx: self._completions.put(
                    _completion_from(generation, idx, done)
                )
            )

    def _cancel_active(self) -> None:
        active = self._active
        self._active = None
        if active is None:
            return
        for future in active.futures:
            future.cancel()

    def _maybe_publish(self) -> bool:
        active = self._active
        if active is None:
            return False
        if active.merged is None:
            merged = self._join(active)
            if merged is None:
                return False
            active.merged = merged
        if self._pending_value is not None:
            # A newer keystroke is still debouncing; hold the result back.
            return False
        if self.results is active.merged:
            return False
        self._publish(active.merged)
        return True

    def _join(self, active: _ActiveQuery) -> list[SearchResult] | None:
        """Return merged results once the query has joined, else ``None``."""
        failures: list[SearchProviderFailure] = []
        for provider_idx, outcome in sorted(active.outcomes.items()):
            if isinstance(outcome, BaseException):
                failures.append(SearchProviderFailure(self._provider_name(provider_idx), active.term, outcome))

        timed_out = self._clock() >= active.deadline
        complete = len(active.outcomes) == len(self.providers)
        fail_fast = self.join_policy is SearchJoinPolicy.FAIL_FAST

        if not complete and not timed_out and not (fail_fast and failures):
            return None

        if not complete and (timed_out or fail_fast):
            for provider_idx, future in enumerate(active.futures):
                if provider_idx in active.outcomes:
                    continue
                future.cancel()
                if timed_out and not (fail_fast and failures):
                    failures.append(
                        SearchTimeout(self._provider_name(provider_idx), active.term, self.timeout_seconds)
                    )

        active.failed = bool(failures)
        for failure in failures:
            self.notify(failure)
        if failures and fail_fast:
            return []

        batches = [
            outcome
            for _idx, outcome in sorted(active.outcomes.items())
            if not isinstance(outcome, BaseException)
        ]
        return rank_results(batches, self.scorer)

    def _provider_name(self, provider_idx: int) -> str:
        provider = self.providers[provider_idx]
        return str(getattr(provider, "name", type(provider).__name__))

    def _publish(self, results: list[SearchResult] | None) -> None:
        if results is None and self.results is None:
            return
        self.results = results
        if self.on_results is not None:
            self.on_results(results)

    # lifecycle
    def is_idle(self) -> bool:
        active = self._active
        return self._pending_value is None and (active is None or active.merged is not None)

    def wait_idle(self, timeout_seconds: float) -> bool:
        """Pump ``poll`` until input settled and the active query joined."""
        deadline = time.monotonic() + max(0.0, timeout_seconds)
        while True:
            self.poll()
            if self.is_idle():
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            if self._pending_value is not None:
                time.sleep(min(IDLE_POLL_SECONDS, remaining))
            else:
                self.poll(timeout_seconds=min(IDLE_POLL_SECONDS, remaining))

    def close(self) -> None:
        self._pending_value = None
        self._cancel_active()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)


def _completion_from(generation: int, provider_idx: int, future: Future) -> _ProviderCompletion:
    if future.cancelled():
        return _ProviderCompletion(generation, provider_idx, None, None)
    error = future.exception()
    if error is not None:
        return _ProviderCompletion(generation, provider_idx, None, error)
    return _ProviderCompletion(generation, provider_idx, list(future.result()), None)


def _log_search_failure(failure: NavigationError) -> None:
    logger.warning("%s", failure)


__all__ = ["SearchAggregator", "ResultsListener"]
