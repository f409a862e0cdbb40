"""Navigation session bootstrap and facade.

Takes the expanded-id snapshot once, loads the root sources, and wires the
tree model, expansion coordinator, search aggregator, and opener together.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from .config import NavigatorSettings
from .errors import FetchFailure, FetchTimeout, NavigationError
from .expansion import ExpandedNodeStore, ExpansionCoordinator, log_failure, source_nodes
from .opening import NodeOpener, Workbox
from .search import (
    DEFAULT_SCORER,
    LocalSearchProvider,
    RelevanceScorer,
    RemoteProjectSearchProvider,
    ResultsListener,
    SearchAggregator,
    SearchJoinPolicy,
    SearchProvider,
    SearchResult,
)
from .sources.types import DataGateway
from .tree_model import TreeModel, TreeNode, TreeRow

logger = logging.getLogger(__name__)

SOURCES_NODE_ID = "<sources>"


class NavigationSession:
    """One navigator panel: tree, expansion, search, and opening."""

    def __init__(
        self,
        gateway: DataGateway,
        store: ExpandedNodeStore,
        workbox: Workbox,
        *,
        settings: NavigatorSettings | None = None,
        notify: Callable[[NavigationError], None] | None = None,
        providers: Sequence[SearchProvider] | None = None,
        scorer: RelevanceScorer = DEFAULT_SCORER,
        on_results: ResultsListener | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or NavigatorSettings()
        self.gateway = gateway
        self.store = store
        self.notify = notify or log_failure
        self.model = TreeModel()
        self.expanded_snapshot = store.get_expanded_ids()
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, self.settings.max_workers),
            thread_name_prefix="lazynav",
        )
        self.coordinator = ExpansionCoordinator(
            self.model,
            gateway,
            store,
            expanded_snapshot=self.expanded_snapshot,
            notify=self.notify,
            fetch_timeout_seconds=self.settings.fetch_timeout_seconds,
            clock=clock,
            executor=self._executor,
        )
        if providers is None:
            providers = [LocalSearchProvider(gateway), RemoteProjectSearchProvider(gateway)]
        self.search_aggregator = SearchAggregator(
            providers,
            on_results=on_results,
            notify=self.notify,
            scorer=scorer,
            join_policy=SearchJoinPolicy(self.settings.search_join_policy),
            debounce_seconds=self.settings.debounce_seconds,
            timeout_seconds=self.settings.search_timeout_seconds,
            clock=clock,
            executor=self._executor,
        )
        self.opener = NodeOpener(workbox, self.notify)

    # bootstrap
    def load_sources(self) -> list[TreeNode]:
        """Initialize the forest from the gateway's sources and restore expansion.

        A failed or overdue source listing leaves only the local source.
        """
        future = self._executor.submit(self.gateway.list_platform_sources)
        timeout = self.settings.fetch_timeout_seconds
        try:
            sources = list(future.result(timeout=timeout))
        except FutureTimeoutError:
            future.cancel()
            self.notify(FetchTimeout(SOURCES_NODE_ID, timeout))
            sources = []
        except Exception as exc:
            self.notify(FetchFailure(SOURCES_NODE_ID, exc))
            sources = []
        for source in sources:
            logger.debug("loading source %s (%s)", source.id, source.status.value)
        roots = source_nodes(sources, self.expanded_snapshot)
        self.model.initialize(roots)
        self.coordinator.restore_expanded(roots)
        return roots

    # intents
    def expand(self, node_id: str) -> None:
        self.coordinator.expand(node_id)

    def collapse(self, node_id: str) -> None:
        self.coordinator.collapse(node_id)

    def toggle(self, node_id: str) -> None:
        self.coordinator.toggle(node_id)

    def open(self, node_id: str) -> bool:
        node = self.model.find(node_id)
        if node is None:
            return False
        return self.opener.open_node(node)

    def open_search_result(self, result: SearchResult) -> bool:
        return self.opener.open_search_result(result)

    def search(self, value: str) -> None:
        self.search_aggregator.submit(value)

    # views
    @property
    def search_results(self) -> list[SearchResult] | None:
        return self.search_aggregator.results

    def visible_rows(self) -> list[TreeRow]:
        return self.model.visible_rows()

    # pump
    def poll(self, timeout_seconds: float = 0.0) -> bool:
        tree_changed = self.coordinator.poll(timeout_seconds)
        results_changed = self.search_aggregator.poll()
        return tree_changed or results_changed

    def wait_idle(self, timeout_seconds: float) -> bool:
        deadline = time.monotonic() + max(0.0, timeout_seconds)
        tree_idle = self.coordinator.wait_idle(timeout_seconds)
        remaining = max(0.0, deadline - time.monotonic())
        search_idle = self.search_aggregator.wait_idle(remaining)
        return tree_idle and search_idle

    def close(self) -> None:
        self.coordinator.close()
        self.search_aggregator.close()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "NavigationSession":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()


__all__ = ["NavigationSession", "SOURCES_NODE_ID"]
