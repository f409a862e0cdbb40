"""Search aggregation, providers, relevance scoring, and local fuzzy ranking."""

from __future__ import annotations

from .aggregator import ResultsListener, SearchAggregator
from .providers import (
    LOCAL_PROVIDER_NAME,
    REMOTE_PROJECTS_PROVIDER_NAME,
    LocalSearchProvider,
    RemoteProjectSearchProvider,
    local_hit_to_result,
    remote_hit_to_result,
)
from .scoring import DEFAULT_SCORER, RelevanceScorer, preferred_kind_scorer, rank_results
from .types import SearchJoinPolicy, SearchProvider, SearchResult

__all__ = [
    "DEFAULT_SCORER",
    "LOCAL_PROVIDER_NAME",
    "REMOTE_PROJECTS_PROVIDER_NAME",
    "LocalSearchProvider",
    "RelevanceScorer",
    "RemoteProjectSearchProvider",
    "ResultsListener",
    "SearchAggregator",
    "SearchJoinPolicy",
    "SearchProvider",
    "SearchResult",
    "local_hit_to_result",
    "preferred_kind_scorer",
    "rank_results",
    "remote_hit_to_result",
]
