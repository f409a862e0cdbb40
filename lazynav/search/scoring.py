"""Relevance scorers that put heterogeneous providers on one scale."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace

from ..sources.types import PREFERRED_DOCUMENT_CLASSES
from .providers import REMOTE_PROJECTS_PROVIDER_NAME
from .types import SearchResult

RelevanceScorer = Callable[[SearchResult], float]


def preferred_kind_scorer(
    preferred: Iterable[str] = PREFERRED_DOCUMENT_CLASSES,
    boosted_sources: Iterable[str] = (),
) -> RelevanceScorer:
    """Add one point to results whose kind is in ``preferred``.

    Results from a provider named in ``boosted_sources`` get the point
    whatever their kind. The bonus is applied once.
    """
    preferred_kinds = frozenset(preferred)
    boosted = frozenset(boosted_sources)

    def score(result: SearchResult) -> float:
        if result.kind in preferred_kinds or result.source in boosted:
            return result.relevance + 1
        return result.relevance

    return score


def rank_results(
    batches: Sequence[Sequence[SearchResult]],
    scorer: RelevanceScorer,
) -> list[SearchResult]:
    """Score and merge provider batches, highest relevance first.

    ``sorted`` is stable, so ties keep each provider's own order and then
    provider dispatch order.
    """
    merged: list[SearchResult] = []
    for batch in batches:
        for result in batch:
            relevance = scorer(result)
            merged.append(result if relevance == result.relevance else replace(result, relevance=relevance))
    return sorted(merged, key=lambda result: -result.relevance)


# Platform project hits always rank one point up, local hits only for
# workflow and tool documents.
DEFAULT_SCORER = preferred_kind_scorer(PREFERRED_DOCUMENT_CLASSES, boosted_sources={REMOTE_PROJECTS_PROVIDER_NAME})

__all__ = ["RelevanceScorer", "DEFAULT_SCORER", "preferred_kind_scorer", "rank_results"]
