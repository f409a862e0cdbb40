"""Search result datatype and provider protocol."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SearchResult:
    """One ranked hit; discarded wholesale when its query is superseded."""

    id: str
    title: str
    label: str
    relevance: float
    source: str
    draggable: bool = False
    kind: str | None = None


class SearchProvider(Protocol):
    """One searchable catalog. ``search`` may block and may raise."""

    name: str

    def search(self, term: str) -> Sequence[SearchResult]: ...


class SearchJoinPolicy(enum.Enum):
    """How provider failures affect one query's published results."""

    FAIL_FAST = "fail_fast"
    PARTIAL = "partial"


__all__ = ["SearchResult", "SearchProvider", "SearchJoinPolicy"]
