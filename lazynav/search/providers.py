"""Search providers over the data gateway's local and remote catalogs."""

from __future__ import annotations

from ..sources.types import (
    PREFERRED_DOCUMENT_CLASSES,
    LocalSearchHit,
    LocalSource,
    PlatformSource,
    RemoteAppHit,
)
from .types import SearchResult

LOCAL_PROVIDER_NAME = "local"
REMOTE_PROJECTS_PROVIDER_NAME = "projects"


def local_hit_to_result(hit: LocalSearchHit) -> SearchResult:
    """Title is the file name; label is the two enclosing directories."""
    parts = hit.path.split("/")
    return SearchResult(
        id=hit.path,
        title=parts[-1],
        label="/".join(parts[-3:-1]),
        relevance=hit.relevance,
        source=LOCAL_PROVIDER_NAME,
        draggable=hit.kind in PREFERRED_DOCUMENT_CLASSES,
        kind=hit.kind,
    )


def remote_hit_to_result(hit: RemoteAppHit) -> SearchResult:
    """Label is the ``owner → project`` part of the app URL."""
    return SearchResult(
        id=f"{hit.profile}/{hit.project_name}/{hit.app_id}",
        title=hit.label,
        label=" → ".join(hit.url.split("/")[5:7]),
        relevance=hit.relevance,
        source=REMOTE_PROJECTS_PROVIDER_NAME,
        draggable=True,
        kind=hit.app_class,
    )


class LocalSearchProvider:
    def __init__(self, gateway: LocalSource, name: str = LOCAL_PROVIDER_NAME) -> None:
        self.gateway = gateway
        self.name = name

    def search(self, term: str) -> list[SearchResult]:
        return [local_hit_to_result(hit) for hit in self.gateway.search_local(term)]


class RemoteProjectSearchProvider:
    def __init__(self, gateway: PlatformSource, name: str = REMOTE_PROJECTS_PROVIDER_NAME) -> None:
        self.gateway = gateway
        self.name = name

    def search(self, term: str) -> list[SearchResult]:
        return [remote_hit_to_result(hit) for hit in self.gateway.search_remote_projects(term)]


__all__ = [
    "LOCAL_PROVIDER_NAME",
    "REMOTE_PROJECTS_PROVIDER_NAME",
    "LocalSearchProvider",
    "RemoteProjectSearchProvider",
    "local_hit_to_result",
    "remote_hit_to_result",
]
