"""Descriptor datatypes and capability protocols for navigation data sources."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

LOCAL_SOURCE_ID = "local"
LOCAL_SOURCE_LABEL = "Local Files"

WORKFLOW_CLASS = "Workflow"
COMMAND_LINE_TOOL_CLASS = "CommandLineTool"
PREFERRED_DOCUMENT_CLASSES = frozenset({WORKFLOW_CLASS, COMMAND_LINE_TOOL_CLASS})


class ConnectionState(enum.Enum):
    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class SourceDescriptor:
    """One top-level data source (the local disk or a remote platform)."""

    id: str
    label: str
    status: ConnectionState = ConnectionState.CONNECTED

    @property
    def connected(self) -> bool:
        return self.status is ConnectionState.CONNECTED


@dataclass(frozen=True)
class FilesystemEntry:
    """One local path; ``type`` holds the detected document class, if any."""

    path: str
    is_dir: bool
    type: str | None = None

    @property
    def name(self) -> str:
        stripped = self.path.rstrip("/")
        return stripped.rsplit("/", 1)[-1] or self.path


@dataclass(frozen=True)
class ProjectDescriptor:
    """A remote project; ``source_id`` is filled in once placed in the tree."""

    name: str
    owner: str
    slug: str
    source_id: str | None = None


@dataclass(frozen=True)
class AppDescriptor:
    """An app inside a remote project."""

    id: str
    label: str
    app_class: str | None = None


@dataclass(frozen=True)
class LocalSearchHit:
    path: str
    kind: str | None
    relevance: float


@dataclass(frozen=True)
class RemoteAppHit:
    profile: str
    project_name: str
    app_id: str
    label: str
    app_class: str | None
    url: str
    relevance: float


class LocalSource(Protocol):
    def list_local_root(self) -> Sequence[str]: ...

    def list_local_folder(self, path: str) -> Sequence[FilesystemEntry]: ...

    def search_local(self, term: str) -> Sequence[LocalSearchHit]: ...


class PlatformSource(Protocol):
    def list_platform_sources(self) -> Sequence[SourceDescriptor]: ...

    def list_platform_projects(self, source_id: str) -> Sequence[ProjectDescriptor]: ...

    def list_project_apps(self, source_id: str, owner: str, slug: str) -> Sequence[AppDescriptor]: ...

    def search_remote_projects(self, term: str) -> Sequence[RemoteAppHit]: ...


class DataGateway(LocalSource, PlatformSource, Protocol):
    """Every listing/search capability the navigator consumes.

    Calls may block and may raise; the navigator runs them on worker threads
    and never assumes ordering between concurrent calls.
    """


__all__ = [
    "LOCAL_SOURCE_ID",
    "LOCAL_SOURCE_LABEL",
    "WORKFLOW_CLASS",
    "COMMAND_LINE_TOOL_CLASS",
    "PREFERRED_DOCUMENT_CLASSES",
    "ConnectionState",
    "SourceDescriptor",
    "FilesystemEntry",
    "ProjectDescriptor",
    "AppDescriptor",
    "LocalSearchHit",
    "RemoteAppHit",
    "LocalSource",
    "PlatformSource",
    "DataGateway",
]
