"""Data-source capability protocols, descriptor types, and the local gateway."""

from __future__ import annotations

from .document_class import cached_document_class, clear_document_class_cache, detect_document_class
from .local import LocalFilesystemGateway, list_directory_entries
from .types import (
    COMMAND_LINE_TOOL_CLASS,
    LOCAL_SOURCE_ID,
    LOCAL_SOURCE_LABEL,
    PREFERRED_DOCUMENT_CLASSES,
    WORKFLOW_CLASS,
    AppDescriptor,
    ConnectionState,
    DataGateway,
    FilesystemEntry,
    LocalSearchHit,
    LocalSource,
    PlatformSource,
    ProjectDescriptor,
    RemoteAppHit,
    SourceDescriptor,
)

__all__ = [
    "COMMAND_LINE_TOOL_CLASS",
    "LOCAL_SOURCE_ID",
    "LOCAL_SOURCE_LABEL",
    "PREFERRED_DOCUMENT_CLASSES",
    "WORKFLOW_CLASS",
    "AppDescriptor",
    "ConnectionState",
    "DataGateway",
    "FilesystemEntry",
    "LocalFilesystemGateway",
    "LocalSearchHit",
    "LocalSource",
    "PlatformSource",
    "ProjectDescriptor",
    "RemoteAppHit",
    "SourceDescriptor",
    "cached_document_class",
    "clear_document_class_cache",
    "detect_document_class",
    "list_directory_entries",
]
