"""Filesystem-backed gateway for the reserved local source.

Implements the local half of ``DataGateway``; the platform half reports no
remote sources so the gateway can drive a local-only navigator on its own.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

from ..search.fuzzy import invalidate_project_files, rank_project_files
from .document_class import cached_document_class
from .types import (
    AppDescriptor,
    FilesystemEntry,
    LocalSearchHit,
    ProjectDescriptor,
    RemoteAppHit,
    SourceDescriptor,
)

logger = logging.getLogger(__name__)


def list_directory_entries(directory: Path, show_hidden: bool) -> list[FilesystemEntry]:
    """List visible children of ``directory``, directories first, then by name.

    Unlike a tree builder this raises on a directory that cannot be scanned so
    the caller can surface the failure.
    """
    children: list[tuple[bool, str, FilesystemEntry]] = []
    with os.scandir(directory) as entries:
        for child in entries:
            name = child.name
            if not show_hidden and name.startswith("."):
                continue
            try:
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            child_path = Path(child.path)
            document_class = None if is_dir else cached_document_class(child_path)
            children.append(
                (
                    is_dir,
                    name.lower(),
                    FilesystemEntry(path=child_path.as_posix(), is_dir=is_dir, type=document_class),
                )
            )
    children.sort(key=lambda item: (not item[0], item[1]))
    return [entry for _is_dir, _name, entry in children]


class LocalFilesystemGateway:
    """``DataGateway`` over a fixed list of local workspace folders."""

    def __init__(self, roots: Sequence[Path], show_hidden: bool = False) -> None:
        resolved: list[Path] = []
        for root in roots:
            try:
                candidate = Path(root).expanduser().resolve()
            except OSError as exc:
                logger.warning("skipping unusable local root %s: %s", root, exc)
                continue
            if candidate not in resolved:
                resolved.append(candidate)
        self.roots = resolved
        self.show_hidden = show_hidden

    # local
    def list_local_root(self) -> list[str]:
        return [root.as_posix() for root in self.roots if root.is_dir()]

    def list_local_folder(self, path: str) -> list[FilesystemEntry]:
        folder = Path(path)
        # A fresh listing means the folder may have changed on disk.
        invalidate_project_files(folder)
        return list_directory_entries(folder, self.show_hidden)

    def search_local(self, term: str) -> list[LocalSearchHit]:
        hits: list[LocalSearchHit] = []
        roots = [root for root in self.roots if root.is_dir()]
        for path, relevance in rank_project_files(term, roots, self.show_hidden):
            hits.append(
                LocalSearchHit(
                    path=path.as_posix(),
                    kind=cached_document_class(path),
                    relevance=relevance,
                )
            )
        return hits

    # platform
    def list_platform_sources(self) -> list[SourceDescriptor]:
        return []

    def list_platform_projects(self, source_id: str) -> list[ProjectDescriptor]:
        raise LookupError(f"no platform source {source_id!r} in a local-only gateway")

    def list_project_apps(self, source_id: str, owner: str, slug: str) -> list[AppDescriptor]:
        raise LookupError(f"no platform source {source_id!r} in a local-only gateway")

    def search_remote_projects(self, term: str) -> list[RemoteAppHit]:
        return []


__all__ = ["LocalFilesystemGateway", "list_directory_entries"]
