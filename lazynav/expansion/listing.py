"""Adapter selection and listing-to-node mapping for expandable nodes.

Each expandable kind owns one listing call and one mapper that turns the raw
entries into child ``TreeNode`` values. Child ids are the parent id joined
with a per-entry key; an entry repeating an earlier sibling key is dropped so
ids stay unique by construction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from urllib.parse import quote

from ..sources.types import (
    LOCAL_SOURCE_ID,
    LOCAL_SOURCE_LABEL,
    AppDescriptor,
    DataGateway,
    FilesystemEntry,
    ProjectDescriptor,
    SourceDescriptor,
)
from ..tree_model import NodeKind, TreeNode, child_node_id

logger = logging.getLogger(__name__)

ListingCall = Callable[[], Sequence[object]]


def listing_call(gateway: DataGateway, node: TreeNode) -> ListingCall | None:
    """Return the single adapter call that lists ``node``'s children.

    ``None`` means the node kind has no children to fetch.
    """
    kind = node.kind
    if kind is NodeKind.SOURCE:
        if node.id == LOCAL_SOURCE_ID:
            return gateway.list_local_root
        source_id = node.data.id if isinstance(node.data, SourceDescriptor) else node.id
        return lambda: gateway.list_platform_projects(source_id)
    if kind is NodeKind.PROJECT:
        project = node.data
        if not isinstance(project, ProjectDescriptor):
            raise TypeError(f"project node {node.id!r} carries no ProjectDescriptor")
        source_id = project.source_id or node.id.split("/", 1)[0]
        return lambda: gateway.list_project_apps(source_id, project.owner, project.slug)
    if kind is NodeKind.FOLDER:
        folder = node.data
        path = folder.path if isinstance(folder, FilesystemEntry) else node.id
        return lambda: gateway.list_local_folder(path)
    if kind is NodeKind.FILE or kind is NodeKind.APP:
        return None
    raise ValueError(f"unhandled node kind {kind!r}")


def build_children(parent: TreeNode, listing: Sequence[object], expanded_ids: frozenset[str]) -> list[TreeNode]:
    """Map a raw listing for ``parent`` into child nodes."""
    kind = parent.kind
    if kind is NodeKind.SOURCE:
        if parent.id == LOCAL_SOURCE_ID:
            return local_root_children(parent.id, listing, expanded_ids)
        source_id = parent.data.id if isinstance(parent.data, SourceDescriptor) else parent.id
        return project_children(parent.id, source_id, listing, expanded_ids)
    if kind is NodeKind.PROJECT:
        return app_children(parent.id, listing)
    if kind is NodeKind.FOLDER:
        return folder_children(parent.id, listing, expanded_ids)
    if kind is NodeKind.FILE or kind is NodeKind.APP:
        raise ValueError(f"{kind.value} node {parent.id!r} has no children")
    raise ValueError(f"unhandled node kind {kind!r}")


def source_nodes(sources: Iterable[SourceDescriptor], expanded_ids: frozenset[str]) -> list[TreeNode]:
    """Build root nodes, prepending the reserved local source when missing."""
    descriptors = list(sources)
    if not any(source.id == LOCAL_SOURCE_ID for source in descriptors):
        descriptors.insert(0, SourceDescriptor(id=LOCAL_SOURCE_ID, label=LOCAL_SOURCE_LABEL))
    nodes = [
        TreeNode(
            id=source.id,
            label=source.label,
            kind=NodeKind.SOURCE,
            is_expandable=True,
            is_expanded=source.id in expanded_ids,
            data=source,
        )
        for source in descriptors
    ]
    return _unique_siblings("<root>", nodes)


def local_root_key(path: str) -> str:
    """Escape a root path into one id segment.

    Folder children are keyed by entry name, so a root keyed by its raw path
    would collide with the same folder reached through an enclosing root.
    """
    return quote(path, safe="")


def local_root_node_id(path: str) -> str:
    return child_node_id(LOCAL_SOURCE_ID, local_root_key(path))


def local_root_children(parent_id: str, paths: Sequence[object], expanded_ids: frozenset[str]) -> list[TreeNode]:
    children: list[TreeNode] = []
    for raw_path in paths:
        path = str(raw_path)
        node_id = child_node_id(parent_id, local_root_key(path))
        entry = FilesystemEntry(path=path, is_dir=True)
        children.append(
            TreeNode(
                id=node_id,
                label=entry.name,
                kind=NodeKind.FOLDER,
                is_expandable=True,
                is_expanded=node_id in expanded_ids,
                data=entry,
            )
        )
    return _unique_siblings(parent_id, children)


def folder_children(parent_id: str, entries: Sequence[object], expanded_ids: frozenset[str]) -> list[TreeNode]:
    children: list[TreeNode] = []
    for entry in entries:
        if not isinstance(entry, FilesystemEntry):
            raise TypeError(f"folder listing for {parent_id!r} returned {type(entry).__name__}")
        node_id = child_node_id(parent_id, entry.name)
        children.append(
            TreeNode(
                id=node_id,
                label=entry.name,
                kind=NodeKind.FOLDER if entry.is_dir else NodeKind.FILE,
                is_expandable=entry.is_dir,
                is_expanded=entry.is_dir and node_id in expanded_ids,
                data=entry,
            )
        )
    return _unique_siblings(parent_id, children)


def disambiguated_labels(projects: Sequence[ProjectDescriptor]) -> list[str]:
    """Qualify repeated project names with their owner; the first one stays plain."""
    seen_names: set[str] = set()
    labels: list[str] = []
    for project in projects:
        if project.name in seen_names:
            labels.append(f"{project.name} ({project.owner})")
        else:
            labels.append(project.name)
        seen_names.add(project.name)
    return labels


def project_children(
    parent_id: str,
    source_id: str,
    projects: Sequence[object],
    expanded_ids: frozenset[str],
) -> list[TreeNode]:
    descriptors: list[ProjectDescriptor] = []
    for project in projects:
        if not isinstance(project, ProjectDescriptor):
            raise TypeError(f"project listing for {parent_id!r} returned {type(project).__name__}")
        descriptors.append(project)

    children: list[TreeNode] = []
    for project, label in zip(descriptors, disambiguated_labels(descriptors)):
        node_id = child_node_id(parent_id, f"{project.owner}/{project.slug}")
        children.append(
            TreeNode(
                id=node_id,
                label=label,
                kind=NodeKind.PROJECT,
                is_expandable=True,
                is_expanded=node_id in expanded_ids,
                data=replace(project, source_id=source_id),
            )
        )
    return _unique_siblings(parent_id, children)


def app_children(parent_id: str, apps: Sequence[object]) -> list[TreeNode]:
    children: list[TreeNode] = []
    for app in apps:
        if not isinstance(app, AppDescriptor):
            raise TypeError(f"app listing for {parent_id!r} returned {type(app).__name__}")
        children.append(
            TreeNode(
                id=child_node_id(parent_id, app.id),
                label=app.label,
                kind=NodeKind.APP,
                data=app,
            )
        )
    return _unique_siblings(parent_id, children)


def _unique_siblings(parent_id: str, children: list[TreeNode]) -> list[TreeNode]:
    seen: set[str] = set()
    unique: list[TreeNode] = []
    for child in children:
        if child.id in seen:
            logger.warning("dropping repeated entry %r under %r", child.id, parent_id)
            continue
        seen.add(child.id)
        unique.append(child)
    return unique


__all__ = [
    "ListingCall",
    "listing_call",
    "build_children",
    "source_nodes",
    "local_root_children",
    "local_root_key",
    "local_root_node_id",
    "folder_children",
    "project_children",
    "app_children",
    "disambiguated_labels",
]
