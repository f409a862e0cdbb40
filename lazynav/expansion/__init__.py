"""Expansion coordination, listing-to-node mapping, and expanded-state persistence."""

from __future__ import annotations

from .coordinator import ExpansionCoordinator, ExpansionEvent, FailureNotifier, log_failure
from .listing import build_children, disambiguated_labels, listing_call, local_root_node_id, source_nodes
from .persistence import (
    ConfigExpandedNodeStore,
    ExpandedNodeStore,
    ExpandedSetMutator,
    MemoryExpandedNodeStore,
    add_node_id,
    remove_node_id,
)

__all__ = [
    "ConfigExpandedNodeStore",
    "ExpandedNodeStore",
    "ExpandedSetMutator",
    "ExpansionCoordinator",
    "ExpansionEvent",
    "FailureNotifier",
    "MemoryExpandedNodeStore",
    "add_node_id",
    "build_children",
    "disambiguated_labels",
    "listing_call",
    "local_root_node_id",
    "log_failure",
    "remove_node_id",
    "source_nodes",
]
