"""Hierarchy walks built on the HierarchyIndex lookups.

The capability map is a tree, but these walks keep a visited set so that a
malformed parent chain coming from upstream cannot loop forever. Results are
a snapshot: a node added while walking may be missed.
"""

from __future__ import annotations

import logging

from capmap_engine.lookups.base import HierarchyIndex
from capmap_engine.models.hierarchy import CapabilityLevel

logger = logging.getLogger(__name__)


async def collect_subtree_ids(index: HierarchyIndex, root_id: str) -> list[str]:
    """Return root_id followed by every descendant, depth-first pre-order."""
    result: list[str] = []
    visited: set[str] = set()
    stack = [root_id]

    while stack:
        current = stack.pop()
        if current in visited:
            logger.warning("Cycle in capability hierarchy at %s (root %s)", current, root_id)
            continue
        visited.add(current)
        result.append(current)

        children = await index.get_children(current)
        # Reversed so the first child is visited first
        stack.extend(reversed(children))

    return result


async def collect_ancestor_ids(index: HierarchyIndex, start_id: str | None) -> list[str]:
    """Return start_id and each parent above it, nearest first.

    Only capabilities the index knows are returned. The walk stops at the
    root, at the first unknown id, or on a cycle.
    """
    ids: list[str] = []
    visited: set[str] = set()
    current = start_id

    while current:
        if current in visited:
            logger.warning("Cycle in capability parent chain at %s", current)
            break
        visited.add(current)

        capability = await index.get_by_id(current)
        if capability is None:
            break
        ids.append(current)
        current = capability.parent_id

    return ids


async def find_l1_ancestor(index: HierarchyIndex, capability_id: str) -> str:
    """Walk parents until an L1 capability or a capability without a parent."""
    visited: set[str] = set()
    current = capability_id

    while True:
        if current in visited:
            return current
        visited.add(current)

        capability = await index.get_by_id(current)
        if capability is None:
            return current
        if capability.level == CapabilityLevel.L1 or not capability.parent_id:
            return capability.id
        current = capability.parent_id
