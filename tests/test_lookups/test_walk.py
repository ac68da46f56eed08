"""Tests for hierarchy walks."""

import pytest

from capmap_engine.lookups.base import HierarchyIndex
from capmap_engine.lookups.walk import (
    collect_ancestor_ids,
    collect_subtree_ids,
    find_l1_ancestor,
)
from capmap_engine.models.hierarchy import CapabilityInfo, CapabilityLevel


class InMemoryHierarchy(HierarchyIndex):
    def __init__(self, *capabilities: CapabilityInfo) -> None:
        self.capabilities = {c.id: c for c in capabilities}

    async def get_by_id(self, capability_id: str) -> CapabilityInfo | None:
        return self.capabilities.get(capability_id)

    async def get_children(self, parent_id: str) -> list[str]:
        return [c.id for c in self.capabilities.values() if c.parent_id == parent_id]

    async def get_descendants(self, capability_id: str) -> list[str]:
        return (await collect_subtree_ids(self, capability_id))[1:]


def _cap(cap_id: str, level: str, parent_id: str | None = None) -> CapabilityInfo:
    return CapabilityInfo(id=cap_id, name=cap_id.upper(), parent_id=parent_id, level=level)


def _tree() -> InMemoryHierarchy:
    # A
    # ├── B
    # │   └── D
    # └── C
    return InMemoryHierarchy(
        _cap("A", "L1"),
        _cap("B", "L2", "A"),
        _cap("C", "L2", "A"),
        _cap("D", "L3", "B"),
    )


class TestSubtree:
    @pytest.mark.asyncio
    async def test_root_first_then_preorder(self) -> None:
        assert await collect_subtree_ids(_tree(), "A") == ["A", "B", "D", "C"]

    @pytest.mark.asyncio
    async def test_leaf_is_its_own_subtree(self) -> None:
        assert await collect_subtree_ids(_tree(), "D") == ["D"]

    @pytest.mark.asyncio
    async def test_cycle_terminates(self) -> None:
        index = InMemoryHierarchy(_cap("X", "L2", "Y"), _cap("Y", "L2", "X"))
        assert await collect_subtree_ids(index, "X") == ["X", "Y"]


class TestAncestors:
    @pytest.mark.asyncio
    async def test_nearest_first_including_start(self) -> None:
        assert await collect_ancestor_ids(_tree(), "D") == ["D", "B", "A"]

    @pytest.mark.asyncio
    async def test_none_start_is_empty(self) -> None:
        assert await collect_ancestor_ids(_tree(), None) == []

    @pytest.mark.asyncio
    async def test_unknown_capability_stops_walk(self) -> None:
        index = InMemoryHierarchy(_cap("B", "L2", "ghost"))
        assert await collect_ancestor_ids(index, "B") == ["B"]

    @pytest.mark.asyncio
    async def test_unknown_start_is_empty(self) -> None:
        assert await collect_ancestor_ids(_tree(), "missing") == []

    @pytest.mark.asyncio
    async def test_cycle_terminates(self) -> None:
        index = InMemoryHierarchy(_cap("X", "L2", "Y"), _cap("Y", "L2", "X"))
        assert await collect_ancestor_ids(index, "X") == ["X", "Y"]


class TestFindL1Ancestor:
    @pytest.mark.asyncio
    async def test_walks_to_l1(self) -> None:
        assert await find_l1_ancestor(_tree(), "D") == "A"

    @pytest.mark.asyncio
    async def test_l1_is_its_own_ancestor(self) -> None:
        assert await find_l1_ancestor(_tree(), "A") == "A"

    @pytest.mark.asyncio
    async def test_stops_at_capability_without_parent(self) -> None:
        index = InMemoryHierarchy(_cap("B", "L2"), _cap("C", "L3", "B"))
        assert await find_l1_ancestor(index, "C") == "B"

    @pytest.mark.asyncio
    async def test_unknown_capability_returns_itself(self) -> None:
        assert await find_l1_ancestor(_tree(), "missing") == "missing"
