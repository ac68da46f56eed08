"""Tests for the SQLite-backed lookup collaborators."""

from pathlib import Path

import pytest
import pytest_asyncio

from capmap_engine.lookups.local import (
    ConfiguredPillarsGateway,
    LocalBusinessDomainNames,
    LocalComponentGateway,
    LocalDomainAssignments,
    LocalHierarchyIndex,
    LocalRatingLookup,
)
from capmap_engine.models.hierarchy import CapabilityLevel, StrategyPillar
from capmap_engine.storage.sqlite import StorageEngine


@pytest_asyncio.fixture
async def storage(tmp_path: Path):
    db_path = tmp_path / "test.db"
    engine = StorageEngine(db_path)
    await engine.initialize()
    yield engine
    await engine.close()


async def _seed_tree(storage: StorageEngine) -> None:
    await storage.upsert_capability(capability_id="A", name="Customer", parent_id=None, level="L1")
    await storage.upsert_capability(capability_id="B", name="Onboarding", parent_id="A", level="L2")
    await storage.upsert_capability(capability_id="C", name="KYC", parent_id="B", level="L3")


@pytest.mark.asyncio
async def test_hierarchy_get_by_id(storage: StorageEngine) -> None:
    await _seed_tree(storage)
    index = LocalHierarchyIndex(storage)

    capability = await index.get_by_id("B")
    assert capability is not None
    assert capability.name == "Onboarding"
    assert capability.parent_id == "A"
    assert capability.level == CapabilityLevel.L2
    assert await index.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_hierarchy_children_and_descendants(storage: StorageEngine) -> None:
    await _seed_tree(storage)
    index = LocalHierarchyIndex(storage)

    assert await index.get_children("A") == ["B"]
    assert await index.get_descendants("A") == ["B", "C"]
    assert await index.get_descendants("C") == []


@pytest.mark.asyncio
async def test_domain_names(storage: StorageEngine) -> None:
    await storage.upsert_business_domain(domain_id="bd-1", name="Retail")
    names = LocalBusinessDomainNames(storage)

    domain = await names.get_by_id("bd-1")
    assert domain is not None
    assert domain.name == "Retail"
    assert await names.get_by_id("bd-2") is None


@pytest.mark.asyncio
async def test_domain_assignments(storage: StorageEngine) -> None:
    await storage.assign_capability_to_domain(business_domain_id="bd-1", capability_id="A")
    checker = LocalDomainAssignments(storage)

    assert await checker.assignment_exists("bd-1", "A")
    assert not await checker.assignment_exists("bd-2", "A")


@pytest.mark.asyncio
async def test_rating_lookup_joins_capability_name(storage: StorageEngine) -> None:
    await _seed_tree(storage)
    await storage.store_strategy_importance(
        importance_id="imp-1",
        business_domain_id="bd-1",
        capability_id="A",
        pillar_id="p-1",
        pillar_name="Always On",
        importance=5,
        importance_label="Critical",
        rationale="Core revenue",
    )
    ratings = LocalRatingLookup(storage)

    rating = await ratings.get_rating("A", "p-1", "bd-1")
    assert rating is not None
    assert rating.capability_name == "Customer"
    assert rating.importance == 5
    assert rating.rationale == "Core revenue"

    by_id = await ratings.get_by_id("imp-1")
    assert by_id == rating
    assert await ratings.get_rating("B", "p-1", "bd-1") is None
    assert await ratings.get_by_id("imp-2") is None


@pytest.mark.asyncio
async def test_component_gateway(storage: StorageEngine) -> None:
    await storage.upsert_component(component_id="comp-1", name="CRM")
    gateway = LocalComponentGateway(storage)

    component = await gateway.get_by_id("comp-1")
    assert component is not None
    assert component.name == "CRM"
    assert await gateway.get_by_id("comp-2") is None


@pytest.mark.asyncio
async def test_configured_pillars() -> None:
    gateway = ConfiguredPillarsGateway(
        [
            StrategyPillar(id="p-1", name="Always On"),
            StrategyPillar(id="p-2", name="Legacy", active=False),
        ]
    )

    assert [p.id for p in await gateway.get_strategy_pillars()] == ["p-1", "p-2"]
    assert (await gateway.get_active_pillar("p-1")).name == "Always On"
    assert await gateway.get_active_pillar("p-2") is None
    assert await gateway.get_active_pillar("p-3") is None
