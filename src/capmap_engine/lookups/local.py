"""Lookup collaborators backed by the local SQLite fact tables.

This is the default wiring: the fact projectors keep the tables current and
these classes expose them through the read-only interfaces.
"""

from __future__ import annotations

from capmap_engine.lookups.base import (
    BusinessDomainNameProvider,
    ComponentGateway,
    DomainAssignmentChecker,
    HierarchyIndex,
    RatingLookup,
    StrategyPillarsGateway,
)
from capmap_engine.lookups.walk import collect_subtree_ids
from capmap_engine.models.hierarchy import (
    ApplicationComponent,
    BusinessDomain,
    CapabilityInfo,
    StrategyPillar,
    StrategyRating,
)
from capmap_engine.storage.sqlite import StorageEngine


class LocalHierarchyIndex(HierarchyIndex):
    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage

    async def get_by_id(self, capability_id: str) -> CapabilityInfo | None:
        row = await self._storage.get_capability(capability_id)
        if row is None:
            return None
        return CapabilityInfo(
            id=row["id"],
            name=row["name"],
            parent_id=row["parent_id"],
            level=row["level"],
        )

    async def get_children(self, parent_id: str) -> list[str]:
        rows = await self._storage.list_child_capabilities(parent_id)
        return [row["id"] for row in rows]

    async def get_descendants(self, capability_id: str) -> list[str]:
        subtree = await collect_subtree_ids(self, capability_id)
        return subtree[1:]


class LocalBusinessDomainNames(BusinessDomainNameProvider):
    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage

    async def get_by_id(self, domain_id: str) -> BusinessDomain | None:
        row = await self._storage.get_business_domain(domain_id)
        return BusinessDomain(id=row["id"], name=row["name"]) if row else None


class LocalDomainAssignments(DomainAssignmentChecker):
    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage

    async def assignment_exists(self, domain_id: str, capability_id: str) -> bool:
        return await self._storage.assignment_exists(domain_id, capability_id)


class LocalRatingLookup(RatingLookup):
    """Explicit ratings joined with the rated capability's current name."""

    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage

    async def get_rating(
        self, capability_id: str, pillar_id: str, business_domain_id: str
    ) -> StrategyRating | None:
        row = await self._storage.find_strategy_importance(
            capability_id=capability_id,
            pillar_id=pillar_id,
            business_domain_id=business_domain_id,
        )
        return await self._to_rating(row) if row else None

    async def get_by_id(self, importance_id: str) -> StrategyRating | None:
        row = await self._storage.get_strategy_importance(importance_id)
        return await self._to_rating(row) if row else None

    async def _to_rating(self, row: dict) -> StrategyRating:
        capability = await self._storage.get_capability(row["capability_id"])
        return StrategyRating(
            id=row["id"],
            capability_id=row["capability_id"],
            capability_name=capability["name"] if capability else "",
            pillar_id=row["pillar_id"],
            pillar_name=row["pillar_name"],
            business_domain_id=row["business_domain_id"],
            importance=row["importance"],
            rationale=row["rationale"],
            set_at=row["set_at"],
        )


class LocalComponentGateway(ComponentGateway):
    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage

    async def get_by_id(self, component_id: str) -> ApplicationComponent | None:
        row = await self._storage.get_component(component_id)
        return ApplicationComponent(id=row["id"], name=row["name"]) if row else None


class ConfiguredPillarsGateway(StrategyPillarsGateway):
    """Strategy pillars taken from the engine configuration."""

    def __init__(self, pillars: list[StrategyPillar]) -> None:
        self._pillars = list(pillars)

    async def get_strategy_pillars(self) -> list[StrategyPillar]:
        return list(self._pillars)

    async def get_active_pillar(self, pillar_id: str) -> StrategyPillar | None:
        for pillar in self._pillars:
            if pillar.id == pillar_id and pillar.active:
                return pillar
        return None
