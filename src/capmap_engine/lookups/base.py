"""Read-only collaborator interfaces consumed by the projectors.

Each projector receives these through its constructor. The SQLite-backed
implementations live in ``lookups.local``; any other source (an HTTP
gateway, another read model) implements the same contracts. A lookup
returns ``None`` for a missing entity and raises only when the source
itself fails.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from capmap_engine.models.hierarchy import (
    ApplicationComponent,
    BusinessDomain,
    CapabilityInfo,
    StrategyPillar,
    StrategyRating,
)


class HierarchyIndex(ABC):
    """Lookup of capability tree facts."""

    @abstractmethod
    async def get_by_id(self, capability_id: str) -> CapabilityInfo | None:
        """Return the capability, or None if it does not exist."""

    @abstractmethod
    async def get_children(self, parent_id: str) -> list[str]:
        """Return the ids of the direct children of a capability."""

    @abstractmethod
    async def get_descendants(self, capability_id: str) -> list[str]:
        """Return every id below a capability, at any depth, excluding itself."""


class BusinessDomainNameProvider(ABC):
    @abstractmethod
    async def get_by_id(self, domain_id: str) -> BusinessDomain | None: ...


class DomainAssignmentChecker(ABC):
    @abstractmethod
    async def assignment_exists(self, domain_id: str, capability_id: str) -> bool: ...


class StrategyPillarsGateway(ABC):
    @abstractmethod
    async def get_strategy_pillars(self) -> list[StrategyPillar]:
        """All configured pillars, active or not."""

    @abstractmethod
    async def get_active_pillar(self, pillar_id: str) -> StrategyPillar | None:
        """The pillar if it exists and is active."""


class RatingLookup(ABC):
    """Explicit importance ratings set directly on a capability."""

    @abstractmethod
    async def get_rating(
        self, capability_id: str, pillar_id: str, business_domain_id: str
    ) -> StrategyRating | None: ...

    @abstractmethod
    async def get_by_id(self, importance_id: str) -> StrategyRating | None: ...


class ComponentGateway(ABC):
    @abstractmethod
    async def get_by_id(self, component_id: str) -> ApplicationComponent | None: ...
