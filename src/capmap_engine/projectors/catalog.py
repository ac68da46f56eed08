"""Fact projectors: keep the tables behind the lookup collaborators current.

They must run before the effective projectors for the same event, so that
hierarchy walks and rating lookups see the post-mutation state.
"""

from __future__ import annotations

from capmap_engine.lookups.base import StrategyPillarsGateway
from capmap_engine.models.events import (
    ApplicationComponentCreated,
    ApplicationComponentDeleted,
    ApplicationComponentUpdated,
    BusinessDomainCreated,
    BusinessDomainDeleted,
    BusinessDomainUpdated,
    CapabilityAssignedToDomain,
    CapabilityCreated,
    CapabilityDeleted,
    CapabilityLevelChanged,
    CapabilityParentChanged,
    CapabilityUnassignedFromDomain,
    CapabilityUpdated,
    EventType,
    StrategyImportanceRemoved,
    StrategyImportanceSet,
    StrategyImportanceUpdated,
)
from capmap_engine.models.hierarchy import importance_label
from capmap_engine.projectors.base import Projector
from capmap_engine.storage.sqlite import StorageEngine


class CapabilityProjector(Projector):
    """Maintains the capability tree read by the hierarchy index."""

    name = "capability"

    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage
        super().__init__(
            {
                EventType.CAPABILITY_CREATED: self._on_created,
                EventType.CAPABILITY_UPDATED: self._on_updated,
                EventType.CAPABILITY_PARENT_CHANGED: self._on_parent_changed,
                EventType.CAPABILITY_LEVEL_CHANGED: self._on_level_changed,
                EventType.CAPABILITY_DELETED: self._on_deleted,
            }
        )

    async def _on_created(self, event: CapabilityCreated) -> None:
        await self._storage.upsert_capability(
            capability_id=event.id,
            name=event.name,
            parent_id=event.parent_id,
            level=event.level.value,
        )

    async def _on_updated(self, event: CapabilityUpdated) -> None:
        await self._storage.update_capability_name(event.id, event.name)

    async def _on_parent_changed(self, event: CapabilityParentChanged) -> None:
        await self._storage.update_capability_parent(
            event.capability_id,
            parent_id=event.new_parent_id,
            level=event.new_level.value,
        )

    async def _on_level_changed(self, event: CapabilityLevelChanged) -> None:
        await self._storage.update_capability_level(event.capability_id, event.new_level.value)

    async def _on_deleted(self, event: CapabilityDeleted) -> None:
        await self._storage.delete_capability(event.id)


class BusinessDomainProjector(Projector):
    name = "business_domain"

    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage
        super().__init__(
            {
                EventType.BUSINESS_DOMAIN_CREATED: self._on_upserted,
                EventType.BUSINESS_DOMAIN_UPDATED: self._on_upserted,
                EventType.BUSINESS_DOMAIN_DELETED: self._on_deleted,
            }
        )

    async def _on_upserted(self, event: BusinessDomainCreated | BusinessDomainUpdated) -> None:
        await self._storage.upsert_business_domain(domain_id=event.id, name=event.name)

    async def _on_deleted(self, event: BusinessDomainDeleted) -> None:
        # Also drops the domain's assignments
        await self._storage.delete_business_domain(event.id)


class DomainAssignmentProjector(Projector):
    name = "domain_assignment"

    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage
        super().__init__(
            {
                EventType.CAPABILITY_ASSIGNED_TO_DOMAIN: self._on_assigned,
                EventType.CAPABILITY_UNASSIGNED_FROM_DOMAIN: self._on_unassigned,
            }
        )

    async def _on_assigned(self, event: CapabilityAssignedToDomain) -> None:
        await self._storage.assign_capability_to_domain(
            business_domain_id=event.business_domain_id,
            capability_id=event.capability_id,
            assignment_id=event.id,
        )

    async def _on_unassigned(self, event: CapabilityUnassignedFromDomain) -> None:
        await self._storage.unassign_capability_from_domain(
            business_domain_id=event.business_domain_id,
            capability_id=event.capability_id,
        )


class StrategyImportanceProjector(Projector):
    """Maintains the explicit ratings the hierarchical resolver reads."""

    name = "strategy_importance"

    def __init__(
        self,
        storage: StorageEngine,
        pillars: StrategyPillarsGateway | None = None,
    ) -> None:
        self._storage = storage
        self._pillars = pillars
        super().__init__(
            {
                EventType.STRATEGY_IMPORTANCE_SET: self._on_set,
                EventType.STRATEGY_IMPORTANCE_UPDATED: self._on_updated,
                EventType.STRATEGY_IMPORTANCE_REMOVED: self._on_removed,
            }
        )

    async def _on_set(self, event: StrategyImportanceSet) -> None:
        pillar_name = await self._resolve_pillar_name(event.pillar_id, event.pillar_name)
        await self._storage.store_strategy_importance(
            importance_id=event.id,
            business_domain_id=event.business_domain_id,
            capability_id=event.capability_id,
            pillar_id=event.pillar_id,
            pillar_name=pillar_name,
            importance=event.importance,
            importance_label=importance_label(event.importance),
            rationale=event.rationale,
            set_at=event.set_at,
        )

    async def _resolve_pillar_name(self, pillar_id: str, event_pillar_name: str) -> str:
        if event_pillar_name:
            return event_pillar_name
        if self._pillars is None:
            return ""
        pillar = await self._pillars.get_active_pillar(pillar_id)
        return pillar.name if pillar else ""

    async def _on_updated(self, event: StrategyImportanceUpdated) -> None:
        await self._storage.update_strategy_importance(
            event.id,
            importance=event.importance,
            importance_label=importance_label(event.importance),
            rationale=event.rationale,
        )

    async def _on_removed(self, event: StrategyImportanceRemoved) -> None:
        await self._storage.delete_strategy_importance(event.id)


class ApplicationComponentProjector(Projector):
    """Component name cache used when a link event carries no name."""

    name = "application_component"

    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage
        super().__init__(
            {
                EventType.APPLICATION_COMPONENT_CREATED: self._on_upserted,
                EventType.APPLICATION_COMPONENT_UPDATED: self._on_upserted,
                EventType.APPLICATION_COMPONENT_DELETED: self._on_deleted,
            }
        )

    async def _on_upserted(
        self, event: ApplicationComponentCreated | ApplicationComponentUpdated
    ) -> None:
        await self._storage.upsert_component(component_id=event.id, name=event.name)

    async def _on_deleted(self, event: ApplicationComponentDeleted) -> None:
        await self._storage.delete_component(event.id)
