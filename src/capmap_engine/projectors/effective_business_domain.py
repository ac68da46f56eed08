"""Effective business domain propagation.

A capability belongs to whatever business domain its L1 ancestor is assigned
to. Structural events rewrite the L1 pointer for a whole subtree; assignment
events rewrite the domain for every row sharing an L1 pointer.
"""

from __future__ import annotations

import logging

from capmap_engine.lookups.base import BusinessDomainNameProvider, HierarchyIndex
from capmap_engine.lookups.walk import collect_subtree_ids
from capmap_engine.models.events import (
    CapabilityAssignedToDomain,
    CapabilityCreated,
    CapabilityDeleted,
    CapabilityLevelChanged,
    CapabilityParentChanged,
    CapabilityUnassignedFromDomain,
    EventType,
)
from capmap_engine.models.hierarchy import CapabilityLevel
from capmap_engine.models.readmodels import EffectiveBusinessDomainRow
from capmap_engine.projectors.base import Projector
from capmap_engine.storage.effective import EffectiveBusinessDomainStore

logger = logging.getLogger(__name__)


class EffectiveBusinessDomainProjector(Projector):
    name = "effective_business_domain"

    def __init__(
        self,
        store: EffectiveBusinessDomainStore,
        hierarchy: HierarchyIndex,
        domain_names: BusinessDomainNameProvider | None = None,
    ) -> None:
        self._store = store
        self._hierarchy = hierarchy
        self._domain_names = domain_names
        super().__init__(
            {
                EventType.CAPABILITY_CREATED: self._on_capability_created,
                EventType.CAPABILITY_DELETED: self._on_capability_deleted,
                EventType.CAPABILITY_PARENT_CHANGED: self._on_capability_parent_changed,
                EventType.CAPABILITY_LEVEL_CHANGED: self._on_capability_level_changed,
                EventType.CAPABILITY_ASSIGNED_TO_DOMAIN: self._on_assigned_to_domain,
                EventType.CAPABILITY_UNASSIGNED_FROM_DOMAIN: self._on_unassigned_from_domain,
            }
        )

    # ----- Structure -----

    async def _on_capability_created(self, event: CapabilityCreated) -> None:
        row = EffectiveBusinessDomainRow(capability_id=event.id, l1_capability_id=event.id)

        if event.level != CapabilityLevel.L1 and event.parent_id:
            parent_row = await self._store.get_by_capability_id(event.parent_id)
            if parent_row is not None:
                row = parent_row.model_copy(update={"capability_id": event.id})
            else:
                logger.info(
                    "Parent %s of capability %s has no effective business domain yet",
                    event.parent_id,
                    event.id,
                )

        await self._store.upsert(row)

    async def _on_capability_deleted(self, event: CapabilityDeleted) -> None:
        await self._store.delete(event.id)

    async def _on_capability_parent_changed(self, event: CapabilityParentChanged) -> None:
        await self.update_subtree(event.capability_id, event.new_parent_id, event.new_level)

    async def _on_capability_level_changed(self, event: CapabilityLevelChanged) -> None:
        existing = await self._store.get_by_capability_id(event.capability_id)
        if existing is None:
            logger.debug("No effective business domain for %s, skipping", event.capability_id)
            return

        capability = await self._hierarchy.get_by_id(event.capability_id)
        parent_id = capability.parent_id if capability else None
        await self.update_subtree(event.capability_id, parent_id, event.new_level)

    async def update_subtree(
        self, capability_id: str, parent_id: str | None, level: CapabilityLevel
    ) -> None:
        """Write the resolved L1/domain triple onto the capability and every descendant."""
        resolved = await self._resolve_l1_and_domain(capability_id, parent_id, level)
        subtree_ids = await collect_subtree_ids(self._hierarchy, capability_id)

        for subtree_id in subtree_ids:
            await self._store.upsert(resolved.model_copy(update={"capability_id": subtree_id}))

    async def _resolve_l1_and_domain(
        self, capability_id: str, parent_id: str | None, level: CapabilityLevel
    ) -> EffectiveBusinessDomainRow:
        own = EffectiveBusinessDomainRow(capability_id=capability_id, l1_capability_id=capability_id)
        if level == CapabilityLevel.L1 or not parent_id:
            return own

        parent_row = await self._store.get_by_capability_id(parent_id)
        if parent_row is None:
            return own
        return parent_row.model_copy(update={"capability_id": capability_id})

    # ----- Assignment -----

    async def _on_assigned_to_domain(self, event: CapabilityAssignedToDomain) -> None:
        domain_name = await self._lookup_domain_name(event.business_domain_id)
        existing = await self._store.get_by_capability_id(event.capability_id)
        if existing is None:
            logger.debug("No effective business domain for %s, skipping", event.capability_id)
            return

        await self._store.update_business_domain_for_l1_subtree(
            existing.l1_capability_id, event.business_domain_id, domain_name
        )

    async def _on_unassigned_from_domain(self, event: CapabilityUnassignedFromDomain) -> None:
        existing = await self._store.get_by_capability_id(event.capability_id)
        if existing is None:
            logger.debug("No effective business domain for %s, skipping", event.capability_id)
            return
        if existing.business_domain_id not in ("", event.business_domain_id):
            # Subtree already moved to another domain
            logger.info(
                "Capability %s is in domain %s, not %s; leaving subtree of %s unchanged",
                event.capability_id,
                existing.business_domain_id,
                event.business_domain_id,
                existing.l1_capability_id,
            )
            return

        await self._store.update_business_domain_for_l1_subtree(existing.l1_capability_id, "", "")

    async def _lookup_domain_name(self, business_domain_id: str) -> str:
        if self._domain_names is None:
            return ""
        domain = await self._domain_names.get_by_id(business_domain_id)
        return domain.name if domain else ""
