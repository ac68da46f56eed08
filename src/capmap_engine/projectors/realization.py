"""Realization inheritance.

A component linked directly to a capability also realizes every ancestor of
that capability. The Direct row mirrors the link; one Inherited row per
ancestor points back at it through source_realization_id.
"""

from __future__ import annotations

import logging

from capmap_engine.lookups.base import ComponentGateway, HierarchyIndex
from capmap_engine.lookups.walk import collect_ancestor_ids
from capmap_engine.models.events import (
    ApplicationComponentDeleted,
    ApplicationComponentUpdated,
    CapabilityParentChanged,
    CapabilityUpdated,
    EventType,
    SystemLinkedToCapability,
    SystemRealizationDeleted,
    SystemRealizationUpdated,
)
from capmap_engine.models.readmodels import RealizationLevel, RealizationOrigin, RealizationRow
from capmap_engine.projectors.base import Projector
from capmap_engine.storage.effective import RealizationStore

logger = logging.getLogger(__name__)


def inherited_realization_id(source_realization_id: str, capability_id: str) -> str:
    """Stable id of the row a source realization contributes to an ancestor."""
    return f"{source_realization_id}:{capability_id}"


class RealizationProjector(Projector):
    name = "realization"

    def __init__(
        self,
        store: RealizationStore,
        hierarchy: HierarchyIndex,
        components: ComponentGateway | None = None,
        *,
        prune_stale_inherited: bool = False,
    ) -> None:
        self._store = store
        self._hierarchy = hierarchy
        self._components = components
        self.prune_stale_inherited = prune_stale_inherited
        super().__init__(
            {
                EventType.SYSTEM_LINKED_TO_CAPABILITY: self._on_system_linked,
                EventType.SYSTEM_REALIZATION_UPDATED: self._on_realization_updated,
                EventType.SYSTEM_REALIZATION_DELETED: self._on_realization_deleted,
                EventType.CAPABILITY_PARENT_CHANGED: self._on_parent_changed,
                EventType.CAPABILITY_UPDATED: self._on_capability_updated,
                EventType.APPLICATION_COMPONENT_UPDATED: self._on_component_updated,
                EventType.APPLICATION_COMPONENT_DELETED: self._on_component_deleted,
            }
        )

    # ----- Links -----

    async def _on_system_linked(self, event: SystemLinkedToCapability) -> None:
        component_name = event.component_name or await self._lookup_component_name(
            event.component_id
        )
        direct = RealizationRow(
            id=event.id,
            capability_id=event.capability_id,
            component_id=event.component_id,
            component_name=component_name,
            realization_level=event.realization_level,
            notes=event.notes,
            origin=RealizationOrigin.DIRECT,
            linked_at=event.linked_at,
        )
        await self._store.insert(direct)

        capability = await self._hierarchy.get_by_id(event.capability_id)
        if capability is None:
            logger.debug("Capability %s not in hierarchy, no inheritance", event.capability_id)
            return

        await self._propagate_upwards(
            direct,
            source_capability_name=capability.name,
            start_id=capability.parent_id,
        )

    async def _lookup_component_name(self, component_id: str) -> str:
        if self._components is None:
            return ""
        component = await self._components.get_by_id(component_id)
        return component.name if component else ""

    async def _propagate_upwards(
        self,
        source: RealizationRow,
        *,
        source_capability_name: str,
        start_id: str | None,
    ) -> None:
        """Insert an Inherited row for ``source`` on start_id and every ancestor above it.

        ``source`` is the Direct row the inheritance originates from.
        """
        for ancestor_id in await collect_ancestor_ids(self._hierarchy, start_id):
            await self._store.insert_inherited(
                RealizationRow(
                    id=inherited_realization_id(source.id, ancestor_id),
                    capability_id=ancestor_id,
                    component_id=source.component_id,
                    component_name=source.component_name,
                    realization_level=RealizationLevel.FULL,
                    origin=RealizationOrigin.INHERITED,
                    source_realization_id=source.id,
                    source_capability_id=source.capability_id,
                    source_capability_name=source_capability_name,
                    linked_at=source.linked_at,
                )
            )

    async def _on_realization_updated(self, event: SystemRealizationUpdated) -> None:
        await self._store.update(
            event.id, realization_level=event.realization_level.value, notes=event.notes
        )

    async def _on_realization_deleted(self, event: SystemRealizationDeleted) -> None:
        # Inherited rows first so none is left pointing at a missing source
        await self._store.delete_by_source_realization_id(event.id)
        await self._store.delete(event.id)

    # ----- Structure -----

    async def _on_parent_changed(self, event: CapabilityParentChanged) -> None:
        rows = await self._store.get_by_capability_id(event.capability_id)
        if not rows:
            return

        capability = await self._hierarchy.get_by_id(event.capability_id)
        capability_name = capability.name if capability else ""

        for row in rows:
            source = self._source_of(row, capability_name)
            if source is None:
                continue
            source_row, source_capability_name = source

            if self.prune_stale_inherited:
                await self._prune_stale(source_row.id, source_row.capability_id)

            await self._propagate_upwards(
                source_row,
                source_capability_name=source_capability_name,
                start_id=event.new_parent_id,
            )

    def _source_of(
        self, row: RealizationRow, capability_name: str
    ) -> tuple[RealizationRow, str] | None:
        """The Direct row an existing row descends from, with its capability name."""
        if row.is_direct:
            return row, capability_name

        if not row.source_realization_id or not row.source_capability_id:
            logger.warning("Inherited realization %s has no source, skipping", row.id)
            return None

        source_row = row.model_copy(
            update={
                "id": row.source_realization_id,
                "capability_id": row.source_capability_id,
                "origin": RealizationOrigin.DIRECT,
            }
        )
        return source_row, row.source_capability_name

    async def _prune_stale(self, source_realization_id: str, source_capability_id: str) -> None:
        chain = await collect_ancestor_ids(self._hierarchy, source_capability_id)
        ancestors = set(chain[1:])

        stale = [
            capability_id
            for capability_id in await self._store.get_inherited_capability_ids(
                source_realization_id
            )
            if capability_id not in ancestors
        ]
        if stale:
            logger.info(
                "Removing %d stale inherited rows of realization %s",
                len(stale),
                source_realization_id,
            )
            await self._store.delete_inherited(source_realization_id, stale)

    # ----- Names -----

    async def _on_capability_updated(self, event: CapabilityUpdated) -> None:
        await self._store.update_source_capability_name(event.id, event.name)

    async def _on_component_updated(self, event: ApplicationComponentUpdated) -> None:
        await self._store.update_component_name(event.id, event.name)

    async def _on_component_deleted(self, event: ApplicationComponentDeleted) -> None:
        await self._store.delete_by_component_id(event.id)
