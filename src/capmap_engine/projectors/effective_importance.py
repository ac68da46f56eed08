"""Effective strategic importance.

The effective importance of a capability for a (pillar, domain) pair is the
explicit rating on the nearest capability in its ancestor chain, itself
included. There is no blending: the first rating found wins.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from capmap_engine.lookups.base import (
    DomainAssignmentChecker,
    HierarchyIndex,
    RatingLookup,
    StrategyPillarsGateway,
)
from capmap_engine.lookups.walk import collect_ancestor_ids, find_l1_ancestor
from capmap_engine.models.events import (
    BusinessDomainDeleted,
    CapabilityAssignedToDomain,
    CapabilityCreated,
    CapabilityDeleted,
    CapabilityParentChanged,
    CapabilityUnassignedFromDomain,
    EventType,
    StrategyImportanceRemoved,
    StrategyImportanceSet,
    StrategyImportanceUpdated,
)
from capmap_engine.models.readmodels import EffectiveImportanceRow, ImportanceScope, ResolvedRating
from capmap_engine.projectors.base import Projector
from capmap_engine.storage.effective import EffectiveImportanceStore

logger = logging.getLogger(__name__)


class HierarchicalRatingResolver:
    """Finds the explicit rating that applies to a capability."""

    def __init__(self, hierarchy: HierarchyIndex, ratings: RatingLookup) -> None:
        self._hierarchy = hierarchy
        self._ratings = ratings

    async def resolve_effective_importance(
        self, capability_id: str, pillar_id: str, business_domain_id: str
    ) -> ResolvedRating | None:
        """Walk the capability and then its parents; return the first rating found.

        Returns None when no capability on the chain carries a rating for the
        pair.
        """
        # A capability not yet in the hierarchy can still carry its own rating
        chain = await collect_ancestor_ids(self._hierarchy, capability_id) or [capability_id]
        for candidate_id in chain:
            rating = await self._ratings.get_rating(candidate_id, pillar_id, business_domain_id)
            if rating is None:
                continue
            return ResolvedRating(
                importance=rating.importance,
                importance_label=rating.importance_label,
                source_capability_id=candidate_id,
                source_capability_name=rating.capability_name,
                is_inherited=candidate_id != capability_id,
                rationale=rating.rationale,
            )
        return None


class EffectiveImportanceRecomputer:
    def __init__(
        self,
        store: EffectiveImportanceStore,
        resolver: HierarchicalRatingResolver,
        hierarchy: HierarchyIndex,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._hierarchy = hierarchy

    async def recompute_capability_and_descendants(self, scope: ImportanceScope) -> None:
        """Recompute the capability, then each descendant for the same pair.

        A failure on the capability itself propagates. A failing descendant
        is logged and skipped so the rest of the subtree is still brought up
        to date.
        """
        await self.recompute_single(scope)

        for descendant_id in await self._hierarchy.get_descendants(scope.capability_id):
            try:
                await self.recompute_single(scope.for_capability(descendant_id))
            except Exception:
                logger.exception(
                    "Failed to recompute descendant %s of %s (pillar %s, domain %s)",
                    descendant_id,
                    scope.capability_id,
                    scope.pillar_id,
                    scope.business_domain_id,
                )

    async def recompute_single(self, scope: ImportanceScope) -> None:
        resolved = await self._resolver.resolve_effective_importance(
            scope.capability_id, scope.pillar_id, scope.business_domain_id
        )
        if resolved is None:
            await self._store.delete(scope.capability_id, scope.pillar_id, scope.business_domain_id)
            return

        await self._store.upsert(
            EffectiveImportanceRow(
                capability_id=scope.capability_id,
                pillar_id=scope.pillar_id,
                business_domain_id=scope.business_domain_id,
                importance=resolved.importance,
                importance_label=resolved.importance_label,
                source_capability_id=resolved.source_capability_id,
                source_capability_name=resolved.source_capability_name,
                is_inherited=resolved.is_inherited,
                rationale=resolved.rationale,
                computed_at=datetime.now(UTC),
            )
        )

    async def delete_capability_and_descendants(
        self, capability_id: str, business_domain_id: str
    ) -> None:
        """Drop every pillar's row for the domain on the capability and its subtree."""
        await self._store.delete_for_domain(capability_id, business_domain_id)

        for descendant_id in await self._hierarchy.get_descendants(capability_id):
            try:
                await self._store.delete_for_domain(descendant_id, business_domain_id)
            except Exception:
                logger.exception(
                    "Failed to delete effective importance for descendant %s (domain %s)",
                    descendant_id,
                    business_domain_id,
                )


class EffectiveImportanceProjector(Projector):
    name = "effective_importance"

    def __init__(
        self,
        recomputer: EffectiveImportanceRecomputer,
        store: EffectiveImportanceStore,
        hierarchy: HierarchyIndex,
        assignments: DomainAssignmentChecker,
        pillars: StrategyPillarsGateway,
        ratings: RatingLookup,
    ) -> None:
        self._recomputer = recomputer
        self._store = store
        self._hierarchy = hierarchy
        self._assignments = assignments
        self._pillars = pillars
        self._ratings = ratings
        super().__init__(
            {
                EventType.STRATEGY_IMPORTANCE_SET: self._on_importance_set,
                EventType.STRATEGY_IMPORTANCE_UPDATED: self._on_importance_updated,
                EventType.STRATEGY_IMPORTANCE_REMOVED: self._on_importance_removed,
                EventType.CAPABILITY_CREATED: self._on_capability_created,
                EventType.CAPABILITY_PARENT_CHANGED: self._on_parent_changed,
                EventType.CAPABILITY_DELETED: self._on_capability_deleted,
                EventType.CAPABILITY_ASSIGNED_TO_DOMAIN: self._on_assigned_to_domain,
                EventType.CAPABILITY_UNASSIGNED_FROM_DOMAIN: self._on_unassigned_from_domain,
                EventType.BUSINESS_DOMAIN_DELETED: self._on_business_domain_deleted,
            }
        )

    # ----- Ratings -----

    async def _on_importance_set(self, event: StrategyImportanceSet) -> None:
        await self._recomputer.recompute_capability_and_descendants(
            ImportanceScope(
                capability_id=event.capability_id,
                pillar_id=event.pillar_id,
                business_domain_id=event.business_domain_id,
            )
        )

    async def _on_importance_updated(self, event: StrategyImportanceUpdated) -> None:
        # The update event only carries the rating id
        rating = await self._ratings.get_by_id(event.id)
        if rating is None:
            logger.info("Strategy importance %s not found, nothing to recompute", event.id)
            return

        await self._recomputer.recompute_capability_and_descendants(
            ImportanceScope(
                capability_id=rating.capability_id,
                pillar_id=rating.pillar_id,
                business_domain_id=rating.business_domain_id,
            )
        )

    async def _on_importance_removed(self, event: StrategyImportanceRemoved) -> None:
        await self._recomputer.recompute_capability_and_descendants(
            ImportanceScope(
                capability_id=event.capability_id,
                pillar_id=event.pillar_id,
                business_domain_id=event.business_domain_id,
            )
        )

    # ----- Structure -----

    async def _on_capability_created(self, event: CapabilityCreated) -> None:
        # No descendants yet; only the parent's pairs can apply
        if not event.parent_id:
            return
        for row in await self._store.get_by_capability(event.parent_id):
            await self._recomputer.recompute_single(
                ImportanceScope(
                    capability_id=event.id,
                    pillar_id=row.pillar_id,
                    business_domain_id=row.business_domain_id,
                )
            )

    async def _on_parent_changed(self, event: CapabilityParentChanged) -> None:
        rows = await self._store.get_by_capability(event.capability_id)
        if event.new_parent_id:
            rows += await self._store.get_by_capability(event.new_parent_id)

        seen: set[tuple[str, str]] = set()
        for row in rows:
            pair = (row.pillar_id, row.business_domain_id)
            if pair in seen:
                continue
            seen.add(pair)
            await self._recomputer.recompute_capability_and_descendants(
                ImportanceScope(
                    capability_id=event.capability_id,
                    pillar_id=row.pillar_id,
                    business_domain_id=row.business_domain_id,
                )
            )

    async def _on_capability_deleted(self, event: CapabilityDeleted) -> None:
        await self._store.delete_by_capability(event.id)

    # ----- Domains -----

    async def _on_assigned_to_domain(self, event: CapabilityAssignedToDomain) -> None:
        await self._recompute_for_active_pillars(event.capability_id, event.business_domain_id)

    async def _on_unassigned_from_domain(self, event: CapabilityUnassignedFromDomain) -> None:
        l1_ancestor_id = await find_l1_ancestor(self._hierarchy, event.capability_id)

        if l1_ancestor_id != event.capability_id and await self._assignments.assignment_exists(
            event.business_domain_id, l1_ancestor_id
        ):
            logger.info(
                "L1 ancestor %s still assigned to domain %s, recomputing %s",
                l1_ancestor_id,
                event.business_domain_id,
                event.capability_id,
            )
            await self._recompute_for_active_pillars(event.capability_id, event.business_domain_id)
            return

        await self._recomputer.delete_capability_and_descendants(
            event.capability_id, event.business_domain_id
        )

    async def _on_business_domain_deleted(self, event: BusinessDomainDeleted) -> None:
        await self._store.delete_by_business_domain(event.id)

    async def _recompute_for_active_pillars(self, capability_id: str, business_domain_id: str) -> None:
        for pillar in await self._pillars.get_strategy_pillars():
            if not pillar.active:
                continue
            await self._recomputer.recompute_capability_and_descendants(
                ImportanceScope(
                    capability_id=capability_id,
                    pillar_id=pillar.id,
                    business_domain_id=business_domain_id,
                )
            )
