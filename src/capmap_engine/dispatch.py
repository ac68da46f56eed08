"""Dispatch: wires storage, lookups and projectors into one ordered pipeline.

Fact projectors run before the effective projectors for every event, so a
hierarchy walk or rating lookup made while projecting an event already sees
the state that event produced.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

import yaml

from capmap_engine.config import EngineConfig
from capmap_engine.errors import ProjectionError
from capmap_engine.lookups.local import (
    ConfiguredPillarsGateway,
    LocalBusinessDomainNames,
    LocalComponentGateway,
    LocalDomainAssignments,
    LocalHierarchyIndex,
    LocalRatingLookup,
)
from capmap_engine.models.events import EventEnvelope
from capmap_engine.projectors.base import EventData, Projector
from capmap_engine.projectors.catalog import (
    ApplicationComponentProjector,
    BusinessDomainProjector,
    CapabilityProjector,
    DomainAssignmentProjector,
    StrategyImportanceProjector,
)
from capmap_engine.projectors.effective_business_domain import EffectiveBusinessDomainProjector
from capmap_engine.projectors.effective_importance import (
    EffectiveImportanceProjector,
    EffectiveImportanceRecomputer,
    HierarchicalRatingResolver,
)
from capmap_engine.projectors.realization import RealizationProjector
from capmap_engine.storage.effective import (
    EffectiveBusinessDomainStore,
    EffectiveImportanceStore,
    RealizationStore,
)
from capmap_engine.storage.sqlite import StorageEngine

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Forwards each event to every projector, in registration order."""

    def __init__(self, projectors: Sequence[Projector]) -> None:
        self._projectors = list(projectors)

    @property
    def projectors(self) -> list[Projector]:
        return list(self._projectors)

    async def dispatch(self, event_type: str, event_data: EventData) -> None:
        """Project one event. The first failing projector aborts the event."""
        for projector in self._projectors:
            if not projector.handles(event_type):
                continue
            try:
                await projector.project_event(event_type, event_data)
            except ProjectionError as exc:
                exc.event_type = exc.event_type or event_type
                exc.projector = exc.projector or projector.name
                logger.error("%s failed to project %s: %s", projector.name, event_type, exc)
                raise
            except Exception as exc:
                logger.exception("%s failed to project %s", projector.name, event_type)
                raise ProjectionError(
                    f"{projector.name} failed to project {event_type}: {exc}",
                    event_type=event_type,
                    projector=projector.name,
                ) from exc

    async def replay(self, envelopes: Iterable[EventEnvelope]) -> int:
        """Dispatch envelopes in order; returns how many were dispatched."""
        count = 0
        for envelope in envelopes:
            await self.dispatch(envelope.event_type, envelope.data)
            count += 1
        logger.info("Replayed %d events", count)
        return count


def build_dispatcher(storage: StorageEngine, config: EngineConfig | None = None) -> EventDispatcher:
    """Wire the SQLite-backed collaborators, stores, and projectors."""
    config = config or EngineConfig()

    hierarchy = LocalHierarchyIndex(storage)
    pillars = ConfiguredPillarsGateway(config.pillars)
    ratings = LocalRatingLookup(storage)

    importance_store = EffectiveImportanceStore(storage)
    recomputer = EffectiveImportanceRecomputer(
        importance_store, HierarchicalRatingResolver(hierarchy, ratings), hierarchy
    )

    return EventDispatcher(
        [
            # Facts
            CapabilityProjector(storage),
            BusinessDomainProjector(storage),
            DomainAssignmentProjector(storage),
            StrategyImportanceProjector(storage, pillars),
            ApplicationComponentProjector(storage),
            # Effective views
            EffectiveBusinessDomainProjector(
                EffectiveBusinessDomainStore(storage),
                hierarchy,
                LocalBusinessDomainNames(storage),
            ),
            EffectiveImportanceProjector(
                recomputer,
                importance_store,
                hierarchy,
                LocalDomainAssignments(storage),
                pillars,
                ratings,
            ),
            RealizationProjector(
                RealizationStore(storage),
                hierarchy,
                LocalComponentGateway(storage),
                prune_stale_inherited=config.realizations.prune_stale_inherited,
            ),
        ]
    )


def load_events(path: Path) -> list[EventEnvelope]:
    """Read event envelopes from a JSON or YAML file.

    The file holds either a list of envelopes or a mapping with an
    ``events`` list.
    """
    text = path.read_text()
    data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("events", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of events")
    return [EventEnvelope.model_validate(item) for item in data]
