"""Capability facts, effective read-model rows, and event payloads."""

from capmap_engine.models.events import EVENT_PAYLOADS, EventEnvelope, EventPayload, EventType
from capmap_engine.models.hierarchy import (
    IMPORTANCE_LABELS,
    ApplicationComponent,
    BusinessDomain,
    CapabilityInfo,
    CapabilityLevel,
    StrategyPillar,
    StrategyRating,
    importance_label,
)
from capmap_engine.models.readmodels import (
    EffectiveBusinessDomainRow,
    EffectiveImportanceRow,
    ImportanceScope,
    RealizationLevel,
    RealizationOrigin,
    RealizationRow,
    ResolvedRating,
)

__all__ = [
    "EVENT_PAYLOADS",
    "IMPORTANCE_LABELS",
    "ApplicationComponent",
    "BusinessDomain",
    "CapabilityInfo",
    "CapabilityLevel",
    "EffectiveBusinessDomainRow",
    "EffectiveImportanceRow",
    "EventEnvelope",
    "EventPayload",
    "EventType",
    "ImportanceScope",
    "RealizationLevel",
    "RealizationOrigin",
    "RealizationRow",
    "ResolvedRating",
    "StrategyPillar",
    "StrategyRating",
    "importance_label",
]
