"""Domain event payloads consumed by the projectors.

Payloads arrive as camelCase JSON (``{"capabilityId": ..., "newParentId": ...}``).
Each model accepts either the wire alias or the Python field name.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from capmap_engine.models.hierarchy import CapabilityLevel
from capmap_engine.models.readmodels import RealizationLevel


class EventType(StrEnum):
    CAPABILITY_CREATED = "CapabilityCreated"
    CAPABILITY_UPDATED = "CapabilityUpdated"
    CAPABILITY_DELETED = "CapabilityDeleted"
    CAPABILITY_PARENT_CHANGED = "CapabilityParentChanged"
    CAPABILITY_LEVEL_CHANGED = "CapabilityLevelChanged"
    BUSINESS_DOMAIN_CREATED = "BusinessDomainCreated"
    BUSINESS_DOMAIN_UPDATED = "BusinessDomainUpdated"
    BUSINESS_DOMAIN_DELETED = "BusinessDomainDeleted"
    CAPABILITY_ASSIGNED_TO_DOMAIN = "CapabilityAssignedToDomain"
    CAPABILITY_UNASSIGNED_FROM_DOMAIN = "CapabilityUnassignedFromDomain"
    STRATEGY_IMPORTANCE_SET = "StrategyImportanceSet"
    STRATEGY_IMPORTANCE_UPDATED = "StrategyImportanceUpdated"
    STRATEGY_IMPORTANCE_REMOVED = "StrategyImportanceRemoved"
    SYSTEM_LINKED_TO_CAPABILITY = "SystemLinkedToCapability"
    SYSTEM_REALIZATION_UPDATED = "SystemRealizationUpdated"
    SYSTEM_REALIZATION_DELETED = "SystemRealizationDeleted"
    APPLICATION_COMPONENT_CREATED = "ApplicationComponentCreated"
    APPLICATION_COMPONENT_UPDATED = "ApplicationComponentUpdated"
    APPLICATION_COMPONENT_DELETED = "ApplicationComponentDeleted"


class EventPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Capability structure
# ---------------------------------------------------------------------------


class CapabilityCreated(EventPayload):
    id: str
    name: str = ""
    parent_id: str | None = None
    level: CapabilityLevel


class CapabilityUpdated(EventPayload):
    id: str
    name: str


class CapabilityDeleted(EventPayload):
    id: str = Field(validation_alias=AliasChoices("id", "capabilityId", "capability_id"))


class CapabilityParentChanged(EventPayload):
    capability_id: str
    old_parent_id: str | None = None
    new_parent_id: str | None = None
    old_level: CapabilityLevel | None = None
    new_level: CapabilityLevel


class CapabilityLevelChanged(EventPayload):
    capability_id: str
    old_level: CapabilityLevel | None = None
    new_level: CapabilityLevel


# ---------------------------------------------------------------------------
# Business domains and assignments
# ---------------------------------------------------------------------------


class BusinessDomainCreated(EventPayload):
    id: str
    name: str


class BusinessDomainUpdated(EventPayload):
    id: str
    name: str


class BusinessDomainDeleted(EventPayload):
    id: str


class CapabilityAssignedToDomain(EventPayload):
    id: str = ""  # assignment id
    business_domain_id: str
    capability_id: str


class CapabilityUnassignedFromDomain(EventPayload):
    id: str = ""
    business_domain_id: str
    capability_id: str


# ---------------------------------------------------------------------------
# Strategy importance
# ---------------------------------------------------------------------------


class StrategyImportanceSet(EventPayload):
    id: str
    business_domain_id: str
    capability_id: str
    pillar_id: str
    pillar_name: str = ""
    importance: int = Field(ge=1, le=5)
    rationale: str = ""
    set_at: datetime | None = None


class StrategyImportanceUpdated(EventPayload):
    id: str
    importance: int = Field(ge=1, le=5)
    rationale: str = ""


class StrategyImportanceRemoved(EventPayload):
    id: str
    business_domain_id: str
    capability_id: str
    pillar_id: str


# ---------------------------------------------------------------------------
# Realizations and components
# ---------------------------------------------------------------------------


class SystemLinkedToCapability(EventPayload):
    id: str
    capability_id: str
    component_id: str
    component_name: str = ""
    realization_level: RealizationLevel
    notes: str = ""
    linked_at: datetime | None = None


class SystemRealizationUpdated(EventPayload):
    id: str
    realization_level: RealizationLevel
    notes: str = ""


class SystemRealizationDeleted(EventPayload):
    id: str


class ApplicationComponentCreated(EventPayload):
    id: str
    name: str


class ApplicationComponentUpdated(EventPayload):
    id: str
    name: str


class ApplicationComponentDeleted(EventPayload):
    id: str


EVENT_PAYLOADS: dict[EventType, type[EventPayload]] = {
    EventType.CAPABILITY_CREATED: CapabilityCreated,
    EventType.CAPABILITY_UPDATED: CapabilityUpdated,
    EventType.CAPABILITY_DELETED: CapabilityDeleted,
    EventType.CAPABILITY_PARENT_CHANGED: CapabilityParentChanged,
    EventType.CAPABILITY_LEVEL_CHANGED: CapabilityLevelChanged,
    EventType.BUSINESS_DOMAIN_CREATED: BusinessDomainCreated,
    EventType.BUSINESS_DOMAIN_UPDATED: BusinessDomainUpdated,
    EventType.BUSINESS_DOMAIN_DELETED: BusinessDomainDeleted,
    EventType.CAPABILITY_ASSIGNED_TO_DOMAIN: CapabilityAssignedToDomain,
    EventType.CAPABILITY_UNASSIGNED_FROM_DOMAIN: CapabilityUnassignedFromDomain,
    EventType.STRATEGY_IMPORTANCE_SET: StrategyImportanceSet,
    EventType.STRATEGY_IMPORTANCE_UPDATED: StrategyImportanceUpdated,
    EventType.STRATEGY_IMPORTANCE_REMOVED: StrategyImportanceRemoved,
    EventType.SYSTEM_LINKED_TO_CAPABILITY: SystemLinkedToCapability,
    EventType.SYSTEM_REALIZATION_UPDATED: SystemRealizationUpdated,
    EventType.SYSTEM_REALIZATION_DELETED: SystemRealizationDeleted,
    EventType.APPLICATION_COMPONENT_CREATED: ApplicationComponentCreated,
    EventType.APPLICATION_COMPONENT_UPDATED: ApplicationComponentUpdated,
    EventType.APPLICATION_COMPONENT_DELETED: ApplicationComponentDeleted,
}


class EventEnvelope(BaseModel):
    """One entry of a replayable event stream."""

    event_type: str
    aggregate_id: str = ""
    data: dict[str, Any]
    occurred_at: datetime | None = None
