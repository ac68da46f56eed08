"""Materialized effective views owned by the engine.

Each row type is keyed by its natural identity so that upserts and deletes
can be replayed safely.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Effective business domain
# ---------------------------------------------------------------------------


class EffectiveBusinessDomainRow(BaseModel):
    """Business domain a capability belongs to through its L1 ancestor.
    All rows sharing an l1_capability_id share the domain fields."""

    capability_id: str
    l1_capability_id: str
    business_domain_id: str = ""
    business_domain_name: str = ""


# ---------------------------------------------------------------------------
# Effective importance
# ---------------------------------------------------------------------------


class ImportanceScope(BaseModel):
    """The (capability, pillar, domain) triple a rating is resolved for."""

    capability_id: str
    pillar_id: str
    business_domain_id: str

    def for_capability(self, capability_id: str) -> ImportanceScope:
        return self.model_copy(update={"capability_id": capability_id})


class ResolvedRating(BaseModel):
    """Result of walking self-then-ancestors for an explicit rating."""

    importance: int = Field(ge=1, le=5)
    importance_label: str
    source_capability_id: str
    source_capability_name: str = ""
    is_inherited: bool
    rationale: str = ""


class EffectiveImportanceRow(BaseModel):
    capability_id: str
    pillar_id: str
    business_domain_id: str
    importance: int = Field(ge=1, le=5)
    importance_label: str
    source_capability_id: str
    source_capability_name: str = ""
    is_inherited: bool
    rationale: str = ""
    computed_at: datetime


# ---------------------------------------------------------------------------
# Realizations
# ---------------------------------------------------------------------------


class RealizationOrigin(StrEnum):
    DIRECT = "Direct"
    INHERITED = "Inherited"


class RealizationLevel(StrEnum):
    FULL = "Full"
    PARTIAL = "Partial"
    PLANNED = "Planned"


class RealizationRow(BaseModel):
    """A component realizing a capability, either linked directly or
    propagated up from a descendant's direct link."""

    id: str
    capability_id: str
    component_id: str
    component_name: str = ""
    realization_level: RealizationLevel
    notes: str = ""
    origin: RealizationOrigin
    source_realization_id: str | None = None
    source_capability_id: str | None = None
    source_capability_name: str = ""
    linked_at: datetime | None = None

    @property
    def is_direct(self) -> bool:
        return self.origin == RealizationOrigin.DIRECT
