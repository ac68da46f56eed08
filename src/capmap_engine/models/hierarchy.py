"""Foundation facts: capabilities, business domains, pillars, ratings, components.

These are owned by the command side. The engine only reads them through the
lookup collaborators and never derives them.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class CapabilityLevel(StrEnum):
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    L4 = "L4"


IMPORTANCE_LABELS: dict[int, str] = {
    1: "Low",
    2: "Below Average",
    3: "Average",
    4: "Above Average",
    5: "Critical",
}


def importance_label(importance: int) -> str:
    """Human label for a 1-5 importance value."""
    try:
        return IMPORTANCE_LABELS[importance]
    except KeyError:
        raise ValueError(f"importance must be between 1 and 5, got {importance}") from None


class CapabilityInfo(BaseModel):
    """A node of the capability tree as the hierarchy index reports it.
    No parent means L1; a child sits exactly one level below its parent."""

    id: str
    name: str = ""
    parent_id: str | None = None
    level: CapabilityLevel

    @property
    def is_root(self) -> bool:
        return self.level == CapabilityLevel.L1 or not self.parent_id


class BusinessDomain(BaseModel):
    id: str
    name: str


class StrategyPillar(BaseModel):
    """A named strategic dimension capabilities are rated against (e.g. "Always On")."""

    id: str
    name: str
    active: bool = True


class StrategyRating(BaseModel):
    """An explicit importance rating set directly on one capability."""

    id: str
    capability_id: str
    capability_name: str = ""
    pillar_id: str
    pillar_name: str = ""
    business_domain_id: str
    importance: int = Field(ge=1, le=5)
    rationale: str = ""
    set_at: datetime | None = None

    @property
    def importance_label(self) -> str:
        return importance_label(self.importance)


class ApplicationComponent(BaseModel):
    """A system that can realize capabilities."""

    id: str
    name: str
