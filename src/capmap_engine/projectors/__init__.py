"""Event projectors: fact tables first, effective views on top of them."""

from capmap_engine.projectors.base import Projector, parse_payload
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
from capmap_engine.projectors.realization import RealizationProjector, inherited_realization_id

__all__ = [
    "ApplicationComponentProjector",
    "BusinessDomainProjector",
    "CapabilityProjector",
    "DomainAssignmentProjector",
    "EffectiveBusinessDomainProjector",
    "EffectiveImportanceProjector",
    "EffectiveImportanceRecomputer",
    "HierarchicalRatingResolver",
    "Projector",
    "RealizationProjector",
    "StrategyImportanceProjector",
    "inherited_realization_id",
    "parse_payload",
]
