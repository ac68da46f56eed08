"""SQLite storage for facts and effective read models."""

from capmap_engine.storage.effective import (
    EffectiveBusinessDomainStore,
    EffectiveImportanceStore,
    RealizationStore,
)
from capmap_engine.storage.sqlite import StorageEngine

__all__ = [
    "EffectiveBusinessDomainStore",
    "EffectiveImportanceStore",
    "RealizationStore",
    "StorageEngine",
]
