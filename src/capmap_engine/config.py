"""Engine configuration loaded from YAML."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from capmap_engine.models.hierarchy import StrategyPillar

DEFAULT_DB_PATH = Path(".capmap") / "capmap.db"


class RealizationSettings(BaseModel):
    # Drop inherited rows left on the old ancestor chain after a reparent
    prune_stale_inherited: bool = False


class EngineConfig(BaseModel):
    db_path: Path = DEFAULT_DB_PATH
    log_level: str = "INFO"
    pillars: list[StrategyPillar] = Field(default_factory=list)
    realizations: RealizationSettings = Field(default_factory=RealizationSettings)

    @classmethod
    def from_yaml(cls, path: Path) -> EngineConfig:
        data = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(data)


def load_config(path: Path | None) -> EngineConfig:
    """Load the config file, falling back to defaults when it does not exist."""
    if path is None or not path.exists():
        return EngineConfig()
    return EngineConfig.from_yaml(path)
