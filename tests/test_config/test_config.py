"""Tests for engine configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from capmap_engine.config import DEFAULT_DB_PATH, EngineConfig, load_config


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.yaml")
    assert config == EngineConfig()
    assert config.db_path == DEFAULT_DB_PATH
    assert config.pillars == []
    assert config.realizations.prune_stale_inherited is False


def test_none_path_gives_defaults() -> None:
    assert load_config(None) == EngineConfig()


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "capmap.yaml"
    path.write_text("")
    assert load_config(path) == EngineConfig()


def test_full_config(tmp_path: Path) -> None:
    path = tmp_path / "capmap.yaml"
    path.write_text(
        """
db_path: data/map.db
log_level: DEBUG
pillars:
  - id: p-1
    name: Always On
  - id: p-2
    name: Legacy
    active: false
realizations:
  prune_stale_inherited: true
"""
    )
    config = load_config(path)
    assert config.db_path == Path("data/map.db")
    assert config.log_level == "DEBUG"
    assert [(p.id, p.active) for p in config.pillars] == [("p-1", True), ("p-2", False)]
    assert config.realizations.prune_stale_inherited is True


def test_invalid_config_raises(tmp_path: Path) -> None:
    path = tmp_path / "capmap.yaml"
    path.write_text("pillars:\n  - name: missing id\n")
    with pytest.raises(ValidationError):
        load_config(path)
