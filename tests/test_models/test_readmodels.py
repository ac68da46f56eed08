"""Tests for fact and read-model shapes."""

import pytest

from capmap_engine.models.hierarchy import (
    CapabilityInfo,
    CapabilityLevel,
    StrategyRating,
    importance_label,
)
from capmap_engine.models.readmodels import (
    ImportanceScope,
    RealizationLevel,
    RealizationOrigin,
    RealizationRow,
)


@pytest.mark.parametrize(
    ("value", "label"),
    [(1, "Low"), (2, "Below Average"), (3, "Average"), (4, "Above Average"), (5, "Critical")],
)
def test_importance_labels(value: int, label: str) -> None:
    assert importance_label(value) == label


@pytest.mark.parametrize("value", [0, 6, -1])
def test_importance_label_out_of_range(value: int) -> None:
    with pytest.raises(ValueError, match="between 1 and 5"):
        importance_label(value)


def test_rating_label_follows_importance() -> None:
    rating = StrategyRating(
        id="imp-1",
        capability_id="cap-1",
        pillar_id="p-1",
        business_domain_id="bd-1",
        importance=4,
    )
    assert rating.importance_label == "Above Average"


def test_capability_is_root() -> None:
    assert CapabilityInfo(id="a", level=CapabilityLevel.L1).is_root
    assert CapabilityInfo(id="b", level=CapabilityLevel.L2).is_root
    assert not CapabilityInfo(id="c", parent_id="a", level=CapabilityLevel.L2).is_root


def test_scope_for_capability_keeps_pair() -> None:
    scope = ImportanceScope(capability_id="a", pillar_id="p-1", business_domain_id="bd-1")
    moved = scope.for_capability("b")
    assert moved.capability_id == "b"
    assert moved.pillar_id == "p-1"
    assert moved.business_domain_id == "bd-1"
    assert scope.capability_id == "a"


def test_realization_row_is_direct() -> None:
    row = RealizationRow(
        id="real-1",
        capability_id="cap-1",
        component_id="comp-1",
        realization_level=RealizationLevel.FULL,
        origin=RealizationOrigin.DIRECT,
    )
    assert row.is_direct
    inherited = row.model_copy(update={"origin": RealizationOrigin.INHERITED})
    assert not inherited.is_direct
