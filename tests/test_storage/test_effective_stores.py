"""Tests for the effective read-model stores."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio

from capmap_engine.models.readmodels import (
    EffectiveBusinessDomainRow,
    EffectiveImportanceRow,
    RealizationLevel,
    RealizationOrigin,
    RealizationRow,
)
from capmap_engine.storage.effective import (
    EffectiveBusinessDomainStore,
    EffectiveImportanceStore,
    RealizationStore,
)
from capmap_engine.storage.sqlite import StorageEngine


@pytest_asyncio.fixture
async def storage(tmp_path: Path):
    db_path = tmp_path / "test.db"
    engine = StorageEngine(db_path)
    await engine.initialize()
    yield engine
    await engine.close()


def _importance(
    capability_id: str, pillar_id: str = "p-1", domain_id: str = "bd-1", importance: int = 3
) -> EffectiveImportanceRow:
    return EffectiveImportanceRow(
        capability_id=capability_id,
        pillar_id=pillar_id,
        business_domain_id=domain_id,
        importance=importance,
        importance_label="Average",
        source_capability_id="A",
        source_capability_name="Customer",
        is_inherited=capability_id != "A",
        computed_at=datetime(2025, 1, 1, tzinfo=UTC),
    )


def _realization(
    realization_id: str,
    capability_id: str,
    *,
    origin: RealizationOrigin = RealizationOrigin.DIRECT,
    source_id: str | None = None,
    component_id: str = "comp-1",
) -> RealizationRow:
    return RealizationRow(
        id=realization_id,
        capability_id=capability_id,
        component_id=component_id,
        component_name="CRM",
        realization_level=RealizationLevel.FULL,
        origin=origin,
        source_realization_id=source_id,
        source_capability_id="C" if source_id else None,
        source_capability_name="KYC" if source_id else "",
    )


class TestEffectiveBusinessDomainStore:
    @pytest.mark.asyncio
    async def test_upsert_overwrites(self, storage: StorageEngine) -> None:
        store = EffectiveBusinessDomainStore(storage)
        await store.upsert(EffectiveBusinessDomainRow(capability_id="B", l1_capability_id="B"))
        await store.upsert(
            EffectiveBusinessDomainRow(
                capability_id="B",
                l1_capability_id="A",
                business_domain_id="bd-1",
                business_domain_name="Retail",
            )
        )

        row = await store.get_by_capability_id("B")
        assert row is not None
        assert row.l1_capability_id == "A"
        assert row.business_domain_name == "Retail"
        assert await storage.count_rows("effective_business_domains") == 1

    @pytest.mark.asyncio
    async def test_update_for_l1_subtree_only_touches_that_l1(self, storage: StorageEngine) -> None:
        store = EffectiveBusinessDomainStore(storage)
        for cap_id, l1 in [("A", "A"), ("B", "A"), ("C", "A"), ("X", "X")]:
            await store.upsert(EffectiveBusinessDomainRow(capability_id=cap_id, l1_capability_id=l1))

        await store.update_business_domain_for_l1_subtree("A", "bd-1", "Retail")

        rows = await store.list_rows("A")
        assert [row.capability_id for row in rows] == ["A", "B", "C"]
        assert {row.business_domain_id for row in rows} == {"bd-1"}
        other = await store.get_by_capability_id("X")
        assert other is not None
        assert other.business_domain_id == ""

    @pytest.mark.asyncio
    async def test_delete_absent_row_is_noop(self, storage: StorageEngine) -> None:
        store = EffectiveBusinessDomainStore(storage)
        await store.delete("missing")
        assert await store.get_by_capability_id("missing") is None


class TestEffectiveImportanceStore:
    @pytest.mark.asyncio
    async def test_upsert_and_get_round_trips_flags(self, storage: StorageEngine) -> None:
        store = EffectiveImportanceStore(storage)
        await store.upsert(_importance("B"))

        row = await store.get("B", "p-1", "bd-1")
        assert row is not None
        assert row.is_inherited is True
        assert row.computed_at == datetime(2025, 1, 1, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_delete_variants(self, storage: StorageEngine) -> None:
        store = EffectiveImportanceStore(storage)
        await store.upsert(_importance("A", "p-1", "bd-1"))
        await store.upsert(_importance("A", "p-2", "bd-1"))
        await store.upsert(_importance("A", "p-1", "bd-2"))
        await store.upsert(_importance("B", "p-1", "bd-1"))

        await store.delete("A", "p-2", "bd-1")
        assert await store.get("A", "p-2", "bd-1") is None

        await store.delete_for_domain("A", "bd-2")
        assert [(r.pillar_id, r.business_domain_id) for r in await store.get_by_capability("A")] == [
            ("p-1", "bd-1")
        ]

        await store.delete_by_business_domain("bd-1")
        assert await store.get_by_capability("A") == []
        assert await store.get_by_capability("B") == []

    @pytest.mark.asyncio
    async def test_delete_by_capability(self, storage: StorageEngine) -> None:
        store = EffectiveImportanceStore(storage)
        await store.upsert(_importance("A", "p-1"))
        await store.upsert(_importance("A", "p-2"))
        await store.upsert(_importance("B", "p-1"))

        await store.delete_by_capability("A")
        assert await store.get_by_capability("A") == []
        assert len(await store.get_by_capability("B")) == 1


class TestRealizationStore:
    @pytest.mark.asyncio
    async def test_inherited_insert_keeps_existing_row(self, storage: StorageEngine) -> None:
        store = RealizationStore(storage)
        first = _realization(
            "real-1:B", "B", origin=RealizationOrigin.INHERITED, source_id="real-1"
        )
        await store.insert_inherited(first)
        await store.insert_inherited(first.model_copy(update={"component_name": "Other"}))

        row = await store.get_by_id("real-1:B")
        assert row is not None
        assert row.component_name == "CRM"

    @pytest.mark.asyncio
    async def test_direct_insert_refreshes_row(self, storage: StorageEngine) -> None:
        store = RealizationStore(storage)
        await store.insert(_realization("real-1", "C"))
        await store.insert(
            _realization("real-1", "C").model_copy(update={"notes": "second delivery"})
        )

        row = await store.get_by_id("real-1")
        assert row is not None
        assert row.notes == "second delivery"
        assert row.is_direct

    @pytest.mark.asyncio
    async def test_delete_inherited_subset(self, storage: StorageEngine) -> None:
        store = RealizationStore(storage)
        await store.insert(_realization("real-1", "C"))
        for cap_id in ("A", "B"):
            await store.insert_inherited(
                _realization(
                    f"real-1:{cap_id}", cap_id, origin=RealizationOrigin.INHERITED, source_id="real-1"
                )
            )

        assert await store.get_inherited_capability_ids("real-1") == ["A", "B"]
        await store.delete_inherited("real-1", ["B"])
        await store.delete_inherited("real-1", [])
        assert await store.get_inherited_capability_ids("real-1") == ["A"]

        await store.delete_by_source_realization_id("real-1")
        assert await store.get_inherited_capability_ids("real-1") == []
        assert await store.get_by_id("real-1") is not None

    @pytest.mark.asyncio
    async def test_name_refresh_and_component_delete(self, storage: StorageEngine) -> None:
        store = RealizationStore(storage)
        await store.insert(_realization("real-1", "C"))
        await store.insert_inherited(
            _realization("real-1:B", "B", origin=RealizationOrigin.INHERITED, source_id="real-1")
        )
        await store.insert(_realization("real-2", "C", component_id="comp-2"))

        await store.update_source_capability_name("C", "Know Your Customer")
        await store.update_component_name("comp-1", "CRM Cloud")

        inherited = await store.get_by_id("real-1:B")
        assert inherited is not None
        assert inherited.source_capability_name == "Know Your Customer"
        assert inherited.component_name == "CRM Cloud"

        await store.delete_by_component_id("comp-1")
        remaining = await store.get_by_capability_id("C")
        assert [row.id for row in remaining] == ["real-2"]
        assert await store.get_by_capability_id("B") == []

    @pytest.mark.asyncio
    async def test_update_level_and_notes(self, storage: StorageEngine) -> None:
        store = RealizationStore(storage)
        await store.insert(_realization("real-1", "C"))
        await store.update("real-1", realization_level="Planned", notes="phase 2")

        row = await store.get_by_id("real-1")
        assert row is not None
        assert row.realization_level == RealizationLevel.PLANNED
        assert row.notes == "phase 2"
