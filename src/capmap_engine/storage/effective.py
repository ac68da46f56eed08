"""Stores for the three effective read models.

Every write is a single statement followed by a commit, so each row is
applied atomically. Upserts are keyed by natural identity and deletes of
absent rows are no-ops, which keeps event replay safe.
"""

from __future__ import annotations

from collections.abc import Iterable

from capmap_engine.models.readmodels import (
    EffectiveBusinessDomainRow,
    EffectiveImportanceRow,
    RealizationRow,
)
from capmap_engine.storage.sqlite import StorageEngine


class EffectiveBusinessDomainStore:
    """capability_id -> (l1_capability_id, business_domain_id, business_domain_name)."""

    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage

    async def upsert(self, row: EffectiveBusinessDomainRow) -> None:
        await self._storage.db.execute(
            """INSERT INTO effective_business_domains
               (capability_id, l1_capability_id, business_domain_id, business_domain_name)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(capability_id) DO UPDATE SET
                 l1_capability_id=excluded.l1_capability_id,
                 business_domain_id=excluded.business_domain_id,
                 business_domain_name=excluded.business_domain_name""",
            (
                row.capability_id,
                row.l1_capability_id,
                row.business_domain_id,
                row.business_domain_name,
            ),
        )
        await self._storage.db.commit()

    async def delete(self, capability_id: str) -> None:
        await self._storage.db.execute(
            "DELETE FROM effective_business_domains WHERE capability_id = ?", (capability_id,)
        )
        await self._storage.db.commit()

    async def get_by_capability_id(self, capability_id: str) -> EffectiveBusinessDomainRow | None:
        cursor = await self._storage.db.execute(
            "SELECT * FROM effective_business_domains WHERE capability_id = ?", (capability_id,)
        )
        row = await cursor.fetchone()
        return EffectiveBusinessDomainRow.model_validate(dict(row)) if row else None

    async def update_business_domain_for_l1_subtree(
        self, l1_capability_id: str, business_domain_id: str, business_domain_name: str
    ) -> None:
        """Set the domain on every row that shares the L1 ancestor, in one statement."""
        await self._storage.db.execute(
            """UPDATE effective_business_domains
               SET business_domain_id = ?, business_domain_name = ?
               WHERE l1_capability_id = ?""",
            (business_domain_id, business_domain_name, l1_capability_id),
        )
        await self._storage.db.commit()

    async def list_rows(self, l1_capability_id: str | None = None) -> list[EffectiveBusinessDomainRow]:
        query = "SELECT * FROM effective_business_domains WHERE 1=1"
        params: list = []
        if l1_capability_id:
            query += " AND l1_capability_id = ?"
            params.append(l1_capability_id)
        query += " ORDER BY l1_capability_id, capability_id"
        cursor = await self._storage.db.execute(query, params)
        rows = await cursor.fetchall()
        return [EffectiveBusinessDomainRow.model_validate(dict(row)) for row in rows]


class EffectiveImportanceStore:
    """(capability_id, pillar_id, business_domain_id) -> resolved importance."""

    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage

    async def upsert(self, row: EffectiveImportanceRow) -> None:
        await self._storage.db.execute(
            """INSERT INTO effective_capability_importance
               (capability_id, pillar_id, business_domain_id, importance, importance_label,
                source_capability_id, source_capability_name, is_inherited, rationale, computed_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(capability_id, pillar_id, business_domain_id) DO UPDATE SET
                 importance=excluded.importance,
                 importance_label=excluded.importance_label,
                 source_capability_id=excluded.source_capability_id,
                 source_capability_name=excluded.source_capability_name,
                 is_inherited=excluded.is_inherited,
                 rationale=excluded.rationale,
                 computed_at=excluded.computed_at""",
            (
                row.capability_id,
                row.pillar_id,
                row.business_domain_id,
                row.importance,
                row.importance_label,
                row.source_capability_id,
                row.source_capability_name,
                int(row.is_inherited),
                row.rationale,
                row.computed_at.isoformat(),
            ),
        )
        await self._storage.db.commit()

    async def delete(self, capability_id: str, pillar_id: str, business_domain_id: str) -> None:
        await self._storage.db.execute(
            """DELETE FROM effective_capability_importance
               WHERE capability_id = ? AND pillar_id = ? AND business_domain_id = ?""",
            (capability_id, pillar_id, business_domain_id),
        )
        await self._storage.db.commit()

    async def delete_for_domain(self, capability_id: str, business_domain_id: str) -> None:
        """Delete the capability's rows for a domain across every pillar."""
        await self._storage.db.execute(
            """DELETE FROM effective_capability_importance
               WHERE capability_id = ? AND business_domain_id = ?""",
            (capability_id, business_domain_id),
        )
        await self._storage.db.commit()

    async def delete_by_capability(self, capability_id: str) -> None:
        await self._storage.db.execute(
            "DELETE FROM effective_capability_importance WHERE capability_id = ?",
            (capability_id,),
        )
        await self._storage.db.commit()

    async def delete_by_business_domain(self, business_domain_id: str) -> None:
        await self._storage.db.execute(
            "DELETE FROM effective_capability_importance WHERE business_domain_id = ?",
            (business_domain_id,),
        )
        await self._storage.db.commit()

    async def get(
        self, capability_id: str, pillar_id: str, business_domain_id: str
    ) -> EffectiveImportanceRow | None:
        cursor = await self._storage.db.execute(
            """SELECT * FROM effective_capability_importance
               WHERE capability_id = ? AND pillar_id = ? AND business_domain_id = ?""",
            (capability_id, pillar_id, business_domain_id),
        )
        row = await cursor.fetchone()
        return _importance_row(dict(row)) if row else None

    async def get_by_capability(self, capability_id: str) -> list[EffectiveImportanceRow]:
        cursor = await self._storage.db.execute(
            """SELECT * FROM effective_capability_importance
               WHERE capability_id = ?
               ORDER BY pillar_id, business_domain_id""",
            (capability_id,),
        )
        rows = await cursor.fetchall()
        return [_importance_row(dict(row)) for row in rows]


def _importance_row(data: dict) -> EffectiveImportanceRow:
    data["is_inherited"] = bool(data["is_inherited"])
    return EffectiveImportanceRow.model_validate(data)


class RealizationStore:
    """Realization rows: Direct rows mirrored from links, Inherited rows derived."""

    def __init__(self, storage: StorageEngine) -> None:
        self._storage = storage

    async def insert(self, row: RealizationRow) -> None:
        """Insert or refresh a Direct row by its realization id."""
        await self._storage.db.execute(
            """INSERT INTO capability_realizations
               (id, capability_id, component_id, component_name, realization_level, notes,
                origin, source_realization_id, source_capability_id, source_capability_name,
                linked_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                 capability_id=excluded.capability_id,
                 component_id=excluded.component_id,
                 component_name=excluded.component_name,
                 realization_level=excluded.realization_level,
                 notes=excluded.notes""",
            _realization_params(row),
        )
        await self._storage.db.commit()

    async def insert_inherited(self, row: RealizationRow) -> None:
        """Insert an Inherited row; an existing row with the same id is kept."""
        await self._storage.db.execute(
            """INSERT INTO capability_realizations
               (id, capability_id, component_id, component_name, realization_level, notes,
                origin, source_realization_id, source_capability_id, source_capability_name,
                linked_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO NOTHING""",
            _realization_params(row),
        )
        await self._storage.db.commit()

    async def update(self, realization_id: str, *, realization_level: str, notes: str) -> None:
        await self._storage.db.execute(
            "UPDATE capability_realizations SET realization_level = ?, notes = ? WHERE id = ?",
            (realization_level, notes, realization_id),
        )
        await self._storage.db.commit()

    async def delete(self, realization_id: str) -> None:
        await self._storage.db.execute(
            "DELETE FROM capability_realizations WHERE id = ?", (realization_id,)
        )
        await self._storage.db.commit()

    async def delete_by_source_realization_id(self, source_realization_id: str) -> None:
        await self._storage.db.execute(
            "DELETE FROM capability_realizations WHERE source_realization_id = ?",
            (source_realization_id,),
        )
        await self._storage.db.commit()

    async def delete_inherited(
        self, source_realization_id: str, capability_ids: Iterable[str]
    ) -> None:
        ids = list(capability_ids)
        if not ids:
            return
        placeholders = ", ".join("?" for _ in ids)
        await self._storage.db.execute(
            f"""DELETE FROM capability_realizations
                WHERE source_realization_id = ? AND capability_id IN ({placeholders})""",
            (source_realization_id, *ids),
        )
        await self._storage.db.commit()

    async def delete_by_component_id(self, component_id: str) -> None:
        await self._storage.db.execute(
            "DELETE FROM capability_realizations WHERE component_id = ?", (component_id,)
        )
        await self._storage.db.commit()

    async def update_source_capability_name(self, capability_id: str, name: str) -> None:
        await self._storage.db.execute(
            """UPDATE capability_realizations SET source_capability_name = ?
               WHERE source_capability_id = ?""",
            (name, capability_id),
        )
        await self._storage.db.commit()

    async def update_component_name(self, component_id: str, name: str) -> None:
        await self._storage.db.execute(
            "UPDATE capability_realizations SET component_name = ? WHERE component_id = ?",
            (name, component_id),
        )
        await self._storage.db.commit()

    async def get_by_id(self, realization_id: str) -> RealizationRow | None:
        cursor = await self._storage.db.execute(
            "SELECT * FROM capability_realizations WHERE id = ?", (realization_id,)
        )
        row = await cursor.fetchone()
        return RealizationRow.model_validate(dict(row)) if row else None

    async def get_by_capability_id(self, capability_id: str) -> list[RealizationRow]:
        cursor = await self._storage.db.execute(
            """SELECT * FROM capability_realizations
               WHERE capability_id = ?
               ORDER BY origin, component_id, id""",
            (capability_id,),
        )
        rows = await cursor.fetchall()
        return [RealizationRow.model_validate(dict(row)) for row in rows]

    async def get_inherited_capability_ids(self, source_realization_id: str) -> list[str]:
        cursor = await self._storage.db.execute(
            """SELECT capability_id FROM capability_realizations
               WHERE source_realization_id = ?
               ORDER BY capability_id""",
            (source_realization_id,),
        )
        rows = await cursor.fetchall()
        return [row["capability_id"] for row in rows]


def _realization_params(row: RealizationRow) -> tuple:
    return (
        row.id,
        row.capability_id,
        row.component_id,
        row.component_name,
        row.realization_level.value,
        row.notes,
        row.origin.value,
        row.source_realization_id,
        row.source_capability_id,
        row.source_capability_name,
        row.linked_at.isoformat() if row.linked_at else None,
    )
