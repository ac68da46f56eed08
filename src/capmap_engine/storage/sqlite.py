"""SQLite persistence for capability facts and the effective read models."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

_SCHEMA = """
-- Capability tree (hierarchy index)
CREATE TABLE IF NOT EXISTS capabilities (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    parent_id TEXT,
    level TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_capabilities_parent ON capabilities(parent_id);

-- Business domains
CREATE TABLE IF NOT EXISTS business_domains (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Direct capability-to-domain assignments
CREATE TABLE IF NOT EXISTS domain_assignments (
    business_domain_id TEXT NOT NULL,
    capability_id TEXT NOT NULL,
    assignment_id TEXT,
    assigned_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (business_domain_id, capability_id)
);

-- Explicit importance ratings
CREATE TABLE IF NOT EXISTS strategy_importances (
    id TEXT PRIMARY KEY,
    business_domain_id TEXT NOT NULL,
    capability_id TEXT NOT NULL,
    pillar_id TEXT NOT NULL,
    pillar_name TEXT NOT NULL DEFAULT '',
    importance INTEGER NOT NULL,
    importance_label TEXT NOT NULL,
    rationale TEXT NOT NULL DEFAULT '',
    set_at TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_strategy_importances_triple
    ON strategy_importances(capability_id, pillar_id, business_domain_id);

-- Application components (name cache)
CREATE TABLE IF NOT EXISTS application_components (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

-- Effective business domain (derived)
CREATE TABLE IF NOT EXISTS effective_business_domains (
    capability_id TEXT PRIMARY KEY,
    l1_capability_id TEXT NOT NULL,
    business_domain_id TEXT NOT NULL DEFAULT '',
    business_domain_name TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_effective_bd_l1 ON effective_business_domains(l1_capability_id);

-- Effective importance (derived)
CREATE TABLE IF NOT EXISTS effective_capability_importance (
    capability_id TEXT NOT NULL,
    pillar_id TEXT NOT NULL,
    business_domain_id TEXT NOT NULL,
    importance INTEGER NOT NULL,
    importance_label TEXT NOT NULL,
    source_capability_id TEXT NOT NULL,
    source_capability_name TEXT NOT NULL DEFAULT '',
    is_inherited INTEGER NOT NULL,
    rationale TEXT NOT NULL DEFAULT '',
    computed_at TIMESTAMP NOT NULL,
    PRIMARY KEY (capability_id, pillar_id, business_domain_id)
);

-- Capability realizations (Direct rows observed, Inherited rows derived)
CREATE TABLE IF NOT EXISTS capability_realizations (
    id TEXT PRIMARY KEY,
    capability_id TEXT NOT NULL,
    component_id TEXT NOT NULL,
    component_name TEXT NOT NULL DEFAULT '',
    realization_level TEXT NOT NULL,
    notes TEXT NOT NULL DEFAULT '',
    origin TEXT NOT NULL,
    source_realization_id TEXT,
    source_capability_id TEXT,
    source_capability_name TEXT NOT NULL DEFAULT '',
    linked_at TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_realizations_capability ON capability_realizations(capability_id);
CREATE INDEX IF NOT EXISTS idx_realizations_source ON capability_realizations(source_realization_id);
"""

TABLES = (
    "capabilities",
    "business_domains",
    "domain_assignments",
    "strategy_importances",
    "application_components",
    "effective_business_domains",
    "effective_capability_importance",
    "capability_realizations",
)


class StorageEngine:
    """Async SQLite storage for the capability map engine."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open connection and create schema."""
        self._db = await aiosqlite.connect(str(self.db_path))
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(_SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("StorageEngine not initialized, call initialize() first")
        return self._db

    async def count_rows(self, table: str) -> int:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        cursor = await self.db.execute(f"SELECT COUNT(*) FROM {table}")
        row = await cursor.fetchone()
        return row[0] if row else 0

    # ----- Capabilities -----

    async def upsert_capability(
        self,
        *,
        capability_id: str,
        name: str,
        parent_id: str | None,
        level: str,
    ) -> None:
        await self.db.execute(
            """INSERT INTO capabilities (id, name, parent_id, level)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                 name=excluded.name,
                 parent_id=excluded.parent_id,
                 level=excluded.level,
                 updated_at=CURRENT_TIMESTAMP""",
            (capability_id, name, parent_id or None, level),
        )
        await self.db.commit()

    async def update_capability_name(self, capability_id: str, name: str) -> None:
        await self.db.execute(
            "UPDATE capabilities SET name = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (name, capability_id),
        )
        await self.db.commit()

    async def update_capability_parent(
        self, capability_id: str, *, parent_id: str | None, level: str
    ) -> None:
        await self.db.execute(
            """UPDATE capabilities
               SET parent_id = ?, level = ?, updated_at = CURRENT_TIMESTAMP
               WHERE id = ?""",
            (parent_id or None, level, capability_id),
        )
        await self.db.commit()

    async def update_capability_level(self, capability_id: str, level: str) -> None:
        await self.db.execute(
            "UPDATE capabilities SET level = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (level, capability_id),
        )
        await self.db.commit()

    async def delete_capability(self, capability_id: str) -> None:
        await self.db.execute("DELETE FROM capabilities WHERE id = ?", (capability_id,))
        await self.db.commit()

    async def get_capability(self, capability_id: str) -> dict | None:
        cursor = await self.db.execute("SELECT * FROM capabilities WHERE id = ?", (capability_id,))
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def list_child_capabilities(self, parent_id: str) -> list[dict]:
        cursor = await self.db.execute(
            "SELECT * FROM capabilities WHERE parent_id = ? ORDER BY created_at, id", (parent_id,)
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    # ----- Business domains -----

    async def upsert_business_domain(self, *, domain_id: str, name: str) -> None:
        await self.db.execute(
            """INSERT INTO business_domains (id, name) VALUES (?, ?)
               ON CONFLICT(id) DO UPDATE SET name=excluded.name""",
            (domain_id, name),
        )
        await self.db.commit()

    async def delete_business_domain(self, domain_id: str) -> None:
        await self.db.execute("DELETE FROM business_domains WHERE id = ?", (domain_id,))
        await self.db.execute(
            "DELETE FROM domain_assignments WHERE business_domain_id = ?", (domain_id,)
        )
        await self.db.commit()

    async def get_business_domain(self, domain_id: str) -> dict | None:
        cursor = await self.db.execute("SELECT * FROM business_domains WHERE id = ?", (domain_id,))
        row = await cursor.fetchone()
        return dict(row) if row else None

    # ----- Domain assignments -----

    async def assign_capability_to_domain(
        self, *, business_domain_id: str, capability_id: str, assignment_id: str = ""
    ) -> None:
        await self.db.execute(
            """INSERT INTO domain_assignments (business_domain_id, capability_id, assignment_id)
               VALUES (?, ?, ?)
               ON CONFLICT(business_domain_id, capability_id) DO UPDATE SET
                 assignment_id=excluded.assignment_id""",
            (business_domain_id, capability_id, assignment_id),
        )
        await self.db.commit()

    async def unassign_capability_from_domain(
        self, *, business_domain_id: str, capability_id: str
    ) -> None:
        await self.db.execute(
            "DELETE FROM domain_assignments WHERE business_domain_id = ? AND capability_id = ?",
            (business_domain_id, capability_id),
        )
        await self.db.commit()

    async def assignment_exists(self, business_domain_id: str, capability_id: str) -> bool:
        cursor = await self.db.execute(
            "SELECT 1 FROM domain_assignments WHERE business_domain_id = ? AND capability_id = ?",
            (business_domain_id, capability_id),
        )
        return await cursor.fetchone() is not None

    async def list_domain_assignments(self, capability_id: str | None = None) -> list[dict]:
        query = "SELECT * FROM domain_assignments WHERE 1=1"
        params: list = []
        if capability_id:
            query += " AND capability_id = ?"
            params.append(capability_id)
        query += " ORDER BY assigned_at"
        cursor = await self.db.execute(query, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    # ----- Strategy importance (explicit ratings) -----

    async def store_strategy_importance(
        self,
        *,
        importance_id: str,
        business_domain_id: str,
        capability_id: str,
        pillar_id: str,
        pillar_name: str,
        importance: int,
        importance_label: str,
        rationale: str = "",
        set_at: datetime | None = None,
    ) -> None:
        set_at = set_at or datetime.now(UTC)
        await self.db.execute(
            """INSERT INTO strategy_importances
               (id, business_domain_id, capability_id, pillar_id, pillar_name,
                importance, importance_label, rationale, set_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                 importance=excluded.importance,
                 importance_label=excluded.importance_label,
                 rationale=excluded.rationale,
                 pillar_name=excluded.pillar_name""",
            (
                importance_id,
                business_domain_id,
                capability_id,
                pillar_id,
                pillar_name,
                importance,
                importance_label,
                rationale,
                set_at.isoformat(),
            ),
        )
        await self.db.commit()

    async def update_strategy_importance(
        self, importance_id: str, *, importance: int, importance_label: str, rationale: str
    ) -> None:
        await self.db.execute(
            """UPDATE strategy_importances
               SET importance = ?, importance_label = ?, rationale = ?
               WHERE id = ?""",
            (importance, importance_label, rationale, importance_id),
        )
        await self.db.commit()

    async def delete_strategy_importance(self, importance_id: str) -> None:
        await self.db.execute("DELETE FROM strategy_importances WHERE id = ?", (importance_id,))
        await self.db.commit()

    async def get_strategy_importance(self, importance_id: str) -> dict | None:
        cursor = await self.db.execute(
            "SELECT * FROM strategy_importances WHERE id = ?", (importance_id,)
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def find_strategy_importance(
        self, *, capability_id: str, pillar_id: str, business_domain_id: str
    ) -> dict | None:
        cursor = await self.db.execute(
            """SELECT * FROM strategy_importances
               WHERE capability_id = ? AND pillar_id = ? AND business_domain_id = ?
               ORDER BY set_at DESC
               LIMIT 1""",
            (capability_id, pillar_id, business_domain_id),
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    # ----- Application components -----

    async def upsert_component(self, *, component_id: str, name: str) -> None:
        await self.db.execute(
            """INSERT INTO application_components (id, name) VALUES (?, ?)
               ON CONFLICT(id) DO UPDATE SET name=excluded.name""",
            (component_id, name),
        )
        await self.db.commit()

    async def delete_component(self, component_id: str) -> None:
        await self.db.execute("DELETE FROM application_components WHERE id = ?", (component_id,))
        await self.db.commit()

    async def get_component(self, component_id: str) -> dict | None:
        cursor = await self.db.execute(
            "SELECT * FROM application_components WHERE id = ?", (component_id,)
        )
        row = await cursor.fetchone()
        return dict(row) if row else None
