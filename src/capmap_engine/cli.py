"""CLI entry point for the capability map engine."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from capmap_engine.config import EngineConfig, load_config
from capmap_engine.storage.sqlite import TABLES, StorageEngine

app = typer.Typer(
    name="capmap-engine",
    help="Capability map engine: project capability events into effective views.",
    no_args_is_help=True,
)
console = Console()

DEFAULT_CONFIG = Path("capmap.yaml")

DbOption = typer.Option(None, "--db", help="Path to SQLite database (overrides config)")
ConfigOption = typer.Option(DEFAULT_CONFIG, "--config", help="Path to YAML config file")


def _setup(config_path: Path, db: Path | None) -> tuple[EngineConfig, Path]:
    config = load_config(config_path)
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    db_path = db or config.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return config, db_path


@app.command()
def init(
    db: Path | None = DbOption,
    config: Path = ConfigOption,
) -> None:
    """Create the database schema."""
    _, db_path = _setup(config, db)

    async def _init() -> None:
        storage = StorageEngine(db_path)
        await storage.initialize()
        await storage.close()

    asyncio.run(_init())
    console.print(f"[green]Initialized capability map database at {db_path}[/green]")


@app.command()
def replay(
    events_file: Path = typer.Argument(help="YAML or JSON file of event envelopes"),
    db: Path | None = DbOption,
    config: Path = ConfigOption,
) -> None:
    """Dispatch every event in a file, in order."""
    from capmap_engine.dispatch import build_dispatcher, load_events
    from capmap_engine.errors import ProjectionError

    engine_config, db_path = _setup(config, db)
    if not events_file.exists():
        console.print(f"[red]Events file not found: {events_file}[/red]")
        raise typer.Exit(1)

    try:
        envelopes = load_events(events_file)
    except (ValueError, yaml.YAMLError) as exc:
        # pydantic's ValidationError is a ValueError
        console.print(f"[red]Replay stopped: cannot read {events_file}: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    async def _replay() -> int:
        storage = StorageEngine(db_path)
        await storage.initialize()
        try:
            dispatcher = build_dispatcher(storage, engine_config)
            return await dispatcher.replay(envelopes)
        finally:
            await storage.close()

    try:
        count = asyncio.run(_replay())
    except ProjectionError as exc:
        console.print(f"[red]Replay stopped: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    console.print(f"[green]Replayed {count} events into {db_path}[/green]")


@app.command(name="show-domains")
def show_domains(
    l1: str | None = typer.Option(None, "--l1", help="Only rows under this L1 capability"),
    db: Path | None = DbOption,
    config: Path = ConfigOption,
) -> None:
    """Print the effective business domain of every capability."""
    from capmap_engine.storage.effective import EffectiveBusinessDomainStore

    _, db_path = _setup(config, db)

    async def _show() -> None:
        storage = StorageEngine(db_path)
        await storage.initialize()
        try:
            rows = await EffectiveBusinessDomainStore(storage).list_rows(l1)
        finally:
            await storage.close()

        if not rows:
            console.print("[dim]No effective business domains found.[/dim]")
            return

        table = Table(title="Effective business domains")
        table.add_column("Capability")
        table.add_column("L1")
        table.add_column("Domain")
        table.add_column("Domain name")
        for row in rows:
            table.add_row(
                row.capability_id,
                row.l1_capability_id,
                row.business_domain_id or "-",
                row.business_domain_name or "-",
            )
        console.print(table)

    asyncio.run(_show())


@app.command(name="show-importance")
def show_importance(
    capability_id: str = typer.Argument(help="Capability ID"),
    db: Path | None = DbOption,
    config: Path = ConfigOption,
) -> None:
    """Print the effective importance rows of a capability."""
    from capmap_engine.storage.effective import EffectiveImportanceStore

    _, db_path = _setup(config, db)

    async def _show() -> None:
        storage = StorageEngine(db_path)
        await storage.initialize()
        try:
            rows = await EffectiveImportanceStore(storage).get_by_capability(capability_id)
        finally:
            await storage.close()

        if not rows:
            console.print(f"[dim]No effective importance for {capability_id}.[/dim]")
            return

        table = Table(title=f"Effective importance of {capability_id}")
        table.add_column("Pillar")
        table.add_column("Domain")
        table.add_column("Importance")
        table.add_column("Source")
        table.add_column("Inherited")
        for row in rows:
            table.add_row(
                row.pillar_id,
                row.business_domain_id,
                f"{row.importance} ({row.importance_label})",
                row.source_capability_name or row.source_capability_id,
                "yes" if row.is_inherited else "no",
            )
        console.print(table)

    asyncio.run(_show())


@app.command(name="show-realizations")
def show_realizations(
    capability_id: str = typer.Argument(help="Capability ID"),
    db: Path | None = DbOption,
    config: Path = ConfigOption,
) -> None:
    """Print the direct and inherited realizations of a capability."""
    from capmap_engine.storage.effective import RealizationStore

    _, db_path = _setup(config, db)

    async def _show() -> None:
        storage = StorageEngine(db_path)
        await storage.initialize()
        try:
            rows = await RealizationStore(storage).get_by_capability_id(capability_id)
        finally:
            await storage.close()

        if not rows:
            console.print(f"[dim]No realizations for {capability_id}.[/dim]")
            return

        table = Table(title=f"Realizations of {capability_id}")
        table.add_column("Component")
        table.add_column("Level")
        table.add_column("Origin")
        table.add_column("Via")
        for row in rows:
            table.add_row(
                row.component_name or row.component_id,
                row.realization_level.value,
                row.origin.value,
                "" if row.is_direct else (row.source_capability_name or row.source_capability_id or ""),
            )
        console.print(table)

    asyncio.run(_show())


@app.command()
def resolve(
    capability_id: str = typer.Argument(help="Capability ID"),
    pillar: str = typer.Option(..., "--pillar", help="Strategy pillar ID"),
    domain: str = typer.Option(..., "--domain", help="Business domain ID"),
    db: Path | None = DbOption,
    config: Path = ConfigOption,
) -> None:
    """Resolve the importance that applies to a capability, walking up its parents."""
    from capmap_engine.lookups.local import LocalHierarchyIndex, LocalRatingLookup
    from capmap_engine.projectors.effective_importance import HierarchicalRatingResolver

    _, db_path = _setup(config, db)

    async def _resolve() -> None:
        storage = StorageEngine(db_path)
        await storage.initialize()
        try:
            resolver = HierarchicalRatingResolver(
                LocalHierarchyIndex(storage), LocalRatingLookup(storage)
            )
            resolved = await resolver.resolve_effective_importance(capability_id, pillar, domain)
        finally:
            await storage.close()

        if resolved is None:
            console.print(f"[yellow]No rating applies to {capability_id}[/yellow]")
            return

        origin = "inherited from" if resolved.is_inherited else "set on"
        source = resolved.source_capability_name or resolved.source_capability_id
        console.print(
            f"[bold]{resolved.importance}[/bold] ({resolved.importance_label}), {origin} {source}"
        )
        if resolved.rationale:
            console.print(f"  [dim]{resolved.rationale}[/dim]")

    asyncio.run(_resolve())


@app.command()
def status(
    db: Path | None = DbOption,
    config: Path = ConfigOption,
) -> None:
    """Show row counts for fact tables and effective views."""
    _, db_path = _setup(config, db)

    async def _status() -> dict[str, int]:
        storage = StorageEngine(db_path)
        await storage.initialize()
        try:
            return {table: await storage.count_rows(table) for table in TABLES}
        finally:
            await storage.close()

    counts = asyncio.run(_status())

    console.print(f"\n[bold]{db_path}[/bold]")
    for table, count in counts.items():
        console.print(f"  {table}: {count}")


if __name__ == "__main__":
    app()
