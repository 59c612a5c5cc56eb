"""Command-line interface for Larder."""

from __future__ import annotations

import asyncio
import json
import random
from pathlib import Path
from typing import Optional

import typer

from larder.config import get_settings
from larder.db.sql_gateway import SqlPersistenceGateway
from larder.engine.facade import LarderEngine
from larder.logging_utils import configure_logging
from larder.models.exchange import ImportPayload

app = typer.Typer(help="Larder household-inventory commands.")


async def _open_engine() -> LarderEngine:
    engine = LarderEngine(SqlPersistenceGateway(), get_settings())
    await engine.load()
    return engine


def _warn_pending(engine: LarderEngine) -> None:
    if engine.pending_tables:
        typer.secho(
            f"Warning: failed to write {', '.join(engine.pending_tables)}",
            fg=typer.colors.YELLOW,
        )


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


@app.command("export")
def export_command(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file."),
    pretty: bool = typer.Option(True, "--pretty/--no-pretty", help="Pretty-print output JSON."),
) -> None:
    """Export inventory, custom subcategories, shopping list and ordering as JSON."""

    async def _run() -> str:
        engine = await _open_engine()
        payload = engine.export_data().model_dump(mode="json", by_alias=True)
        return json.dumps(payload, indent=2 if pretty else None)

    document = asyncio.run(_run())
    if output is None:
        typer.echo(document)
        return
    output.write_text(document, encoding="utf-8")
    typer.echo(f"Exported to {output}")


@app.command("import")
def import_command(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Exported JSON file."),
) -> None:
    """Replace current data with a previously exported document."""

    with source.open("r", encoding="utf-8") as fh:
        payload = ImportPayload.model_validate(json.load(fh))

    async def _run() -> int:
        engine = await _open_engine()
        await engine.import_data(payload)
        _warn_pending(engine)
        return len(engine.items())

    count = asyncio.run(_run())
    typer.echo(f"Imported {count} item(s).")


@app.command("reset")
def reset_command(
    empty: bool = typer.Option(False, "--empty", help="Clear everything instead of seeding samples."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for sample stock levels."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Reset the inventory to the built-in samples, or clear it entirely with --empty."""

    if not yes:
        typer.confirm("This replaces all stored data. Continue?", abort=True)

    async def _run() -> str:
        engine = await _open_engine()
        if empty:
            await engine.clear_all_data()
            message = "All data cleared."
        else:
            count = await engine.reset_to_defaults(random.Random(seed))
            message = f"Reset to defaults with {count} sample item(s)."
        _warn_pending(engine)
        return message

    typer.echo(asyncio.run(_run()))


@app.command("generate-list")
def generate_list_command(
    finalize: bool = typer.Option(False, "--finalize", help="Finalize the list after generating."),
) -> None:
    """Generate a shopping list from low-stock items and print it."""

    async def _run() -> Optional[LarderEngine]:
        engine = await _open_engine()
        if not await engine.generate_shopping_list():
            return None
        if not engine.shopping_list():
            # Nothing to buy; return to Empty.
            await engine.cancel_shopping()
        elif finalize:
            await engine.finalize_shopping_list()
        _warn_pending(engine)
        return engine

    engine = asyncio.run(_run())
    if engine is None:
        typer.secho(
            "A shopping list is already in progress; complete or cancel it first.",
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)
    entries = engine.shopping_list()
    if not entries:
        typer.echo("Nothing is running low.")
        return
    for entry in entries:
        typer.echo(f"- {entry.name}")
    typer.echo(f"State: {engine.shopping_state.value}")


@app.command("cancel-list")
def cancel_list_command() -> None:
    """Discard the shopping list in progress."""

    async def _run() -> bool:
        engine = await _open_engine()
        cancelled = await engine.cancel_shopping()
        _warn_pending(engine)
        return cancelled

    if not asyncio.run(_run()):
        typer.secho("No shopping list is in progress.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo("Shopping list cancelled.")


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload."),
) -> None:
    """Run the HTTP API with uvicorn."""

    from larder.server.run import serve

    serve(host, port, reload=reload)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the ``larder`` console script."""
    app(prog_name="larder", args=argv)


if __name__ == "__main__":
    main()
