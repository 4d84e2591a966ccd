"""Mini README: Entry point CLI for the furniture finance dashboard.

This script exposes a Typer CLI that starts the FastAPI service, writes the
spreadsheet export from the stored ledger, checks the configured export
webhook, and prints the totals of the default operational cost schedule.
Settings come from ``FURNLEDGER_`` environment variables when available.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from furnledger.configuration import get_settings
from furnledger.export import JsonConfigStorage, WebhookTransport, build_test_payload, write_workbook
from furnledger.ledger import summarise_seed_costs
from furnledger.logging_utils import configure_root_logger
from furnledger.store import DashboardStore, InMemoryPersistenceAdapter

cli = typer.Typer(help="Run and maintain the furniture finance dashboard.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(settings.log_level)

    # Browsers cannot open the 0.0.0.0 bind address, so point at localhost instead.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        "Starting the finance dashboard on "
        f"{effective_host}:{effective_port}.\n"
        "API available at "
        f"http://{browser_host}:{effective_port}/docs"
    )
    uvicorn.run(
        "furnledger.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command("export-workbook")
def export_workbook(path: Path = typer.Argument(..., help="Destination .xlsx file.")) -> None:
    """Write the stored ledger to a spreadsheet workbook."""

    settings = get_settings()
    configure_root_logger(settings.log_level)
    store = DashboardStore(InMemoryPersistenceAdapter(mirror_path=settings.state_file))
    asyncio.run(store.load())
    written = write_workbook(store.state, path)
    typer.echo(
        f"Wrote {len(store.state.projects)} projects and "
        f"{len(store.state.operational_costs)} operational costs to {written}"
    )


@cli.command("test-endpoint")
def test_endpoint(
    url: Optional[str] = typer.Option(None, help="Webhook URL; defaults to the saved export config."),
) -> None:
    """Send the test payload to the export webhook."""

    settings = get_settings()
    configure_root_logger(settings.log_level)
    target = url or JsonConfigStorage.from_settings(settings).load().endpoint_url
    if not target:
        typer.echo("No export endpoint configured.", err=True)
        raise typer.Exit(code=1)
    transport = WebhookTransport(timeout=settings.export_timeout_seconds)
    result = asyncio.run(transport.send(target, build_test_payload()))
    status = result.status_code if result.status_code is not None else "n/a"
    typer.echo(f"{'OK' if result.success else 'FAILED'} (status {status}) {result.message}")
    if not result.success:
        raise typer.Exit(code=1)


@cli.command("seed-summary")
def seed_summary() -> None:
    """Print totals of the default operational cost schedule."""

    totals = summarise_seed_costs()
    typer.echo(f"Entries: {totals['cost_count']}")
    for label, key in (
        ("2025", "total_2025"),
        ("2026", "total_2026"),
        ("Fixed", "fixed_total"),
        ("Variable", "variable_total"),
        ("Total", "total_costs"),
    ):
        typer.echo(f"{label:<9}{totals[key]:>14,.2f}")


if __name__ == "__main__":
    cli()
