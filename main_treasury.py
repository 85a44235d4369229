"""Mini README: Entry point CLI for the budgetchain treasury service.

Commands:
    * run - start the FastAPI application with uvicorn.
    * ledger-status - print the configured ledger gateway's diagnostics.
    * digest - recompute a document digest from a JSON file so auditors can
      compare it with the value anchored on the ledger.

Settings come from ``BUDGETCHAIN_*`` environment variables (or ``.env``);
command-line options override host and port.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from budgetchain.configuration import get_settings
from budgetchain.finance import DocumentHasher, RecordKind
from budgetchain.finance.money import to_money
from budgetchain.ledger import REGISTRY
from budgetchain.logging_utils import configure_root_logger

cli = typer.Typer(help="Run and inspect the budgetchain treasury service.")


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

    # 0.0.0.0 and :: are bind addresses, not something a browser can open.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting budgetchain on {effective_host}:{effective_port} "
        f"(ledger: {settings.ledger_gateway}).\n"
        f"API docs at http://{browser_host}:{effective_port}/docs"
    )
    uvicorn.run(
        "budgetchain.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command("ledger-status")
def ledger_status() -> None:
    """Show which ledger gateway is configured and whether it is reachable."""

    settings = get_settings()
    configure_root_logger(settings.log_level)
    REGISTRY.discover_plugins()
    gateway = REGISTRY.create(settings.ledger_gateway, settings)
    try:
        for key, value in gateway.metadata().items():
            typer.echo(f"{key}: {value}")
    finally:
        gateway.close()


@cli.command()
def digest(
    kind: str = typer.Argument(..., help="Record kind: income, allocation, expenditure or proposal."),
    document: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON document fields."),
    expected: Optional[str] = typer.Option(None, help="Digest to verify against."),
) -> None:
    """Print the canonical digest of a document, optionally verifying it."""

    try:
        record_kind = RecordKind.from_str(kind)
    except ValueError as error:
        raise typer.BadParameter(str(error), param_hint="KIND") from error

    fields = json.loads(document.read_text(encoding="utf-8"))
    if not isinstance(fields, dict):
        raise typer.BadParameter("Document must be a JSON object.", param_hint="DOCUMENT")
    if "amount" in fields:
        fields["amount"] = to_money(fields["amount"])

    hasher = DocumentHasher()
    value = hasher.digest(record_kind, fields)
    typer.echo(value)
    if expected is not None:
        if hasher.verify(record_kind, fields, expected):
            typer.echo("match")
        else:
            typer.echo("MISMATCH", err=True)
            raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
