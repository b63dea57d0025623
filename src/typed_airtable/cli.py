"""Typer-based CLI for inspecting bases and reading typed records."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from typed_airtable.core.config import ClientSettings, get_settings
from typed_airtable.core.errors import AirtableTsError
from typed_airtable.core.logging import setup_logging
from typed_airtable.mapping.types import remote_field_types
from typed_airtable.models.tables import TableDefinition
from typed_airtable.services.client import AirtableClient
from typed_airtable.services.tables import list_requested_column_ids

app = typer.Typer(help="Inspect remote bases and read records through typed table definitions")
console = Console()


def _build_client(api_key: Optional[str], *, read_validation: str = "error") -> AirtableClient:
    settings: ClientSettings = get_settings()
    overrides: dict[str, Any] = {"read_validation": read_validation}
    if api_key:
        overrides["api_key"] = api_key
    return AirtableClient(settings, **overrides)


def _load_definition(path: Path) -> TableDefinition:
    try:
        return TableDefinition.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read table definition {path}: {exc}") from exc
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid table definition {path}: {exc}") from exc


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except AirtableTsError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


async def _with_client(client: AirtableClient, action: Any) -> Any:
    async with client:
        return await action(client)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for library diagnostics."),
) -> None:
    setup_logging(log_level, json_output=False)


@app.command()
def schema(
    base_id: str = typer.Argument(..., help="Base identifier, e.g. app1234."),
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="AIRTABLE_API_KEY", help="API token (falls back to env)."),
):
    """Print every table of a base with its column ids, names and types."""

    client = _build_client(api_key)
    tables = _run(_with_client(client, lambda c: c.schema_cache.get(base_id)))

    if not tables:
        typer.secho(f"Base {base_id} has no tables.", fg=typer.colors.YELLOW)
        return

    for remote_schema in tables:
        console.rule(f"[bold cyan]{remote_schema.name or remote_schema.id}[/] :: {remote_schema.id}")
        column_table = Table(show_header=True, header_style="bold magenta")
        column_table.add_column("Id")
        column_table.add_column("Name")
        column_table.add_column("Type")
        for column in remote_schema.fields:
            column_table.add_row(column.id, column.name, column.type)
        console.print(column_table)


@app.command()
def columns(
    definition: Path = typer.Argument(..., help="JSON file holding a table definition."),
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="AIRTABLE_API_KEY", help="API token (falls back to env)."),
):
    """Print the column identifiers a scan of the table would request."""

    table = _load_definition(definition)
    client = _build_client(api_key)
    remote_table = _run(_with_client(client, lambda c: c.get_remote_table(table)))
    requested = list_requested_column_ids(table, remote_table)

    column_table = Table(show_header=True, header_style="bold magenta")
    column_table.add_column("Identifier")
    column_table.add_column("Remote type")
    for identifier in requested:
        column = remote_table.find_column(identifier)
        column_table.add_row(identifier, column.type if column else "?")
    console.print(column_table)

    if len(requested) < len(remote_field_types(table)):
        typer.secho("Some mapped columns do not exist remotely and will not be requested.", fg=typer.colors.YELLOW)


@app.command()
def scan(
    definition: Path = typer.Argument(..., help="JSON file holding a table definition."),
    filter_formula: Optional[str] = typer.Option(None, "--filter", help="Formula passed through as filterByFormula."),
    max_records: Optional[int] = typer.Option(None, "--max-records", min=1, help="Stop after this many records."),
    warn: bool = typer.Option(False, "--warn", help="Report field mapping problems as warnings instead of failing."),
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="AIRTABLE_API_KEY", help="API token (falls back to env)."),
):
    """Scan a table and print the mapped records as JSON."""

    table = _load_definition(definition)
    client = _build_client(api_key, read_validation="warning" if warn else "error")

    warnings: list[AirtableTsError] = []
    client.on_warning = warnings.append

    params = {"filterByFormula": filter_formula, "maxRecords": max_records}
    records = _run(_with_client(client, lambda c: c.scan(table, params)))

    typer.echo(json.dumps(records, indent=2, ensure_ascii=False))
    for warning in warnings:
        typer.secho(f"Warning: {warning}", fg=typer.colors.YELLOW, err=True)
    typer.secho(f"{len(records)} records from {table.label}", fg=typer.colors.GREEN, err=True)


if __name__ == "__main__":  # pragma: no cover
    app()
