"""``cratevendor audit`` — flag pinned crates the registry has yanked."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cratevendor.cli._common import err_console, fail, read_blocks
from cratevendor.config import VendorSettings
from cratevendor.core.coordinate_parser import parse_coordinates
from cratevendor.core.crate_audit import CrateIndex, PinState, audit
from cratevendor.core.errors import VendorError

console = Console()

_STATE_STYLE = {
    PinState.YANKED: "[bold red]yanked[/bold red]",
    PinState.UNKNOWN: "[yellow]not in index[/yellow]",
    PinState.OK: "[green]ok[/green]",
}


def audit_cmd(
    inputs: list[Path] = typer.Argument(
        ..., help="CRATES files, ebuilds, or '-' for stdin."
    ),
    index_dir: Path = typer.Option(
        None, "--index", "-i", help="Local crates.io index checkout."
    ),
    output_format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table or json."
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Exit non-zero when any pinned crate is yanked."
    ),
) -> None:
    """Report the registry state of every pinned crate."""
    if output_format not in ("table", "json"):
        err_console.print(f"[bold red]Unknown format:[/bold red] {output_format}")
        raise typer.Exit(code=2)

    index_dir = index_dir or VendorSettings().index_dir
    if index_dir is None:
        err_console.print(
            "[bold red]No crate index given.[/bold red] "
            "Pass --index or set CRATEVENDOR_INDEX_DIR."
        )
        raise typer.Exit(code=2)

    try:
        coords = [c for block in read_blocks(inputs) for c in parse_coordinates(block)]
        statuses = audit(coords, CrateIndex(index_dir))
    except VendorError as exc:
        fail(exc)
        return

    if output_format == "json":
        typer.echo(json.dumps({"status": [s.to_dict() for s in statuses]}, indent=2))
    else:
        table = Table(title=f"{len(statuses)} pinned crates")
        table.add_column("Crate", style="cyan")
        table.add_column("Version", style="green")
        table.add_column("State")
        for status in statuses:
            table.add_row(
                status.coordinate.name,
                status.coordinate.version,
                _STATE_STYLE[status.state],
            )
        console.print(table)

    if strict and any(s.state is PinState.YANKED for s in statuses):
        raise typer.Exit(code=1)
