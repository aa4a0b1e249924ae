"""``cratevendor parse`` — parse CRATES blocks and show the coordinates."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cratevendor.cli._common import fail, read_blocks
from cratevendor.core.coordinate_parser import parse_coordinates
from cratevendor.core.errors import VendorError

console = Console()


def parse_cmd(
    inputs: list[Path] = typer.Argument(
        ..., help="CRATES files, ebuilds, or '-' for stdin."
    ),
    plain: bool = typer.Option(
        False, "--plain", help="Print canonical name-version lines only."
    ),
) -> None:
    """Parse pinned coordinates and print them in order."""
    try:
        coords = [c for block in read_blocks(inputs) for c in parse_coordinates(block)]
    except VendorError as exc:
        fail(exc)
        return

    if plain:
        for coord in coords:
            typer.echo(coord.token)
        return

    table = Table(title=f"{len(coords)} coordinates")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="green")
    for i, coord in enumerate(coords, start=1):
        table.add_row(str(i), coord.name, coord.version)
    console.print(table)
