"""``cratevendor scan EBUILD`` — inspect an ebuild's CRATES declaration."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from cratevendor.core.coordinate_parser import parse_coordinates
from cratevendor.core.ebuild_scanner import scan_ebuild
from cratevendor.core.errors import VendorError
from cratevendor.cli._common import fail

console = Console()


def scan_cmd(
    ebuild: Path = typer.Argument(..., exists=True, dir_okay=False, help="Ebuild file."),
) -> None:
    """Report cargo usage and the crates an ebuild pins."""
    scan = scan_ebuild(ebuild.read_text(encoding="utf-8"), ebuild)
    count = "-"
    if scan.crates is not None:
        try:
            count = str(len(parse_coordinates(scan.crates)))
        except VendorError as exc:
            fail(exc)
            return

    yes, no = "[green]yes[/green]", "[yellow]no[/yellow]"
    console.print(
        Panel(
            "\n".join([
                f"[bold]Uses cargo:[/bold]       {yes if scan.uses_cargo else no}",
                f"[bold]Standard helper:[/bold]  {yes if scan.standard_helper else no}",
                f"[bold]Crates:[/bold]           {count}",
            ]),
            title=f"[bold]{ebuild.name}[/bold]",
            border_style="cyan",
            padding=(1, 2),
        )
    )
    if scan.uses_cargo and scan.crates is None:
        raise typer.Exit(code=1)
