"""``cratevendor vendor`` — verify fetched archives and assemble the tree.

Reads archives the download phase already placed in the distfiles
directory, verifies them, unpacks them under the vendor root, and writes
the cargo redirect config.  Exits non-zero on any failure; a partial
success is never reported.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from cratevendor.cli._common import fail, read_blocks, read_checksums
from cratevendor.config import VendorSettings
from cratevendor.core.errors import VendorError
from cratevendor.core.resolver import VendorResolver
from cratevendor.core.uri_synthesizer import RegistryTemplate
from cratevendor.sources.distdir import DistdirSource

console = Console()


def vendor_cmd(
    inputs: list[Path] = typer.Argument(
        ..., help="CRATES files, ebuilds, or '-' for stdin."
    ),
    distdir: Path = typer.Option(
        None, "--distdir", "-d", help="Directory holding fetched archives."
    ),
    vendor_root: Path = typer.Option(
        None, "--vendor-root", "-o", help="Vendor tree root directory."
    ),
    config_path: Path = typer.Option(
        None, "--config", help="Where to write the cargo redirect config."
    ),
    checksums: Path = typer.Option(
        None, "--checksums", "-c", help="Manifest file with DIST checksums."
    ),
    require_checksums: bool = typer.Option(
        None,
        "--require-checksums/--allow-unverified",
        help="Fail when an archive has no known checksum.",
    ),
    workers: int = typer.Option(
        None, "--workers", "-j", help="Concurrent verify/unpack workers."
    ),
    template: str = typer.Option(
        None, "--template", "-t", help="Registry URL template."
    ),
) -> None:
    """Run a full resolution pass into an offline vendor tree."""
    settings = VendorSettings()
    resolver = VendorResolver(
        RegistryTemplate(url=template or settings.registry_template),
        vendor_root or settings.vendor_root,
        config_path=config_path or settings.config_path,
        max_workers=workers or settings.max_workers,
        require_checksums=(
            settings.require_checksums if require_checksums is None else require_checksums
        ),
    )
    source = DistdirSource(distdir or settings.distdir)

    try:
        result = resolver.resolve(
            *read_blocks(inputs),
            source=source,
            checksums=read_checksums(checksums),
        )
    except VendorError as exc:
        fail(exc)
        return

    tree = result.tree
    lines = [
        "[bold green]Vendor tree assembled[/bold green]",
        "",
        f"[bold]Root:[/bold]        {tree.root}",
        f"[bold]Config:[/bold]      {tree.config_path}",
        f"[bold]Entries:[/bold]     {len(tree.entries)}",
    ]
    if result.unverified:
        lines.append(
            f"[bold yellow]Unverified:[/bold yellow]  {', '.join(result.unverified)}"
        )
    console.print(
        Panel("\n".join(lines), title="[bold]cratevendor[/bold]", border_style="green", padding=(1, 2))
    )
