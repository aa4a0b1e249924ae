"""``cratevendor manifest`` — emit the merged fetch manifest."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from cratevendor.cli._common import fail, read_blocks, read_checksums
from cratevendor.config import VendorSettings
from cratevendor.core.errors import VendorError
from cratevendor.core.resolver import VendorResolver
from cratevendor.core.uri_synthesizer import RegistryTemplate

console = Console()


def manifest_cmd(
    inputs: list[Path] = typer.Argument(
        ..., help="CRATES files, ebuilds, or '-' for stdin."
    ),
    template: str = typer.Option(
        None, "--template", "-t", help="Registry URL template."
    ),
    checksums: Path = typer.Option(
        None, "--checksums", "-c", help="Manifest file with DIST checksums."
    ),
    output_format: str = typer.Option(
        "src-uri", "--format", "-f", help="Output format: src-uri or json."
    ),
) -> None:
    """Print the fetch manifest the download phase should consume."""
    settings = VendorSettings()
    resolver = VendorResolver(
        RegistryTemplate(url=template or settings.registry_template),
        settings.vendor_root,
    )
    try:
        manifest = resolver.plan(
            *read_blocks(inputs), checksums=read_checksums(checksums)
        )
    except VendorError as exc:
        fail(exc)
        return

    if output_format == "json":
        typer.echo(json.dumps(manifest.to_fetch_list(), indent=2))
    elif output_format == "src-uri":
        typer.echo(manifest.to_src_uri())
    else:
        console.print(f"[bold red]Unknown format:[/bold red] {output_format}")
        raise typer.Exit(code=2)
