"""Shared helpers for cratevendor CLI commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from cratevendor.core.ebuild_scanner import scan_ebuild
from cratevendor.core.errors import VendorError
from cratevendor.core.integrity_gate import load_manifest_checksums
from cratevendor.models.fetch import Checksum

err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route stdlib logging through Rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def read_blocks(inputs: list[Path]) -> list[str]:
    """Read one CRATES block per input.

    ``-`` reads standard input; ``*.ebuild`` files have their CRATES
    declaration extracted; anything else is read as a plain token list.
    """
    blocks: list[str] = []
    for path in inputs:
        if str(path) == "-":
            blocks.append(sys.stdin.read())
            continue
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            err_console.print(f"[bold red]Cannot read {path}:[/bold red] {exc}")
            raise typer.Exit(code=1) from exc
        if path.suffix == ".ebuild":
            scan = scan_ebuild(text, path)
            if scan.crates is None:
                err_console.print(f"[bold red]No CRATES block in[/bold red] {path}")
                raise typer.Exit(code=1)
            blocks.append(scan.crates)
        else:
            blocks.append(text)
    return blocks


def read_checksums(path: Path | None) -> dict[str, Checksum]:
    if path is None:
        return {}
    try:
        return load_manifest_checksums(path.read_text(encoding="utf-8"))
    except OSError as exc:
        err_console.print(f"[bold red]Cannot read {path}:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        err_console.print(f"[bold red]Bad checksum manifest {path}:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc


def fail(exc: VendorError) -> None:
    """Print a structured error and exit non-zero."""
    lines = [f"[bold red]{exc.message}[/bold red]", ""]
    for key, value in exc.context.items():
        lines.append(f"[bold]{key}:[/bold] {value}")
    err_console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold]{type(exc).__name__}[/bold] ({exc.code})",
            border_style="red",
            padding=(1, 2),
        )
    )
    raise typer.Exit(code=1)
