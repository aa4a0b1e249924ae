"""Main Typer application — imports and registers all CLI commands.

Entry point: ``cratevendor`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from cratevendor.cli._common import configure_logging
from cratevendor.cli.commands.audit_cmd import audit_cmd
from cratevendor.cli.commands.manifest_cmd import manifest_cmd
from cratevendor.cli.commands.parse_cmd import parse_cmd
from cratevendor.cli.commands.scan_cmd import scan_cmd
from cratevendor.cli.commands.vendor_cmd import vendor_cmd
from cratevendor.config import VendorSettings

app = typer.Typer(
    name="cratevendor",
    help="cratevendor: pinned crates to verified, offline vendor trees.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (default from CRATEVENDOR_LOG_LEVEL)."
    ),
) -> None:
    configure_logging(log_level or VendorSettings().log_level)


# Register subcommands
app.command(name="parse", help="Parse CRATES blocks into coordinates.")(parse_cmd)
app.command(name="manifest", help="Emit the merged fetch manifest.")(manifest_cmd)
app.command(name="scan", help="Inspect an ebuild's CRATES declaration.")(scan_cmd)
app.command(name="vendor", help="Verify archives and assemble the vendor tree.")(vendor_cmd)
app.command(name="audit", help="Flag pinned crates the registry has yanked.")(audit_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
