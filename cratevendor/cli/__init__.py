"""cratevendor CLI — Typer-based command-line interface.

Provides the ``cratevendor`` command with subcommands for parsing CRATES
blocks, emitting fetch manifests, scanning ebuilds, and assembling the
offline vendor tree.

All output uses Rich for formatted terminal display.
"""
