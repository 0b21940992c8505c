"""arbwatch CLI — Typer-based command-line interface.

Provides the ``arbwatch`` command with subcommands for ingesting local
test runs, showing recent pushes, and decoding flat record keys.

All output uses Rich for formatted terminal display.
"""
