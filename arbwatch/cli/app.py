"""Main Typer application — imports and registers all CLI commands.

Entry point: ``arbwatch`` (configured via pyproject.toml scripts).

Commands: ingest, pushes, decode-key.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from arbwatch.cli.commands.ingest_cmd import ingest_cmd
from arbwatch.cli.commands.pushes_cmd import pushes_cmd
from arbwatch.config import config

app = typer.Typer(
    name="arbwatch",
    help="arbwatch: CI push and build monitor over flat key/value push records.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (defaults to ARBWATCH_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or config.log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=config.debug)],
        force=True,
    )


# Register subcommands
app.command(name="ingest", help="Chew a local test log into a synthetic push.")(ingest_cmd)
app.command(name="pushes", help="Show recent pushes of a tree.")(pushes_cmd)


@app.command(name="decode-key", help="Decode a flat record key.")
def decode_key_cmd(
    key: str = typer.Argument(..., help="Key such as s:b:sub:build-1."),
) -> None:
    """Show the kind, path and derived keys of a flat record key."""
    from arbwatch.core import keyspace
    from arbwatch.models.keys import KeyKind

    console = Console()
    try:
        decoded = keyspace.decode_key(key)
    except keyspace.FormatError as exc:
        console.print(f"[bold red]Malformed key:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(f"[bold]Kind:[/bold]     {decoded.kind.name.lower()}")
    console.print(f"[bold]Path:[/bold]     {':'.join(decoded.path) or '-'}")
    console.print(f"[bold]Segments:[/bold] {decoded.segment_count}")
    if decoded.kind == KeyKind.REVISION:
        parent = keyspace.parent_push_key_of(key)
        console.print(f"[bold]Parent:[/bold]   {parent or '-'}")
    else:
        console.print(f"[bold]Owner:[/bold]    {keyspace.owning_push_key_of(key)}")
        if decoded.kind == KeyKind.BUILD:
            console.print(f"[bold]Log:[/bold]      {keyspace.log_key_of(key)}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
