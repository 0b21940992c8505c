"""``arbwatch ingest PATH`` — chew a local test log into a synthetic push.

Allocates the next push id of the local tree, writes the push, its build
and processed log to the store, and queues a push notification.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from arbwatch.bridge.transport import NotificationBridge
from arbwatch.config import config
from arbwatch.core.keyspace import FormatError
from arbwatch.core.log_chewer import LocalLogChewer, LogParseError, OverviewLogParser
from arbwatch.core.push_store import PushStore

console = Console()


def ingest_cmd(
    path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Processed log file (JSON overview) to ingest.",
    ),
    store_db: Path = typer.Option(
        None,
        "--store",
        "-s",
        help="Path to the push store SQLite database.",
    ),
    queue_db: Path = typer.Option(
        None,
        "--queue",
        "-q",
        help="SQLite notification queue; in-memory when omitted.",
    ),
) -> None:
    """Chew a local test log into a synthetic push of the local tree.

    Not idempotent: ingesting the same file twice creates two pushes.
    """
    store = PushStore(store_db or config.store_path)
    bridge = NotificationBridge(
        max_local_queue=config.notify_max_queue,
        queue_db_path=queue_db or config.notify_queue_path,
    )
    chewer = LocalLogChewer(
        store,
        bridge,
        tree_id=config.local_tree_id,
        tree_name=config.local_tree_name,
        parser=OverviewLogParser(encoding=config.log_encoding),
    )

    try:
        with bridge:
            push_id = chewer.chew(path)
    except (LogParseError, FormatError) as exc:
        console.print(f"[bold red]Cannot ingest {path}:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Local test run ingested.[/bold green]",
                "",
                f"[bold]Push ID:[/bold]  {push_id}",
                f"[bold]Tree:[/bold]     {config.local_tree_name} ({config.local_tree_id})",
                f"[bold]Log:[/bold]      {path}",
                f"[bold]Store:[/bold]    {store.db_path}",
            ]),
            title="[bold]arbwatch[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
    # Print the push id plainly for scripting
    console.print(f"[bold]{push_id}[/bold]")
