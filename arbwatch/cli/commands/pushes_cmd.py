"""``arbwatch pushes`` — show recent pushes of a tree.

Reads flat records from the store, reconstructs them into push trees and
renders them newest first.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from arbwatch.config import config
from arbwatch.core.keyspace import FormatError
from arbwatch.core.push_store import PushStore
from arbwatch.core.reconstructor import ReconstructionError, TreeReconstructor
from arbwatch.models.trees import TreeDefinition, local_tree
from arbwatch.monitor.feed import PushFeed
from arbwatch.monitor.renderer import PushRenderer

console = Console()


def pushes_cmd(
    tree_id: str = typer.Option(
        None,
        "--tree",
        "-t",
        help="Tree id to show (defaults to the local tree).",
    ),
    limit: int = typer.Option(
        None,
        "--limit",
        "-n",
        help="Maximum number of pushes to show.",
    ),
    from_push_id: int = typer.Option(
        None,
        "--from",
        help="Only show pushes with an id below this one.",
    ),
    store_db: Path = typer.Option(
        None,
        "--store",
        "-s",
        help="Path to the push store SQLite database.",
    ),
) -> None:
    """Show the most recent pushes of a tree, newest first."""
    db_path = store_db or config.store_path
    if not Path(db_path).exists():
        console.print(f"[bold red]Store not found:[/bold red] {db_path}")
        console.print("[dim]Ingest a log first with: arbwatch ingest PATH[/dim]")
        raise typer.Exit(code=1)

    store = PushStore(db_path)
    tree_id = tree_id or config.local_tree_id
    if tree_id == config.local_tree_id:
        tree = local_tree(config.local_tree_id, config.local_tree_name)
    else:
        tree = TreeDefinition(tree_id=tree_id, name=tree_id)

    feed = PushFeed(TreeReconstructor(tree), store=store)
    try:
        build_pushes = feed.get_recent_pushes(
            from_push_id, limit=limit or config.recent_push_limit
        )
    except (FormatError, ReconstructionError) as exc:
        console.print(f"[bold red]Stored record is corrupt:[/bold red] {exc}")
        raise typer.Exit(code=1)

    if not build_pushes:
        console.print(f"[bold red]No pushes for tree:[/bold red] {tree_id}")
        known = store.get_all_tree_ids()
        if known:
            console.print("\n[bold]Available trees:[/bold]")
            for tid in known[:10]:
                console.print(f"  [cyan]{tid}[/cyan]")
        raise typer.Exit(code=1)

    PushRenderer(console=console).print_pushes(build_pushes)
