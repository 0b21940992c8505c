"""Rich terminal renderer for reconstructed push trees.

Each BuildPush becomes a Panel holding a Rich Tree: changesets and builds
of the push, then its sub-pushes nested beneath it.

Color scheme
------------
- green     : success
- yellow    : testfailed
- red       : busted
- magenta   : exception
- blue      : retry
- dim       : running / pending / unknown
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text
from rich.tree import Tree

from arbwatch.models.pushes import Build, BuildPush

# ---------------------------------------------------------------------------
# State -> Rich style mapping
# ---------------------------------------------------------------------------

_STATE_STYLES: dict[str, str] = {
    "success": "bold green",
    "testfailed": "bold yellow",
    "busted": "bold red",
    "exception": "bold magenta",
    "retry": "bold blue",
    "running": "dim",
    "pending": "dim",
}

_DEFAULT_STYLE = "dim"


def state_style(state: str | None) -> str:
    return _STATE_STYLES.get(state or "", _DEFAULT_STYLE)


class PushRenderer:
    """Renders BuildPush trees as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_build_push(self, build_push: BuildPush) -> Panel:
        """Render one top-level BuildPush as a Panel."""
        tree = Tree(self._push_label(build_push))
        self._fill(tree, build_push)

        subtitle = None
        if build_push.build_summary is not None:
            summary = build_push.build_summary
            subtitle = (
                f"[{state_style(summary.overall_state)}]{escape(summary.overall_state)}"
                f"[/{state_style(summary.overall_state)}] "
                f"({summary.total} builds)"
            )

        return Panel(
            tree,
            title=f"[bold]Push {build_push.push.id}[/bold]",
            subtitle=subtitle,
            border_style="blue",
            padding=(0, 1),
        )

    def render_pushes(self, build_pushes: list[BuildPush]) -> Group:
        """Render several pushes stacked vertically."""
        if not build_pushes:
            return Group(Text.from_markup("[dim]No pushes.[/dim]"))
        return Group(*(self.render_build_push(bp) for bp in build_pushes))

    def print_pushes(self, build_pushes: list[BuildPush]) -> None:
        self.console.print(self.render_pushes(build_pushes))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _push_label(build_push: BuildPush) -> str:
        push = build_push.push
        when = push.push_date.strftime("%Y-%m-%d %H:%M:%S UTC")
        return f"[bold cyan]{push.id}[/bold cyan]  {when}  [dim]{escape(push.pusher.display)}[/dim]"

    def _fill(self, node: Tree, build_push: BuildPush) -> None:
        for changeset in build_push.push.changesets:
            first_line = changeset.raw_desc.splitlines()[0] if changeset.raw_desc else ""
            node.add(
                f"[bold]{escape(changeset.short_rev)}[/bold] {escape(changeset.author.name)}: {escape(first_line)}"
            )
        for build in build_push.builds:
            node.add(self._build_label(build))
        for sub_push in build_push.sub_pushes:
            child = node.add(self._push_label(sub_push))
            self._fill(child, sub_push)

    @staticmethod
    def _build_label(build: Build) -> str:
        style = state_style(build.state)
        name = build.builder_name or build.build_id or "?"
        log_note = "" if build.processed_log is None else " [dim](log)[/dim]"
        return f"[{style}]{escape(build.state or 'unknown')}[/{style}] {escape(name)}{log_note}"
