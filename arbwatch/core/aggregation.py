"""Default change-summarization and build-aggregation collaborators.

The TreeReconstructor only depends on the two call signatures below; a
caller that has richer summarizers injects its own.

``summarize_changeset(files, path_mapping)``
    Bucket touched files into areas by longest matching path prefix.
``aggregate_builds(tree, builds)``
    Count build states and pick the worst one as the overall state.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from arbwatch.models.summaries import BuildSummary, ChangeSummary

if TYPE_CHECKING:
    from arbwatch.models.pushes import Build
    from arbwatch.models.trees import TreeDefinition

ChangeSummarizer = Callable[[Sequence[str], dict[str, str]], ChangeSummary]
BuildAggregator = Callable[["TreeDefinition", Sequence["Build"]], BuildSummary]

# Worst first.  Unlisted states rank just above "success".
STATE_SEVERITY: tuple[str, ...] = (
    "exception",
    "busted",
    "testfailed",
    "retry",
    "running",
    "pending",
    "success",
)

_FAILED_STATES = frozenset({"exception", "busted", "testfailed"})


def summarize_changeset(
    files: Sequence[str], path_mapping: dict[str, str]
) -> ChangeSummary:
    """Count touched files per area of *path_mapping*."""
    prefixes = sorted(path_mapping, key=len, reverse=True)
    areas: dict[str, int] = {}
    unmapped: list[str] = []
    for path in files:
        area = next((path_mapping[p] for p in prefixes if path.startswith(p)), None)
        if area is None:
            unmapped.append(path)
        else:
            areas[area] = areas.get(area, 0) + 1
    return ChangeSummary(file_count=len(files), areas=areas, unmapped_files=unmapped)


def _severity(state: str) -> float:
    if state in STATE_SEVERITY:
        return float(STATE_SEVERITY.index(state))
    return len(STATE_SEVERITY) - 1.5


def aggregate_builds(tree: TreeDefinition, builds: Sequence[Build]) -> BuildSummary:
    """Count build states for one leaf build-push."""
    counts: dict[str, int] = {}
    failed: list[str] = []
    for build in builds:
        state = build.state or "pending"
        counts[state] = counts.get(state, 0) + 1
        if state in _FAILED_STATES and build.build_id:
            failed.append(build.build_id)

    overall = min(counts, key=_severity) if counts else "pending"
    return BuildSummary(
        tree_id=tree.tree_id,
        total=len(builds),
        state_counts=counts,
        failed_build_ids=failed,
        overall_state=overall,
    )
