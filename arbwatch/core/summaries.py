"""SummaryAttacher — derived summaries over a fully linked push tree.

Runs after reconstruction because leaf classification needs the final
sub-push lists.  Only leaf build-pushes receive a ``build_summary``;
composite nodes are left without one.
"""

from __future__ import annotations

from arbwatch.core.aggregation import (
    BuildAggregator,
    ChangeSummarizer,
    aggregate_builds,
    summarize_changeset,
)
from arbwatch.models.pushes import BuildPush
from arbwatch.models.trees import TreeDefinition


class SummaryAttacher:
    """Invokes the aggregation collaborators over a finished tree.

    Parameters
    ----------
    tree:
        Tree definition; its repos supply the per-depth path mappings and
        it is handed to the build aggregator.
    change_summarizer / build_aggregator:
        Collaborators; default to the implementations in
        :mod:`arbwatch.core.aggregation`.
    """

    def __init__(
        self,
        tree: TreeDefinition,
        *,
        change_summarizer: ChangeSummarizer | None = None,
        build_aggregator: BuildAggregator | None = None,
    ) -> None:
        self._tree = tree
        self._summarize = change_summarizer or summarize_changeset
        self._aggregate = build_aggregator or aggregate_builds

    def attach(self, root: BuildPush) -> BuildPush:
        """Attach change summaries everywhere and build summaries on leaves."""
        for owner, changeset in root.iter_changesets():
            changeset.change_summary = self._summarize(
                changeset.files, self._tree.path_mapping_for_depth(owner.depth)
            )

        def _summarize_leaf(build_push: BuildPush) -> None:
            build_push.build_summary = self._aggregate(self._tree, build_push.builds)

        root.visit_leaf_build_pushes(_summarize_leaf)
        return root
