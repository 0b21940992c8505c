"""Tree (push log) definitions — which repositories make up a tree."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RepoDefinition(BaseModel):
    """A repository contributing pushes at one nesting depth of a tree.

    ``path_mapping`` maps a path prefix to an area name used when
    summarizing the files a changeset touched.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path_mapping: dict[str, str] = {}


class TreeDefinition(BaseModel):
    """A monitored tree.

    ``repos`` is indexed by push nesting depth: the root push belongs to
    ``repos[0]``, its sub-pushes to ``repos[1]``, and so on.
    """

    model_config = ConfigDict(frozen=True)

    tree_id: str
    name: str
    repos: list[RepoDefinition] = []

    def path_mapping_for_depth(self, depth: int) -> dict[str, str]:
        """Return the path mapping of the repo at *depth*, or ``{}``."""
        if 0 <= depth < len(self.repos):
            return dict(self.repos[depth].path_mapping)
        return {}


def local_tree(tree_id: str = "logal", name: str = "Logal") -> TreeDefinition:
    """The synthetic tree holding locally-chewed test runs."""
    return TreeDefinition(
        tree_id=tree_id,
        name=name,
        repos=[RepoDefinition(name="local")],
    )
