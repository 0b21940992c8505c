"""Reconstructed push tree models.

Unlike the frozen wire payloads, these models are assembled incrementally
by the TreeReconstructor (sub-pushes are linked and summaries attached
after construction), so they are mutable.  A fresh tree is built on every
reconstruction call; nothing here is shared across calls.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from arbwatch.models.summaries import BuildSummary, ChangeSummary


class Person(BaseModel):
    """A pusher or committer identity.

    ``known`` is False for placeholder records created on a directory miss.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    email: str = ""
    known: bool = False

    @property
    def display(self) -> str:
        if self.email and self.email != self.name:
            return f"{self.name} <{self.email}>"
        return self.name


class Changeset(BaseModel):
    """One committed revision within a push."""

    short_rev: str
    full_rev: str
    author: Person
    branch: str = "default"
    tags: set[str] = Field(default_factory=set)
    raw_desc: str = ""
    files: list[str] = []
    change_summary: ChangeSummary | None = None


class Push(BaseModel):
    """A source-control push event."""

    id: int
    push_date: datetime
    pusher: Person
    changesets: list[Changeset] = []


class Build(BaseModel):
    """An opaque build record plus its processed log, if any."""

    record: dict[str, Any] = {}
    processed_log: Any = None

    @property
    def build_id(self) -> str | None:
        return self.record.get("id")

    @property
    def state(self) -> str | None:
        return self.record.get("state")

    @property
    def builder_name(self) -> str:
        builder = self.record.get("builder") or {}
        return builder.get("name", "") if isinstance(builder, dict) else ""


def push_sort_key(build_push: BuildPush) -> tuple[float, int]:
    """Sort key: push date descending, ties broken by ascending push id."""
    return (-build_push.push.push_date.timestamp(), build_push.push.id)


class BuildPush(BaseModel):
    """A push plus the builds it triggered and any nested sub-pushes."""

    key: str
    push: Push
    sub_pushes: list[BuildPush] = []
    builds: list[Build] = []
    build_summary: BuildSummary | None = None
    top_level_push: bool = False

    @property
    def depth(self) -> int:
        """Nesting depth; the root ``s:r`` push is 0."""
        return self.key.count(":") - 1

    @property
    def is_leaf(self) -> bool:
        return not self.sub_pushes

    def add_sub_push(self, sub_push: BuildPush) -> None:
        """Link *sub_push* beneath this push, keeping the date ordering."""
        self.sub_pushes.append(sub_push)
        self.sub_pushes.sort(key=push_sort_key)

    def iter_post_order(self) -> Iterator[BuildPush]:
        """Yield every build-push in the subtree, children before parents."""
        stack: list[tuple[BuildPush, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                yield node
                continue
            stack.append((node, True))
            for child in reversed(node.sub_pushes):
                stack.append((child, False))

    def visit_leaf_build_pushes(self, visitor: Callable[[BuildPush], None]) -> None:
        """Call *visitor* on every leaf build-push, in post-order."""
        for node in self.iter_post_order():
            if node.is_leaf:
                visitor(node)

    def iter_changesets(self) -> Iterator[tuple[BuildPush, Changeset]]:
        """Yield ``(owner, changeset)`` for every changeset in the subtree."""
        for node in self.iter_post_order():
            for changeset in node.push.changesets:
                yield node, changeset
