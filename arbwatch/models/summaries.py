"""Derived summary models attached to a reconstructed push tree."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ChangeSummary(BaseModel):
    """Per-changeset file summary, bucketed by repository path mapping."""

    model_config = ConfigDict(frozen=True)

    file_count: int = 0
    areas: dict[str, int] = {}  # area name -> number of touched files
    unmapped_files: list[str] = []


class BuildSummary(BaseModel):
    """Aggregate result over the builds of one leaf build-push."""

    model_config = ConfigDict(frozen=True)

    tree_id: str
    total: int = 0
    state_counts: dict[str, int] = {}
    failed_build_ids: list[str] = []
    overall_state: str = "pending"
