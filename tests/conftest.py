"""Shared test fixtures for arbwatch."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from arbwatch.bridge.transport import NotificationBridge
from arbwatch.core.people import PersonDirectory
from arbwatch.core.push_store import PushStore
from arbwatch.core.reconstructor import TreeReconstructor
from arbwatch.models.trees import RepoDefinition, TreeDefinition


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def store(tmp_dir: Path) -> PushStore:
    """Provide a fresh PushStore backed by a temp SQLite database."""
    return PushStore(tmp_dir / "pushes.db")


@pytest.fixture
def bridge() -> NotificationBridge:
    """Provide an in-memory NotificationBridge."""
    return NotificationBridge(max_local_queue=10)


@pytest.fixture
def tree() -> TreeDefinition:
    """A two-level tree: a main repo with one nested repo."""
    return TreeDefinition(
        tree_id="test-tree",
        name="Test Tree",
        repos=[
            RepoDefinition(name="main", path_mapping={"mailnews/": "Mail", "docs/": "Docs"}),
            RepoDefinition(name="nested", path_mapping={"js/": "JS"}),
        ],
    )


@pytest.fixture
def people() -> PersonDirectory:
    return PersonDirectory()


@pytest.fixture
def reconstructor(tree: TreeDefinition, people: PersonDirectory) -> TreeReconstructor:
    return TreeReconstructor(tree, people)


# ---------------------------------------------------------------------------
# Flat record factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_push_value() -> Callable[..., dict[str, Any]]:
    """Factory fixture: a structured ``s:r...`` push payload."""

    def _factory(
        push_id: int = 1,
        date: int = 1_300_000_000,
        user: str = "Pusher <pusher@example.com>",
        files: list[str] | None = None,
        **overrides: Any,
    ) -> dict[str, Any]:
        value: dict[str, Any] = {
            "id": push_id,
            "date": date,
            "user": user,
            "changesets": [
                {
                    "shortRev": f"abc{int(push_id):09d}",
                    "node": f"abc{int(push_id):09d}" + "0" * 28,
                    "author": "Author <author@example.com>",
                    "branch": "default",
                    "tags": [],
                    "desc": f"Change number {push_id}",
                    "files": files or [],
                }
            ],
        }
        value.update(overrides)
        return value

    return _factory


@pytest.fixture
def make_build_value() -> Callable[..., str]:
    """Factory fixture: a JSON-text ``s:b...`` build payload."""

    def _factory(build_id: str = "build-1", state: str = "success", **overrides: Any) -> str:
        value: dict[str, Any] = {
            "builder": {"name": f"builder {build_id}"},
            "id": build_id,
            "state": state,
            "startTime": 1_300_000_100,
            "endTime": 1_300_000_200,
        }
        value.update(overrides)
        return json.dumps(value)

    return _factory
