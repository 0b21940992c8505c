"""Synthetic push id allocation.

The next id is one past the highest push already stored for the tree.
There is no locking: two allocations racing for the same tree can hand
out the same id, so callers must run at most one ingestion per tree at a
time.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from arbwatch.core.keyspace import ROOT_PUSH_KEY

logger = logging.getLogger(__name__)

FIRST_PUSH_ID = 1


class MostRecentPushSource(Protocol):
    """The slice of the push store the allocator reads from."""

    def get_most_recent_known_push(self, tree_id: str) -> list[Any]: ...

    def normalize_one_row(self, rows: list[Any]) -> dict[str, Any]: ...


def next_push_id(prior_record: Mapping[str, Any] | None) -> int:
    """Return the id following *prior_record*'s root push, or ``1``."""
    if not prior_record:
        return FIRST_PUSH_ID
    root = prior_record[ROOT_PUSH_KEY]
    # push payloads may be stored structured or as JSON text
    if isinstance(root, (bytes, bytearray)):
        root = root.decode("utf-8")
    if isinstance(root, str):
        root = json.loads(root)
    return int(root["id"]) + 1


class PushIdAllocator:
    """Computes the next push id for a tree from the store's latest push."""

    def __init__(self, store: MostRecentPushSource) -> None:
        self._store = store

    def allocate(self, tree_id: str) -> int:
        rows = self._store.get_most_recent_known_push(tree_id)
        prior = self._store.normalize_one_row(rows) if rows else None
        push_id = next_push_id(prior)
        logger.info("Decided on push id %d for tree %s", push_id, tree_id)
        return push_id
