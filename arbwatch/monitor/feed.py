"""PushFeed — consumer side of the flat record pipeline.

Turns inbound feed messages and stored records into reconstructed
BuildPush trees.  The payload of a ``pushinfo`` message has exactly the
shape of a stored record, so both paths share one TreeReconstructor.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from arbwatch.core.push_store import PushStore
from arbwatch.core.reconstructor import TreeReconstructor
from arbwatch.models.notifications import PushInfoMessage
from arbwatch.models.pushes import BuildPush, push_sort_key

logger = logging.getLogger(__name__)


class PushListener(Protocol):
    """Receives every push decoded from the live feed."""

    def on_new_push(self, build_push: BuildPush) -> None: ...


class PushFeed:
    """Dispatches feed messages and answers push queries for one tree.

    Parameters
    ----------
    reconstructor:
        Decoder for flat records of this tree.
    listener:
        Receives pushes from ``pushinfo`` messages.
    store:
        Backing store for :meth:`get_recent_pushes` and log detail.
    """

    def __init__(
        self,
        reconstructor: TreeReconstructor,
        listener: PushListener | None = None,
        store: PushStore | None = None,
    ) -> None:
        self._reconstructor = reconstructor
        self._listener = listener
        self._store = store

    @property
    def tree_id(self) -> str:
        return self._reconstructor.tree.tree_id

    # ------------------------------------------------------------------
    # Live feed
    # ------------------------------------------------------------------

    def on_message(self, msg: Mapping[str, Any]) -> BuildPush | None:
        """Handle one inbound message; returns the decoded push, if any."""
        msg_type = msg.get("type")
        if msg_type == "error":
            logger.error("Error from server: %s", msg.get("message"))
        elif msg_type == "treemeta":
            logger.info("Tree metadata: %s", dict(msg))
        elif msg_type == "pushinfo":
            return self.msg_push_info(PushInfoMessage.model_validate(msg))
        else:
            logger.debug("Ignoring feed message of type %r", msg_type)
        return None

    def msg_push_info(self, msg: PushInfoMessage) -> BuildPush:
        build_push = self._reconstructor.reconstruct(msg.keys_and_values)
        logger.debug("Push info for push %d", build_push.push.id)
        if self._listener is not None:
            self._listener.on_new_push(build_push)
        return build_push

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _require_store(self) -> PushStore:
        if self._store is None:
            raise RuntimeError("PushFeed has no store to query")
        return self._store

    def get_recent_pushes(
        self, from_push_id: int | None = None, *, limit: int = 10
    ) -> list[BuildPush]:
        """Return recent pushes, newest push date first.

        *from_push_id* pages backwards: only pushes below that id.
        """
        records = self._require_store().get_recent_pushes(
            self.tree_id, high_push_id=from_push_id, limit=limit
        )
        build_pushes = [self._reconstructor.reconstruct(r) for r in records]
        build_pushes.sort(key=push_sort_key)
        return build_pushes

    def get_push_log_detail(
        self, push_id: int, build_id: str, sub_push_path: Sequence[str] = ()
    ) -> Any:
        """Return the processed log of *build_id* within push *push_id*."""
        return self._require_store().get_push_log(
            self.tree_id, push_id, build_id, sub_push_path
        )
