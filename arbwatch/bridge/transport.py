"""Notification bridge — best-effort delivery of push notifications.

After a push has been written, the ingest side tells live feed consumers
about it by sending a ``PushNotification`` through this bridge.  Delivery
is best effort: the store write is already committed by the time a
notification is sent, so callers log a failed send and carry on.

Two queue backends:

1. **SQLite** (``queue_db_path`` provided): persistent, survives a
   restart, lets a separate feed process pick notifications up.
2. **In-memory** (``queue_db_path`` is None): volatile, for tests and
   single-process use.

Both are bounded by ``max_local_queue`` (default 1024 notifications) and
hand notifications back oldest first.
"""

from __future__ import annotations

import collections
import logging
import sqlite3
from pathlib import Path
from typing import Any

from arbwatch.core.hasher import canonical_json_bytes
from arbwatch.models.notifications import PushNotification

logger = logging.getLogger(__name__)

_CREATE_PENDING = """
CREATE TABLE IF NOT EXISTS pending_notifications (
    seq        INTEGER PRIMARY KEY AUTOINCREMENT,
    tree_name  TEXT    NOT NULL,
    push_id    INTEGER NOT NULL,
    payload    BLOB    NOT NULL,
    queued_at  TEXT    DEFAULT (datetime('now'))
);
"""


class BridgeError(RuntimeError):
    """Raised when a notification cannot be queued."""


class NotificationBridge:
    """Queue-backed sender for push notifications.

    Parameters
    ----------
    channel:
        Logical channel name, recorded for diagnostics.
    max_local_queue:
        Maximum number of pending notifications (both backends).
    queue_db_path:
        SQLite file for a persistent queue.  ``None`` keeps notifications
        in memory.
    """

    def __init__(
        self,
        channel: str = "arbwatch-pushes",
        *,
        max_local_queue: int = 1024,
        queue_db_path: Path | None = None,
    ) -> None:
        if max_local_queue < 1:
            raise ValueError("max_local_queue must be at least 1")
        self._channel = channel
        self._limit = max_local_queue
        self._closed = False
        self._pending: collections.deque[bytes] = collections.deque()

        self._db: sqlite3.Connection | None = None
        if queue_db_path is not None:
            Path(queue_db_path).parent.mkdir(parents=True, exist_ok=True)
            self._db = sqlite3.connect(str(queue_db_path))
            self._db.execute(_CREATE_PENDING)
            self._db.commit()
            logger.info(
                "NotificationBridge %s: persistent queue at %s (limit %d)",
                channel, queue_db_path, max_local_queue,
            )

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def queue_depth(self) -> int:
        """Number of notifications not yet received."""
        if self._db is not None:
            (count,) = self._db.execute(
                "SELECT COUNT(*) FROM pending_notifications"
            ).fetchone()
            return count
        return len(self._pending)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send(self, notification: PushNotification) -> None:
        """Serialize *notification* and queue it for feed consumers.

        Raises
        ------
        BridgeError
            If the bridge is closed or the queue is at its limit.
        """
        label = f"{notification.tree_name}#{notification.push_id}"
        if self._closed:
            raise BridgeError(f"Bridge {self._channel!r} is closed; push {label} dropped")
        depth = self.queue_depth
        if depth >= self._limit:
            raise BridgeError(
                f"Notification queue is full ({depth} pending); push {label} dropped"
            )

        payload = canonical_json_bytes(notification.model_dump(mode="json", by_alias=True))
        if self._db is not None:
            self._db.execute(
                "INSERT INTO pending_notifications (tree_name, push_id, payload) "
                "VALUES (?, ?, ?)",
                (notification.tree_name, notification.push_id, payload),
            )
            self._db.commit()
        else:
            self._pending.append(payload)
        logger.debug("Queued notification for push %s (%d pending)", label, depth + 1)

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    def receive(self) -> bytes | None:
        """Pop the oldest serialized notification, or ``None`` if empty."""
        if self._db is None:
            return self._pending.popleft() if self._pending else None

        row = self._db.execute(
            "SELECT seq, payload FROM pending_notifications ORDER BY seq LIMIT 1"
        ).fetchone()
        if row is None:
            return None
        seq, payload = row
        self._db.execute("DELETE FROM pending_notifications WHERE seq = ?", (seq,))
        self._db.commit()
        return bytes(payload)

    def drain(self, *, max_messages: int = 100) -> list[bytes]:
        """Pop up to *max_messages* notifications, oldest first."""
        drained: list[bytes] = []
        while len(drained) < max_messages:
            payload = self.receive()
            if payload is None:
                break
            drained.append(payload)
        return drained

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the SQLite connection and drop in-memory notifications."""
        if self._db is not None:
            self._db.close()
            self._db = None
        self._pending.clear()
        self._closed = True

    def __enter__(self) -> NotificationBridge:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        backend = "sqlite" if self._db is not None else "memory"
        return f"NotificationBridge(channel={self._channel!r}, backend={backend})"
