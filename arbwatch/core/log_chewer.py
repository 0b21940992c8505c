"""Chew a local test log into a synthetic push of the local tree.

Pipeline, linear per call:

1. Bootstrap the store.
2. Allocate a push id one past the tree's highest stored push.
3. Parse the log into an overview plus its processed payload.
4. Encode the synthetic push, build and log as a flat record.
5. Write the record, then the tree's scrape metadata.
6. Send a best-effort push notification.

There is no concurrency control and this is not idempotent: chewing the
same file twice yields two pushes.  A notification failure is logged and
does not change the result; store failures propagate.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from arbwatch.bridge.transport import NotificationBridge
from arbwatch.core.encoder import FlatRecordEncoder, sideband_subset
from arbwatch.core.push_ids import PushIdAllocator
from arbwatch.core.push_store import PushStore
from arbwatch.models.logs import LogOverview, ParsedLog
from arbwatch.models.notifications import PushNotification

logger = logging.getLogger(__name__)


class LogParseError(RuntimeError):
    """Raised when a log file cannot be turned into an overview."""


class LogParser(Protocol):
    """Turns a log file into a :class:`ParsedLog`."""

    def parse(self, path: Path) -> ParsedLog: ...


class OverviewLogParser:
    """Reads a processed log whose text is a JSON overview document.

    The document must be an object carrying ``failures`` and optionally
    ``failureIndicated``.  The file text itself, not the decoded object,
    becomes the processed-log payload.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def parse(self, path: Path) -> ParsedLog:
        raw = Path(path).read_bytes()
        try:
            text = raw.decode(self._encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise LogParseError(
                f"{path} cannot be decoded as {self._encoding}: {exc}"
            ) from exc
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LogParseError(f"{path} is not a JSON log overview: {exc}") from exc
        if not isinstance(document, dict):
            raise LogParseError(f"{path} does not hold a JSON object")
        try:
            overview = LogOverview.model_validate(document)
        except ValidationError as exc:
            raise LogParseError(f"{path} has an invalid overview: {exc}") from exc
        return ParsedLog(overview=overview, processed_log=text)


class LocalLogChewer:
    """Processes local test run logs into synthetic pushes.

    Only one :meth:`chew` per tree may be in flight at a time.

    Parameters
    ----------
    store:
        Push store the record is written to.
    bridge:
        Notification bridge; ``None`` skips notification.
    tree_id / tree_name:
        Storage id and display name of the local tree.
    parser:
        Log parser; defaults to :class:`OverviewLogParser`.
    clock:
        Returns the current time in seconds (scrape timestamp).
    """

    def __init__(
        self,
        store: PushStore,
        bridge: NotificationBridge | None = None,
        *,
        tree_id: str = "logal",
        tree_name: str = "Logal",
        parser: LogParser | None = None,
        encoder: FlatRecordEncoder | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._bridge = bridge
        self._tree_id = tree_id
        self._tree_name = tree_name
        self._parser = parser or OverviewLogParser()
        self._encoder = encoder or FlatRecordEncoder()
        self._allocator = PushIdAllocator(store)
        self._clock = clock

    def chew(self, path: Path | str) -> int:
        """Chew the log at *path* and return the allocated push id."""
        path = Path(path)
        self._store.bootstrap()
        push_id = self._allocator.allocate(self._tree_id)

        logger.info("Parsing %s", path)
        parsed = self._parser.parse(path)

        mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        log_stamp = int(mtime.timestamp())
        artifact = str(path)
        record = self._encoder.encode(
            push_id,
            log_stamp,
            parsed.overview,
            artifact,
            parsed.processed_log,
            artifact_mtime=mtime,
        )

        scrape_stamp = int(self._clock() * 1000)
        logger.info("Writing push %d to tree %s", push_id, self._tree_id)
        self._store.put_push_stuff(self._tree_id, push_id, record)
        self._store.meta_log_tree_scrape(
            self._tree_name,
            True,
            timestamp=scrape_stamp,
            rev=0,
            high_push_id=push_id,
        )

        self._notify(
            PushNotification(
                tree_name=self._tree_name,
                push_id=push_id,
                keys_and_values=sideband_subset(record, artifact),
                scrape_timestamp_millis=scrape_stamp,
                rev_for_timestamp=0,
            )
        )
        return push_id

    def _notify(self, notification: PushNotification) -> None:
        if self._bridge is None:
            return
        try:
            self._bridge.send(notification)
            logger.info("Push %d written and announced", notification.push_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Problem announcing push %d, continuing: %s",
                notification.push_id,
                exc,
            )
