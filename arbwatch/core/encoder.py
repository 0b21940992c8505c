"""FlatRecordEncoder — fabricate the flat record of a synthetic push.

A local test run becomes a one-changeset push with a single build and its
processed log, written with the same key grammar real pushes use:

    s:r            push payload (structured)
    s:b:<path>     build payload (JSON text)
    s:l:<path>     processed log (stored verbatim)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from arbwatch.core import keyspace
from arbwatch.core.hasher import canonical_json
from arbwatch.models.logs import LogOverview
from arbwatch.models.wire import (
    BuilderDescriptor,
    BuilderOS,
    BuilderType,
    BuildPayload,
    ChangesetPayload,
    PushPayload,
)

SYNTHETIC_PUSHER = "You! <user@localhost.localdomain>"
SYNTHETIC_AUTHOR = "user@localhost.localdomain"
SYNTHETIC_REV = "xxxxxxxxxxxx"

STATE_SUCCESS = "success"
STATE_TESTFAILED = "testfailed"

LOCAL_BUILDER = BuilderDescriptor(
    name="local loggest",
    os=BuilderOS(idiom="desktop", platform="localhost", arch="localarch", ver=None),
    is_debug=False,
    type=BuilderType(type="test", subtype="loggest"),
)


def build_state_for(overview: LogOverview) -> str:
    """``testfailed`` if any failure was seen or indicated, else ``success``."""
    if overview.failures or overview.failure_indicated:
        return STATE_TESTFAILED
    return STATE_SUCCESS


class FlatRecordEncoder:
    """Builds the three flat entries for one synthetic push.

    Parameters
    ----------
    builder:
        Builder descriptor recorded on the synthetic build.
    error_parser:
        Name of the parser that produced the processed log.
    """

    def __init__(
        self,
        builder: BuilderDescriptor = LOCAL_BUILDER,
        *,
        error_parser: str = "loggest",
    ) -> None:
        self._builder = builder
        self._error_parser = error_parser

    def encode(
        self,
        push_id: int,
        push_timestamp: int,
        overview: LogOverview,
        artifact_path: str,
        processed_log: Any,
        artifact_mtime: datetime | None = None,
    ) -> dict[str, Any]:
        """Return the flat record for the synthetic push.

        Parameters
        ----------
        push_id:
            Id allocated for the push.
        push_timestamp:
            Push time in seconds since the epoch; also the build's start and
            end time.
        overview:
            Parsed-log overview deciding the build state.
        artifact_path:
            Path of the chewed log; used as the build id (it must not
            contain ``:``).
        processed_log:
            Processed-log payload, stored as-is.
        artifact_mtime:
            Modification time quoted in the changeset description.
        """
        build_key = keyspace.build_key(artifact_path)
        log_key = keyspace.log_key_of(build_key)
        when = artifact_mtime.isoformat() if artifact_mtime else str(push_timestamp)

        push = PushPayload(
            id=push_id,
            date=push_timestamp,
            user=SYNTHETIC_PUSHER,
            changesets=[
                ChangesetPayload(
                    short_rev=SYNTHETIC_REV,
                    node=SYNTHETIC_REV,
                    author=SYNTHETIC_AUTHOR,
                    branch="default",
                    tags=[],
                    desc=f"Your test run of {when}",
                    files=[],
                )
            ],
        )
        build = BuildPayload(
            builder=self._builder,
            id=artifact_path,
            state=build_state_for(overview),
            start_time=push_timestamp,
            end_time=push_timestamp,
            log_url=artifact_path,
            error_parser=self._error_parser,
        )

        return {
            keyspace.ROOT_PUSH_KEY: push.model_dump(mode="json", by_alias=True),
            # the build is redundantly JSON encoded, the log is not
            build_key: canonical_json(build.model_dump(mode="json", by_alias=True)),
            log_key: processed_log,
        }


def sideband_subset(record: dict[str, Any], artifact_path: str) -> dict[str, Any]:
    """The entries of *record* sent along with a push notification."""
    build_key = keyspace.build_key(artifact_path)
    keys = (keyspace.ROOT_PUSH_KEY, build_key, keyspace.log_key_of(build_key))
    return {key: record[key] for key in keys if key in record}
