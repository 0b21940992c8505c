"""TreeReconstructor — decode an unordered flat record into a push tree.

The flat record has the hierarchical push information spread across an
unordered map.  A push's ancestors are the structural prefixes of its own
key, so walking push keys by ascending segment count (a topological order)
guarantees every parent is built before its children:

1. Decode and partition all keys (any malformed key aborts).
2. Build every push, shallowest first, linking each to its parent.
3. Keep each sub-push list ordered by push date descending, ties by
   ascending push id.
4. Attach builds (lexicographic key order) and their processed logs.
5. Hand the linked tree to the SummaryAttacher.

Every failure is fatal for the call: a partial tree is never returned.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from arbwatch.core import keyspace
from arbwatch.core.aggregation import BuildAggregator, ChangeSummarizer
from arbwatch.core.people import PersonDirectory
from arbwatch.core.summaries import SummaryAttacher
from arbwatch.models.keys import DecodedKey, KeyKind
from arbwatch.models.pushes import Build, BuildPush, Changeset, Push
from arbwatch.models.trees import TreeDefinition
from arbwatch.models.wire import ChangesetPayload, PushPayload

logger = logging.getLogger(__name__)


class ReconstructionError(RuntimeError):
    """Base class for fatal flat-record decoding failures."""


class MissingRootError(ReconstructionError):
    """Raised when the record has no ``s:r`` root push."""


class OrphanKeyError(ReconstructionError):
    """Raised when a key's owning or parent push is absent from the record."""

    def __init__(self, key: str, missing_key: str) -> None:
        super().__init__(
            f"Key {key!r} refers to push {missing_key!r} which is not in the record"
        )
        self.key = key
        self.missing_key = missing_key


class OrphanPushError(OrphanKeyError):
    """A sub-push whose parent push key is missing."""


class OrphanBuildError(OrphanKeyError):
    """A build or log whose owning push key is missing."""


class PayloadDecodeError(ReconstructionError):
    """Raised when a push or build payload cannot be decoded."""


def _load_json(key: str, raw: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PayloadDecodeError(f"Value of {key!r} is not valid JSON: {exc}") from exc


class TreeReconstructor:
    """Rebuilds the linked BuildPush tree from a flat record.

    The reconstructor holds configuration only; every :meth:`reconstruct`
    call builds a fresh tree, so decoding the same record twice yields
    equal, independent trees.

    Parameters
    ----------
    tree:
        Definition of the tree the record belongs to.
    people:
        Identity directory for pushers and changeset authors.  A fresh
        empty directory (placeholder-only) is used when omitted.
    change_summarizer / build_aggregator:
        Aggregation collaborators forwarded to the SummaryAttacher.
    """

    def __init__(
        self,
        tree: TreeDefinition,
        people: PersonDirectory | None = None,
        *,
        change_summarizer: ChangeSummarizer | None = None,
        build_aggregator: BuildAggregator | None = None,
    ) -> None:
        self._tree = tree
        self._people = people or PersonDirectory()
        self._attacher = SummaryAttacher(
            tree,
            change_summarizer=change_summarizer,
            build_aggregator=build_aggregator,
        )

    @property
    def tree(self) -> TreeDefinition:
        return self._tree

    def reconstruct(self, record: Mapping[str, Any]) -> BuildPush:
        """Decode *record* and return the root build-push.

        Raises
        ------
        FormatError
            A key does not follow the key grammar.
        MissingRootError
            There is no ``s:r`` key.
        OrphanPushError / OrphanBuildError
            A push, build or log refers to a push that is not present.
        PayloadDecodeError
            A push or build value cannot be decoded.
        """
        pushes: list[DecodedKey] = []
        builds: list[DecodedKey] = []
        logs: list[DecodedKey] = []
        for key in record:
            decoded = keyspace.decode_key(key)
            if decoded.kind == KeyKind.REVISION:
                pushes.append(decoded)
            elif decoded.kind == KeyKind.BUILD:
                builds.append(decoded)
            else:
                logs.append(decoded)

        if keyspace.ROOT_PUSH_KEY not in record:
            raise MissingRootError(
                f"Flat record has no root push key {keyspace.ROOT_PUSH_KEY!r} "
                f"({len(record)} keys present)"
            )

        resolved = self._link_pushes(record, pushes)
        self._attach_builds(record, builds, resolved)
        self._check_logs(record, logs, resolved)

        root = resolved[keyspace.ROOT_PUSH_KEY]
        return self._attacher.attach(root)

    # ------------------------------------------------------------------
    # Pass 1: pushes
    # ------------------------------------------------------------------

    def _link_pushes(
        self, record: Mapping[str, Any], pushes: list[DecodedKey]
    ) -> dict[str, BuildPush]:
        resolved: dict[str, BuildPush] = {}
        for decoded in sorted(pushes, key=lambda d: (d.segment_count, d.key)):
            build_push = self._chew_push(decoded, record[decoded.key])
            parent_key = keyspace.parent_push_key_of(decoded.key)
            if parent_key is not None:
                parent = resolved.get(parent_key)
                if parent is None:
                    raise OrphanPushError(decoded.key, parent_key)
                parent.add_sub_push(build_push)
            resolved[decoded.key] = build_push
        return resolved

    def _chew_push(self, decoded: DecodedKey, raw: Any) -> BuildPush:
        value = _load_json(decoded.key, raw)
        try:
            payload = PushPayload.model_validate(value)
        except ValidationError as exc:
            raise PayloadDecodeError(
                f"Push payload at {decoded.key!r} is invalid: {exc}"
            ) from exc

        try:
            push_date = datetime.fromtimestamp(payload.date, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise PayloadDecodeError(
                f"Push date {payload.date!r} at {decoded.key!r} is out of range: {exc}"
            ) from exc

        push = Push(
            id=payload.id,
            push_date=push_date,
            pusher=self._people.get_person_for_pusher(payload.user),
            changesets=[self._chew_changeset(cs) for cs in payload.changesets],
        )
        return BuildPush(
            key=decoded.key,
            push=push,
            top_level_push=decoded.segment_count == 2,
        )

    def _chew_changeset(self, payload: ChangesetPayload) -> Changeset:
        return Changeset(
            short_rev=payload.short_rev,
            full_rev=payload.node,
            author=self._people.get_person_for_committer(payload.author),
            branch=payload.branch,
            tags=set(payload.tags),
            raw_desc=payload.desc,
            files=list(payload.files),
        )

    # ------------------------------------------------------------------
    # Pass 2: builds and logs
    # ------------------------------------------------------------------

    def _attach_builds(
        self,
        record: Mapping[str, Any],
        builds: list[DecodedKey],
        resolved: dict[str, BuildPush],
    ) -> None:
        for decoded in sorted(builds, key=lambda d: d.key):
            owner_key = keyspace.owning_push_key_of(decoded.key)
            owner = resolved.get(owner_key)
            if owner is None:
                raise OrphanBuildError(decoded.key, owner_key)

            value = _load_json(decoded.key, record[decoded.key])
            if not isinstance(value, dict):
                raise PayloadDecodeError(
                    f"Build payload at {decoded.key!r} is a "
                    f"{type(value).__name__}, expected an object"
                )

            log_key = keyspace.log_key_of(decoded.key)
            # the processed log is stored as-is, never JSON-decoded here
            processed_log = record[log_key] if log_key in record else None
            owner.builds.append(Build(record=value, processed_log=processed_log))

    def _check_logs(
        self,
        record: Mapping[str, Any],
        logs: list[DecodedKey],
        resolved: dict[str, BuildPush],
    ) -> None:
        for decoded in logs:
            owner_key = keyspace.owning_push_key_of(decoded.key)
            if owner_key not in resolved:
                raise OrphanBuildError(decoded.key, owner_key)
            if keyspace.build_key_of(decoded.key) not in record:
                logger.debug("Ignoring log %s with no matching build", decoded.key)
