"""Hierarchical flat key-space codec.

Every state key has the form ``s:<kind>:<path>`` where ``kind`` is one of
``r`` (revision / push), ``b`` (build) or ``l`` (log) and ``path`` is a
colon-joined chain of identifiers from the tree root down to the node:

    s:r                 root push
    s:r:<sub>           sub-push of the root
    s:b:<sub>:<build>   build owned by push ``s:r:<sub>``
    s:l:<sub>:<build>   processed log of that build

A push's parent is its key with the last segment dropped; a build's owning
push is its key with ``b`` swapped for ``r`` and the build id dropped.
All functions here are pure.
"""

from __future__ import annotations

from arbwatch.models.keys import DecodedKey, KeyKind

KEY_PREFIX = "s"
SEPARATOR = ":"
ROOT_PUSH_KEY = "s:r"


class FormatError(ValueError):
    """Raised when a key does not follow the ``s:<kind>:<path>`` grammar."""


def decode_key(key: str) -> DecodedKey:
    """Parse *key* into its kind, path and raw segments.

    Raises
    ------
    FormatError
        If the key has fewer than two segments, a wrong prefix, an empty
        segment, an unknown kind marker, or is a build/log key without a
        build id.
    """
    if not isinstance(key, str):
        raise FormatError(f"Key must be a string, got {type(key).__name__}")

    segments = tuple(key.split(SEPARATOR))
    if len(segments) < 2:
        raise FormatError(f"Key {key!r} has fewer than 2 segments")
    if segments[0] != KEY_PREFIX:
        raise FormatError(f"Key {key!r} does not start with {KEY_PREFIX!r}")
    if any(segment == "" for segment in segments):
        raise FormatError(f"Key {key!r} contains an empty segment")

    try:
        kind = KeyKind(segments[1])
    except ValueError:
        raise FormatError(
            f"Key {key!r} has unknown kind marker {segments[1]!r}"
        ) from None

    if kind != KeyKind.REVISION and len(segments) < 3:
        raise FormatError(f"{kind.name.title()} key {key!r} has no build id")

    return DecodedKey(key=key, kind=kind, path=segments[2:], segments=segments)


def _require(key: str, kind: KeyKind) -> DecodedKey:
    decoded = decode_key(key)
    if decoded.kind != kind:
        raise FormatError(
            f"Expected a {kind.name.lower()} key, got {key!r}"
        )
    return decoded


def owning_push_key_of(build_key: str) -> str:
    """Return the key of the push that owns *build_key* (or a log key)."""
    decoded = decode_key(build_key)
    if decoded.kind == KeyKind.REVISION:
        raise FormatError(f"Expected a build or log key, got {build_key!r}")
    return push_key(*decoded.path[:-1])


def log_key_of(build_key: str) -> str:
    """Return the processed-log key paired with *build_key*."""
    decoded = _require(build_key, KeyKind.BUILD)
    return SEPARATOR.join((KEY_PREFIX, KeyKind.LOG.value) + decoded.path)


def build_key_of(log_key: str) -> str:
    """Return the build key paired with *log_key*."""
    decoded = _require(log_key, KeyKind.LOG)
    return SEPARATOR.join((KEY_PREFIX, KeyKind.BUILD.value) + decoded.path)


def parent_push_key_of(push_key_: str) -> str | None:
    """Return the parent push key, or ``None`` for the root push."""
    decoded = _require(push_key_, KeyKind.REVISION)
    if decoded.segment_count == 2:
        return None
    return SEPARATOR.join(decoded.segments[:-1])


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _join(kind: KeyKind, path: tuple[str, ...]) -> str:
    for segment in path:
        segment = str(segment)
        if not segment or SEPARATOR in segment:
            raise FormatError(
                f"Key path segment {segment!r} must be non-empty and "
                f"free of {SEPARATOR!r}"
            )
    return SEPARATOR.join((KEY_PREFIX, kind.value) + tuple(str(p) for p in path))


def push_key(*path: str) -> str:
    """Build a push key; no arguments gives the root ``s:r``."""
    return _join(KeyKind.REVISION, path)


def build_key(*path: str) -> str:
    """Build a build key; the last path element is the build id."""
    if not path:
        raise FormatError("A build key needs at least a build id")
    return _join(KeyKind.BUILD, path)


def log_key(*path: str) -> str:
    """Build a log key; the last path element is the build id."""
    if not path:
        raise FormatError("A log key needs at least a build id")
    return _join(KeyKind.LOG, path)
