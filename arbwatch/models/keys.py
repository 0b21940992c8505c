"""Flat key-space models — the tagged variant produced by key decoding."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class KeyKind(str, Enum):
    """Kind marker carried in the second segment of every state key."""

    REVISION = "r"
    BUILD = "b"
    LOG = "l"


class DecodedKey(BaseModel):
    """A parsed ``s:<kind>:<path>`` key.

    ``segments`` is the full colon split (prefix and kind marker included);
    ``path`` is only the identifiers after the kind marker.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    kind: KeyKind
    path: tuple[str, ...] = ()
    segments: tuple[str, ...]

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    @property
    def depth(self) -> int:
        """Nesting depth below the root push (the root is depth 0)."""
        return len(self.path) if self.kind == KeyKind.REVISION else len(self.path) - 1
