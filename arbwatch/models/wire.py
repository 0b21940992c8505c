"""Wire payload models for the values stored under flat record keys.

These mirror the JSON field names used on the wire (``shortRev``,
``isDebug``, ``_scrape`` ...) through aliases, so the encoder and the
reconstructor share one field grammar.  Dump with ``by_alias=True``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChangesetPayload(BaseModel):
    """One changeset inside a ``s:r`` push payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    short_rev: str = Field(alias="shortRev")
    node: str
    author: str
    branch: str = "default"
    tags: list[str] = []
    desc: str = ""
    files: list[str] = []


class PushPayload(BaseModel):
    """The structured value stored under a push (``s:r...``) key.

    ``date`` is seconds since the epoch.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    date: int | float
    user: str
    changesets: list[ChangesetPayload] = []


class BuilderOS(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    idiom: str
    platform: str
    arch: str
    ver: str | None = None


class BuilderType(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str
    subtype: str


class BuilderDescriptor(BaseModel):
    """Describes the machine/configuration that produced a build."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    os: BuilderOS
    is_debug: bool = Field(False, alias="isDebug")
    type: BuilderType


class BuildPayload(BaseModel):
    """The structured value stored (as JSON text) under a ``s:b...`` key."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    builder: BuilderDescriptor
    id: str
    state: str
    start_time: int = Field(alias="startTime")
    end_time: int = Field(alias="endTime")
    log_url: str = Field("", alias="logURL")
    revs: dict[str, Any] = {}
    rich_notes: list[Any] = Field(default_factory=list, alias="richNotes")
    error_parser: str = Field("", alias="errorParser")
    scrape: str = Field("", alias="_scrape")
