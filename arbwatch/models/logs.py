"""Parsed-log models consumed by the synthetic push encoder."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LogOverview(BaseModel):
    """The overview a log parser reports for one test run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    failures: list[Any] = []
    failure_indicated: bool = Field(False, alias="failureIndicated")

    @property
    def failed(self) -> bool:
        """True if any failure was seen or the log itself flagged one."""
        return bool(self.failures) or self.failure_indicated


class ParsedLog(BaseModel):
    """Overview plus the processed-log payload stored verbatim."""

    model_config = ConfigDict(frozen=True)

    overview: LogOverview
    processed_log: Any = None
