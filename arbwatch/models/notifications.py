"""Messages exchanged with the real-time feed.

``PushNotification`` is what the ingest side emits after writing a push;
``PushInfoMessage`` is what feed consumers receive.  Both carry a flat
record subset under ``keysAndValues`` in the same shape the store holds.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class PushNotification(BaseModel):
    """Outbound best-effort notification about a newly written push."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["push"] = "push"
    tree_name: str = Field(alias="treeName")
    push_id: int = Field(alias="pushId")
    keys_and_values: dict[str, Any] = Field(alias="keysAndValues")
    scrape_timestamp_millis: int = Field(alias="scrapeTimestampMillis")
    rev_for_timestamp: int = Field(0, alias="revForTimestamp")


class PushInfoMessage(BaseModel):
    """Inbound feed message carrying one push's flat record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["pushinfo"] = "pushinfo"
    keys_and_values: dict[str, Any] = Field(alias="keysAndValues")
