"""Subscriber push message envelope.

Every message sent over the WebSocket uses the same envelope; the payload is
either a record update or an administrative event.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from memeradar.models.token import TokenRecord, UpdateSource


class AdminEvent(str, Enum):
    """Administrative events exchanged with a subscriber."""

    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    PING = "ping"
    PONG = "pong"
    ERROR = "error"


class RecordUpdatePayload(BaseModel):
    """Changed records from one refresh cycle."""

    model_config = ConfigDict(populate_by_name=True)

    records: list[TokenRecord]
    source_of_update: UpdateSource = Field(alias="sourceOfUpdate")
    update_kind: Literal["changed"] = Field(default="changed", alias="updateKind")
    count: int
    observed_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), alias="observedAt"
    )


class AdminPayload(BaseModel):
    """Connection ack, subscription ack, liveness probe, or error."""

    event: AdminEvent
    message: str | None = None


class Envelope(BaseModel):
    """Wire envelope shared by all pushed messages."""

    type: Literal["UPDATE"] = "UPDATE"
    data: RecordUpdatePayload | AdminPayload
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase payload keys and ISO timestamps."""
        return self.model_dump(mode="json", by_alias=True)


def record_update(records: list[TokenRecord], source: UpdateSource) -> Envelope:
    """Build the envelope for a changed-records broadcast."""
    return Envelope(
        data=RecordUpdatePayload(
            records=records,
            source_of_update=source,
            count=len(records),
        )
    )


def admin_message(event: AdminEvent, message: str | None = None) -> Envelope:
    """Build the envelope for an administrative event."""
    return Envelope(data=AdminPayload(event=event, message=message))
