"""
Domain models for racq — backed by Pydantic v2.

Pydantic handles:
  - JSON serialization / deserialization of the persisted token (via codec.py)
  - datetime parsing of the service's ISO-8601 expiry timestamps
  - validation of the normalized message and claim shapes built by wire.py

Value models are frozen (immutable). The one mutable type is Statistics, the
per-client accumulator updated by the request executor.
"""

import dataclasses
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuthToken(BaseModel):
    """
    Authentication token issued by the identity endpoint.

    id      — opaque token sent as X-Auth-Token
    expires — UTC timestamp after which the token is no longer accepted
    """

    model_config = ConfigDict(frozen=True)

    id: str
    expires: datetime

    @field_validator("expires")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are interpreted as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_valid(self, now: datetime | None = None) -> bool:
        """A token is valid iff it expires strictly after `now`."""
        if now is None:
            now = datetime.now(timezone.utc)
        return self.expires > now


@dataclasses.dataclass
class Statistics:
    """
    Network accounting for a single client instance.

    Incremented exactly once per completed network call by the executor;
    never decremented.
    """

    calls: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0

    def record(self, sent: int, received: int) -> None:
        self.calls += 1
        self.bytes_sent += sent
        self.bytes_received += received


class Message(BaseModel):
    """
    A message as normalized from the wire.

    id   — service-assigned, last path segment of the message href
    body — opaque JSON value chosen by the producer
    ttl  — seconds the message lives after posting
    age  — seconds since the message was posted
    """

    model_config = ConfigDict(frozen=True)

    id: str
    body: Any = None
    ttl: int | None = None
    age: int | None = None


class ClaimedMessage(Message):
    """A message leased to this consumer; every message of a batch shares claim_id."""

    claim_id: str | None = None


class MessagePage(BaseModel):
    """
    One page of a message listing.

    marker is the cursor for the next page, or None when there is no next page.
    """

    model_config = ConfigDict(frozen=True)

    messages: tuple[Message, ...] = ()
    marker: str | None = None

    @property
    def is_last(self) -> bool:
        return self.marker is None or not self.messages


class NewMessage(BaseModel):
    """A message to post. Bounds on ttl and batch size are enforced by the service."""

    model_config = ConfigDict(frozen=True)

    ttl: int
    body: Any = None


class MessageQuery(BaseModel):
    """
    Query parameters for listing messages.

    Unset fields are omitted from the request, leaving the service defaults
    (limit 10, echo false, include_claimed false) in effect.
    """

    model_config = ConfigDict(frozen=True)

    limit: int | None = None
    marker: str | None = None
    echo: bool | None = None
    include_claimed: bool | None = None


class QueueListQuery(BaseModel):
    """Query parameters for listing queues."""

    model_config = ConfigDict(frozen=True)

    limit: int | None = None
    marker: str | None = None
    detailed: bool | None = None


class ClaimParameters(BaseModel):
    """
    Parameters of a new claim.

    limit — maximum number of messages to lease (service range 1-20)
    ttl   — lease duration in seconds (service range 60-43200)
    grace — extension window in seconds (service range 60-43200)
    """

    model_config = ConfigDict(frozen=True)

    limit: int = 10
    ttl: int = 60
    grace: int = 60


class ClaimUpdate(BaseModel):
    """New ttl and/or grace for an existing claim. Unset fields are not sent."""

    model_config = ConfigDict(frozen=True)

    ttl: int | None = Field(default=None)
    grace: int | None = Field(default=None)
