"""Data models for the CAS login client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
import time
from typing import Any, Generic, TypeVar

from .const import EXPIRY_LEEWAY

T = TypeVar("T")


@dataclass(frozen=True)
class CasTicketRequestContext:
    """Login ticket and execution values taken from the CAS login page."""

    lt: str
    execution: str


@dataclass(frozen=True)
class AuthToken:
    """Bearer token with an absolute expiry."""

    token: str
    expires_at: float  # unix timestamp, seconds

    @property
    def expiry(self) -> datetime:
        """Return the expiry as an aware UTC datetime."""
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    def is_expired(self, leeway: float = EXPIRY_LEEWAY) -> bool:
        """Check whether the token is expired, with ``leeway`` seconds of buffer."""
        return time.time() >= self.expires_at - leeway

    def as_dict(self) -> dict[str, Any]:
        """Return the token as an ``access_token`` / ``expires_at`` dict."""
        return {"access_token": self.token, "expires_at": self.expires_at}


@dataclass(frozen=True)
class RequestArgs:
    """Session-tagged request arguments passed to the transport."""

    session_id: int
    params: Mapping[str, str] = field(default_factory=dict)


@dataclass
class NetworkResponse(Generic[T]):
    """A transport response.

    ``headers`` is a case-insensitive mapping when produced by ``Network``.
    ``received_at`` is the local clock when the response arrived.
    """

    status: int
    response: T | None
    headers: Mapping[str, str] = field(default_factory=dict)
    received_at: float = field(default_factory=time.time)
