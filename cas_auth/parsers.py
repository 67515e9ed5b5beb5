"""Extract login values from raw CAS and OAuth responses.

Every parser either returns its value or raises an ``AuthError``; none of
them touch the network.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
import logging
import re
import time
from typing import Any

from multidict import CIMultiDict

from .classifier import classify_error
from .const import TICKET_MARKER
from .exceptions import InvalidResponseError
from .models import AuthToken, CasTicketRequestContext

_LOGGER = logging.getLogger(__name__)

_ACCESS_TOKEN_RE = re.compile(
    r"access_token=(?P<token>[A-Za-z0-9\-.]+)&expires=(?P<expires>[0-9]+)"
)


def _get_header(headers: Mapping[str, str] | None, name: str) -> str | None:
    """Case-insensitive header lookup."""
    if not headers:
        return None
    return CIMultiDict(headers).get(name)


def parse_cas_tokens(json_body: Any) -> CasTicketRequestContext:
    """Extract ``lt`` and ``execution`` from the login page JSON."""
    if not isinstance(json_body, Mapping):
        raise InvalidResponseError("Login page response is not a JSON object")

    lt = json_body.get("lt")
    execution = json_body.get("execution")
    if not isinstance(lt, str) or not isinstance(execution, str):
        raise InvalidResponseError(
            "Login page response is missing 'lt' or 'execution'"
        )
    return CasTicketRequestContext(lt=lt, execution=execution)


def parse_service_ticket(
    headers: Mapping[str, str] | None, body: bytes | str | None
) -> str:
    """Extract the service ticket from the credential submission redirect.

    The ticket is everything after ``?ticket=`` in the ``Location`` header
    and may be empty. Without the marker the body is classified instead,
    since a rejected login answers with a JSON error list.
    """
    location = _get_header(headers, "Location")
    if location is None or TICKET_MARKER not in location:
        _LOGGER.debug(
            "No ticket in redirect (Location=%s)",
            location[:200] if location else "<none>",
        )
        raise classify_error(body)

    _, _, ticket = location.partition(TICKET_MARKER)
    return ticket


def parse_response_date(
    headers: Mapping[str, str] | None, fallback: float | None = None
) -> float:
    """Return the server ``Date`` header as a timestamp.

    Falls back to ``fallback`` (or the local clock) when the header is
    missing or unparseable.
    """
    value = _get_header(headers, "Date")
    if value:
        try:
            date = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            _LOGGER.debug("Unparseable Date header: %s", value)
        else:
            if date.tzinfo is None:
                date = date.replace(tzinfo=timezone.utc)
            return date.timestamp()
    return time.time() if fallback is None else fallback


def parse_oauth_token(
    body_text: str | None,
    headers: Mapping[str, str] | None,
    received_at: float | None = None,
) -> AuthToken:
    """Build an ``AuthToken`` from the OAuth exchange response.

    The body must contain ``access_token=<token>&expires=<seconds>``. The
    expiry is the response date plus ``<seconds>``.
    """
    if not body_text:
        raise InvalidResponseError("Empty OAuth response")

    match = _ACCESS_TOKEN_RE.search(body_text)
    if match is None:
        raise InvalidResponseError("No access token in OAuth response")

    token = match.group("token")
    date = parse_response_date(headers, received_at)
    try:
        expires_at = date + int(match.group("expires"))
        # expiry must be representable as a datetime
        datetime.fromtimestamp(expires_at, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError) as err:
        raise InvalidResponseError("Invalid token expiry") from err

    return AuthToken(token=token, expires_at=expires_at)
