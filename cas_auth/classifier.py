"""Map rejected login responses onto the auth error taxonomy."""

from __future__ import annotations

import json
import logging

from .exceptions import AuthError, ClientError, InvalidResponseError

_LOGGER = logging.getLogger(__name__)


def classify_error(body: bytes | str | None) -> AuthError:
    """Return the error a rejected response body describes.

    The CAS server reports rejected credentials as a JSON object with an
    ``errors`` array of strings. The first entry becomes a ``ClientError``;
    any other body is an ``InvalidResponseError``. The error is returned,
    not raised.
    """
    if not body:
        return InvalidResponseError("Empty response body")

    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        _LOGGER.debug("Error body is not JSON (length=%d)", len(body))
        return InvalidResponseError("Response body is not JSON")

    errors = data.get("errors") if isinstance(data, dict) else None
    if (
        isinstance(errors, list)
        and errors
        and all(isinstance(error, str) for error in errors)
    ):
        return ClientError(errors[0])

    return InvalidResponseError("No errors reported in response body")
