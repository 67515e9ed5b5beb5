"""Exceptions for the CAS login client."""

from __future__ import annotations


class CasAuthError(Exception):
    """Base exception for the CAS login client."""


class AuthError(CasAuthError):
    """Login failed because of the upstream response."""


class InvalidResponseError(AuthError):
    """Upstream response was missing fields or had an unexpected shape."""


class ClientError(AuthError):
    """Server explicitly rejected the request and said why."""

    def __init__(self, message: str) -> None:
        """Initialise with the server-supplied message."""
        super().__init__(message)
        self.message = message
