"""Programmatic CAS login with OAuth token exchange."""

from __future__ import annotations

from .auth import Auth, LoginAttempt, LoginState
from .classifier import classify_error
from .const import EndPoint
from .exceptions import AuthError, CasAuthError, ClientError, InvalidResponseError
from .models import AuthToken, CasTicketRequestContext, NetworkResponse, RequestArgs
from .network import Network
from .parsers import (
    parse_cas_tokens,
    parse_oauth_token,
    parse_response_date,
    parse_service_ticket,
)
from .session_id import AuthIdGenerator

__all__ = [
    "Auth",
    "AuthError",
    "AuthIdGenerator",
    "AuthToken",
    "CasAuthError",
    "CasTicketRequestContext",
    "ClientError",
    "EndPoint",
    "InvalidResponseError",
    "LoginAttempt",
    "LoginState",
    "Network",
    "NetworkResponse",
    "RequestArgs",
    "classify_error",
    "parse_cas_tokens",
    "parse_oauth_token",
    "parse_response_date",
    "parse_service_ticket",
]
