"""pytest fixtures for cas_auth tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from cas_auth.auth import Auth
from cas_auth.models import NetworkResponse
from cas_auth.network import Network
from cas_auth.session_id import AuthIdGenerator

LOGIN_PAGE = {"lt": "LT-1234-abcd", "execution": "e1s1"}
TICKET = "ST-98765-xyz"
ACCESS_TOKEN = "TGT-1.abcDEF-12.34"
DATE_HEADER = "Wed, 21 Oct 2015 07:28:00 GMT"


def login_page_response(body=None):
    return NetworkResponse(status=200, response=LOGIN_PAGE if body is None else body)


def ticket_response(ticket=TICKET, body=b""):
    return NetworkResponse(
        status=302,
        response=body,
        headers={"Location": f"https://example.com/callback?ticket={ticket}"},
    )


def token_response(token=ACCESS_TOKEN, expires=7200, date=DATE_HEADER):
    headers = {"Date": date} if date else {}
    return NetworkResponse(
        status=200,
        response=f"access_token={token}&expires={expires}",
        headers=headers,
        received_at=1_000_000.0,
    )


@pytest.fixture
def id_generator():
    """fresh session id generator."""
    return AuthIdGenerator()


@pytest.fixture
def network():
    """transport mock answering all three stages successfully."""
    net = MagicMock(spec=Network)
    net.get_json = AsyncMock(return_value=login_page_response())
    net.post_data = AsyncMock(return_value=ticket_response())
    net.post_string = AsyncMock(return_value=token_response())
    net.reset_session = MagicMock()
    return net


@pytest.fixture
def auth(network, id_generator):
    """auth handler over the mocked transport."""
    return Auth(network, id_generator)
