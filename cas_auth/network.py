"""aiohttp transport for the CAS login client."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import logging
import time
from typing import Any

import aiohttp

from .const import DEFAULT_TIMEOUT, ENDPOINT_URLS, USER_AGENT, EndPoint
from .models import NetworkResponse, RequestArgs

_LOGGER = logging.getLogger(__name__)

_DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
}

_FORM_POST_HEADERS: dict[str, str] = {
    "Content-Type": "application/x-www-form-urlencoded",
}


class Network:
    """Session-tagged HTTP transport.

    Each session id gets its own ``aiohttp.ClientSession`` with a private
    cookie jar, created on first use and closed by ``reset_session``. The
    CAS login page sets cookies that must accompany the credential POST, so
    requests tagged with the same id share cookies and different ids never
    do.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
        urls: Mapping[EndPoint, str] | None = None,
    ) -> None:
        """Initialise the transport.

        Args:
            timeout: Total timeout per request, in seconds.
            headers: Extra headers sent with every request.
            urls: Endpoint URL overrides (staging hosts, tests).
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._headers = {**_DEFAULT_HEADERS, **(headers or {})}
        self._urls = {**ENDPOINT_URLS, **(urls or {})}
        self._sessions: dict[int, aiohttp.ClientSession] = {}
        self._closing: set[asyncio.Task[None]] = set()

    async def __aenter__(self) -> Network:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def active_sessions(self) -> frozenset[int]:
        """Return the ids of sessions that have not been reset."""
        return frozenset(self._sessions)

    def url_for(self, endpoint: EndPoint) -> str:
        """Return the URL an endpoint resolves to."""
        return self._urls[endpoint]

    def _session_for(self, session_id: int) -> aiohttp.ClientSession:
        session = self._sessions.get(session_id)
        if session is None or session.closed:
            session = aiohttp.ClientSession(
                cookie_jar=aiohttp.CookieJar(unsafe=True),
                headers=self._headers,
                timeout=self._timeout,
            )
            self._sessions[session_id] = session
            _LOGGER.debug("Opened transport session %d", session_id)
        return session

    async def get_json(
        self, endpoint: EndPoint, args: RequestArgs
    ) -> NetworkResponse[Any]:
        """GET an endpoint and decode the body as JSON.

        An undecodable body yields ``response=None`` rather than an error;
        callers decide whether that is fatal.
        """
        session = self._session_for(args.session_id)
        url = self.url_for(endpoint)
        _LOGGER.debug("GET %s (session=%d)", endpoint.value, args.session_id)

        async with session.get(url, params=dict(args.params) or None) as resp:
            try:
                data = await resp.json(content_type=None)
            except ValueError:
                _LOGGER.debug(
                    "GET %s: body is not JSON (HTTP %s)",
                    endpoint.value,
                    resp.status,
                )
                data = None
            return NetworkResponse(
                status=resp.status,
                response=data,
                headers=resp.headers,
                received_at=time.time(),
            )

    async def post_data(
        self, endpoint: EndPoint, args: RequestArgs
    ) -> NetworkResponse[bytes]:
        """POST form params and return the raw body without following redirects."""
        session = self._session_for(args.session_id)
        url = self.url_for(endpoint)
        _LOGGER.debug("POST %s (session=%d)", endpoint.value, args.session_id)

        async with session.post(
            url,
            data=dict(args.params),
            headers=_FORM_POST_HEADERS,
            allow_redirects=False,
        ) as resp:
            body = await resp.read()
            return NetworkResponse(
                status=resp.status,
                response=body,
                headers=resp.headers,
                received_at=time.time(),
            )

    async def post_string(
        self, endpoint: EndPoint, args: RequestArgs
    ) -> NetworkResponse[str]:
        """POST form params and return the body as text."""
        session = self._session_for(args.session_id)
        url = self.url_for(endpoint)
        _LOGGER.debug("POST %s (session=%d)", endpoint.value, args.session_id)

        async with session.post(
            url,
            data=dict(args.params),
            headers=_FORM_POST_HEADERS,
        ) as resp:
            text = await resp.text()
            return NetworkResponse(
                status=resp.status,
                response=text,
                headers=resp.headers,
                received_at=time.time(),
            )

    def reset_session(self, session_id: int) -> None:
        """Drop the session for ``session_id`` and schedule its close.

        Safe to call for unknown or already reset ids.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return

        _LOGGER.debug("Reset transport session %d", session_id)
        if session.closed:
            return

        task = asyncio.get_running_loop().create_task(session.close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def close(self) -> None:
        """Close every open session and wait for pending closes."""
        for session_id in list(self._sessions):
            self.reset_session(session_id)
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)
