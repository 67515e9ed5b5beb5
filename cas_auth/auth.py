"""CAS + OAuth login handler."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import logging
import weakref

from .const import (
    OAUTH_CLIENT_ID,
    OAUTH_CLIENT_SECRET,
    OAUTH_GRANT_TYPE,
    OAUTH_REDIRECT_URI,
    EndPoint,
)
from .exceptions import InvalidResponseError
from .models import AuthToken, CasTicketRequestContext, RequestArgs
from .network import Network
from .parsers import parse_cas_tokens, parse_oauth_token, parse_service_ticket
from .session_id import AuthIdGenerator

_LOGGER = logging.getLogger(__name__)

StateCallback = Callable[[int, "LoginState"], None]


def _mask_token(token: str | None) -> str:
    """Mask a token for safe logging."""
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"


class LoginState(Enum):
    """Progress of a single login attempt."""

    IDLE = "idle"
    AWAITING_LOGIN_PAGE = "awaiting_login_page"
    AWAITING_TICKET = "awaiting_ticket"
    AWAITING_TOKEN = "awaiting_token"
    COMPLETED = "completed"
    FAILED = "failed"


class Auth:
    """Log in through CAS and exchange the service ticket for an OAuth token.

    Each ``login`` call runs as an independent ``LoginAttempt`` with its own
    session id, so concurrent logins on one instance do not interfere.
    """

    def __init__(self, network: Network, id_generator: AuthIdGenerator) -> None:
        """Initialise the auth handler.

        Args:
            network: Transport used for every request.
            id_generator: Process-wide session id source, shared between
                          every ``Auth`` using the same transport.
        """
        self._network = network
        self._id_generator = id_generator
        self._on_state_change: StateCallback | None = None

    @property
    def network(self) -> Network:
        """Return the transport."""
        return self._network

    def set_state_callback(self, callback: StateCallback | None) -> None:
        """Set a callback invoked with ``(session_id, state)`` on each transition."""
        self._on_state_change = callback

    def _notify(self, session_id: int, state: LoginState) -> None:
        if self._on_state_change is not None:
            self._on_state_change(session_id, state)

    def create_attempt(self) -> LoginAttempt:
        """Allocate a session id and return an attempt ready to run."""
        return LoginAttempt(self, self._id_generator.next_id())

    async def login(self, username: str, password: str) -> AuthToken:
        """Perform the complete login and return the access token.

        Raises:
            InvalidResponseError: If any stage returned unexpected data.
            ClientError: If the server rejected the credentials.
            aiohttp.ClientError: On transport failure, unchanged.
        """
        return await self.create_attempt().run(username, password)


class LoginAttempt:
    """One run of the three-stage login sequence.

    The attempt holds its ``Auth`` strongly while requests are in flight
    and only weakly once the outcome is known, so session teardown never
    extends the owner's lifetime.
    """

    def __init__(self, auth: Auth, session_id: int) -> None:
        self._auth: Auth | None = auth
        self._owner = weakref.ref(auth)
        self._session_id = session_id
        self._state = LoginState.IDLE

    @property
    def session_id(self) -> int:
        """Return the session id tagging this attempt's requests."""
        return self._session_id

    @property
    def state(self) -> LoginState:
        """Return the current state."""
        return self._state

    def _set_state(self, state: LoginState) -> None:
        _LOGGER.debug(
            "Login %d: %s -> %s",
            self._session_id,
            self._state.value,
            state.value,
        )
        self._state = state
        owner = self._owner()
        if owner is not None:
            owner._notify(self._session_id, state)

    async def run(self, username: str, password: str) -> AuthToken:
        """Run the login sequence once and return the token.

        The transport session is reset exactly once when the attempt ends,
        whatever the outcome.
        """
        if self._state is not LoginState.IDLE:
            raise RuntimeError(
                f"Login attempt {self._session_id} has already run"
            )
        auth = self._auth
        if auth is None:
            raise RuntimeError(f"Login attempt {self._session_id} was torn down")

        try:
            self._set_state(LoginState.AWAITING_LOGIN_PAGE)
            context = await self._get_login_context(auth.network)

            self._set_state(LoginState.AWAITING_TICKET)
            ticket = await self._get_ticket(
                auth.network, context, username, password
            )

            self._set_state(LoginState.AWAITING_TOKEN)
            token = await self._login_via_oauth(auth.network, ticket)
            self._set_state(LoginState.COMPLETED)
        except BaseException as err:
            _LOGGER.warning(
                "Login %d failed in %s: %s: %s",
                self._session_id,
                self._state.value,
                type(err).__name__,
                err,
            )
            try:
                self._set_state(LoginState.FAILED)
            except Exception:
                # keep the login failure as the outcome
                _LOGGER.exception(
                    "Login %d: state callback failed", self._session_id
                )
            raise
        finally:
            del auth
            self._auth = None
            self._teardown()

        _LOGGER.debug(
            "Login %d complete, access_token=%s, expires_at=%s",
            self._session_id,
            _mask_token(token.token),
            token.expires_at,
        )
        return token

    def _teardown(self) -> None:
        """Reset the transport session if the owning ``Auth`` still exists."""
        owner = self._owner()
        if owner is None:
            _LOGGER.debug(
                "Login %d: owner released, skipping session reset",
                self._session_id,
            )
            return
        owner.network.reset_session(self._session_id)

    async def _get_login_context(
        self, network: Network
    ) -> CasTicketRequestContext:
        """Stage 1: fetch the login page and read ``lt`` / ``execution``."""
        response = await network.get_json(
            EndPoint.LOGIN_INFO, RequestArgs(session_id=self._session_id)
        )
        return parse_cas_tokens(response.response)

    async def _get_ticket(
        self,
        network: Network,
        context: CasTicketRequestContext,
        username: str,
        password: str,
    ) -> str:
        """Stage 2: submit credentials and read the service ticket."""
        params = {
            "lt": context.lt,
            "execution": context.execution,
            "_eventId": "submit",
            "username": username,
            "password": password,
        }
        response = await network.post_data(
            EndPoint.LOGIN_INFO,
            RequestArgs(session_id=self._session_id, params=params),
        )
        ticket = parse_service_ticket(response.headers, response.response)
        _LOGGER.debug(
            "Login %d: got ticket=%s", self._session_id, _mask_token(ticket)
        )
        return ticket

    async def _login_via_oauth(self, network: Network, ticket: str) -> AuthToken:
        """Stage 3: exchange the service ticket for an access token."""
        if not ticket:
            raise InvalidResponseError("Empty service ticket")

        params = {
            "client_id": OAUTH_CLIENT_ID,
            "redirect_uri": OAUTH_REDIRECT_URI,
            "client_secret": OAUTH_CLIENT_SECRET,
            "grant_type": OAUTH_GRANT_TYPE,
            "code": ticket,
        }
        response = await network.post_string(
            EndPoint.LOGIN_OAUTH,
            RequestArgs(session_id=self._session_id, params=params),
        )
        return parse_oauth_token(
            response.response, response.headers, response.received_at
        )
