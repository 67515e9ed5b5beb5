"""Constants for the CAS + OAuth login client."""

from __future__ import annotations

from enum import Enum
from typing import Final

# CAS single sign-on (login page + credential submission)
SSO_DOMAIN: Final = "sso.pokemon.com"
LOGIN_URL: Final = (
    f"https://{SSO_DOMAIN}/sso/login"
    "?service=https%3A%2F%2Fsso.pokemon.com%2Fsso%2Foauth2.0%2FcallbackAuthorize"
)
LOGIN_OAUTH_URL: Final = f"https://{SSO_DOMAIN}/sso/oauth2.0/accessToken"

# OAuth client identity sent with the ticket exchange
OAUTH_CLIENT_ID: Final = "mobile-app_pokemon-go"
OAUTH_REDIRECT_URI: Final = "https://www.nianticlabs.com/pokemongo/error"
OAUTH_CLIENT_SECRET: Final = (
    "w8ScCUXJQc6kXKw8FiOhd8Fixzht18Dq3PEVkUCP5ZPxtgyWsbTvWHFLm2wNY0JR"
)
OAUTH_GRANT_TYPE: Final = "refresh_token"

# Marker preceding the service ticket in the stage 2 redirect
TICKET_MARKER: Final = "?ticket="

# Transport defaults
USER_AGENT: Final = "niantic"
DEFAULT_TIMEOUT: Final = 30.0

# Seconds before expiry at which a token is treated as expired
EXPIRY_LEEWAY: Final = 60.0


class EndPoint(Enum):
    """Fixed endpoints used by the login sequence."""

    LOGIN_INFO = "login_info"
    LOGIN_OAUTH = "login_oauth"


ENDPOINT_URLS: Final[dict[EndPoint, str]] = {
    EndPoint.LOGIN_INFO: LOGIN_URL,
    EndPoint.LOGIN_OAUTH: LOGIN_OAUTH_URL,
}
