"""Generic OAuth2 authorization-code flow driver.

Provider behaviour is injected through OAuth2Hooks; see
esia_oauth.provider.esia for the ESIA wiring.
"""

from esia_oauth.oauth2.client import (
    AuthorizationRequest,
    OAuth2Client,
    OAuth2Hooks,
    build_query_string,
    generate_state,
)
from esia_oauth.oauth2.resource_owner import GenericResourceOwner
from esia_oauth.oauth2.token import AccessToken, ScopedToken


__all__ = [
    "AccessToken",
    "AuthorizationRequest",
    "GenericResourceOwner",
    "OAuth2Client",
    "OAuth2Hooks",
    "ScopedToken",
    "build_query_string",
    "generate_state",
]
