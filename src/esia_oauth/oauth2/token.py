"""Generic OAuth2 access token."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Final, Protocol, runtime_checkable

from esia_oauth.exceptions import InvalidTokenError


if TYPE_CHECKING:
    from collections.abc import Mapping

# Values of "expires" below this are durations, not timestamps (10 years)
_MAX_EXPIRES_DURATION: Final[int] = 10 * 365 * 24 * 60 * 60

_RESERVED_FIELDS: Final[frozenset[str]] = frozenset(
    {"access_token", "resource_owner_id", "refresh_token", "expires_in", "expires"}
)


class AccessToken:
    """Access token returned by a token endpoint.

    Attributes:
        access_token: The raw access token string.
        resource_owner_id: Identifier of the resource owner, when known.
        refresh_token: Refresh token, if issued.
        expires: Expiration as a Unix timestamp, if the response carried one.
        values: Remaining response fields (token_type, id_token, state, ...).
    """

    def __init__(self, response: Mapping[str, Any]) -> None:
        if not response.get("access_token"):
            msg = 'Required option not passed: "access_token"'
            raise InvalidTokenError(msg, dict(response))

        self.access_token: str = response["access_token"]
        self.resource_owner_id: str | None = response.get("resource_owner_id")
        self.refresh_token: str | None = response.get("refresh_token")
        self.expires = self._parse_expires(response)
        self.values: dict[str, Any] = {
            key: value for key, value in response.items() if key not in _RESERVED_FIELDS
        }

    @staticmethod
    def _parse_expires(response: Mapping[str, Any]) -> int | None:
        now = int(time.time())
        try:
            if response.get("expires_in") is not None:
                return now + int(response["expires_in"])
            if response.get("expires") is not None:
                expires = int(response["expires"])
                if 0 < expires < _MAX_EXPIRES_DURATION:
                    return now + expires
                return expires
        except (TypeError, ValueError) as e:
            msg = "expires value must be an integer"
            raise InvalidTokenError(msg, dict(response)) from e
        return None

    def has_expired(self) -> bool:
        """Return True when the token carries an expiration that has passed."""
        return self.expires is not None and self.expires <= time.time()

    def to_dict(self) -> dict[str, Any]:
        """Return the token as a serialisable mapping."""
        data = dict(self.values)
        data["access_token"] = self.access_token
        if self.refresh_token:
            data["refresh_token"] = self.refresh_token
        if self.expires is not None:
            data["expires"] = self.expires
        if self.resource_owner_id is not None:
            data["resource_owner_id"] = self.resource_owner_id
        return data

    def __str__(self) -> str:
        return self.access_token

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(resource_owner_id={self.resource_owner_id!r}, "
            f"expires={self.expires!r})"
        )


@runtime_checkable
class ScopedToken(Protocol):
    """A token that knows its resource owner and granted scopes."""

    resource_owner_id: str | None

    @property
    def scopes(self) -> frozenset[str]:
        """Return the granted scope names."""
        ...
