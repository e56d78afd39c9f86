"""ESIA access token.

The access token issued by ESIA is a JWT. Constructing an EsiaAccessToken
parses it, extracts the subject id, validates its time constraints and,
when enabled, verifies its signature against the ESIA certificate.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from pydantic import ValidationError

from esia_oauth.exceptions import (
    InvalidTokenError,
    MalformedTokenError,
    TokenExpiredError,
)
from esia_oauth.oauth2.token import AccessToken
from esia_oauth.observability.logging import get_logger
from esia_oauth.security.keys import load_verification_key
from esia_oauth.token.claims import AccessTokenClaims


logger = get_logger(__name__)


class EsiaAccessToken(AccessToken):
    """Access token with parsed ESIA claims.

    Attributes:
        claims: Parsed token claims.
        resource_owner_id: ESIA subject id of the authenticated person.
    """

    def __init__(
        self,
        response: Mapping[str, Any],
        public_key_path: str | Path | None = None,
        *,
        verify_signature: bool = False,
        algorithms: Iterable[str] = ("RS256",),
        leeway: int = 0,
    ) -> None:
        """Parse and validate the token in ``response["access_token"]``.

        Args:
            response: Token endpoint response.
            public_key_path: ESIA certificate or public key for verification.
            verify_signature: Verify the JWT signature against
                ``public_key_path``. Off by default.
            algorithms: Accepted JWS algorithms for verification.
            leeway: Clock skew tolerance in seconds for exp/nbf/iat.

        Raises:
            MalformedTokenError: If the token is not a parseable JWT.
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If claims are missing or invalid, or the
                signature cannot be verified.
        """
        super().__init__(response)
        raw = dict(response)

        try:
            payload = jwt.get_unverified_claims(self.access_token)
        except JWTError as e:
            msg = "Access token is malformed"
            raise MalformedTokenError(msg, raw) from e

        try:
            self.claims = AccessTokenClaims.model_validate(payload)
        except ValidationError as e:
            msg = f"Access token claims are invalid: {e.error_count()} error(s)"
            raise InvalidTokenError(msg, raw) from e

        self.resource_owner_id = self.claims.subject_id
        self._validate(raw, leeway)

        if public_key_path is None:
            return

        if not verify_signature:
            logger.debug("Access token signature verification skipped")
            return

        self._verify(raw, public_key_path, list(algorithms), leeway)

    def _validate(self, raw: dict[str, Any], leeway: int) -> None:
        """Check exp, nbf and iat against the current time."""
        try:
            jwt.decode(
                self.access_token,
                "",
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_sub": False,
                    "leeway": leeway,
                },
            )
        except ExpiredSignatureError as e:
            logger.debug("Access token expired", subject_id=self.resource_owner_id)
            msg = "Access token has expired"
            raise TokenExpiredError(msg, raw) from e
        except (JWTError, KeyError) as e:
            logger.warning("Access token validation failed", error=str(e))
            msg = f"Access token is invalid: {e}"
            raise InvalidTokenError(msg, raw) from e

    def _verify(
        self,
        raw: dict[str, Any],
        public_key_path: str | Path,
        algorithms: list[str],
        leeway: int,
    ) -> None:
        key = load_verification_key(public_key_path)
        try:
            jwt.decode(
                self.access_token,
                key,
                algorithms=algorithms,
                options={"verify_aud": False, "verify_sub": False, "leeway": leeway},
            )
        except JWTError as e:
            logger.warning("Access token signature verification failed", error=str(e))
            msg = "Access token can not be verified"
            raise InvalidTokenError(msg, raw) from e

    @property
    def scopes(self) -> frozenset[str]:
        """Return the path component of every granted scope.

        ``"https://esia/scope/fullname https://esia/scope/email"`` yields
        ``{"/scope/fullname", "/scope/email"}``; an empty claim yields an
        empty set.
        """
        return frozenset(urlparse(entry).path for entry in self.claims.scope.split())
