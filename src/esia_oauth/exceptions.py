"""ESIA client exceptions.

Every error raised by this package derives from EsiaError. None of them are
retried or swallowed internally; they surface to the immediate caller of
the flow step that failed.
"""

from __future__ import annotations

from typing import Any


class EsiaError(Exception):
    """Base exception for ESIA client errors."""


class ConfigurationError(EsiaError):
    """Raised when the provider or a signer is misconfigured.

    Always raised at construction time, before any network or process I/O.
    """


class SigningError(EsiaError):
    """Raised when a message could not be signed.

    Attributes:
        message: Diagnostic text reported by the signing backend.
        code: Exit status of the signing tool, or None when no process ran.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)

    @classmethod
    def sign_failed_as_of(cls, errors: str, code: int | None) -> SigningError:
        """Build the error for a signing tool that exited unsuccessfully."""
        return cls(errors.strip() or "unknown", code)


class SigningParametersError(SigningError, ValueError):
    """Raised when a field of the signed message is missing or empty."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Parameter '{field}' is required for signing")


class IdentityProviderError(EsiaError):
    """Raised when ESIA responds with an HTTP error or an ``error`` field.

    Attributes:
        message: The ``error`` value from the body, or the HTTP reason phrase.
        status_code: HTTP status code (None for transport failures).
        response_body: Raw response body for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class InvalidTokenError(EsiaError):
    """Raised when an access token cannot be trusted.

    Attributes:
        response: The raw token response the token was built from.
    """

    def __init__(self, message: str, response: dict[str, Any] | None = None) -> None:
        self.message = message
        self.response = response or {}
        super().__init__(message)


class MalformedTokenError(InvalidTokenError):
    """Raised when the access token is not a well-formed JWT."""


class TokenExpiredError(InvalidTokenError):
    """Raised when the access token has expired."""


class ContractViolationError(EsiaError, TypeError):
    """Raised when a token without scope information is used where one is required."""
