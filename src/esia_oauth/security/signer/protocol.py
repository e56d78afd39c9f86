"""Signer protocol definition.

ESIA requires the ``client_secret`` of every authorization and token request
to be a detached PKCS#7 signature. A Signer produces that signature; using a
Protocol keeps the subprocess-backed implementation optional and lets tests
substitute trivial doubles.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Signer(Protocol):
    """Protocol for detached message signers.

    Example implementation:
        class StaticSigner:
            def sign(self, message: bytes) -> bytes:
                return b"signature"
    """

    def sign(self, message: bytes) -> bytes:
        """Sign ``message`` and return the detached signature.

        The message is signed exactly as given; implementations must not
        normalise line endings or re-encode it.

        Args:
            message: The exact byte sequence to sign.

        Returns:
            DER-encoded detached signature bytes.

        Raises:
            SigningError: If the signature could not be produced.
        """
        ...
