"""In-process signer using the cryptography library.

Produces the same detached, binary, DER, attribute-less PKCS#7 structure as
``openssl smime -sign -binary -outform DER -noattr`` without spawning a
process. cryptography has no GOST support, so this backend only fits RSA or
EC keys (for example the ESIA test environment).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.serialization import pkcs7

from esia_oauth.exceptions import SigningError
from esia_oauth.observability.logging import get_logger
from esia_oauth.security.keys import load_certificate, load_private_key
from esia_oauth.security.signer.base import CertificateSigner


if TYPE_CHECKING:
    from pathlib import Path

logger = get_logger(__name__)

SIGN_OPTIONS = [
    pkcs7.PKCS7Options.DetachedSignature,
    pkcs7.PKCS7Options.Binary,
    pkcs7.PKCS7Options.NoAttributes,
]


class Pkcs7Signer(CertificateSigner):
    """Signs messages with a certificate and key loaded once at construction."""

    def __init__(
        self,
        certificate_path: str | Path,
        private_key_path: str | Path,
        private_key_password: str | None = None,
    ) -> None:
        super().__init__(certificate_path, private_key_path, private_key_password)
        self._certificate = load_certificate(self.certificate_path)
        self._private_key = load_private_key(self.private_key_path, private_key_password)

    def sign(self, message: bytes) -> bytes:
        """Return a detached DER signature over ``message``.

        Raises:
            SigningError: If the key type or options are rejected by cryptography.
        """
        logger.debug("Signing message in-process", size=len(message))
        try:
            builder = (
                pkcs7.PKCS7SignatureBuilder()
                .set_data(message)
                .add_signer(self._certificate, self._private_key, hashes.SHA256())
            )
            return builder.sign(serialization.Encoding.DER, SIGN_OPTIONS)
        except (TypeError, ValueError) as e:
            logger.warning("In-process signing failed", error=str(e))
            raise SigningError(str(e)) from e
