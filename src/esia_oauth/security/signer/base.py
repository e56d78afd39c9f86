"""Shared state for certificate-based signers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from esia_oauth.exceptions import ConfigurationError


class CertificateSigner(ABC):
    """Base class holding the signer certificate and private key locations.

    Attributes:
        certificate_path: Path to the information system certificate (PEM).
        private_key_path: Path to the matching private key (PEM).
        private_key_password: Passphrase of the private key, if encrypted.
    """

    def __init__(
        self,
        certificate_path: str | Path,
        private_key_path: str | Path,
        private_key_password: str | None = None,
    ) -> None:
        self.certificate_path = Path(certificate_path)
        self.private_key_path = Path(private_key_path)
        self.private_key_password = private_key_password

        if not self.certificate_path.is_file():
            msg = f"Signer certificate not found: {self.certificate_path}"
            raise ConfigurationError(msg)
        if not self.private_key_path.is_file():
            msg = f"Signer private key not found: {self.private_key_path}"
            raise ConfigurationError(msg)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(certificate_path={str(self.certificate_path)!r}, "
            f"private_key_path={str(self.private_key_path)!r})"
        )

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        """Return a detached signature over ``message``."""
