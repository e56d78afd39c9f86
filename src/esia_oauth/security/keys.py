"""Certificate and key loading helpers.

ESIA distributes its certificates as ``.cer`` files which may be either
PEM or DER encoded; both are accepted everywhere a certificate is read.
"""

from __future__ import annotations

from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from esia_oauth.exceptions import ConfigurationError


PEM_MARKER = b"-----BEGIN"


def _read(path: str | Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        msg = f"Cannot read {path}: {e}"
        raise ConfigurationError(msg) from e


def load_certificate(path: str | Path) -> x509.Certificate:
    """Load an X.509 certificate from a PEM or DER file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    data = _read(path)
    try:
        if PEM_MARKER in data:
            return x509.load_pem_x509_certificate(data)
        return x509.load_der_x509_certificate(data)
    except ValueError as e:
        msg = f"Invalid certificate {path}: {e}"
        raise ConfigurationError(msg) from e


def load_private_key(path: str | Path, password: str | None = None) -> PrivateKeyTypes:
    """Load a PEM or DER private key, decrypting it with ``password`` if given.

    Raises:
        ConfigurationError: If the key cannot be read, parsed or decrypted.
    """
    data = _read(path)
    secret = password.encode("utf-8") if password else None
    try:
        if PEM_MARKER in data:
            return serialization.load_pem_private_key(data, password=secret)
        return serialization.load_der_private_key(data, password=secret)
    except (ValueError, TypeError) as e:
        msg = f"Invalid private key {path}: {e}"
        raise ConfigurationError(msg) from e


def load_verification_key(path: str | Path) -> str:
    """Return the PEM public key used to verify tokens issued by ESIA.

    Accepts a certificate (PEM or DER) or a bare PEM public key.
    """
    data = _read(path)
    if b"PUBLIC KEY-----" in data:
        return data.decode("ascii")

    public_key = load_certificate(path).public_key()
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
