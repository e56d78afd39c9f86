"""Detached PKCS#7 signers for ESIA client secrets.

Available signers:
- ProcessSigner: Runs an openssl-compatible CLI (production, GOST capable)
- Pkcs7Signer: Signs in-process with the cryptography library

Usage:
    from esia_oauth.security.signer import create_signer

    signer = create_signer()
    signature = signer.sign(b"message")
"""

from esia_oauth.security.signer.base import CertificateSigner
from esia_oauth.security.signer.factory import create_signer
from esia_oauth.security.signer.pkcs7 import Pkcs7Signer
from esia_oauth.security.signer.process import ProcessSigner
from esia_oauth.security.signer.protocol import Signer


__all__ = [
    "CertificateSigner",
    "Pkcs7Signer",
    "ProcessSigner",
    "Signer",
    "create_signer",
]
