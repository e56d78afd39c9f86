"""Request signing: signers, client secret computation, key loading."""

from esia_oauth.security.parameters import (
    ParameterSigner,
    encode_signature,
    format_timestamp,
)
from esia_oauth.security.signer import (
    CertificateSigner,
    Pkcs7Signer,
    ProcessSigner,
    Signer,
    create_signer,
)


__all__ = [
    "CertificateSigner",
    "ParameterSigner",
    "Pkcs7Signer",
    "ProcessSigner",
    "Signer",
    "create_signer",
    "encode_signature",
    "format_timestamp",
]
