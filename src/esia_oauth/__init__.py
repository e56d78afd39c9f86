"""Client for the ESIA (Gosuslugi) signed OAuth2 authorization-code flow.

Every authorization and token request sent to ESIA carries a
``client_secret`` which is a detached PKCS#7 signature over
``scope + timestamp + client_id + state``.
"""

from esia_oauth.core.config import PRODUCTION_URL, TESTING_URL
from esia_oauth.exceptions import (
    ConfigurationError,
    ContractViolationError,
    EsiaError,
    IdentityProviderError,
    InvalidTokenError,
    MalformedTokenError,
    SigningError,
    SigningParametersError,
    TokenExpiredError,
)
from esia_oauth.provider import (
    EmbedResolver,
    EmbedSection,
    EsiaProvider,
    EsiaProviderConfig,
    create_provider,
)
from esia_oauth.security import (
    ParameterSigner,
    Pkcs7Signer,
    ProcessSigner,
    Signer,
    create_signer,
)
from esia_oauth.token import EsiaAccessToken


__version__ = "0.1.0"

__all__ = [
    "PRODUCTION_URL",
    "TESTING_URL",
    "ConfigurationError",
    "ContractViolationError",
    "EmbedResolver",
    "EmbedSection",
    "EsiaAccessToken",
    "EsiaError",
    "EsiaProvider",
    "EsiaProviderConfig",
    "IdentityProviderError",
    "InvalidTokenError",
    "MalformedTokenError",
    "ParameterSigner",
    "Pkcs7Signer",
    "ProcessSigner",
    "Signer",
    "SigningError",
    "SigningParametersError",
    "TokenExpiredError",
    "create_provider",
    "create_signer",
]
