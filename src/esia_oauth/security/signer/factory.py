"""Signer factory.

This module creates the configured Signer implementation from settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from esia_oauth.core.config import SignerBackend, get_settings
from esia_oauth.exceptions import ConfigurationError
from esia_oauth.observability.logging import get_logger
from esia_oauth.security.signer.pkcs7 import Pkcs7Signer
from esia_oauth.security.signer.process import ProcessSigner


if TYPE_CHECKING:
    from esia_oauth.core.config import Settings
    from esia_oauth.security.signer.protocol import Signer

logger = get_logger(__name__)


def create_signer(settings: Settings | None = None) -> Signer:
    """Create a signer based on the ``signer.backend`` setting.

    - PROCESS: ProcessSigner running ``signer.tool_path``
    - PKCS7: Pkcs7Signer using the cryptography library

    Args:
        settings: Client settings. If None, loaded from environment.

    Returns:
        Configured Signer instance.

    Raises:
        ConfigurationError: If the certificate or private key is not configured.
    """
    if settings is None:
        settings = get_settings()

    config = settings.signer
    if config.certificate_path is None:
        msg = "signer.certificate_path is required"
        raise ConfigurationError(msg)
    if config.private_key_path is None:
        msg = "signer.private_key_path is required"
        raise ConfigurationError(msg)

    logger.info("Creating signer", backend=config.backend.value)

    if config.backend == SignerBackend.PKCS7:
        return Pkcs7Signer(
            certificate_path=config.certificate_path,
            private_key_path=config.private_key_path,
            private_key_password=settings.SIGNER_PRIVATE_KEY_PASSWORD,
        )

    return ProcessSigner(
        certificate_path=config.certificate_path,
        private_key_path=config.private_key_path,
        private_key_password=settings.SIGNER_PRIVATE_KEY_PASSWORD,
        tool_path=config.tool_path,
        timeout=config.timeout,
    )
