"""Provider factory.

This module builds a ready-to-use EsiaProvider from client settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from esia_oauth.core.config import get_settings
from esia_oauth.observability.logging import configure_logging, get_logger
from esia_oauth.provider.esia import EsiaProvider, EsiaProviderConfig
from esia_oauth.security.signer.factory import create_signer


if TYPE_CHECKING:
    import httpx

    from esia_oauth.core.config import Settings
    from esia_oauth.security.signer.protocol import Signer

logger = get_logger(__name__)


def create_provider(
    settings: Settings | None = None,
    signer: Signer | None = None,
    http_client: httpx.AsyncClient | None = None,
    *,
    setup_logs: bool = False,
) -> EsiaProvider:
    """Create an EsiaProvider from settings.

    Args:
        settings: Client settings. If None, loaded from environment.
        signer: Signer to use. If None, created from ``settings.signer``.
        http_client: Optional shared HTTP client.
        setup_logs: Install log sinks from ``settings.logging`` first. Leave
            it off when the application configures Loguru itself.

    Returns:
        Configured EsiaProvider instance.

    Raises:
        ConfigurationError: If any required setting is missing or invalid.
    """
    if settings is None:
        settings = get_settings()
    if setup_logs:
        configure_logging(settings.logging)

    config = EsiaProviderConfig.from_settings(settings)
    if signer is None:
        signer = create_signer(settings)

    logger.debug("Creating ESIA provider", environment=settings.APP_ENV)
    return EsiaProvider(config, signer, http_client=http_client)
