"""ESIA provider: request orchestration and resource owner lookups.

Usage:
    from esia_oauth.provider import create_provider

    async with create_provider() as esia:
        request = esia.get_authorization_url()
"""

from esia_oauth.provider.embeds import (
    EMBED_SCOPES,
    EmbedResolver,
    EmbedSection,
    normalize_scope,
)
from esia_oauth.provider.esia import EsiaProvider, EsiaProviderConfig
from esia_oauth.provider.factory import create_provider


__all__ = [
    "EMBED_SCOPES",
    "EmbedResolver",
    "EmbedSection",
    "EsiaProvider",
    "EsiaProviderConfig",
    "create_provider",
    "normalize_scope",
]
