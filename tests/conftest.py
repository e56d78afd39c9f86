"""Shared test fixtures and configuration for the ESIA client tests.

This module provides pytest fixtures used across test modules: throwaway
signing identities, a deterministic signer, provider configuration and an
EsiaProvider for the ESIA test environment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from esia_oauth import TESTING_URL
from esia_oauth.core.config import get_settings
from esia_oauth.provider.esia import EsiaProvider, EsiaProviderConfig
from tests.fixtures.crypto import CLIENT_ID, Identity, create_identity
from tests.fixtures.signers import RecordingSigner


if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _reset_settings() -> Iterator[None]:
    """Clear cached settings around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def identity(tmp_path_factory: pytest.TempPathFactory) -> Identity:
    """Create a signer identity shared by the whole session."""
    return create_identity(tmp_path_factory.mktemp("identity"), "signer")


@pytest.fixture(scope="session")
def esia_identity(tmp_path_factory: pytest.TempPathFactory) -> Identity:
    """Create an identity standing in for the ESIA token issuer."""
    return create_identity(tmp_path_factory.mktemp("esia"), "esia")


@pytest.fixture
def recording_signer() -> RecordingSigner:
    """Create a signer with a fixed signature."""
    return RecordingSigner()


@pytest.fixture
def remote_certificate(esia_identity: Identity) -> Path:
    """Return the ESIA certificate path."""
    return esia_identity.certificate_path


@pytest.fixture
def provider_config(remote_certificate: Path) -> EsiaProviderConfig:
    """Create a provider configuration for the ESIA test environment."""
    return EsiaProviderConfig(
        client_id=CLIENT_ID,
        redirect_uri="https://example.com/callback",
        remote_url=TESTING_URL,
        remote_certificate_path=remote_certificate,
        scopes=("openid", "fullname", "email"),
    )


@pytest.fixture
def provider(
    provider_config: EsiaProviderConfig, recording_signer: RecordingSigner
) -> EsiaProvider:
    """Create an EsiaProvider for the ESIA test environment."""
    return EsiaProvider(provider_config, recording_signer)
