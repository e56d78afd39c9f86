"""Client configuration using Pydantic Settings with YAML support.

This module provides centralized configuration management with:
- YAML-based configuration files organized by domain
- Environment-specific overrides (local, test, development, production)
- Environment variable loading for secrets
- Type validation and coercion
- Caching for performance
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Final, Literal

from pydantic import BaseModel, BeforeValidator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


PRODUCTION_URL: Final[str] = "https://esia.gosuslugi.ru"
TESTING_URL: Final[str] = "https://esia-portal1.test.gosuslugi.ru"


class SignerBackend(StrEnum):
    """Signing backend selection.

    - PROCESS: Shell out to an openssl-compatible CLI (supports GOST engines)
    - PKCS7: Sign in-process with the cryptography library (RSA/EC keys only)
    """

    PROCESS = "process"
    PKCS7 = "pkcs7"


def parse_list(v: str | list[str]) -> list[str]:
    """Parse comma-separated string or list into list of strings."""
    if isinstance(v, str):
        return [x.strip() for x in v.split(",") if x.strip()]
    return v


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class RemoteSettings(BaseModel):
    """ESIA endpoint settings."""

    url: str = PRODUCTION_URL
    certificate_path: Path | None = None


class ClientSettings(BaseModel):
    """Registered information system settings."""

    client_id: str | None = None
    redirect_uri: str | None = None
    scopes: Annotated[list[str], BeforeValidator(parse_list)] = ["openid", "fullname"]


class SignerSettings(BaseModel):
    """Request signing settings."""

    backend: SignerBackend = SignerBackend.PROCESS
    tool_path: str = "openssl"
    certificate_path: Path | None = None
    private_key_path: Path | None = None
    timeout: float = 30.0


class TokenSettings(BaseModel):
    """Access token validation settings."""

    verify_signature: bool = False
    public_key_path: Path | None = None
    algorithms: Annotated[list[str], BeforeValidator(parse_list)] = ["RS256"]
    leeway: int = 0


class HttpSettings(BaseModel):
    """HTTP client settings."""

    timeout: float = 10.0


class LoggingSettings(BaseModel):
    """Sink settings applied by configure_logging()."""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"
    file: Path | None = None


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Client settings with YAML + environment variable support.

    Configuration is loaded from multiple sources with the following priority
    (highest to lowest):
    1. Values passed to Settings()
    2. Environment variables
    3. .env file (secrets only)
    4. Environment-specific YAML files (config/environments/{APP_ENV}/)
    5. Base YAML files (config/base/)
    6. Default values in code

    Environment variables can override any setting using the nested delimiter '__'.
    For example: REMOTE__URL=https://esia-portal1.test.gosuslugi.ru overrides remote.url.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    APP_ENV: str = "development"

    remote: RemoteSettings = RemoteSettings()
    client: ClientSettings = ClientSettings()
    signer: SignerSettings = SignerSettings()
    token: TokenSettings = TokenSettings()
    http: HttpSettings = HttpSettings()
    logging: LoggingSettings = LoggingSettings()

    # Secrets (from env/.env only - never in YAML)
    SIGNER_PRIVATE_KEY_PASSWORD: str | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings loading order."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
