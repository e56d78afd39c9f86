"""Configuration module with YAML and environment variable support."""

from .settings import (
    PRODUCTION_URL,
    TESTING_URL,
    Settings,
    SignerBackend,
    get_settings,
)


__all__ = [
    "PRODUCTION_URL",
    "TESTING_URL",
    "Settings",
    "SignerBackend",
    "get_settings",
]
