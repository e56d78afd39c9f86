"""Observability components: structured logging."""

from esia_oauth.observability.logging import (
    configure_logging,
    flow_context,
    get_context,
    get_logger,
    logger,
    mask_sensitive,
    setup_logging,
)


__all__ = [
    "configure_logging",
    "flow_context",
    "get_context",
    "get_logger",
    "logger",
    "mask_sensitive",
    "setup_logging",
]
