"""Loguru logging for the ESIA client.

Library modules only call get_logger(). Sinks belong to the embedding
application, which installs them with setup_logging() or, from client
settings, configure_logging().

Every step of a login attempt runs inside flow_context(), so records emitted
while signing or talking to ESIA carry the ``client_id`` and ``state`` of
the attempt they belong to. Credential fields are masked before any sink
sees them.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import orjson
from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from esia_oauth.core.config.settings import LoggingSettings


MASK: Final[str] = "***"
SENSITIVE_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "access_token",
        "client_secret",
        "code",
        "id_token",
        "password",
        "refresh_token",
    }
)
QUIET_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore")

_flow: ContextVar[dict[str, Any]] = ContextVar("esia_flow", default={})


class InterceptHandler(logging.Handler):
    """Route standard library records (httpx, httpcore) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def mask_sensitive(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``fields`` with credential values replaced by a mask."""
    return {
        key: MASK if key in SENSITIVE_FIELDS and value is not None else value
        for key, value in fields.items()
    }


def _record_fields(record: dict[str, Any]) -> dict[str, Any]:
    extra = {k: v for k, v in record["extra"].items() if k != "name"}
    return mask_sensitive({**get_context(), **extra})


def _escape(text: str) -> str:
    # Loguru treats a callable format's result as a template
    return text.replace("{", "{{").replace("}", "}}")


def _json_format(record: dict[str, Any]) -> str:
    """Render one JSON object per record."""
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["extra"].get("name", record["name"]),
        "message": record["message"],
        "function": record["function"],
        "line": record["line"],
        **_record_fields(record),
    }

    exception = record["exception"]
    if exception:
        payload["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": str(exception.value) if exception.value else None,
        }

    return _escape(orjson.dumps(payload, default=str).decode()) + "\n"


def _text_format(record: dict[str, Any]) -> str:
    """Render a colorized line with flow fields inline."""
    fields = _record_fields(record)
    suffix = ""
    if fields:
        text = " ".join(f"{k}={v}" for k, v in fields.items())
        suffix = " | " + _escape(text).replace("<", r"\<")

    template = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        f"<level>{{message}}</level>{suffix}\n"
    )
    if record["exception"]:
        template += "{exception}\n"
    return template


def setup_logging(
    level: str = "INFO",
    fmt: str = "json",
    *,
    log_file: Path | str | None = None,
) -> None:
    """Replace Loguru's sinks with ESIA client sinks.

    Args:
        level: Minimum level for every sink.
        fmt: ``json`` for one JSON object per line, ``text`` for colorized
            human-readable output on stdout.
        log_file: Optional JSON file sink with rotation.

    Local variables are never rendered in tracebacks since signing frames
    hold private key passphrases.
    """
    level = level.upper()
    logger.remove()
    logger.add(
        sys.stdout,
        format=_json_format if fmt == "json" else _text_format,
        level=level,
        colorize=fmt != "json",
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            format=_json_format,
            level=level,
            rotation="100 MB",
            retention="7 days",
            compression="gz",
            backtrace=True,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging(settings: LoggingSettings) -> None:
    """Apply the ``logging`` section of client settings."""
    setup_logging(settings.level, settings.format, log_file=settings.file)


def get_logger(name: str) -> Any:
    """Return the Loguru logger bound to ``name``."""
    return logger.bind(name=name)


@contextmanager
def flow_context(**values: Any) -> Iterator[dict[str, Any]]:
    """Tag records emitted inside the block with ``values``.

    None values are ignored. The previous context is restored on exit, so
    nested flows and concurrent tasks do not leak into each other.
    """
    current = {**_flow.get(), **{k: v for k, v in values.items() if v is not None}}
    token = _flow.set(current)
    try:
        yield current
    finally:
        _flow.reset(token)


def get_context() -> dict[str, Any]:
    """Return a copy of the current flow context."""
    return dict(_flow.get())


__all__ = [
    "configure_logging",
    "flow_context",
    "get_context",
    "get_logger",
    "logger",
    "mask_sensitive",
    "setup_logging",
]
