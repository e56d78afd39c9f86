"""Unit tests for logging module.

Tests cover:
- Flow context
- Credential masking
- InterceptHandler
- Log formatting (JSON and text)
- Sink setup from arguments and settings
"""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock, patch

import orjson
import pytest
from loguru import logger

from esia_oauth.core.config.settings import LoggingSettings
from esia_oauth.observability.logging import (
    MASK,
    InterceptHandler,
    _json_format,
    _text_format,
    configure_logging,
    flow_context,
    get_context,
    get_logger,
    mask_sensitive,
    setup_logging,
)


if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


pytestmark = pytest.mark.unit


class MockLevel:
    """Mock for Loguru level object."""

    def __init__(self, name: str):
        self.name = name


def _record(**overrides: Any) -> dict[str, Any]:
    record = {
        "time": datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC),
        "level": MockLevel("INFO"),
        "message": "Request parameters signed",
        "name": "esia_oauth.security.parameters",
        "function": "sign_parameters",
        "line": 10,
        "extra": {},
        "exception": None,
    }
    record.update(overrides)
    return record


def _unescape(line: str) -> dict[str, Any]:
    return orjson.loads(line.replace("{{", "{").replace("}}", "}"))


@pytest.fixture
def restore_sinks() -> Iterator[None]:
    """Restore Loguru's default sink after reconfiguring it."""
    yield
    logger.remove()
    logger.add(sys.stderr)


# =============================================================================
# Flow Context Tests
# =============================================================================


class TestFlowContext:
    """Tests for flow_context."""

    def test_binds_inside_block(self) -> None:
        """Should expose values only inside the block."""
        with flow_context(client_id="TEST_SYSTEM", state="abc") as values:
            assert get_context() == {"client_id": "TEST_SYSTEM", "state": "abc"}
            assert values == get_context()

        assert get_context() == {}

    def test_nested_blocks_restore_outer(self) -> None:
        """Should restore the outer values when an inner block ends."""
        with flow_context(client_id="TEST_SYSTEM"):
            with flow_context(state="inner"):
                assert get_context() == {"client_id": "TEST_SYSTEM", "state": "inner"}
            assert get_context() == {"client_id": "TEST_SYSTEM"}

    def test_ignores_none(self) -> None:
        """Should skip None values."""
        with flow_context(client_id="TEST_SYSTEM", state=None):
            assert get_context() == {"client_id": "TEST_SYSTEM"}

    def test_restores_on_error(self) -> None:
        """Should reset the context when the block raises."""
        with pytest.raises(RuntimeError), flow_context(state="abc"):
            raise RuntimeError

        assert get_context() == {}

    def test_get_context_returns_copy(self) -> None:
        """Should return a copy, not the stored dict."""
        with flow_context(state="abc"):
            get_context()["modified"] = "value"
            assert "modified" not in get_context()

    async def test_concurrent_flows_are_isolated(self) -> None:
        """Should keep each task's state to itself."""

        async def attempt(state: str) -> str:
            with flow_context(state=state):
                await asyncio.sleep(0.01)
                return get_context()["state"]

        assert await asyncio.gather(attempt("a"), attempt("b")) == ["a", "b"]


class TestMaskSensitive:
    """Tests for credential masking."""

    def test_masks_credentials(self) -> None:
        """Should hide secrets and keep other fields."""
        fields = {"client_secret": "c2ln", "code": "abc", "state": "s-1"}
        assert mask_sensitive(fields) == {"client_secret": MASK, "code": MASK, "state": "s-1"}

    def test_keeps_missing_values(self) -> None:
        """Should leave None as None."""
        assert mask_sensitive({"refresh_token": None}) == {"refresh_token": None}


# =============================================================================
# Handler and Logger Tests
# =============================================================================


class TestGetLogger:
    """Tests for get_logger function."""

    def test_binds_name(self) -> None:
        """Should bind the module name into extra."""
        messages: list[Any] = []
        sink_id = logger.add(messages.append, format="{message}")
        try:
            get_logger("esia_oauth.test").info("hello")
        finally:
            logger.remove(sink_id)

        assert messages[0].record["extra"]["name"] == "esia_oauth.test"


class TestInterceptHandler:
    """Tests for InterceptHandler."""

    def test_emit_forwards_to_loguru(self) -> None:
        """Should forward log records to Loguru."""
        record = logging.LogRecord(
            name="httpx",
            level=logging.WARNING,
            pathname="httpx.py",
            lineno=1,
            msg="HTTP Request: %s",
            args=("POST",),
            exc_info=None,
        )

        with patch("esia_oauth.observability.logging.logger") as mock_logger:
            mock_logger.level.return_value = MockLevel("WARNING")
            mock_logger.opt.return_value = mock_logger
            InterceptHandler().emit(record)

        mock_logger.log.assert_called_once_with("WARNING", "HTTP Request: POST")

    def test_emit_handles_unknown_level(self) -> None:
        """Should fall back to the numeric level."""
        record = logging.LogRecord(
            name="test",
            level=99,
            pathname="test.py",
            lineno=1,
            msg="Test message",
            args=(),
            exc_info=None,
        )
        record.levelname = "CUSTOM"

        with patch("esia_oauth.observability.logging.logger") as mock_logger:
            mock_logger.level.side_effect = ValueError("Unknown level")
            mock_logger.opt.return_value = mock_logger
            InterceptHandler().emit(record)

        mock_logger.log.assert_called_once_with(99, "Test message")


# =============================================================================
# Format Tests
# =============================================================================


class TestJsonFormat:
    """Tests for the JSON record format."""

    def test_produces_escaped_json_line(self) -> None:
        """Should emit one JSON object with braces escaped for Loguru."""
        result = _json_format(
            _record(extra={"name": "esia_oauth.provider.esia", "status_code": 400})
        )

        assert result.endswith("\n")
        payload = _unescape(result)
        assert payload["level"] == "INFO"
        assert payload["message"] == "Request parameters signed"
        assert payload["logger"] == "esia_oauth.provider.esia"
        assert payload["status_code"] == 400
        assert "name" not in payload

    def test_includes_flow_context(self) -> None:
        """Should merge the flow values into the output."""
        with flow_context(client_id="TEST_SYSTEM", state="state-1"):
            payload = _unescape(_json_format(_record()))

        assert payload["client_id"] == "TEST_SYSTEM"
        assert payload["state"] == "state-1"

    def test_masks_credentials(self) -> None:
        """Should never write a client secret."""
        result = _json_format(_record(extra={"client_secret": "c2lnbmF0dXJl"}))

        assert "c2lnbmF0dXJl" not in result
        assert _unescape(result)["client_secret"] == MASK

    def test_includes_exception(self) -> None:
        """Should describe the exception type and value."""
        exception = MagicMock()
        exception.type = ValueError
        exception.value = ValueError("bad key")

        payload = _unescape(_json_format(_record(exception=exception)))

        assert payload["exception"] == {"type": "ValueError", "value": "bad key"}


class TestTextFormat:
    """Tests for the human-readable record format."""

    def test_returns_template(self) -> None:
        """Should return a Loguru format template."""
        result = _text_format(_record())

        assert "{time:" in result
        assert "{message}" in result
        assert "{exception}" not in result

    def test_includes_flow_context(self) -> None:
        """Should render flow values inline."""
        with flow_context(client_id="TEST_SYSTEM"):
            assert "client_id=TEST_SYSTEM" in _text_format(_record())

    def test_escapes_markup_in_values(self) -> None:
        """Should keep field values from being read as color tags or fields."""
        result = _text_format(_record(extra={"body": "<html>{x}</html>"}))
        assert r"body=\<html>{{x}}\</html>" in result

    def test_adds_exception_placeholder(self) -> None:
        """Should include the exception when present."""
        assert "{exception}" in _text_format(_record(exception=MagicMock()))


# =============================================================================
# Sink Setup Tests
# =============================================================================


class TestSetupLogging:
    """Tests for setup_logging and configure_logging."""

    @pytest.mark.usefixtures("restore_sinks")
    def test_json_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Should write JSON lines to stdout."""
        setup_logging("INFO", "json")

        with flow_context(state="s-1"):
            get_logger("esia_oauth.test").info("Token exchanged", code="abc")

        payload = orjson.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert payload["message"] == "Token exchanged"
        assert payload["state"] == "s-1"
        assert payload["code"] == MASK

    @pytest.mark.usefixtures("restore_sinks")
    def test_respects_level(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Should drop records below the configured level."""
        setup_logging("warning", "json")

        get_logger("esia_oauth.test").info("hidden")

        assert "hidden" not in capsys.readouterr().out

    @pytest.mark.usefixtures("restore_sinks")
    def test_writes_log_file(self, tmp_path: Path) -> None:
        """Should add a JSON file sink."""
        log_file = tmp_path / "logs" / "esia.log"
        setup_logging("DEBUG", "text", log_file=log_file)

        get_logger("esia_oauth.test").debug("Signing message", size=42)
        logger.remove()

        payload = orjson.loads(log_file.read_text().strip().splitlines()[-1])
        assert payload["message"] == "Signing message"
        assert payload["size"] == 42

    @pytest.mark.usefixtures("restore_sinks")
    def test_quiets_http_loggers(self) -> None:
        """Should raise httpx and httpcore to WARNING."""
        setup_logging()

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_configure_from_settings(self, tmp_path: Path) -> None:
        """Should pass the logging section through."""
        settings = LoggingSettings(level="DEBUG", format="text", file=tmp_path / "a.log")

        with patch("esia_oauth.observability.logging.setup_logging") as setup:
            configure_logging(settings)

        setup.assert_called_once_with("DEBUG", "text", log_file=tmp_path / "a.log")
