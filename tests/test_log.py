"""Tests for log.py."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Generator
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from log import CycleLogAdapter, JSONFormatter, setup_logging

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_panel_logger() -> Generator[None, None, None]:
    """Clear the status_panel logger's handlers before and after each test."""
    logger = logging.getLogger("status_panel")
    logger.handlers.clear()
    yield
    for handler in logger.handlers[:]:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def _make_record(
    msg: str = "hello",
    level: int = logging.INFO,
    name: str = "status_panel",
) -> logging.LogRecord:
    """Create a minimal LogRecord for testing."""
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


# ---------------------------------------------------------------------------
# JSONFormatter
# ---------------------------------------------------------------------------


class TestJSONFormatter:
    def test_format_produces_valid_json_with_expected_keys(self) -> None:
        output = JSONFormatter().format(_make_record("test message"))
        parsed = json.loads(output)

        assert parsed["level"] == "INFO"
        assert parsed["msg"] == "test message"
        assert parsed["logger"] == "status_panel"
        assert "ts" in parsed

    def test_timestamp_comes_from_record(self) -> None:
        record = _make_record()
        record.created = 0.0

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["ts"] == "1970-01-01T00:00:00+00:00"

    def test_format_includes_exception_info(self) -> None:
        record = _make_record("boom")
        try:
            raise ValueError("kaboom")
        except ValueError:
            record.exc_info = sys.exc_info()

        parsed = json.loads(JSONFormatter().format(record))

        assert "kaboom" in parsed["exception"]

    def test_format_includes_extra_fields_when_set(self) -> None:
        record = _make_record()
        record.endpoint = "/api/admin/status"  # type: ignore[attr-defined]
        record.status = "healthy"  # type: ignore[attr-defined]
        record.cycle = 3  # type: ignore[attr-defined]

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["endpoint"] == "/api/admin/status"
        assert parsed["status"] == "healthy"
        assert parsed["cycle"] == 3

    def test_format_omits_extra_fields_when_not_set(self) -> None:
        parsed = json.loads(JSONFormatter().format(_make_record()))

        for key in ("endpoint", "status", "cycle", "exception"):
            assert key not in parsed


# ---------------------------------------------------------------------------
# CycleLogAdapter
# ---------------------------------------------------------------------------


class TestCycleLogAdapter:
    def test_adapter_fields_reach_the_record(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        adapter = CycleLogAdapter(
            logging.getLogger("status_panel.test"),
            {"endpoint": "/api/admin/status", "cycle": 1},
        )

        with caplog.at_level(logging.INFO, logger="status_panel.test"):
            adapter.info("loading", extra={"status": "healthy"})

        record = caplog.records[-1]
        assert record.endpoint == "/api/admin/status"  # type: ignore[attr-defined]
        assert record.cycle == 1  # type: ignore[attr-defined]
        assert record.status == "healthy"  # type: ignore[attr-defined]

    def test_call_site_extra_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        adapter = CycleLogAdapter(logging.getLogger("status_panel.test"), {"cycle": 1})

        with caplog.at_level(logging.INFO, logger="status_panel.test"):
            adapter.info("x", extra={"cycle": 9})

        assert caplog.records[-1].cycle == 9  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_returns_panel_logger_with_console_handler(self) -> None:
        logger = setup_logging()

        assert logger.name == "status_panel"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_plain_text_output(self) -> None:
        logger = setup_logging(json_output=False)
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_level_accepts_name(self) -> None:
        assert setup_logging(level="DEBUG").level == logging.DEBUG

    def test_repeated_setup_does_not_duplicate_handlers(self) -> None:
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_log_file_adds_rotating_json_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "panel.log"

        logger = setup_logging(json_output=False, log_file=log_file)

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 10 * 1024 * 1024
        assert file_handlers[0].backupCount == 5
        assert isinstance(file_handlers[0].formatter, JSONFormatter)
        assert log_file.parent.is_dir()

    def test_child_loggers_write_json_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "panel.log"
        logger = setup_logging(log_file=log_file)

        logging.getLogger("status_panel.panel").info(
            "System status loaded", extra={"endpoint": "/api/admin/status"}
        )
        for handler in logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        parsed = json.loads(line)
        assert parsed["msg"] == "System status loaded"
        assert parsed["endpoint"] == "/api/admin/status"
