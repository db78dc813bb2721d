"""Tests for logging configuration."""

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from lmcode.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def test_json_logs_go_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("info", "json")

    structlog.get_logger("lmcode.test").info("budget_query_failed", error="refused")

    captured = capsys.readouterr()
    assert captured.out == ""
    record = json.loads(captured.err.strip().splitlines()[-1])
    assert record["event"] == "budget_query_failed"
    assert record["error"] == "refused"
    assert record["level"] == "info"


def test_level_filters(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("warning", "console")

    structlog.get_logger("lmcode.test").info("hidden_event")
    structlog.get_logger("lmcode.test").warning("shown_event")

    err = capsys.readouterr().err
    assert "hidden_event" not in err
    assert "shown_event" in err


def test_unknown_level_defaults_to_info() -> None:
    configure_logging("chatty")

    assert logging.getLogger().level == logging.INFO
