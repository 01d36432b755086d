"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from glfind.config.models import LoggingConfig, LogOutputConfig
from glfind.core.logging import (
    clear_operation_id,
    configure_logging,
    get_operation_id,
    set_operation_id,
)
from glfind.core.progress import suppress_console_logs


class TestOperationIdCorrelation:
    """Operation ID context variable tests."""

    def setup_method(self) -> None:
        clear_operation_id()

    def test_given_operation_id_when_set_then_can_retrieve(self) -> None:
        assert set_operation_id("sync-1") == "sync-1"
        assert get_operation_id() == "sync-1"

    def test_given_no_id_when_set_then_generates_short_uuid(self) -> None:
        oid = set_operation_id()
        assert len(oid) == 12

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_operation_id("to-clear")
        clear_operation_id()
        assert get_operation_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_operation_id()

    def test_given_file_output_when_log_then_json_with_operation_id(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "glf.log"
        configure_logging(
            config=LoggingConfig(
                level="DEBUG",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        set_operation_id("op-42")

        # When
        structlog.get_logger().info("sync_completed", fetched=3)

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "sync_completed"
        assert data["fetched"] == 3
        assert data["operation_id"] == "op-42"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_output_level_when_lower_event_then_filtered(self, tmp_path: Path) -> None:
        # Given
        warn_file = tmp_path / "warn.log"
        all_file = tmp_path / "all.log"
        configure_logging(
            config=LoggingConfig(
                level="DEBUG",
                outputs=[
                    LogOutputConfig(format="json", destination=str(warn_file), level="WARNING"),
                    LogOutputConfig(format="json", destination=str(all_file)),
                ],
            )
        )
        logger = structlog.get_logger()

        # When
        logger.debug("page_fetched")
        logger.warning("history_corrupt")

        # Then
        assert "page_fetched" not in warn_file.read_text()
        assert "history_corrupt" in warn_file.read_text()
        assert "page_fetched" in all_file.read_text()

    def test_given_spinner_active_when_log_then_console_suppressed(self, capsys) -> None:
        # Given
        configure_logging(level="INFO")
        logger = structlog.get_logger()

        # When
        with suppress_console_logs():
            logger.warning("hidden_event")
        logger.warning("visible_event")

        # Then
        err = capsys.readouterr().err
        assert "hidden_event" not in err
        assert "visible_event" in err
