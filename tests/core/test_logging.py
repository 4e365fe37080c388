"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from zclgen.config.models import LoggingConfig, LogOutputConfig
from zclgen.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)


class TestRequestIdCorrelation:
    """Request ID context variable tests."""

    def setup_method(self) -> None:
        clear_request_id()

    def test_given_request_id_when_set_then_can_retrieve(self) -> None:
        # When
        result = set_request_id("load-123")

        # Then
        assert result == "load-123"
        assert get_request_id() == "load-123"

    def test_given_no_id_when_set_then_generates_uuid(self) -> None:
        rid = set_request_id()

        assert len(rid) == 12  # uuid4().hex[:12]

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        # Given
        set_request_id("to-clear")

        # When
        clear_request_id()

        # Then
        assert get_request_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_request_id()

    def teardown_method(self) -> None:
        clear_request_id()

    def test_given_file_output_when_log_then_json_carries_request_id(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "zclgen.log"
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(format="json", destination=str(log_file))])
        )
        set_request_id("run-1")

        # When
        get_logger("loader").info("package_loaded", package_id=3)

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "package_loaded"
        assert data["package_id"] == 3
        assert data["request_id"] == "run-1"
        assert data["logger"] == "loader"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "debug.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        # When - config's DEBUG overrides the level="ERROR" param
        configure_logging(config=config, level="ERROR")
        get_logger().debug("staged_insert")

        # Then
        assert "staged_insert" in log_file.read_text()

    def test_given_multi_output_config_when_configure_then_levels_apply_per_output(
        self, tmp_path: Path
    ) -> None:
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="console", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        # Then
        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_sqlalchemy_engine_logger_is_quieted(self, tmp_path: Path) -> None:
        configure_logging(level="DEBUG")

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
