"""
Tests for logging configuration.
"""

import json
import logging

import pytest

from influxdb_publisher.logging_config import (
    HumanReadableFormatter,
    StructuredFormatter,
    log_write_outcome,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_loggers():
    """setup_logging mutates global loggers; put them back afterwards."""
    names = ["influxdb_publisher", "influxdb_publisher.publisher.writes", "httpx", "httpcore"]
    saved = {name: (logging.getLogger(name).level, list(logging.getLogger(name).handlers)) for name in names}
    yield
    for name, (level, handlers) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)


def _record(level=logging.INFO, msg="hello", **extra):
    record = logging.LogRecord("influxdb_publisher.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    def test_structured_formatter(self):
        output = json.loads(StructuredFormatter().format(_record(target="main", points=3)))

        assert output["level"] == "INFO"
        assert output["message"] == "hello"
        assert output["logger"] == "influxdb_publisher.test"
        assert output["target"] == "main"
        assert output["points"] == 3

    def test_structured_formatter_without_extras(self):
        output = json.loads(StructuredFormatter().format(_record()))

        assert "target" not in output
        assert "points" not in output

    def test_colors_do_not_leak_into_record(self):
        record = _record(level=logging.WARNING)

        colored = HumanReadableFormatter(use_colors=True).format(record)

        assert "\033[33m" in colored
        assert record.levelname == "WARNING"
        assert "\033[" not in HumanReadableFormatter().format(record)


class TestSetupLogging:
    def test_console_only(self):
        setup_logging()

        logger = logging.getLogger("influxdb_publisher")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert logger.handlers[0].level == logging.INFO

    def test_log_files(self, tmp_path):
        setup_logging(log_dir=tmp_path / "logs", console_level="ERROR", use_json=True)

        logging.getLogger("influxdb_publisher.orchestrator").debug("debug line")
        log_write_outcome("main (http://influx:8086)", True, 5)
        for handler in logging.getLogger("influxdb_publisher").handlers:
            handler.flush()
        for handler in logging.getLogger("influxdb_publisher.publisher.writes").handlers:
            handler.flush()

        main_lines = (tmp_path / "logs" / "publisher.log").read_text().splitlines()
        write_lines = (tmp_path / "logs" / "writes.log").read_text().splitlines()
        assert any(json.loads(line)["message"] == "debug line" for line in main_lines)
        entry = json.loads(write_lines[-1])
        assert entry["target"] == "main (http://influx:8086)"
        assert entry["points"] == 5
        assert logging.getLogger("httpx").level == logging.WARNING


class TestLogWriteOutcome:
    def test_success(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="influxdb_publisher.publisher.writes"):
            log_write_outcome("main", True, 4)

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.getMessage() == "Write to main: SUCCESS (4 points)"
        assert record.points == 4

    def test_failure(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="influxdb_publisher.publisher.writes"):
            log_write_outcome("main", False, 4, error="connection refused")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "Write to main: FAILED (4 points) - connection refused"
