"""
Centralized logging configuration for the InfluxDB publisher.

Console logging for interactive use, optional rotating files with a
separate stream for write outcomes.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON for better parsing."""
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "target"):
            log_obj["target"] = record.target
        if hasattr(record, "points"):
            log_obj["points"] = record.points

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for console and file logs."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = False):
        """Initialize formatter with optional color support."""
        self.use_colors = use_colors
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format with optional colors for console output."""
        if self.use_colors and record.levelname in self.COLORS:
            # Work on a copy so file handlers never see the escape codes
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    log_dir: Optional[Union[str, Path]] = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    use_json: bool = False,
    use_colors: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure logging for the publisher.

    Args:
        log_dir: Directory for log files, None for console only
        console_level: Console logging level
        file_level: File logging level
        use_json: Use JSON formatting for files
        use_colors: Colour the console level names
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep
    """
    package_logger = logging.getLogger("influxdb_publisher")
    package_logger.setLevel(logging.DEBUG)
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, console_level.upper()))
    console_handler.setFormatter(HumanReadableFormatter(use_colors=use_colors))
    package_logger.addHandler(console_handler)

    if log_dir is None:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    file_formatter = StructuredFormatter() if use_json else HumanReadableFormatter()

    main_handler = logging.handlers.RotatingFileHandler(
        log_path / "publisher.log", maxBytes=max_bytes, backupCount=backup_count
    )
    main_handler.setLevel(getattr(logging, file_level.upper()))
    main_handler.setFormatter(file_formatter)
    package_logger.addHandler(main_handler)

    # Write outcomes get their own file for monitoring
    writes_logger = logging.getLogger("influxdb_publisher.publisher.writes")
    writes_logger.handlers.clear()
    writes_handler = logging.handlers.RotatingFileHandler(
        log_path / "writes.log", maxBytes=max_bytes, backupCount=backup_count
    )
    writes_handler.setFormatter(file_formatter)
    writes_logger.addHandler(writes_handler)

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def log_write_outcome(
    target: str,
    success: bool,
    points: int,
    error: Optional[str] = None,
) -> None:
    """
    Log the result of one target write.

    Args:
        target: Target as shown in logs (no credentials)
        success: Whether the write went through
        points: Number of points in the write
        error: Error message if failed
    """
    logger = logging.getLogger("influxdb_publisher.publisher.writes")

    message = f"Write to {target}: {'SUCCESS' if success else 'FAILED'} ({points} points)"
    if error:
        message += f" - {error}"

    level = logging.INFO if success else logging.WARNING
    logger.log(level, message, extra={"target": target, "points": points})
