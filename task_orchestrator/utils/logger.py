"""
Logger module - Logging configuration and utilities

This module provides logging configuration with support for:
- Console logging with Unicode-safe output
- Rotating file logging
- Configuration from environment / .env
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "task_orchestrator"

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Flag to track if the package logger has been configured
_logging_configured = False


class SafeStreamHandler(logging.StreamHandler):
    """
    StreamHandler that never raises UnicodeEncodeError.

    Characters the stream cannot encode are replaced instead of
    aborting the log call.
    """

    def emit(self, record):
        try:
            msg = self.format(record)
            stream = self.stream
            try:
                stream.write(msg + self.terminator)
            except UnicodeEncodeError:
                encoding = getattr(stream, 'encoding', None) or 'utf-8'
                safe_msg = msg.encode(encoding, errors='replace').decode(encoding)
                stream.write(safe_msg + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def configure_logging(
    log_level: Optional[str] = None,
    log_folder: Optional[str] = None,
    enable_console: Optional[bool] = None,
    enable_file: Optional[bool] = None,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
    force: bool = False
) -> logging.Logger:
    """
    Configure the package logger.

    Unset arguments are read from the environment:
    ORCH_LOG_LEVEL, ORCH_LOG_FOLDER, ORCH_ENABLE_CONSOLE_LOGGING,
    ORCH_ENABLE_FILE_LOGGING, ORCH_LOG_MAX_BYTES, ORCH_LOG_BACKUP_COUNT.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_folder: Folder for rotating log files
        enable_console: Enable console logging
        enable_file: Enable file logging
        max_bytes: Max file size before rotation
        backup_count: Number of rotated files to keep
        force: Reconfigure even if logging was already set up

    Returns:
        The package root logger
    """
    global _logging_configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _logging_configured and not force:
        return root

    level = (log_level or os.getenv("ORCH_LOG_LEVEL", "INFO")).upper()
    folder = log_folder or os.getenv("ORCH_LOG_FOLDER", "./logs")
    if enable_console is None:
        enable_console = os.getenv("ORCH_ENABLE_CONSOLE_LOGGING", "true").lower() == "true"
    if enable_file is None:
        enable_file = os.getenv("ORCH_ENABLE_FILE_LOGGING", "false").lower() == "true"
    max_bytes = max_bytes or int(os.getenv("ORCH_LOG_MAX_BYTES", "10485760"))  # 10MB default
    backup_count = backup_count or int(os.getenv("ORCH_LOG_BACKUP_COUNT", "5"))

    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if enable_console:
        handler = SafeStreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if enable_file:
        Path(folder).mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            Path(folder) / "orchestrator.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    _logging_configured = True
    return root


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the package logging configuration.

    Configures the package logger from the environment on first call.

    Args:
        name: Logger name (typically __name__)
        level: Optional logging level override for this logger

    Returns:
        Configured logger instance
    """
    configure_logging()

    logger = logging.getLogger(name)
    if level:
        logger.setLevel(getattr(logging, level.upper()))
    return logger
