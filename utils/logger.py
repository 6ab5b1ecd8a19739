"""
Logging configuration for the Answer Paper Grader.

This module provides one configured application logger shared by the API,
the background processor and the AI provider services.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from src.constants import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_MAX_BYTES,
    DIR_LOGS,
    ENCODING_UTF8,
    ENV_LOG_LEVEL,
)

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logger(name: str, log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up a logger with console and rotating file output.

    Handlers are attached only once per logger name, so repeated calls
    return the same configured instance.

    Args:
        name: Name of the logger (usually __name__)
        log_file: Optional log file path. If not provided, logs to logs/app.log

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    log_level = os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
    if log_level not in VALID_LEVELS:
        log_level = DEFAULT_LOG_LEVEL
    level = getattr(logging, log_level, logging.INFO)
    logger.setLevel(level)

    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] - %(message)s"
    )
    console_formatter = logging.Formatter("%(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file is None:
        log_dir = Path(DIR_LOGS)
        log_dir.mkdir(exist_ok=True)
        log_file = log_dir / "app.log"

    # Windows keeps the active file locked, so rotate by time there
    if sys.platform.startswith("win"):
        file_handler = TimedRotatingFileHandler(
            str(log_file),
            when="midnight",
            interval=1,
            backupCount=7,
            delay=True,
            encoding=ENCODING_UTF8,
        )
    else:
        file_handler = RotatingFileHandler(
            str(log_file),
            maxBytes=DEFAULT_LOG_MAX_BYTES,
            backupCount=DEFAULT_LOG_BACKUP_COUNT,
            delay=True,
            encoding=ENCODING_UTF8,
        )
    file_handler.setFormatter(file_formatter)
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    logger.propagate = False

    return logger


class Logger:
    """Application logger with operation counters."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if getattr(self, "_initialized", False):
            return

        self.logger = setup_logger("paper_grader", None)

        self.metrics = {
            "start_time": datetime.now(),
            "api_calls": 0,
            "grading_operations": 0,
            "errors": 0,
            "warnings": 0,
            "file_operations": 0,
            "ocr_operations": 0,
        }

        self._initialized = True

    def get_logger(self) -> logging.Logger:
        """Get the underlying logger instance."""
        return self.logger

    def debug(self, message: str, *args, **kwargs) -> None:
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self.log_metric("warnings")
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        self.log_metric("errors")
        self.logger.error(message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs) -> None:
        """Log an exception with traceback."""
        self.log_metric("errors")
        self.logger.exception(message, *args, **kwargs)

    def log_error_with_context(self, error: Exception, context: Dict[str, Any],
                               user_id: Optional[str] = None) -> None:
        """Log an error with additional context information.

        Args:
            error: The exception that occurred
            context: Additional context information
            user_id: Optional user ID for tracking
        """
        self.log_metric("errors")

        error_info = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
            "user_id": user_id,
            "timestamp": datetime.now().isoformat(),
        }

        self.logger.error(
            f"Error occurred: {error_info['error_type']} - {error_info['error_message']}",
            extra={"error_context": error_info},
            exc_info=True,
        )

    def log_metric(self, metric_name: str, value: Any = 1) -> None:
        """Increment a counter, or replace a non-numeric metric."""
        if metric_name in self.metrics:
            if isinstance(self.metrics[metric_name], (int, float)):
                self.metrics[metric_name] += value
            else:
                self.metrics[metric_name] = value

    def log_api_call(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Log an outbound AI provider call."""
        self.log_metric("api_calls")
        self.logger.info(
            f"API Call: {method} {endpoint} - Status: {status_code} - Duration: {duration:.2f}s"
        )

    def log_file_operation(
        self, operation: str, file_path: str, success: bool = True
    ) -> None:
        """Log file operation details.

        Args:
            operation: File operation type
            file_path: Path to the file
            success: Whether the operation was successful
        """
        self.log_metric("file_operations")
        if success:
            self.logger.debug(f"File {operation}: {file_path}")
        else:
            self.log_metric("warnings")
            self.logger.warning(f"Failed to {operation} file: {file_path}")

    def log_ocr_operation(
        self, file_path: str, success: bool = True, confidence: Optional[float] = None
    ) -> None:
        """Log OCR operation details.

        Args:
            file_path: Path to the scanned file
            success: Whether OCR was successful
            confidence: OCR confidence score if available
        """
        self.log_metric("ocr_operations")
        if success:
            if confidence is not None:
                self.logger.info(
                    f"OCR successful on {file_path} - Confidence: {confidence:.2f}"
                )
            else:
                self.logger.info(f"OCR successful on {file_path}")
        else:
            self.log_metric("errors")
            self.logger.error(f"OCR failed on {file_path}")

    def log_grading_operation(self, sections: int, duration: float) -> None:
        """Log a completed grading call."""
        self.log_metric("grading_operations")
        self.logger.info(
            f"Graded paper with {sections} section(s) - Duration: {duration:.2f}s"
        )


# Create default logger instance
logger = Logger()
