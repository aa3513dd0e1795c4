"""
Structured logging system for moviematch.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring a matching run.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring matching progress.
    """

    def __init__(
        self,
        name: str = "moviematch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console

        Raises:
            ValueError: If level is not one of LOG_LEVELS
        """
        if level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {level!r}, expected one of {', '.join(LOG_LEVELS)}")

        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self.metrics = {
            "documents_read": 0,
            "documents_classified": 0,
            "documents_matched": 0,
            "documents_without_candidates": 0,
            "candidates_scored": 0,
            "matches": {"new": 0, "updated": 0, "kept": 0},
            "errors_by_type": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"moviematch_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_document_read(self, is_movie: bool):
        """Count a parsed document and whether the classifier kept it."""
        self.metrics["documents_read"] += 1
        if is_movie:
            self.metrics["documents_classified"] += 1

    def record_document_matched(self, candidates: int):
        """Count a document taken through candidate generation and scoring."""
        self.metrics["documents_matched"] += 1
        self.metrics["candidates_scored"] += candidates
        if candidates == 0:
            self.metrics["documents_without_candidates"] += 1

    def record_match(self, status: str):
        """Record the outcome of a result-table update (new, updated, kept)."""
        self.metrics["matches"][status] = self.metrics["matches"].get(status, 0) + 1

    def record_error(self, error_type: str):
        """Record a non-fatal error by type."""
        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = dict(self.metrics)
        metrics_copy["matches"] = dict(self.metrics["matches"])
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])

        matched = metrics_copy["documents_matched"]
        if matched > 0:
            with_candidates = matched - metrics_copy["documents_without_candidates"]
            metrics_copy["candidate_rate"] = round(with_candidates / matched, 3)
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Matching Session Metrics ===")
        self.info(f"Documents: {metrics['documents_classified']}/{metrics['documents_read']} classified as movies")
        self.info(
            f"Matched: {metrics['documents_matched']} documents, "
            f"{metrics['candidates_scored']} candidates scored"
        )
        if "candidate_rate" in metrics:
            self.info(f"Documents with candidates: {metrics['candidate_rate'] * 100:.1f}%")

        matches = metrics["matches"]
        self.info(f"Results: new={matches['new']} updated={matches['updated']} kept={matches['kept']}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "moviematch",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
