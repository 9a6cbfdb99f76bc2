"""
Report Service Logging

One console line per event: UTC timestamp, level, module and message,
tagged with the report id when the event belongs to a report. The
compositor logs composed reports at INFO and page breaks or unreadable
dates at DEBUG; the service logs generation and saving; the API logs
failed requests at ERROR.
"""
import logging
import sys
from typing import Optional
from datetime import datetime, timezone


class StructuredFormatter(logging.Formatter):
    """
    Console formatter for report events.

    Pass ``extra={"report_id": ...}`` to a log call to tag the line with
    the report it belongs to.
    """

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        report_id = getattr(record, "report_id", None)
        tag = f"[{report_id}] " if report_id else ""

        line = f"[{timestamp}] {record.levelname:8} [{record.name}] {tag}{record.getMessage()}"
        if self.use_colors:
            line = f"{self.LEVEL_COLORS.get(record.levelname, '')}{line}{self.RESET}"

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path; written without colours
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter(use_colors=sys.stdout.isatty()))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    # reportlab is chatty at DEBUG
    logging.getLogger("reportlab").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; pass __name__."""
    return logging.getLogger(name)


# Initialize logging on module import
setup_logging()
