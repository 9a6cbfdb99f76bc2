"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    HospitalSystemError,
    ReportInputError,
    ReportGenerationError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "HospitalSystemError",
    "ReportInputError",
    "ReportGenerationError",
]
