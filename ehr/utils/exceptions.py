"""
Custom Exception Hierarchy

Error types raised by the report pipeline. Each carries a machine-readable
code and structured details so the API layer can return them verbatim.
"""
from typing import Optional, Dict, Any, List


class HospitalSystemError(Exception):
    """Base exception for all hospital system errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class ReportInputError(HospitalSystemError):
    """The caller supplied a record that breaks the report input contract."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="REPORT_INPUT_ERROR",
            details={"errors": errors or [], **(details or {})}
        )
        self.errors = errors or []


class ReportGenerationError(HospitalSystemError):
    """Errors during report generation."""

    def __init__(
        self,
        message: str,
        report_type: str = "patient",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="REPORT_ERROR",
            details={"report_type": report_type, **(details or {})}
        )
        self.report_type = report_type
