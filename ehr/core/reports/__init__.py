"""
Report Generation Module

Lays out a patient's medical record as a paginated document.
The page canvas (PDF or plain text), date formatter and clock are
injected into the compositor.
"""
from .canvas import PageCanvas, ReportLabCanvas, TextCanvas, TextBlock, create_canvas
from .formatting import DateFormatter, LocaleDateFormatter, Rendered, Unavailable
from .patient_report import ReportCompositor, PatientReport, LayoutSettings

__all__ = [
    "PageCanvas",
    "ReportLabCanvas",
    "TextCanvas",
    "TextBlock",
    "create_canvas",
    "DateFormatter",
    "LocaleDateFormatter",
    "Rendered",
    "Unavailable",
    "ReportCompositor",
    "PatientReport",
    "LayoutSettings",
]
