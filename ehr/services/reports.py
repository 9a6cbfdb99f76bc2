"""
Report Service - Patient Report Generation for the API
"""
from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Any, Dict, Mapping, Optional, Union
from zoneinfo import ZoneInfo
from functools import partial

from starlette.concurrency import run_in_threadpool

from ehr.config import Settings, settings as default_settings
from ehr.core.reports import LocaleDateFormatter, PatientReport, ReportCompositor, create_canvas
from ehr.models.patient_report import PatientReportInput
from ehr.utils import get_logger

logger = get_logger(__name__)


def _report_timezone(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


@dataclass(frozen=True)
class StoredReport:
    """Registry entry for a saved report: enough to serve the download."""
    report_id: str
    patient_id: str
    filename: str
    file_path: str
    media_type: str


def build_compositor(config: Settings) -> ReportCompositor:
    """Compositor wired from settings: output format, report timezone, tagline."""
    # Raises ReportGenerationError for an unknown format
    create_canvas(config.report_format)
    tz = _report_timezone(config.report_timezone)
    return ReportCompositor(
        canvas_factory=partial(create_canvas, config.report_format),
        date_formatter=LocaleDateFormatter(tz=tz),
        tagline=config.report_tagline,
    )


class ReportService:
    """
    Generates and stores patient reports.

    Layout and file writing run in the thread pool so request handlers
    never block the event loop.
    """

    def __init__(
        self,
        compositor: Optional[ReportCompositor] = None,
        output_dir: Optional[str] = None,
        config: Optional[Settings] = None,
    ):
        config = config or default_settings
        self.compositor = compositor or build_compositor(config)
        self.output_dir = output_dir or config.reports_dir
        self._reports: Dict[str, StoredReport] = {}

    async def generate(self, report_input: Union[PatientReportInput, Mapping[str, Any]]) -> PatientReport:
        """
        Compose a report and save it under the output directory.

        Raises:
            ReportInputError: the record breaks the input contract
            OSError: the document could not be written
        """
        logger.info(f"Generating report into {self.output_dir}")
        report = await run_in_threadpool(self.compositor.compose, report_input)
        path = await run_in_threadpool(report.save, self.output_dir)
        # Registry entries hold file metadata only, never the document
        self._reports[report.report_id] = StoredReport(
            report_id=report.report_id,
            patient_id=report.patient_id,
            filename=report.filename,
            file_path=path,
            media_type=report.media_type,
        )
        logger.info(f"Saved to {path}", extra={"report_id": report.report_id})
        return report

    def get_report(self, report_id: str) -> Optional[StoredReport]:
        return self._reports.get(report_id)

    def get_report_path(self, report_id: str) -> Optional[str]:
        report = self._reports.get(report_id)
        return report.file_path if report else None
