"""
Patient Report Compositor

Flattens a patient's medical record into a paginated document:
- Patient information and current vital signs (with BMI)
- Medical history narrative
- Health history timeline with BP / sugar status per record
- AI health analysis and medical image findings
- Attribution footer

Layout is a single pass with a vertical cursor. Page breaks are only
considered between blocks (one history record, one prediction, one image,
the footer), so a block that starts above its threshold is written whole
even if it runs past the bottom of the page.
"""
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import os
import re

from ehr.core.reports.canvas import PageCanvas, ReportLabCanvas, TextBlock
from ehr.core.reports.clinical import (
    bmi_summary,
    classify_blood_pressure,
    classify_blood_sugar,
    normalize_recommendations,
)
from ehr.core.reports.formatting import (
    DateFormatter,
    LocaleDateFormatter,
    field_text,
    format_number,
    format_percentage,
    render_date,
    render_datetime,
    render_raw_timestamp,
)
from ehr.models.patient_report import (
    HealthPrediction,
    HealthRecord,
    MedicalImage,
    PatientReportInput,
    load_report_input,
)
from ehr.utils import get_logger

logger = get_logger(__name__)

DEFAULT_TAGLINE = "EHR - Hospital Management System"
REPORT_TITLE = "PATIENT MEDICAL REPORT"
BULLET = "•"


@dataclass(frozen=True)
class LayoutSettings:
    """Page geometry in millimetres (A4) and font sizes in points."""
    page_width: float = 210.0
    page_height: float = 297.0
    top_margin: float = 20.0
    left_x: float = 20.0
    indent_x: float = 25.0
    max_width: float = 180.0
    # One line advances the cursor by this much regardless of font size
    line_height: float = 5.0

    # Page-break thresholds: a new page starts when the cursor is past these
    history_threshold: float = 250.0
    prediction_threshold: float = 250.0
    image_section_threshold: float = 200.0
    image_threshold: float = 230.0
    footer_threshold: float = 250.0

    title_size: float = 20.0
    heading_size: float = 16.0
    body_size: float = 12.0
    footer_size: float = 10.0


DEFAULT_LAYOUT = LayoutSettings()


@dataclass
class PatientReport:
    """A finished report document."""
    report_id: str
    patient_id: str
    filename: str
    generated_by: str
    generated_at: datetime
    page_count: int
    format: str
    blocks: Tuple[TextBlock, ...] = ()
    file_path: Optional[str] = None
    canvas: Optional[PageCanvas] = field(default=None, repr=False, compare=False)

    @property
    def content(self) -> bytes:
        """Encoded document bytes."""
        return self.canvas.getvalue()

    @property
    def media_type(self) -> str:
        return self.canvas.media_type

    def lines(self) -> List[str]:
        """Every drawn line, in drawing order."""
        return [line for block in self.blocks for line in block.lines]

    def save(self, output_dir: str) -> str:
        """
        Persist the document under output_dir.

        Filesystem errors are not caught here.
        """
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, self.filename)
        self.canvas.save(path)
        self.file_path = path
        return path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "patient_id": self.patient_id,
            "filename": self.filename,
            "generated_by": self.generated_by,
            "generated_at": self.generated_at.isoformat(),
            "page_count": self.page_count,
            "format": self.format,
            "file_path": self.file_path,
        }


def report_filename(patient_id: str, extension: str) -> str:
    """patient_<id>_report.<ext>, with path-unsafe characters replaced."""
    safe_id = re.sub(r"[^A-Za-z0-9._-]", "_", patient_id)
    return f"patient_{safe_id}_report.{extension}"


class _LayoutPass:
    """Cursor and canvas for one compose() call."""

    def __init__(self, canvas: PageCanvas, layout: LayoutSettings):
        self.canvas = canvas
        self.layout = layout
        self.cursor_y = layout.top_margin

    def style(self, weight: str, size: Optional[float] = None) -> None:
        if size is not None:
            self.canvas.set_font_size(size)
        self.canvas.set_font(weight, "helvetica")

    def write(self, text: str, x: Optional[float] = None) -> None:
        x = self.layout.left_x if x is None else x
        lines = self.canvas.wrap_text(text, self.layout.max_width)
        self.canvas.draw_text(lines, x, self.cursor_y)
        self.cursor_y += len(lines) * self.layout.line_height

    def skip(self, distance: float) -> None:
        self.cursor_y += distance

    def heading(self, text: str) -> None:
        self.style("bold", self.layout.heading_size)
        self.write(text)
        self.skip(5)

    def break_if_past(self, threshold: float, unit: str) -> None:
        if self.cursor_y > threshold:
            logger.debug(
                f"Page break before {unit}: cursor {self.cursor_y:.1f} > {threshold:.1f}"
            )
            self.canvas.new_page()
            self.cursor_y = self.layout.top_margin


class ReportCompositor:
    """
    Lays out a PatientReportInput onto a page canvas.

    The canvas backend, date formatter and clock are injected; with the
    same three, the same input always produces the same bytes.
    """

    def __init__(
        self,
        canvas_factory: Optional[Callable[[], PageCanvas]] = None,
        date_formatter: Optional[DateFormatter] = None,
        clock: Optional[Callable[[], datetime]] = None,
        layout: LayoutSettings = DEFAULT_LAYOUT,
        tagline: str = DEFAULT_TAGLINE,
    ):
        self.layout = layout
        self.canvas_factory = canvas_factory or partial(
            ReportLabCanvas,
            line_height=layout.line_height,
            page_size=(layout.page_width, layout.page_height),
        )
        self.date_formatter = date_formatter or LocaleDateFormatter()
        self.clock = clock or datetime.now
        self.tagline = tagline

    def compose(self, report_input: Union[PatientReportInput, Mapping[str, Any]]) -> PatientReport:
        """
        Build the report document.

        Args:
            report_input: validated model or raw camelCase mapping

        Returns:
            PatientReport holding the finished document (not yet saved)

        Raises:
            ReportInputError: missing ids, non-finite numbers, bad shapes
        """
        data = load_report_input(report_input)
        now = self.clock()
        canvas = self.canvas_factory()
        page = _LayoutPass(canvas, self.layout)

        self._write_title(page)
        self._write_patient_information(page, data)
        self._write_vital_signs(page, data)
        self._write_medical_history(page, data)
        self._write_health_history(page, data.health_history)
        self._write_predictions(page, data.health_predictions)
        self._write_images(page, data.medical_images)
        self._write_footer(page, data, now)

        patient_id = data.patient_info.id
        report = PatientReport(
            report_id=f"PR-{now.strftime('%Y%m%d-%H%M%S')}-{patient_id}",
            patient_id=patient_id,
            filename=report_filename(patient_id, canvas.extension),
            generated_by=data.generated_by,
            generated_at=now,
            page_count=canvas.page_count,
            format=canvas.extension,
            blocks=canvas.blocks,
            canvas=canvas,
        )
        logger.info(
            f"Patient report composed for {patient_id}: "
            f"{report.page_count} page(s), {len(report.blocks)} blocks",
            extra={"report_id": report.report_id},
        )
        return report

    def _date(self, value: Optional[str]) -> str:
        return field_text(render_date(value, self.date_formatter))

    # ---- Sections ----

    def _write_title(self, page: _LayoutPass) -> None:
        page.style("bold", self.layout.title_size)
        page.write(REPORT_TITLE)
        page.skip(10)

    def _write_patient_information(self, page: _LayoutPass, data: PatientReportInput) -> None:
        info = data.patient_info
        page.heading("Patient Information")
        page.style("normal", self.layout.body_size)
        page.write(f"Patient ID: {info.id}")
        page.write(f"Name: {info.name}")
        page.write(f"Age: {info.age} years")
        page.write(f"Phone: {info.phone}")
        page.write(f"Patient Since: {self._date(info.created_at)}")
        page.skip(10)

    def _write_vital_signs(self, page: _LayoutPass, data: PatientReportInput) -> None:
        vitals = data.vitals
        info = data.patient_info
        page.heading("Current Vital Signs")
        page.style("normal", self.layout.body_size)
        page.write(f"Blood Sugar: {format_number(vitals.blood_sugar)} mg/dL")
        page.write(
            f"Blood Pressure: {format_number(vitals.systolic_bp)}/"
            f"{format_number(vitals.diastolic_bp)} mmHg"
        )

        bmi = bmi_summary(info.weight, info.height)
        if bmi:
            page.write(bmi)

        stats = []
        if info.weight:
            stats.append(f"Weight: {format_number(info.weight)} kg")
        if info.height:
            stats.append(f"Height: {format_number(info.height)} cm")
        if stats:
            page.write(f"Physical Stats: {', '.join(stats)}")
        page.skip(10)

    def _write_medical_history(self, page: _LayoutPass, data: PatientReportInput) -> None:
        page.heading("Medical History")
        page.style("normal", self.layout.body_size)
        page.write(data.medical_history)
        page.skip(10)

    def _write_health_history(self, page: _LayoutPass, records: Sequence[HealthRecord]) -> None:
        if not records:
            return
        indent = self.layout.indent_x

        page.heading("Health History & Vital Signs Timeline")
        page.style("normal", self.layout.body_size)
        page.write(f"Total Records: {len(records)}")
        page.skip(5)

        for index, record in enumerate(records, 1):
            page.break_if_past(self.layout.history_threshold, f"history record {index}")

            page.style("bold")
            recorded = field_text(render_raw_timestamp(record.recorded_at))
            page.write(f"Record {index} - {recorded}")
            page.skip(3)

            page.style("normal")
            page.write(
                f"Blood Pressure: {format_number(record.blood_pressure_systolic)}/"
                f"{format_number(record.blood_pressure_diastolic)} mmHg",
                indent,
            )
            page.write(f"Blood Sugar: {format_number(record.blood_sugar)} mg/dL", indent)
            if record.weight:
                page.write(f"Weight: {format_number(record.weight)} kg", indent)
            if record.height:
                page.write(f"Height: {format_number(record.height)} cm", indent)
            bmi = bmi_summary(record.weight, record.height)
            if bmi:
                page.write(bmi, indent)
            if record.notes:
                page.write(f"Notes: {record.notes}", indent)

            bp_status = classify_blood_pressure(
                record.blood_pressure_systolic, record.blood_pressure_diastolic
            )
            sugar_status = classify_blood_sugar(record.blood_sugar)
            page.write(f"BP Status: {bp_status} | Sugar Status: {sugar_status}", indent)
            page.skip(8)
        page.skip(10)

    def _write_recommendations(self, page: _LayoutPass, value: Any) -> None:
        recommendations = normalize_recommendations(value)
        if not recommendations:
            return
        page.write("Recommendations:")
        for rec in recommendations:
            page.write(f"{BULLET} {rec}", self.layout.indent_x)

    def _write_predictions(self, page: _LayoutPass, predictions: Sequence[HealthPrediction]) -> None:
        if not predictions:
            return
        page.heading("AI Health Analysis")

        for index, prediction in enumerate(predictions, 1):
            page.break_if_past(self.layout.prediction_threshold, f"prediction {index}")

            page.style("bold", self.layout.body_size)
            page.write(f"Analysis {index} - {self._date(prediction.created_at)}")
            page.skip(3)

            page.style("normal")
            page.write(f"Cardiovascular Risk: {format_percentage(prediction.cardiovascular_risk)}")
            page.write(f"Diabetes Risk: {format_percentage(prediction.diabetes_risk)}")
            page.write(f"Overall Health Score: {format_percentage(prediction.overall_health_score)}")
            self._write_recommendations(page, prediction.recommendations)
            page.skip(8)

    def _write_images(self, page: _LayoutPass, images: Sequence[MedicalImage]) -> None:
        if not images:
            return
        page.break_if_past(self.layout.image_section_threshold, "image section")
        page.heading("Medical Image Analysis")

        for index, image in enumerate(images, 1):
            page.break_if_past(self.layout.image_threshold, f"image {index}")

            page.style("bold", self.layout.body_size)
            page.write(f"Image {index} - {image.analysis_type.upper()}")
            page.skip(3)

            page.style("normal")
            page.write(f"Filename: {image.filename}")
            page.write(f"Analysis Date: {self._date(image.created_at)}")
            page.write(f"Findings: {image.findings}")
            self._write_recommendations(page, image.recommendations)
            page.skip(8)

    def _write_footer(self, page: _LayoutPass, data: PatientReportInput, now: datetime) -> None:
        page.break_if_past(self.layout.footer_threshold, "footer")
        page.skip(20)

        generated_at = data.generated_at or now.isoformat()
        generated_text = field_text(render_datetime(generated_at, self.date_formatter))

        page.style("italic", self.layout.footer_size)
        page.write(f"Report generated on: {generated_text}")
        page.write(f"Generated by: {data.generated_by}")
        page.write(self.tagline)
