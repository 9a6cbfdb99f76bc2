"""
Patient Report Models

Input record consumed by the report compositor, and the API response
models for report generation. Field aliases follow the camelCase JSON
sent by the hospital front end.
"""
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from typing import Any, Mapping, Optional, Tuple, Union

from ehr.utils import ReportInputError


class ReportModel(BaseModel):
    """Base for report input models: immutable, finite numbers only."""
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        allow_inf_nan=False,
        coerce_numbers_to_str=True,
    )


Recommendations = Union[str, Tuple[str, ...]]


class PatientInfo(ReportModel):
    """Identity and demographics."""
    id: str = Field(..., description="Patient identifier, used in the output filename")
    name: str = ""
    age: int = Field(default=0, ge=0)
    phone: str = ""
    weight: Optional[float] = Field(default=None, gt=0, description="kg")
    height: Optional[float] = Field(default=None, gt=0, description="cm")
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    @field_validator("id")
    @classmethod
    def id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("patient id must be a non-empty string")
        return value


class Vitals(ReportModel):
    """Current vital-sign snapshot."""
    blood_sugar: float = Field(..., alias="bloodSugar", description="mg/dL")
    systolic_bp: float = Field(..., alias="systolicBP", description="mmHg")
    diastolic_bp: float = Field(..., alias="diastolicBP", description="mmHg")


class HealthRecord(ReportModel):
    """One historical reading."""
    blood_pressure_systolic: float = Field(..., alias="bloodPressureSystolic")
    blood_pressure_diastolic: float = Field(..., alias="bloodPressureDiastolic")
    blood_sugar: float = Field(..., alias="bloodSugar")
    weight: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)
    notes: Optional[str] = None
    recorded_at: Optional[str] = Field(default=None, alias="recordedAt")
    recorded_by: Optional[Union[int, str]] = Field(default=None, alias="recordedBy")


class HealthPrediction(ReportModel):
    """Model-derived risk assessment. Risks are ratios in [0, 1]."""
    cardiovascular_risk: float = Field(..., alias="cardiovascularRisk")
    diabetes_risk: float = Field(..., alias="diabetesRisk")
    overall_health_score: float = Field(..., alias="overallHealthScore")
    recommendations: Recommendations = ()
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class MedicalImage(ReportModel):
    """Image-analysis result."""
    filename: str
    analysis_type: str = Field(..., alias="analysisType")
    findings: str = ""
    recommendations: Recommendations = ()
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class PatientReportInput(ReportModel):
    """Fully populated patient record handed to the compositor."""
    patient_info: PatientInfo = Field(..., alias="patientInfo")
    vitals: Vitals
    medical_history: str = Field(default="", alias="medicalHistory")
    health_history: Tuple[HealthRecord, ...] = Field(default=(), alias="healthHistory")
    health_predictions: Tuple[HealthPrediction, ...] = Field(default=(), alias="healthPredictions")
    medical_images: Tuple[MedicalImage, ...] = Field(default=(), alias="medicalImages")
    generated_by: str = Field(..., alias="generatedBy")
    generated_at: Optional[str] = Field(default=None, alias="generatedAt")

    @field_validator("generated_by")
    @classmethod
    def generated_by_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("generatedBy must be a non-empty string")
        return value


def load_report_input(data: Union[PatientReportInput, Mapping[str, Any]]) -> PatientReportInput:
    """
    Validate a raw record into a PatientReportInput.

    Raises:
        ReportInputError: with one entry per offending field
    """
    if isinstance(data, PatientReportInput):
        return data
    try:
        return PatientReportInput.model_validate(data)
    except ValidationError as e:
        errors = [
            {
                "loc": ".".join(str(part) for part in err["loc"]),
                "msg": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        fields = ", ".join(err["loc"] or "<root>" for err in errors)
        raise ReportInputError(f"Invalid patient report input: {fields}", errors=errors) from e


# ---- API response models ----

class ReportResponse(BaseModel):
    """Response with generated report info."""
    report_id: str
    patient_id: str
    filename: str
    file_path: str
    page_count: int
    format: str
    generated_at: str


class HealthResponse(BaseModel):
    """Health status response."""
    status: str
    version: str
    uptime_seconds: float
    timestamp: str
