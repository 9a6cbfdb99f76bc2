"""
Pytest Configuration and Fixtures

Shared fixtures for patient report tests.
"""
import pytest
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Dict
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ehr.core.reports import LocaleDateFormatter, ReportCompositor, TextCanvas  # noqa: E402

FIXED_NOW = datetime(2026, 10, 18, 15, 4, 5)


def _history_record(**overrides) -> Dict[str, Any]:
    """A minimal history record: BP, sugar, timestamp."""
    record = {
        "bloodPressureSystolic": 118,
        "bloodPressureDiastolic": 76,
        "bloodSugar": 95,
        "recordedAt": "2024-03-01T09:15:00.000Z",
        "recordedBy": 7,
    }
    record.update(overrides)
    return record


@pytest.fixture
def history_record():
    """Factory for minimal history records; keyword overrides replace fields."""
    return _history_record


@pytest.fixture
def utc_formatter() -> LocaleDateFormatter:
    """Date formatter pinned to UTC."""
    return LocaleDateFormatter(tz=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def text_compositor(utc_formatter, fixed_clock) -> ReportCompositor:
    """Compositor on the plain-text canvas with pinned clock and timezone."""
    return ReportCompositor(
        canvas_factory=partial(TextCanvas, line_height=5.0),
        date_formatter=utc_formatter,
        clock=fixed_clock,
    )


@pytest.fixture
def minimal_input() -> Dict[str, Any]:
    """Record with every optional sequence empty."""
    return {
        "patientInfo": {
            "id": "P-1001",
            "name": "Jane Doe",
            "age": 42,
            "phone": "555-0100",
            "createdAt": "2024-01-15T10:30:00.000Z",
        },
        "vitals": {"bloodSugar": 98, "systolicBP": 120, "diastolicBP": 80},
        "medicalHistory": "No known allergies.",
        "healthHistory": [],
        "healthPredictions": [],
        "medicalImages": [],
        "generatedBy": "Dr. Smith",
        "generatedAt": "2026-10-18T14:00:00Z",
    }


@pytest.fixture
def full_input(minimal_input) -> Dict[str, Any]:
    """Record with every section populated."""
    data = dict(minimal_input)
    data["patientInfo"] = {**minimal_input["patientInfo"], "weight": 70, "height": 175}
    data["healthHistory"] = [
        _history_record(),
        _history_record(
            bloodPressureSystolic=150,
            bloodPressureDiastolic=95,
            bloodSugar=210,
            weight=90,
            height=160,
            notes="Missed morning medication.",
        ),
    ]
    data["healthPredictions"] = [
        {
            "cardiovascularRisk": 0.153,
            "diabetesRisk": 0.42,
            "overallHealthScore": 0.8,
            "recommendations": ["Reduce salt intake", "Walk 30 minutes daily"],
            "createdAt": "2024-05-02T08:00:00Z",
        }
    ]
    data["medicalImages"] = [
        {
            "filename": "chest_xray.png",
            "analysisType": "x-ray",
            "findings": "No acute cardiopulmonary findings.",
            "recommendations": "Routine follow-up in 12 months",
            "createdAt": "2024-06-10T11:45:00Z",
        }
    ]
    return data
