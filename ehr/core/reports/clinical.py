"""
Clinical Metrics

Derived values printed on the patient report: BMI and its category, and
the blood pressure / blood sugar status flags shown per history record.
Cutoffs are fixed clinical thresholds.
"""
from typing import Iterable, List, Optional, Union

from ehr.core.reports.formatting import round_half_up

# BMI category cutoffs (kg/m²)
BMI_UNDERWEIGHT_BELOW = 18.5
BMI_OVERWEIGHT_ABOVE = 25.0

# Blood pressure cutoffs (mmHg): (systolic, diastolic)
BP_HIGH_ABOVE = (140.0, 90.0)
BP_ELEVATED_ABOVE = (120.0, 80.0)

# Blood sugar cutoffs (mg/dL)
SUGAR_HIGH_ABOVE = 200.0
SUGAR_ELEVATED_ABOVE = 140.0

STATUS_HIGH = "High"
STATUS_ELEVATED = "Elevated"
STATUS_NORMAL = "Normal"


def compute_bmi(weight_kg: float, height_cm: float) -> float:
    """Body-mass index rounded to one decimal, as displayed."""
    bmi = weight_kg / (height_cm / 100) ** 2
    return float(round_half_up(bmi))


def classify_bmi(bmi: float) -> str:
    if bmi > BMI_OVERWEIGHT_ABOVE:
        return "Overweight"
    if bmi < BMI_UNDERWEIGHT_BELOW:
        return "Underweight"
    return "Normal"


def classify_blood_pressure(systolic: float, diastolic: float) -> str:
    """Either reading over its cutoff is enough to raise the status."""
    if systolic > BP_HIGH_ABOVE[0] or diastolic > BP_HIGH_ABOVE[1]:
        return STATUS_HIGH
    if systolic > BP_ELEVATED_ABOVE[0] or diastolic > BP_ELEVATED_ABOVE[1]:
        return STATUS_ELEVATED
    return STATUS_NORMAL


def classify_blood_sugar(value: float) -> str:
    if value > SUGAR_HIGH_ABOVE:
        return STATUS_HIGH
    if value > SUGAR_ELEVATED_ABOVE:
        return STATUS_ELEVATED
    return STATUS_NORMAL


def bmi_summary(weight_kg: Optional[float], height_cm: Optional[float]) -> Optional[str]:
    """
    'BMI: 22.9 kg/m² (Normal)', or None unless both measurements are present.
    """
    if not weight_kg or not height_cm:
        return None
    bmi = compute_bmi(weight_kg, height_cm)
    return f"BMI: {bmi:.1f} kg/m² ({classify_bmi(bmi)})"


def normalize_recommendations(value: Union[str, Iterable[str], None]) -> List[str]:
    """A lone recommendation string is treated as a one-element list."""
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)
