# xray_insight/api/forms.py

from typing import Optional

from ..models import PatientData

MIN_AGE = 0
MAX_AGE = 150


class PatientValidationError(ValueError):
    pass


def parse_patient(first_name: Optional[str], last_name: Optional[str],
                  age: Optional[str], doctor_name: Optional[str]) -> PatientData:
    """Builds PatientData from the raw multipart form fields."""
    fields = [(value or "").strip() for value in (first_name, last_name, age, doctor_name)]
    if not all(fields):
        raise PatientValidationError("All patient fields are required")
    first, last, raw_age, doctor = fields
    try:
        patient_age = int(raw_age)
    except ValueError:
        raise PatientValidationError("Invalid patient age")
    if not MIN_AGE <= patient_age <= MAX_AGE:
        raise PatientValidationError("Invalid patient age")
    return PatientData(first_name=first, last_name=last, age=patient_age, doctor_name=doctor)
