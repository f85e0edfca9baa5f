"""
Core data models for the X-ray analysis pipeline.

Every model is frozen: a result is produced once per request and is never
mutated afterwards. Field names are snake_case in Python and camelCase on the
wire, so the same objects can be returned straight from the API.
"""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class AnatomicalRegion(str, Enum):
    CHEST = "chest"
    SPINE = "spine"
    LIMB = "limb"
    PELVIS = "pelvis"
    SKULL = "skull"
    GENERAL = "general"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PatientData(FrozenModel):
    """Patient metadata supplied with the upload."""
    first_name: str = Field(..., min_length=1, description="Patient's first name.", examples=["Ivan"])
    last_name: str = Field(..., min_length=1, description="Patient's last name.", examples=["Petrov"])
    age: int = Field(..., ge=0, le=150, description="Patient's age in years.", examples=[42])
    doctor_name: str = Field(..., min_length=1, description="Referring doctor.", examples=["Dr. Smirnova"])


class VisionResult(FrozenModel):
    """A natural-language description of the image and how much we trust it."""
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    model: str = Field("", description="Model identifier, or 'hash-fallback'.")


class ImageAnalysisResult(FrozenModel):
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    medical_findings: List[str] = Field(..., min_length=1)
    anatomical_region: AnatomicalRegion
    pathology_detected: bool


class DiagnosisItem(FrozenModel):
    text: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class RecommendationItem(FrozenModel):
    text: str
    priority: Priority


class SimilarCase(FrozenModel):
    """A static reference case shown for comparison."""
    id: int
    image_url: str
    diagnosis: str
    match: int = Field(..., ge=0, le=100)
    description: str


class SynthesizedReport(FrozenModel):
    primary_diagnosis: str
    diagnosis_items: List[DiagnosisItem]
    recommendations: List[RecommendationItem]
    similar_case_category: str


class XrayAnalysis(FrozenModel):
    """The final report returned to the caller."""
    diagnosis: List[DiagnosisItem]
    recommendations: List[RecommendationItem]
    similar_cases: List[SimilarCase]
    confidence: float = Field(..., ge=0.0, le=1.0)
    analysis_date: datetime
