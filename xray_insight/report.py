# xray_insight/report.py
"""
Rule-based report synthesis.

Turns an ImageAnalysisResult plus the patient's age into a primary diagnosis,
a list of diagnosis items, prioritized recommendations and the similar-case
category. One ordered table (PATHOLOGY_RULES) drives all three pathology
outputs, so the diagnosis sentence and the case category always agree.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .case_library import DEFAULT_CATEGORY
from .models import (
    AnatomicalRegion, DiagnosisItem, ImageAnalysisResult, PatientData,
    Priority, RecommendationItem, SynthesizedReport,
)

PEDIATRIC_MAX_AGE = 18  # exclusive
ELDERLY_MIN_AGE = 65  # exclusive

FINDING_CONFIDENCE_START = 0.8
FINDING_CONFIDENCE_STEP = 0.1
FINDING_CONFIDENCE_FLOOR = 0.5

REGION_NAMES = {
    AnatomicalRegion.CHEST: "the chest",
    AnatomicalRegion.SPINE: "the spine",
    AnatomicalRegion.LIMB: "the limbs",
    AnatomicalRegion.PELVIS: "the pelvis",
    AnatomicalRegion.SKULL: "the skull",
    AnatomicalRegion.GENERAL: "the examined area",
}

H, M, L = Priority.HIGH, Priority.MEDIUM, Priority.LOW


@dataclass(frozen=True)
class PathologyRule:
    name: str
    finding_keywords: Tuple[str, ...]
    primary_template: str
    secondary_text: str
    secondary_discount: float
    recommendations: Tuple[Tuple[str, Priority], ...]
    case_category: str

    def matches(self, findings: Sequence[str]) -> bool:
        return any(keyword in finding.lower() for finding in findings for keyword in self.finding_keywords)


PATHOLOGY_RULES = (
    PathologyRule(
        name="fracture",
        finding_keywords=("fracture", "перелом"),
        primary_template="Suspected fracture in the region of {region}",
        secondary_text="Additional examination required",
        secondary_discount=0.8,
        recommendations=(
            ("Urgent trauma surgeon consultation", H),
            ("Immobilization of the injured area", H),
            ("Follow-up X-ray in 2 weeks", M),
            ("Pain relief therapy as indicated", M),
        ),
        case_category="fracture",
    ),
    PathologyRule(
        name="joint",
        finding_keywords=("joint", "arthritis", "сустав", "артрит"),
        primary_template="Joint changes in the region of {region}",
        secondary_text="Degenerative-dystrophic changes",
        secondary_discount=0.7,
        recommendations=(
            ("Rheumatologist consultation", M),
            ("Anti-inflammatory therapy", M),
            ("Physiotherapy", L),
            ("Exercise therapy to maintain mobility", L),
        ),
        case_category="arthritis",
    ),
    PathologyRule(
        name="pulmonary",
        finding_keywords=("pulmonary", "lung", "pneumonia", "легочной", "пневмония"),
        primary_template="Pulmonary tissue changes",
        secondary_text="Pulmonologist consultation required",
        secondary_discount=0.8,
        recommendations=(
            ("Pulmonologist consultation", H),
            ("Laboratory tests", M),
            ("Follow-up X-ray in 7 days", M),
        ),
        case_category="pneumonia",
    ),
)

GENERIC_PATHOLOGY_DIAGNOSIS = "Pathological changes found"
GENERIC_PATHOLOGY_RECOMMENDATIONS = (
    ("Specialist consultation", M),
    ("Additional diagnostic methods", M),
)

NORMAL_DIAGNOSIS = {
    "pediatric": "Skeletal development is consistent with age",
    "elderly": "Age-related changes within normal limits",
    "adult": "No pathological changes detected",
}
NORMAL_RECOMMENDATIONS = {
    "pediatric": (
        ("Pediatrician follow-up", L),
        ("Preventive check-ups", L),
        ("Balanced diet rich in calcium", L),
    ),
    "elderly": (
        ("Osteoporosis prevention", M),
        ("Calcium and vitamin D supplements", M),
        ("Regular check-ups", L),
        ("Moderate physical activity", L),
    ),
    "adult": (
        ("Preventive check-ups", L),
        ("Healthy lifestyle", L),
        ("Regular physical activity", L),
    ),
}


def age_group(age: int) -> str:
    if age < PEDIATRIC_MAX_AGE:
        return "pediatric"
    if age > ELDERLY_MIN_AGE:
        return "elderly"
    return "adult"


def match_pathology_rule(result: ImageAnalysisResult) -> Optional[PathologyRule]:
    if not result.pathology_detected:
        return None
    for rule in PATHOLOGY_RULES:
        if rule.matches(result.medical_findings):
            return rule
    return None


def finding_confidence(base: float, index: int) -> float:
    return max(FINDING_CONFIDENCE_FLOOR, base * (FINDING_CONFIDENCE_START - index * FINDING_CONFIDENCE_STEP))


def _recommendations(pairs) -> List[RecommendationItem]:
    return [RecommendationItem(text=text, priority=priority) for text, priority in pairs]


def synthesize_report(result: ImageAnalysisResult, patient: PatientData) -> SynthesizedReport:
    base = result.confidence
    rule = match_pathology_rule(result)
    items: List[DiagnosisItem] = []

    if rule is not None:
        primary = rule.primary_template.format(region=REGION_NAMES[result.anatomical_region])
        items.append(DiagnosisItem(text=primary, confidence=base))
        items.append(DiagnosisItem(text=rule.secondary_text, confidence=base * rule.secondary_discount))
        recommendations = _recommendations(rule.recommendations)
        category = rule.case_category
    elif result.pathology_detected:
        primary = GENERIC_PATHOLOGY_DIAGNOSIS
        items.append(DiagnosisItem(text=primary, confidence=base))
        recommendations = _recommendations(GENERIC_PATHOLOGY_RECOMMENDATIONS)
        category = DEFAULT_CATEGORY
    else:
        group = age_group(patient.age)
        primary = NORMAL_DIAGNOSIS[group]
        items.append(DiagnosisItem(text=primary, confidence=base))
        recommendations = _recommendations(NORMAL_RECOMMENDATIONS[group])
        category = DEFAULT_CATEGORY

    for index, finding in enumerate(result.medical_findings):
        items.append(DiagnosisItem(text=finding, confidence=finding_confidence(base, index)))

    logging.info(f"📋 Report synthesized: '{primary}' ({len(items)} diagnosis items, category={category})")
    return SynthesizedReport(
        primary_diagnosis=primary,
        diagnosis_items=items,
        recommendations=recommendations,
        similar_case_category=category,
    )
