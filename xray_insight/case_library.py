"""
Static reference cases shown next to a report for comparison.

The table is read-only: it is built once at import time and exposed through a
MappingProxyType of tuples, so nothing at runtime can add or edit a case.
"""

from types import MappingProxyType
from typing import List

from .models import SimilarCase

DEFAULT_CATEGORY = "normal"

SIMILAR_CASES = MappingProxyType({
    "fracture": (
        SimilarCase(
            id=1,
            image_url="https://www.ckbran.ru/upload/medialibrary/10b/r1kwcbrmtwpm04pi5zccep60ecjtuk83.jpg",
            diagnosis="Distal radius fracture",
            match=94,
            description="Typical Colles fracture with dorsal displacement",
        ),
        SimilarCase(
            id=2,
            image_url="https://meduniver.com/Medical/traumatologia/Img/perelom_luchevoi_kosti.jpg",
            diagnosis="Comminuted radius fracture",
            match=87,
            description="Multiple bone fragments, surgical treatment required",
        ),
    ),
    "arthritis": (
        SimilarCase(
            id=1,
            image_url="https://www.dikul.net/files/images/wiki/osteoartroz4.jpg",
            diagnosis="Grade 3 knee osteoarthritis",
            match=91,
            description="Marked joint space narrowing, multiple osteophytes",
        ),
    ),
    "normal": (
        SimilarCase(
            id=1,
            image_url="https://www.radiologyinfo.org/en/photocat/gallery_3/xray-chest-normal.jpg",
            diagnosis="Normal radiograph",
            match=95,
            description="Bone structures without pathological changes",
        ),
    ),
    "pneumonia": (
        SimilarCase(
            id=1,
            image_url="https://radiopaedia.org/images/pneumonia-chest-xray.jpg",
            diagnosis="Right lower lobe pneumonia",
            match=89,
            description="Homogeneous opacity in the lower lobe of the right lung",
        ),
    ),
})

# Free-text category detection, first match wins.
TEXT_CATEGORY_RULES = (
    (("fracture", "перелом"), "fracture"),
    (("arthritis", "артрит"), "arthritis"),
    (("pneumonia", "пневмония"), "pneumonia"),
)


def lookup_cases(category: str) -> List[SimilarCase]:
    return list(SIMILAR_CASES.get(category, SIMILAR_CASES[DEFAULT_CATEGORY]))


def find_cases_for_text(text: str) -> List[SimilarCase]:
    lowered = text.lower()
    for keywords, category in TEXT_CATEGORY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return lookup_cases(category)
    return lookup_cases(DEFAULT_CATEGORY)
