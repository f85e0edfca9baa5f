import logging
from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

from .imaging.fallback import digest_seed
from .models import AnatomicalRegion

# Ordered rule tables: (keywords, result). Evaluation order is significant.
FINDING_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("fracture", "break", "crack"), "suspected fracture"),
    (("joint", "arthritis", "cartilage"), "joint changes"),
    (("lung", "chest", "pneumonia"), "pulmonary tissue changes"),
    (("spine", "vertebra", "disc"), "spinal changes"),
    (("normal", "healthy", "clear"), "normal structure"),
    (("irregular", "abnormal", "lesion"), "pathological changes"),
)

FALLBACK_FINDINGS = (
    "bone structures are visualized",
    "soft tissues unremarkable",
    "articular surfaces are congruent",
    "no suspicious opacities identified",
    "age-related changes",
)
FALLBACK_COUNT_MODULUS = 3
FALLBACK_INDEX_STRIDE = 7

REGION_RULES: Tuple[Tuple[Tuple[str, ...], AnatomicalRegion], ...] = (
    (("chest", "lung", "heart", "грудь", "легк"), AnatomicalRegion.CHEST),
    (("spine", "vertebra", "back", "позвоночник", "спин"), AnatomicalRegion.SPINE),
    (("arm", "leg", "hand", "foot", "рука", "нога"), AnatomicalRegion.LIMB),
    (("pelvis", "hip", "таз"), AnatomicalRegion.PELVIS),
    (("skull", "head", "череп"), AnatomicalRegion.SKULL),
)

PATHOLOGY_KEYWORDS = (
    "fracture", "break", "crack", "irregular", "abnormal", "lesion",
    "pneumonia", "infection", "arthritis", "degeneration",
    "перелом", "патологические", "изменения", "подозрение",
)
# Matched against finding labels only, never against the vision description.
FINDING_PATHOLOGY_KEYWORDS = ("suspected", "pathological", "changes")
NORMAL_KEYWORDS = (
    "normal", "healthy", "clear", "regular", "typical",
    "нормальная", "здоровые", "норма",
)


def contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


# A common shape for every finding parser
class BaseFindingParser(ABC):
    @abstractmethod
    def parse(self, description: str) -> List[str]:
        pass


class KeywordFindingParser(BaseFindingParser):
    def __init__(self, rules=FINDING_RULES):
        self.rules = rules

    def parse(self, description: str) -> List[str]:
        text = description.lower()
        findings = []
        for keywords, finding in self.rules:
            if contains_any(text, keywords) and finding not in findings:
                findings.append(finding)
        return findings


class DigestFindingParser(BaseFindingParser):
    """Picks 1 to 3 generic findings from the image digest. Ignores the description."""

    def __init__(self, digest: str, fallback_findings=FALLBACK_FINDINGS):
        self.seed = digest_seed(digest)
        self.fallback_findings = fallback_findings

    def parse(self, description: str) -> List[str]:
        count = (self.seed % FALLBACK_COUNT_MODULUS) + 1
        findings = []
        for i in range(count):
            finding = self.fallback_findings[(self.seed + i * FALLBACK_INDEX_STRIDE) % len(self.fallback_findings)]
            if finding not in findings:
                findings.append(finding)
        return findings


def extract_findings(description: str, digest: str) -> List[str]:
    """Keyword rules first; the digest decides when nothing matched."""
    findings = KeywordFindingParser().parse(description)
    if findings:
        logging.info(f"KeywordFindingParser found {len(findings)} findings.")
        return findings

    logging.warning("No keyword findings in description. Falling back to digest-seeded findings.")
    return DigestFindingParser(digest).parse(description)


def determine_region(description: str, filename: str) -> AnatomicalRegion:
    combined = f"{description} {filename}".lower()
    for keywords, region in REGION_RULES:
        if contains_any(combined, keywords):
            return region
    return AnatomicalRegion.GENERAL


def detect_pathology(description: str, findings: Sequence[str]) -> bool:
    """
    True only when pathology keywords appear and normal keywords do not.

    Both present or neither present is treated as no pathology.
    """
    findings_text = " ".join(findings).lower()
    texts = (description.lower(), findings_text)
    has_pathology = (any(contains_any(text, PATHOLOGY_KEYWORDS) for text in texts)
                     or contains_any(findings_text, FINDING_PATHOLOGY_KEYWORDS))
    has_normal = any(contains_any(text, NORMAL_KEYWORDS) for text in texts)
    return has_pathology and not has_normal
