# xray_insight/imaging/fallback.py
"""
Deterministic, non-AI description of an image.

When the vision service is unavailable we still want the same image to produce
the same report every time, so everything here is a pure function of the
SHA-256 digest of the image bytes. The constants below are part of the
contract: changing any of them changes the output for every stored image.
"""

import hashlib
import logging

from ..models import VisionResult

FALLBACK_MODEL = "hash-fallback"

SEED_HEX_CHARS = 8

BASE_DESCRIPTORS = (
    "medical x-ray image showing bone structures",
    "radiographic image of anatomical structures",
    "x-ray scan displaying skeletal anatomy",
    "medical radiograph with visible bone tissue",
    "diagnostic x-ray image of body structures",
)

# (modulus, threshold, qualifier): the qualifier is added when seed % modulus < threshold
QUALIFIER_RULES = (
    (7, 3, "clear bone definition"),
    (11, 4, "normal joint spacing"),
    (13, 2, "possible irregularities"),
    (17, 3, "soft tissue visible"),
)

CONFIDENCE_BASE = 0.5
CONFIDENCE_MODULUS = 40
CONFIDENCE_STEP = 0.01
CONFIDENCE_MIN = 0.5
CONFIDENCE_MAX = 0.9


def compute_digest(image_bytes: bytes) -> str:
    """Hex SHA-256 of the image. Used as a seed, not as an integrity check."""
    return hashlib.sha256(image_bytes).hexdigest()


def digest_seed(digest: str) -> int:
    """The first 32 bits of the digest as an unsigned integer."""
    return int(digest[:SEED_HEX_CHARS], 16)


def describe_seed(seed: int) -> VisionResult:
    base = BASE_DESCRIPTORS[seed % len(BASE_DESCRIPTORS)]
    qualifiers = [text for modulus, threshold, text in QUALIFIER_RULES if seed % modulus < threshold]
    description = f"{base} with {', '.join(qualifiers)}" if qualifiers else base

    confidence = CONFIDENCE_BASE + (seed % CONFIDENCE_MODULUS) * CONFIDENCE_STEP
    confidence = min(CONFIDENCE_MAX, max(CONFIDENCE_MIN, confidence))
    return VisionResult(description=description, confidence=confidence, model=FALLBACK_MODEL)


def generate_fallback_description(digest: str) -> VisionResult:
    result = describe_seed(digest_seed(digest))
    logging.info(f"🔧 Hash-based description for {digest[:SEED_HEX_CHARS]}: '{result.description}' "
                 f"(confidence {result.confidence:.2f})")
    return result
