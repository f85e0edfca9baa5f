# xray_insight/analysis.py

import os
import logging
from datetime import datetime, timezone
from typing import Optional

from .case_library import lookup_cases
from .config import AppSettings
from .errors import AnalysisError, VisionConfigurationError, VisionUnavailableError
from .imaging.fallback import SEED_HEX_CHARS, compute_digest, generate_fallback_description
from .imaging.vision import HuggingFaceVisionClient, build_vision_client
from .models import ImageAnalysisResult, PatientData, VisionResult, XrayAnalysis
from .parser import detect_pathology, determine_region, extract_findings
from .report import synthesize_report
from .uploads import is_allowed_extension


class XrayAnalyzer:
    """
    Runs one X-ray through the whole pipeline:
    digest -> vision (or hash fallback) -> findings -> region/pathology -> report -> similar cases.
    """

    def __init__(self, settings: AppSettings, vision_client: Optional[HuggingFaceVisionClient] = None):
        self.settings = settings
        self.vision_client = vision_client or build_vision_client(settings.vision)

    def validate_image(self, image_path: str) -> None:
        uploads = self.settings.uploads
        if not os.path.exists(image_path):
            raise AnalysisError("Image file not found")
        if not is_allowed_extension(image_path, uploads.allowed_extensions):
            raise AnalysisError("Unsupported file format")
        if os.path.getsize(image_path) > uploads.max_file_size_bytes:
            raise AnalysisError(f"File too large (max {uploads.max_file_size_mb:g}MB)")

    def describe(self, image_bytes: bytes, digest: str) -> VisionResult:
        try:
            return self.vision_client.analyze(image_bytes)
        except VisionConfigurationError:
            if self.settings.vision.on_missing_api_key == "fail":
                raise
            logging.warning("Vision credentials missing, using the hash-based description instead.")
        except VisionUnavailableError as e:
            logging.error(f"❌ Vision analysis failed: {e}. Using the hash-based description.")
        except Exception as e:
            logging.error(f"❌ Unexpected vision error: {e}. Using the hash-based description.", exc_info=True)
        return generate_fallback_description(digest)

    def analyze_image(self, image_bytes: bytes, filename: str) -> ImageAnalysisResult:
        digest = compute_digest(image_bytes)
        logging.info(f"📋 Image digest: {digest[:SEED_HEX_CHARS]}")

        vision = self.describe(image_bytes, digest)
        findings = extract_findings(vision.description, digest)
        result = ImageAnalysisResult(
            description=vision.description,
            confidence=vision.confidence,
            medical_findings=findings,
            anatomical_region=determine_region(vision.description, filename),
            pathology_detected=detect_pathology(vision.description, findings),
        )
        logging.info(f"📊 Region: {result.anatomical_region.value}, pathology: {result.pathology_detected}, "
                     f"findings: {findings}")
        return result

    def analyze(self, image_path: str, patient: PatientData, original_filename: Optional[str] = None) -> XrayAnalysis:
        """Analyzes the image at image_path. The original file name, when known, helps place the region."""
        logging.info(f"🔍 Starting analysis of {image_path}")
        self.validate_image(image_path)

        with open(image_path, 'rb') as image_file:
            image_bytes = image_file.read()

        filename = original_filename or os.path.basename(image_path)
        image_result = self.analyze_image(image_bytes, filename)
        report = synthesize_report(image_result, patient)

        return XrayAnalysis(
            diagnosis=report.diagnosis_items,
            recommendations=report.recommendations,
            similar_cases=lookup_cases(report.similar_case_category),
            confidence=image_result.confidence,
            analysis_date=datetime.now(timezone.utc),
        )
