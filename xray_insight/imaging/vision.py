# xray_insight/imaging/vision.py

import os
import math
import time
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import requests
from dotenv import load_dotenv

from ..config import ModelSpec, VisionSettings
from ..errors import VisionConfigurationError, VisionUnavailableError
from ..models import VisionResult

API_KEY_ENV = "HF_API_KEY"
MIN_CONFIDENCE = 0.5
MAX_CONFIDENCE = 1.0


class AttemptStatus(str, Enum):
    SUCCESS = "success"
    RETRY_LOADING = "retry_loading"
    RETRY_ERROR = "retry_error"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of a single request to one model."""
    status: AttemptStatus
    result: Optional[VisionResult] = None
    error: str = ""


def normalize_confidence(score: Any, default: float) -> float:
    if isinstance(score, bool) or not isinstance(score, (int, float)) or math.isnan(score):
        return default
    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, float(score)))


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("error") or "")
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        return str(payload[0].get("error") or "")
    return ""


def classify_response(status_code: int, payload: Any, model: ModelSpec) -> AttemptOutcome:
    """
    Turns an inference API response into a tagged outcome.

    The service reports a cold model with an error message containing "loading"
    (usually with HTTP 503); that case gets its own status so the caller can wait
    longer than for an ordinary error.
    """
    error = _error_message(payload)
    if error and "loading" in error.lower():
        return AttemptOutcome(AttemptStatus.RETRY_LOADING, error=error)
    if status_code >= 400 or error:
        return AttemptOutcome(AttemptStatus.RETRY_ERROR, error=error or f"HTTP {status_code}")

    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        text = payload[0].get("generated_text")
        if isinstance(text, str) and text.strip():
            confidence = normalize_confidence(payload[0].get("score"), model.default_confidence)
            return AttemptOutcome(
                AttemptStatus.SUCCESS,
                result=VisionResult(description=text.strip(), confidence=confidence, model=model.name),
            )
    return AttemptOutcome(AttemptStatus.RETRY_ERROR, error="Empty or malformed response from vision API")


class HuggingFaceVisionClient:
    """
    Image captioning through the Hugging Face Inference API.

    Models are tried in the configured order. Each model gets up to
    `max_attempts` requests; a "loading" answer waits `loading_wait_seconds`,
    any other failure waits `error_backoff_seconds`. When a model is exhausted the
    next one is tried, and when none are left VisionUnavailableError is raised.
    """

    def __init__(self, api_key: Optional[str], settings: VisionSettings,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.api_key = api_key
        self.settings = settings
        self.session = session or requests.Session()
        self._sleep = sleep

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def analyze(self, image_bytes: bytes) -> VisionResult:
        if not self.api_key:
            logging.error(f"❌ {API_KEY_ENV} is not set, the vision service cannot be called.")
            raise VisionConfigurationError(f"{API_KEY_ENV} is not configured")

        last_error = ""
        for model in self.settings.models:
            try:
                result = self._run_model(model, image_bytes)
                logging.info(f"✅ Description from {model.name}: '{result.description}' "
                             f"(confidence {result.confidence:.2f})")
                return result
            except VisionUnavailableError as e:
                last_error = e.last_error
                logging.warning(f"{e}. Moving on to the next model.")

        raise VisionUnavailableError("No vision model produced a description", last_error)

    def _run_model(self, model: ModelSpec, image_bytes: bytes) -> VisionResult:
        max_attempts = self.settings.max_attempts
        last_error = ""
        for attempt in range(1, max_attempts + 1):
            logging.info(f"🔄 Attempt {attempt}/{max_attempts} for model: {model.name}")
            outcome = self.attempt(model, image_bytes)
            if outcome.status is AttemptStatus.SUCCESS:
                return outcome.result

            last_error = outcome.error
            if attempt == max_attempts:
                break
            if outcome.status is AttemptStatus.RETRY_LOADING:
                wait = self.settings.loading_wait_seconds
                logging.info(f"⏳ {model.name} is loading, waiting {wait}s...")
            else:
                wait = self.settings.error_backoff_seconds
                logging.warning(f"Attempt {attempt} for {model.name} failed: {outcome.error}. Retrying in {wait}s.")
            self._sleep(wait)

        raise VisionUnavailableError(f"All {max_attempts} attempts for {model.name} exhausted", last_error)

    def attempt(self, model: ModelSpec, image_bytes: bytes) -> AttemptOutcome:
        url = self.settings.api_url.format(model=model.name)
        try:
            response = self.session.post(
                url,
                data=image_bytes,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/octet-stream",
                },
                timeout=self.settings.timeout_seconds,
            )
        except requests.RequestException as e:
            return AttemptOutcome(AttemptStatus.RETRY_ERROR, error=str(e))

        try:
            payload = response.json()
        except ValueError:
            payload = None
        return classify_response(response.status_code, payload, model)


def build_vision_client(settings: VisionSettings) -> HuggingFaceVisionClient:
    load_dotenv()
    client = HuggingFaceVisionClient(os.getenv(API_KEY_ENV), settings)
    if client.enabled:
        logging.info(f"Vision client ready with models: {[m.name for m in settings.models]}")
    else:
        logging.warning(f"{API_KEY_ENV} not set, vision requests will not be made.")
    return client
