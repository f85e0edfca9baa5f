# --- [1] Standard Library Imports ---
import os
import logging
from typing import Any, Dict, Literal, Optional, Tuple

# --- [2] Third-Party Imports ---
import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PARAMS_PATH = os.path.join(os.path.dirname(__file__), '..', 'params.yaml')


class ModelSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    default_confidence: float = Field(..., ge=0.0, le=1.0)


class VisionSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_url: str = "https://api-inference.huggingface.co/models/{model}"
    models: Tuple[ModelSpec, ...] = (
        ModelSpec(name="Salesforce/blip-image-captioning-large", default_confidence=0.85),
        ModelSpec(name="nlpconnect/vit-gpt2-image-captioning", default_confidence=0.75),
    )
    max_attempts: int = Field(3, ge=1)
    timeout_seconds: float = 60
    loading_wait_seconds: float = 10
    error_backoff_seconds: float = 3
    on_missing_api_key: Literal["fallback", "fail"] = "fallback"


class UploadSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    directory: str = "uploads"
    max_file_size_mb: float = 10
    allowed_extensions: Tuple[str, ...] = (".jpg", ".jpeg", ".png", ".dcm", ".dicom")
    retention_hours: float = 24

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


class BatchSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_dir: str = "data/raw_xrays"
    output_csv: str = "data/processed/xray_reports.csv"
    default_age: int = Field(40, ge=0, le=150)


class AppSettings(BaseModel):
    """Immutable application settings, built once from params.yaml."""
    model_config = ConfigDict(frozen=True)

    vision: VisionSettings = VisionSettings()
    uploads: UploadSettings = UploadSettings()
    batch: BatchSettings = BatchSettings()


def load_params(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Reads the raw params.yaml. A missing file is logged and yields an empty dict."""
    config_path = config_path or os.getenv('PARAMS_PATH') or DEFAULT_PARAMS_PATH
    try:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logging.error(f"❌ params.yaml not found at {config_path}, using built-in defaults.")
        return {}


def load_settings(config_path: Optional[str] = None) -> AppSettings:
    return AppSettings(**load_params(config_path))
