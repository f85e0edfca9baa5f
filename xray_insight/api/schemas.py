"""
Pydantic Models for the X-Ray Insight API

Request and response envelopes for every endpoint. The analysis payload itself
(XrayAnalysis and friends) lives in xray_insight.models and is reused as-is.
All bodies are camelCase on the wire.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import SimilarCase, XrayAnalysis


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(ApiModel):
    """Fields shared by every response, successful or not."""
    success: bool
    timestamp: datetime
    error: Optional[str] = Field(None, description="Short error message.", examples=["Invalid patient age"])
    details: Optional[str] = Field(None, description="Best-effort detail for 5xx errors.")


class AnalyzeResponse(ApiResponse):
    """The response of POST /api/analyze."""
    analysis: Optional[XrayAnalysis] = None
    image_url: Optional[str] = Field(None, examples=["/uploads/xrayImage-1718000000000-42.png"])
    processing_time: Optional[str] = Field(None, examples=["1532ms"])


class SimilarCasesResponse(ApiResponse):
    similar_cases: List[SimilarCase] = []


class DetailedAnalysisRequest(ApiModel):
    # Both optional so a missing field becomes our own 400, not a framework 422.
    image_path: Optional[str] = None
    findings: Optional[Any] = None


class DetailedAnalysisResponse(ApiResponse):
    detailed_analysis: Optional[str] = None


class HealthResponse(ApiModel):
    status: str
    message: str
    timestamp: datetime
    version: str
    vision_enabled: bool


class ServerStats(ApiModel):
    total_analyses: int
    vision_enabled: bool
    server_uptime: float = Field(..., description="Seconds since the app started.")
    python_version: str


class StatsResponse(ApiResponse):
    stats: Optional[ServerStats] = None


class CleanupResponse(ApiResponse):
    message: Optional[str] = None
    deleted_count: Optional[int] = None
