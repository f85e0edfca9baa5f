# --- [1] Standard Library Imports ---
import os
import time
import logging
import platform
from datetime import datetime, timezone
from typing import Optional

# --- [2] Third-Party Imports ---
import uvicorn
from fastapi import APIRouter, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

# --- [3] Local Application Imports ---
from ..analysis import XrayAnalyzer
from ..case_library import find_cases_for_text
from ..config import AppSettings, load_settings
from ..detailed_report import generate_detailed_analysis
from ..errors import VisionConfigurationError
from ..imaging.vision import HuggingFaceVisionClient
from ..uploads import UploadStore, is_allowed_extension
from .forms import PatientValidationError, parse_patient
from .schemas import (
    AnalyzeResponse, ApiResponse, CleanupResponse, DetailedAnalysisRequest,
    DetailedAnalysisResponse, HealthResponse, ServerStats, SimilarCasesResponse, StatsResponse,
)

# --- [4] Application Setup & Configuration ---
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

APP_VERSION = "1.0.0"
DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


# --- [5] Helper Functions ---
def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def error_response(status_code: int, error: str, details: Optional[str] = None, **extra) -> JSONResponse:
    body = ApiResponse(success=False, error=error, details=details, timestamp=utc_now())
    content = body.model_dump(mode="json", by_alias=True, exclude_none=True)
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def cors_origins():
    configured = os.getenv("CORS_ORIGIN")
    if configured:
        return [origin.strip() for origin in configured.split(",") if origin.strip()]
    return DEFAULT_CORS_ORIGINS


# --- [6] API Endpoints ---
router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthResponse, tags=["Operations"])
def health(request: Request) -> HealthResponse:
    return HealthResponse(
        status="OK",
        message="Backend is running",
        timestamp=utc_now(),
        version=APP_VERSION,
        vision_enabled=request.app.state.analyzer.vision_client.enabled,
    )


@router.post("/analyze", response_model=AnalyzeResponse, response_model_exclude_none=True, tags=["Analysis"])
async def analyze(
    request: Request,
    xray_image: Optional[UploadFile] = File(None, alias="xrayImage"),
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    age: Optional[str] = Form(None, alias="age"),
    doctor_name: Optional[str] = Form(None, alias="doctorName"),
):
    started = time.perf_counter()
    settings: AppSettings = request.app.state.settings
    store: UploadStore = request.app.state.uploads

    if xray_image is None or not xray_image.filename:
        return error_response(400, "No image file uploaded")
    if not is_allowed_extension(xray_image.filename, settings.uploads.allowed_extensions):
        return error_response(400, "Only JPG, PNG and DICOM files are supported")

    data = await xray_image.read()
    if len(data) > settings.uploads.max_file_size_bytes:
        return error_response(400, f"File too large (max {settings.uploads.max_file_size_mb:g}MB)")

    saved_path = store.save(xray_image.filename, data)
    try:
        patient = parse_patient(first_name, last_name, age, doctor_name)
    except PatientValidationError as e:
        store.remove(saved_path)
        return error_response(400, str(e))

    logging.info(f"Analyzing {saved_path.name} for patient {patient.first_name} {patient.last_name}, age {patient.age}")
    try:
        analysis = await run_in_threadpool(
            request.app.state.analyzer.analyze, str(saved_path), patient, xray_image.filename
        )
    except VisionConfigurationError as e:
        store.remove(saved_path)
        return error_response(503, "Vision service is not configured", details=str(e))
    except Exception as e:
        logging.error(f"An error occurred during analysis: {e}", exc_info=True)
        store.remove(saved_path)
        return error_response(500, "Image analysis failed", details=str(e))

    processing_ms = int((time.perf_counter() - started) * 1000)
    logging.info(f"Analysis finished in {processing_ms}ms")
    return AnalyzeResponse(
        success=True,
        analysis=analysis,
        image_url=f"/uploads/{saved_path.name}",
        timestamp=utc_now(),
        processing_time=f"{processing_ms}ms",
    )


@router.get("/similar-cases/{case_id}", response_model=SimilarCasesResponse,
            response_model_exclude_none=True, tags=["Analysis"])
def similar_cases(case_id: str):
    try:
        parsed_id = int(case_id)
    except ValueError:
        return error_response(400, "Invalid case ID")

    return SimilarCasesResponse(
        success=True,
        similar_cases=find_cases_for_text(f"case_{parsed_id}"),
        timestamp=utc_now(),
    )


@router.post("/detailed-analysis", response_model=DetailedAnalysisResponse,
             response_model_exclude_none=True, tags=["Analysis"])
def detailed_analysis(payload: DetailedAnalysisRequest):
    if not payload.image_path or not isinstance(payload.findings, list):
        return error_response(400, "imagePath and findings (array) are required")

    try:
        report = generate_detailed_analysis(payload.image_path, [str(f) for f in payload.findings])
    except Exception as e:
        logging.error(f"Detailed analysis failed: {e}", exc_info=True)
        return error_response(500, "Detailed analysis failed", details=str(e))

    return DetailedAnalysisResponse(success=True, detailed_analysis=report, timestamp=utc_now())


@router.get("/stats", response_model=StatsResponse, response_model_exclude_none=True, tags=["Operations"])
def stats(request: Request):
    try:
        total = request.app.state.uploads.count_images()
    except OSError as e:
        logging.error(f"Could not read the upload directory: {e}")
        return error_response(500, "Could not collect statistics")

    return StatsResponse(
        success=True,
        stats=ServerStats(
            total_analyses=total,
            vision_enabled=request.app.state.analyzer.vision_client.enabled,
            server_uptime=time.time() - request.app.state.started_at,
            python_version=platform.python_version(),
        ),
        timestamp=utc_now(),
    )


@router.post("/cleanup", response_model=CleanupResponse, response_model_exclude_none=True, tags=["Operations"])
def cleanup(request: Request):
    try:
        deleted = request.app.state.uploads.cleanup()
    except OSError as e:
        logging.error(f"Cleanup failed: {e}", exc_info=True)
        return error_response(500, "Could not clean up uploaded files")

    return CleanupResponse(
        success=True,
        message=f"Deleted {deleted} old files",
        deleted_count=deleted,
        timestamp=utc_now(),
    )


# --- [7] Application Factory ---
def create_app(settings: Optional[AppSettings] = None,
               vision_client: Optional[HuggingFaceVisionClient] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="X-Ray Insight API",
        description="Upload an X-ray with patient details and get a synthesized diagnostic report.",
        version=APP_VERSION,
    )
    app.state.settings = settings
    app.state.uploads = UploadStore(
        settings.uploads.directory,
        settings.uploads.allowed_extensions,
        settings.uploads.retention_hours,
    )
    app.state.analyzer = XrayAnalyzer(settings, vision_client=vision_client)
    app.state.started_at = time.time()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logging.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, "Route not found", path=request.url.path)
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(400, "Invalid request", details=str(exc.errors()))

    app.include_router(router)
    app.mount("/uploads", StaticFiles(directory=settings.uploads.directory), name="uploads")

    logging.info(f"✅ X-Ray Insight ready. Uploads: {settings.uploads.directory}, "
                 f"vision enabled: {app.state.analyzer.vision_client.enabled}")
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("xray_insight.api.main:app", host="0.0.0.0", port=int(os.getenv("PORT", 3001)))
