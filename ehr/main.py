"""
EHR Report Service - FastAPI Application

API endpoints for:
- Service health
- Patient report generation (PDF or plain text)
- Report download
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware

from datetime import datetime
import os

from ehr.config import settings
from ehr.models.patient_report import PatientReportInput, ReportResponse, HealthResponse
from ehr.services.reports import ReportService
from ehr.utils import get_logger, setup_logging, ReportInputError

logger = get_logger(__name__)

START_TIME = datetime.now()


# ---- Application Lifespan ----

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and the report output directory."""
    setup_logging(settings.effective_log_level, settings.log_file)
    os.makedirs(settings.reports_dir, exist_ok=True)
    logger.info(f"{settings.app_name} API ready, reports in {settings.reports_dir}")
    yield
    logger.info(f"{settings.app_name} API shut down.")


# ---- FastAPI Application ----

app = FastAPI(
    title=f"{settings.app_name} API",
    description="Patient medical report generation",
    version=settings.app_version,
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.report_service = ReportService(config=settings)


def _health() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        timestamp=datetime.now().isoformat(),
        uptime_seconds=(datetime.now() - START_TIME).total_seconds(),
    )


# ---- API Endpoints ----

@app.get("/", response_model=HealthResponse, tags=["Health"])
async def root():
    """API root - health check."""
    return _health()


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return _health()


@app.post(f"{settings.api_prefix}/reports/patient", response_model=ReportResponse, tags=["Reports"])
async def generate_patient_report(request: PatientReportInput):
    """
    Generate a patient medical report.

    The request body is the full patient record; `generatedBy` carries the
    authenticated caller's display name.
    """
    service: ReportService = app.state.report_service
    try:
        report = await service.generate(request)
    except ReportInputError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Report generation failed for {request.patient_info.id}: {e}")
        raise HTTPException(status_code=500, detail=f"Report generation failed: {str(e)}")

    return ReportResponse(
        report_id=report.report_id,
        patient_id=report.patient_id,
        filename=report.filename,
        file_path=report.file_path or "",
        page_count=report.page_count,
        format=report.format,
        generated_at=report.generated_at.isoformat(),
    )


@app.get(f"{settings.api_prefix}/reports/{{report_id}}/download", tags=["Reports"])
async def download_report(report_id: str):
    """
    Download a generated report.
    """
    service: ReportService = app.state.report_service
    report = service.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")

    if not report.file_path or not os.path.exists(report.file_path):
        raise HTTPException(status_code=404, detail="Report file not found")

    return FileResponse(
        report.file_path,
        media_type=report.media_type,
        filename=report.filename,
    )


# ---- Run with uvicorn ----
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
