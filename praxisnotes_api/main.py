"""
FastAPI Backend with RBAC for PraxisNotes
Session report wizard, streaming generation, report storage and audit logging
"""
from fastapi import FastAPI, Depends, HTTPException, status, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
import json
import logging
import uuid
from typing import Callable, List, Optional
import os

from praxisnotes import catalogs
from praxisnotes.converter import html_to_markdown, markdown_to_html
from praxisnotes.generation import GenerationCompleted, ReportGenerationClient
from praxisnotes.models import ClientInfo, FormStep, ReportStatus, SessionFormState
from praxisnotes.prompting import assemble_prompt
from praxisnotes.reports import PersistenceError, StoredReport, build_report, build_report_metadata
from praxisnotes.validation import validate_form, validate_step

from .auth import (
    get_current_user,
    require_role,
    can_see_all_reports,
    has_role,
    User,
    Role
)
from .database import init_db, get_db
from .models import (
    ConversionRequest,
    ConversionResponse,
    GenerateReportRequest,
    HealthCheck,
    PromptPreviewRequest,
    PromptPreviewResponse,
    ReportListItem,
    SaveReportRequest,
    SaveReportResponse,
    StatusUpdateRequest,
    ValidationResponse,
)
from .services import (
    audit_service,
    client_directory_service,
    report_service
)
from .cache import cache_key, close_cache, increment_counter

# Configure logging
log_dir = os.getenv("LOG_DIR", "./logs")
os.makedirs(log_dir, exist_ok=True)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(os.path.join(log_dir, "api.log")),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

RATE_LIMIT_PER_HOUR = int(os.getenv("RATE_LIMIT_PER_HOUR", "100"))

WRITER_ROLES = [Role.RBT, Role.SUPERVISOR, Role.ADMIN]
REVIEWER_ROLES = [Role.SUPERVISOR, Role.ADMIN]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events"""
    # Startup
    logger.info("Starting PraxisNotes Backend API")
    await init_db()
    logger.info("Database initialized")
    yield
    # Shutdown
    await close_cache()
    logger.info("Shutting down PraxisNotes Backend API")


# Initialize FastAPI app
app = FastAPI(
    title="PraxisNotes API",
    description="Session report generation for Registered Behavior Technicians",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["*"],
)

# Trusted Host Middleware for security
app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
)


# ==================== Dependencies ====================

def get_client_service():
    return client_directory_service


def get_report_store():
    return report_service


def get_audit_service():
    return audit_service


def get_generation_client() -> Callable[[str], ReportGenerationClient]:
    """Factory building a generation client for a model display name"""
    return lambda model_name: ReportGenerationClient(model_name=model_name)


async def enforce_rate_limit(current_user: User = Depends(get_current_user)):
    """Cap generation requests per user per hour"""
    try:
        count = await increment_counter(cache_key("rate_limit", current_user.sub), 3600)
    except Exception as e:
        # Redis being down must not block report writing
        logger.warning(f"Rate limit check skipped: {e}")
        return

    if count > RATE_LIMIT_PER_HOUR:
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Please try again later."
        )


def _ensure_can_view(report: StoredReport, user: User):
    if report.user_id != user.sub and not can_see_all_reports(user):
        raise HTTPException(status_code=403, detail="Access denied")


# Health Check Endpoint
@app.get("/health", response_model=HealthCheck, tags=["Health"])
async def health_check():
    """Health check endpoint for container orchestration"""
    return HealthCheck(
        status="healthy",
        service="praxisnotes-api",
        version="1.0.0"
    )


# Readiness Check
@app.get("/ready", tags=["Health"])
async def readiness_check(db=Depends(get_db)):
    """Readiness check - verifies database connectivity"""
    try:
        await db.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Service not ready")


# ==================== Client Directory ====================

@app.get("/api/clients", response_model=List[ClientInfo], tags=["Clients"])
async def list_clients(
    current_user: User = Depends(get_current_user),
    clients=Depends(get_client_service)
):
    """List clients the wizard can write reports for"""
    try:
        return await clients.list_clients()
    except Exception as e:
        logger.error(f"Failed to list clients: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve clients")


@app.get("/api/clients/{client_id}", response_model=ClientInfo, tags=["Clients"])
async def get_client(
    client_id: str,
    current_user: User = Depends(get_current_user),
    clients=Depends(get_client_service)
):
    try:
        client = await clients.get_client(client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get client: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve client")


# ==================== Catalogs ====================

@app.get("/api/skills", tags=["Catalogs"])
async def get_skills(
    program_id: Optional[str] = None,
    current_user: User = Depends(get_current_user)
):
    """Skill programs, or the targets of one program when program_id is given"""
    if program_id:
        if not catalogs.find_program(program_id):
            raise HTTPException(status_code=404, detail="Skill program not found")
        return {"targets": catalogs.skill_targets(program_id)}
    return {"programs": catalogs.skill_programs()}


@app.get("/api/behaviors", tags=["Catalogs"])
async def get_behaviors(
    id: Optional[str] = None,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user)
):
    """Predefined behaviors: one by id, a name/definition search, or all"""
    if id:
        behavior = catalogs.find_behavior(id)
        if not behavior:
            raise HTTPException(status_code=404, detail="Behavior not found")
        return {"behavior": behavior}
    if search:
        return {"behaviors": catalogs.search_behaviors(search)}
    return {"behaviors": catalogs.behaviors()}


@app.get("/api/reinforcements", tags=["Catalogs"])
async def get_reinforcements(
    id: Optional[str] = None,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user)
):
    """Predefined reinforcers: one by id, a name/description search, or all"""
    if id:
        reinforcer = catalogs.find_reinforcer(id)
        if not reinforcer:
            raise HTTPException(status_code=404, detail="Reinforcement not found")
        return {"reinforcement": reinforcer}
    if search:
        return {"reinforcements": catalogs.search_reinforcers(search)}
    return {"reinforcements": catalogs.reinforcers()}


# ==================== Wizard ====================

@app.post("/api/wizard/validate/{step}", response_model=ValidationResponse, tags=["Wizard"])
async def validate_wizard_step(
    step: FormStep,
    form: SessionFormState,
    current_user: User = Depends(require_role(WRITER_ROLES))
):
    """
    Validate one step of a session form
    Returns 200 with the field errors; an invalid step is not an HTTP error
    """
    result = validate_step(form, step)
    return ValidationResponse(
        step=step.value,
        valid=result.valid,
        field_errors=result.field_errors
    )


@app.post("/api/prompts/preview", response_model=PromptPreviewResponse, tags=["Wizard"])
async def preview_prompt(
    request: PromptPreviewRequest,
    current_user: User = Depends(require_role(WRITER_ROLES)),
    clients=Depends(get_client_service)
):
    """Show the prompt that generation would send for a form"""
    try:
        client = await clients.get_client(request.form.basic_info.client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        return PromptPreviewResponse(
            prompt=assemble_prompt(request.form, client, request.rbt_name),
            metadata=build_report_metadata(request.form, client, request.rbt_name)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Prompt preview failed: {e}")
        raise HTTPException(status_code=500, detail="Prompt preview failed")


# ==================== Report Generation ====================

@app.post("/api/reports/generate", tags=["Reports"])
async def generate_report(
    request: GenerateReportRequest,
    current_user: User = Depends(require_role(WRITER_ROLES)),
    _rate_limit=Depends(enforce_rate_limit),
    clients=Depends(get_client_service),
    client_factory=Depends(get_generation_client),
    audit=Depends(get_audit_service)
):
    """
    Stream a report as newline-delimited JSON events
    Requires: rbt, supervisor, or admin role
    """
    logger.info(f"User {current_user.display_name} requesting report generation")

    form = request.form
    validation = validate_form(form)
    if not validation.valid:
        raise HTTPException(status_code=422, detail=validation.field_errors)

    client = await clients.get_client(form.basic_info.client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    prompt = assemble_prompt(form, client, request.rbt_name)
    metadata = build_report_metadata(form, client, request.rbt_name)
    correlation_id = uuid.uuid4().hex
    generator = client_factory(request.model)

    await audit.log_activity(
        user_id=current_user.sub,
        action="generate_report",
        resource="report",
        metadata={"model": request.model, "client_id": client.id, "correlation_id": correlation_id}
    )

    async def event_stream():
        yield json.dumps({
            "kind": "metadata",
            "correlation_id": correlation_id,
            "metadata": metadata.model_dump(mode="json")
        }) + "\n"

        async for event in generator.generate(prompt, correlation_id=correlation_id):
            payload = event.model_dump(mode="json")
            if isinstance(event, GenerationCompleted):
                report = build_report(event.full_text, metadata)
                payload["report"] = report.model_dump(mode="json")
            yield json.dumps(payload) + "\n"

    return StreamingResponse(event_stream(), media_type="application/x-ndjson")


# ==================== Report Management ====================

@app.post("/api/reports", response_model=SaveReportResponse, status_code=201, tags=["Reports"])
async def save_report(
    request: SaveReportRequest,
    current_user: User = Depends(require_role(WRITER_ROLES)),
    store=Depends(get_report_store),
    audit=Depends(get_audit_service)
):
    """Persist a finished report as a draft, whatever status the payload carries"""
    try:
        report_id = await store.save(
            request.report,
            session_id=request.session_id,
            user_id=current_user.sub,
            client_id=request.client_id
        )

        await audit.log_activity(
            user_id=current_user.sub,
            action="save_report",
            resource="report",
            resource_id=report_id
        )

        return SaveReportResponse(report_id=report_id, status=ReportStatus.DRAFT)

    except PersistenceError as e:
        logger.error(f"Failed to save report: {e}")
        raise HTTPException(status_code=500, detail="Failed to save report")


@app.get("/api/reports", response_model=List[ReportListItem], tags=["Reports"])
async def list_reports(
    client_id: Optional[str] = None,
    current_user: User = Depends(require_role(WRITER_ROLES)),
    store=Depends(get_report_store)
):
    """
    List reports accessible to the user
    Supervisors and admins see all reports, RBTs see only their own
    """
    try:
        user_filter = None if can_see_all_reports(current_user) else current_user.sub
        reports = await store.list_reports(user_id=user_filter, client_id=client_id)
        return [
            ReportListItem(
                id=r.id,
                client_id=r.client_id,
                client_name=r.report.metadata.client_name,
                session_date=r.report.metadata.session_date,
                status=r.report.status,
                user_id=r.user_id,
                created_at=r.created_at
            )
            for r in reports
        ]
    except Exception as e:
        logger.error(f"Failed to list reports: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve reports")


@app.get("/api/reports/{report_id}", response_model=StoredReport, tags=["Reports"])
async def get_report(
    report_id: str,
    current_user: User = Depends(get_current_user),
    store=Depends(get_report_store),
    audit=Depends(get_audit_service)
):
    """Get a specific report by ID"""
    try:
        report = await store.get(report_id)

        if not report:
            raise HTTPException(status_code=404, detail="Report not found")

        # Check ownership or elevated permissions
        _ensure_can_view(report, current_user)

        await audit.log_activity(
            user_id=current_user.sub,
            action="view_report",
            resource="report",
            resource_id=report_id
        )

        return report

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get report: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve report")


@app.patch("/api/reports/{report_id}/status", response_model=StoredReport, tags=["Reports"])
async def update_report_status(
    report_id: str,
    request: StatusUpdateRequest,
    current_user: User = Depends(require_role(WRITER_ROLES)),
    store=Depends(get_report_store),
    audit=Depends(get_audit_service)
):
    """
    Change a report's status
    Marking a report reviewed requires: supervisor or admin role
    """
    if request.status == ReportStatus.REVIEWED and not any(
        has_role(current_user, role) for role in REVIEWER_ROLES
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only supervisors can mark a report reviewed"
        )

    try:
        existing = await store.get(report_id)
        if not existing:
            raise HTTPException(status_code=404, detail="Report not found")
        _ensure_can_view(existing, current_user)

        updated = await store.update_status(report_id, request.status)

        await audit.log_activity(
            user_id=current_user.sub,
            action="update_report_status",
            resource="report",
            resource_id=report_id,
            metadata={"status": request.status.value}
        )

        return updated

    except HTTPException:
        raise
    except KeyError:
        raise HTTPException(status_code=404, detail="Report not found")
    except Exception as e:
        logger.error(f"Failed to update report status: {e}")
        raise HTTPException(status_code=500, detail="Failed to update report")


# ==================== Editor Conversion ====================

@app.post("/api/convert/markdown-to-html", response_model=ConversionResponse, tags=["Editor"])
async def convert_markdown_to_html(
    request: ConversionRequest,
    current_user: User = Depends(get_current_user)
):
    return ConversionResponse(content=await markdown_to_html(request.content))


@app.post("/api/convert/html-to-markdown", response_model=ConversionResponse, tags=["Editor"])
async def convert_html_to_markdown(
    request: ConversionRequest,
    current_user: User = Depends(get_current_user)
):
    return ConversionResponse(content=await html_to_markdown(request.content))


# ==================== Audit ====================

@app.get("/api/audit/logs", tags=["Audit"])
async def get_audit_logs(
    skip: int = 0,
    limit: int = 50,
    current_user: User = Depends(require_role([Role.ADMIN])),
    audit=Depends(get_audit_service)
):
    """
    Get audit logs
    Requires: admin role only
    """
    try:
        return await audit.get_logs(skip=skip, limit=limit)
    except Exception as e:
        logger.error(f"Failed to get audit logs: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve audit logs")


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "status_code": exc.status_code}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "status_code": 500}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "praxisnotes_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=os.getenv("ENVIRONMENT") == "development"
    )
