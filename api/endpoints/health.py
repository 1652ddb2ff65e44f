"""Health check endpoints for monitoring."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from api.config.database import get_db
from api.config.settings import settings
from audit.config import settings as audit_settings

logger = structlog.get_logger()
router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str
    database: str
    completion_provider: str
    voice_assistant: str


def check_database(db: Session) -> tuple[str, str | None]:
    """Check database connectivity."""
    try:
        result = db.execute(text("SELECT 1"))
        result.fetchone()
        return "connected", None
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return "disconnected", str(e)


def check_completion_provider() -> str:
    """Report whether the selected provider has credentials."""
    provider = audit_settings.COMPLETION_PROVIDER.lower()
    key = {
        "claude": audit_settings.ANTHROPIC_API_KEY,
        "openai": audit_settings.OPENAI_API_KEY,
    }.get(provider)
    return f"{provider}:configured" if key else f"{provider}:not_configured"


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse)
async def health_check(
    db: Session = Depends(get_db),
) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns overall status and component health.
    """
    db_status, _ = check_database(db)

    return HealthResponse(
        status="healthy" if db_status == "connected" else "unhealthy",
        version=settings.APP_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        database=db_status,
        completion_provider=check_completion_provider(),
        voice_assistant="configured" if audit_settings.VAPI_ASSISTANT_ID else "not_configured",
    )


@router.get("/ready")
async def readiness_check(
    db: Session = Depends(get_db),
) -> dict:
    """
    Readiness probe.

    Returns 200 if service is ready to accept traffic.
    """
    db_status, _ = check_database(db)

    if db_status != "connected":
        return {"ready": False, "reason": "Database not connected"}

    return {"ready": True}


@router.get("/live")
async def liveness_check() -> dict:
    """
    Liveness probe.

    Returns 200 if service process is alive.
    """
    return {"alive": True}
