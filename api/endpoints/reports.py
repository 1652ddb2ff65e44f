"""Audit report generation endpoint."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.config.settings import settings
from api.dependencies import get_document_store, get_report_requester
from api.schemas.audits import ReportGenerateRequest, ReportGenerateResponse
from api.services.document_store import DocumentStore
from audit.errors import PersistenceError
from audit.models import ParticipantProfile
from audit.pipeline import build_audit_document, completion_phrase_observed
from audit.report_requester import ReportRequester

logger = structlog.get_logger()
router = APIRouter()


@router.post(
    "/report-generate",
    response_model=ReportGenerateResponse,
    response_model_exclude_none=True,
)
async def generate_report(
    payload: ReportGenerateRequest,
    store: DocumentStore = Depends(get_document_store),
    requester: ReportRequester = Depends(get_report_requester),
):
    """
    Build and store the audit document for a finished session.

    Completion service failures degrade to default report values; only a
    failed write is reported as ``success: false``.
    """
    profile = ParticipantProfile(
        user_id=payload.user_id,
        interview_id=payload.interview_id or payload.employee_id,
        user_name=payload.user_name,
        role=payload.role or "Professional",
        department=payload.department,
        seniority=payload.seniority,
        location=payload.location,
    )
    messages = [m.model_dump() for m in payload.messages]

    logger.info(
        "Generating audit report",
        user_id=profile.user_id,
        message_count=len(messages),
    )

    document = await build_audit_document(
        profile,
        messages,
        requester,
        completion_observed=completion_phrase_observed(messages),
        client_fields=payload.client_fields(),
    )

    try:
        interview_id = store.add(settings.INTERVIEWS_COLLECTION, document.to_document())
    except PersistenceError as e:
        logger.error("Failed to save interview", user_id=profile.user_id, error=str(e))
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to save interview"},
        )

    return ReportGenerateResponse(success=True, interview_id=interview_id)
