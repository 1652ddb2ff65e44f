"""Interview document read endpoints for dashboards and feedback pages."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query

from api.config.settings import settings
from api.dependencies import get_document_store
from api.middleware.error_handler import NotFoundError
from api.schemas.audits import FeedbackResponse, InterviewListItem, InterviewStats
from api.schemas.base import NOT_FOUND_RESPONSE
from api.services.document_store import DocumentStore
from audit.models import RoleCategory
from audit.report_requester import build_report

logger = structlog.get_logger()
router = APIRouter()

NEWEST_FIRST = ("createdAt", "desc")


@router.get("", response_model=list[InterviewListItem])
async def list_user_interviews(
    user_id: str = Query(..., alias="userId", min_length=1),
    store: DocumentStore = Depends(get_document_store),
):
    """Interviews belonging to one user, newest first."""
    docs = store.query(
        settings.INTERVIEWS_COLLECTION,
        [("userId", "==", user_id)],
        order_by=NEWEST_FIRST,
    )
    return [InterviewListItem.model_validate(d) for d in docs]


@router.get("/latest", response_model=list[InterviewListItem])
async def list_latest_interviews(
    user_id: str = Query(..., alias="userId"),
    limit: int = Query(20, ge=1, le=100),
    store: DocumentStore = Depends(get_document_store),
):
    """Finalized interviews from other users, newest first."""
    docs = store.query(
        settings.INTERVIEWS_COLLECTION,
        [("finalized", "==", True), ("userId", "!=", user_id)],
        order_by=NEWEST_FIRST,
        limit=limit,
    )
    return [InterviewListItem.model_validate(d) for d in docs]


@router.get("/stats", response_model=InterviewStats)
async def interview_stats(
    store: DocumentStore = Depends(get_document_store),
):
    """Totals for the admin dashboard."""
    collection = settings.INTERVIEWS_COLLECTION
    total = store.count(collection)
    finalized = store.count(collection, [("finalized", "==", True)])
    return InterviewStats(total=total, finalized=finalized, pending=total - finalized)


@router.get("/{interview_id}", responses=NOT_FOUND_RESPONSE)
async def get_interview(
    interview_id: str,
    store: DocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    """Get the full stored interview document."""
    doc = store.get(settings.INTERVIEWS_COLLECTION, interview_id)
    if not doc:
        raise NotFoundError("Interview", interview_id)
    return doc


@router.get(
    "/{interview_id}/feedback",
    response_model=FeedbackResponse,
    responses=NOT_FOUND_RESPONSE,
)
async def get_interview_feedback(
    interview_id: str,
    store: DocumentStore = Depends(get_document_store),
):
    """Audit report of a finalized interview, with per-field fallbacks."""
    doc = store.get(settings.INTERVIEWS_COLLECTION, interview_id)
    if not doc or not doc.get("finalized"):
        raise NotFoundError("Feedback", interview_id)

    report = build_report(doc, doc.get("roleCategory") or RoleCategory.OTHER_ADMIN.value)
    return FeedbackResponse(
        interview_id=doc["id"],
        user_id=doc.get("userId", ""),
        readiness_score=report.readiness_score,
        benchmark_summary=report.benchmark_summary,
        recommendations=report.recommendations,
        strengths=report.strengths,
        weaknesses=report.weaknesses,
        role_category=report.role_category,
        structured_data=doc.get("structuredData") or {},
        created_at=doc.get("createdAt"),
    )
