"""Training data export."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from api.config.settings import settings
from api.dependencies import get_document_store
from api.services.document_store import DocumentStore
from api.services.training_data import format_interview_for_training, iter_jsonl

logger = structlog.get_logger()
router = APIRouter()

EXPORT_FILENAME = "singularshift-training-data.jsonl"


@router.get("/training-data")
async def export_training_data(
    store: DocumentStore = Depends(get_document_store),
):
    """Stream prompt/response pairs from all finalized interviews as NDJSON."""
    interviews = store.query(
        settings.INTERVIEWS_COLLECTION,
        [("finalized", "==", True)],
        order_by=("createdAt", "asc"),
    )
    pairs = [pair for doc in interviews for pair in format_interview_for_training(doc)]

    logger.info(
        "Exporting training data",
        interviews=len(interviews),
        pairs=len(pairs),
    )

    return StreamingResponse(
        iter_jsonl(pairs),
        media_type="application/x-ndjson",
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )
