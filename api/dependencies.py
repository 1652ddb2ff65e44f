"""FastAPI dependencies shared by the HTTP and WebSocket endpoints."""

from fastapi import Depends
from sqlalchemy.orm import Session

from api.config.database import get_db
from api.services.document_store import DocumentStore
from audit.report_requester import ReportRequester


def get_document_store(db: Session = Depends(get_db)) -> DocumentStore:
    return DocumentStore(db)


def get_report_requester() -> ReportRequester:
    """Report requester bound to the configured completion provider."""
    return ReportRequester()
