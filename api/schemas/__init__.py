"""Pydantic schemas for API request/response validation.

Request and response bodies use camelCase keys, matching stored documents.
"""

from .base import CamelModel, ErrorResponse, NOT_FOUND_RESPONSE
from .audits import (
    TranscriptMessage,
    ReportGenerateRequest,
    ReportGenerateResponse,
    InterviewListItem,
    InterviewStats,
    FeedbackResponse,
)

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "NOT_FOUND_RESPONSE",
    "TranscriptMessage",
    "ReportGenerateRequest",
    "ReportGenerateResponse",
    "InterviewListItem",
    "InterviewStats",
    "FeedbackResponse",
]
