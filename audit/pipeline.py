"""Transcript to InterviewDocument pipeline shared by the live session and the HTTP API."""

from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional

import structlog

from audit.config import settings
from audit.insights import (
    coerce_messages,
    count_substantive_user_messages,
    extract_insights,
    summarize_insights,
)
from audit.models import (
    SOURCE_DEFAULT,
    SOURCE_HEURISTIC,
    InterviewDocument,
    ParticipantProfile,
    Role,
)
from audit.report_requester import ReportRequester

logger = structlog.get_logger()

# Closing lines the voice assistant uses when the audit ran to the end
COMPLETION_PHRASES = (
    "have a great day",
    "thank you for your time",
    "thanks for your time",
    "that concludes",
    "this concludes",
    "best of luck",
)
COMPLETION_WINDOW = 3

# Filler values older clients send for fields they could not extract
CLIENT_PLACEHOLDERS = (
    "collected during interview",
    "not explicitly discussed",
    "unknown",
)


def completion_phrase_observed(messages: Optional[Iterable[Any]], window: int = COMPLETION_WINDOW) -> bool:
    """True when one of the last ``window`` assistant messages closes the audit."""
    assistant = [
        m.content.lower()
        for m in coerce_messages(messages)
        if m.role == Role.ASSISTANT.value
    ][-window:]
    return any(phrase in text for text in assistant for phrase in COMPLETION_PHRASES)


def has_enough_content(messages: Optional[Iterable[Any]]) -> bool:
    return count_substantive_user_messages(
        messages, settings.SUBSTANTIVE_MESSAGE_MIN_CHARS
    ) >= settings.MIN_SUBSTANTIVE_USER_MESSAGES


def is_finalized(messages: Optional[Iterable[Any]], completion_observed: bool) -> bool:
    """Both the closing phrase and enough substantive answers are required."""
    return completion_observed and has_enough_content(messages)


def apply_client_fields(insights: dict, fields: Optional[Mapping[str, Any]]) -> None:
    """Fill still-defaulted insights with text a client extracted itself."""
    for name, value in (fields or {}).items():
        insight = insights.get(name)
        if insight is None or insight.source != SOURCE_DEFAULT:
            continue
        if not isinstance(value, str) or not value.strip():
            continue
        if value.strip().lower().startswith(CLIENT_PLACEHOLDERS):
            continue
        insights[name] = replace(insight, text=value.strip(), source=SOURCE_HEURISTIC)


async def build_audit_document(
    profile: ParticipantProfile,
    messages: Optional[Iterable[Any]],
    requester: ReportRequester,
    completion_observed: bool,
    client_fields: Optional[Mapping[str, Any]] = None,
) -> InterviewDocument:
    """Run extraction and report generation over a transcript.

    Never raises for extraction or completion failures; the report falls
    back to defaults.
    """
    log = coerce_messages(messages)
    insights = extract_insights(log)
    apply_client_fields(insights, client_fields)

    report = await requester.request_report(profile, insights, log)
    finalized = is_finalized(log, completion_observed)

    logger.info(
        "Audit document built",
        user_id=profile.user_id,
        message_count=len(log),
        completion_observed=completion_observed,
        finalized=finalized,
    )
    return InterviewDocument(
        profile=profile,
        messages=log,
        insights=insights,
        structured_data=summarize_insights(insights),
        report=report,
        finalized=finalized,
    )
