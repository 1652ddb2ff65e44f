"""Audit report generation through a text completion service.

Two sequential calls: role classification, then the structured report.
Any failure degrades to default values so the caller always receives a
usable AuditReport. Calls are never retried.
"""

import json
import math
import re
from string import Template
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from audit.config import settings
from audit.errors import ParseError
from audit.insights import FIELD_KEYWORDS, coerce_messages, normalize, summarize_insights
from audit.integrations import CompletionClient, get_completion_client
from audit.models import (
    DEFAULT_BENCHMARK_SUMMARY,
    DEFAULT_READINESS_SCORE,
    DEFAULT_RECOMMENDATIONS,
    DEFAULT_STRENGTHS,
    DEFAULT_WEAKNESSES,
    AuditReport,
    ParticipantProfile,
    RoleCategory,
    StructuredInsight,
)

logger = structlog.get_logger()

ROLE_CATEGORIES: List[str] = [c.value for c in RoleCategory]

# Partial matches used when the reply is not one of the exact labels.
# Matched against insights.normalize() output; a leading or trailing space
# marks a word boundary.
ROLE_CATEGORY_ALIASES = (
    (" software", RoleCategory.SOFTWARE_ENGINEERING),
    (" engineer", RoleCategory.SOFTWARE_ENGINEERING),
    (" developer", RoleCategory.SOFTWARE_ENGINEERING),
    (" devops ", RoleCategory.SOFTWARE_ENGINEERING),
    (" product manag", RoleCategory.PRODUCT_MANAGEMENT),
    (" design", RoleCategory.PRODUCT_DESIGN),
    (" ux ", RoleCategory.PRODUCT_DESIGN),
    (" marketing ", RoleCategory.MARKETING_GROWTH),
    (" growth ", RoleCategory.MARKETING_GROWTH),
    (" support ", RoleCategory.CUSTOMER_SUPPORT_OPS),
    (" ops ", RoleCategory.CUSTOMER_SUPPORT_OPS),
    (" operations ", RoleCategory.CUSTOMER_SUPPORT_OPS),
    (" leadership ", RoleCategory.LEADERSHIP_STRATEGY),
    (" strategy ", RoleCategory.LEADERSHIP_STRATEGY),
)

FIELD_LABELS: Dict[str, str] = {
    "responsibilities": "Responsibilities",
    "painPoints": "Pain Points",
    "currentTools": "Current Tools",
    "aiExposure": "AI Exposure",
    "changeAppetite": "Change Appetite",
    "teamSize": "Team Size",
    "processMap": "Process Map",
    "metricsUsed": "Metrics Used",
    "rootCauses": "Root Causes",
    "dataFlows": "Data Flows",
    "aiOpportunities": "AI Opportunities",
    "blockers": "Blockers",
    "timeSpentOnRepetitiveTasks": "Time Spent on Repetitive Tasks",
}

MAX_TRANSCRIPT_CHARS = 12000

REPORT_SYSTEM_PROMPT = (
    "You are a senior AI-strategy consultant specializing in organizational AI "
    "readiness assessments. Analyze interview data thoroughly to extract "
    "actionable insights. Return only valid, well-structured JSON as specified "
    "in the prompt."
)

CLASSIFY_PROMPT = Template("""Classify the job title below into exactly one of these role categories:
$categories

Job title: $role_title

Reply with the category name only, on a single line, with no quotes or explanation.""")

REPORT_PROMPT = Template("""Based on the AI readiness interview below, produce an AI Readiness Audit Report.

INTERVIEW CONTEXT:
- Name: $user_name
- Role: $role
- Department: $department
- Seniority: $seniority
- Location: $location

EXTRACTED INSIGHTS:
$insights

STRUCTURED DATA:
- Team Size: $team_size
- Automation Level: $automation_level
- AI Exposure Level: $ai_exposure_level/5
- Change Readiness: $change_readiness/5
- Tools Used: $tools_used
- AI Tools Used: $ai_tools_used
- Metrics Tracked: $metrics
- Time Spent on Repetitive Tasks: $hours hours/week

SCORING RUBRIC (readinessScore 0-100, four equally weighted dimensions, 25% each):
1. Technical readiness: current tooling, automation level, data accessibility.
2. Process readiness: documented workflows, repetitive work suitable for AI.
3. People readiness: AI exposure, skills, appetite for change.
4. Strategic readiness: clear goals, metrics, leadership support, few blockers.
$transcript
Return a single JSON object with exactly these keys:
{
  "readinessScore": <integer 0-100>,
  "benchmarkSummary": "<100-150 word evidence-based comparison with peers in similar roles>",
  "recommendations": ["Implement [specific solution] for [specific process] to address [specific pain point].", "..."],
  "strengths": ["...", "..."],
  "weaknesses": ["...", "..."]
}

Rules:
- Provide 3 recommendations, 2-4 strengths and 2-4 weaknesses.
- Ground every statement in the interview data; do not invent facts.
- Return ONLY the JSON object, no markdown, no extra text.""")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences around a JSON payload."""
    return _FENCE_RE.sub("", text).strip()


def normalize_role_category(raw: Optional[str]) -> str:
    """Clamp a classification reply onto the closed category set.

    The reply is trimmed and stripped of quotes. Exact labels (any case)
    win, then partial matches; anything else maps to Other/Admin.
    """
    cleaned = (raw or "").strip().splitlines()[0] if (raw or "").strip() else ""
    cleaned = cleaned.strip().strip("\"'`").strip().rstrip(".")
    lowered = cleaned.lower()

    for category in ROLE_CATEGORIES:
        if lowered == category.lower():
            return category
    for category in ROLE_CATEGORIES:
        if category.lower() in lowered:
            return category
    padded = normalize(cleaned)
    for alias, category in ROLE_CATEGORY_ALIASES:
        if alias in padded:
            return category.value

    if cleaned:
        logger.info("Role category outside closed set", raw_category=cleaned)
    return RoleCategory.OTHER_ADMIN.value


def parse_report_payload(raw: Optional[str]) -> Dict[str, Any]:
    """Parse the completion reply into a JSON object.

    Raises:
        ParseError: Empty reply, invalid JSON, or a non-object payload.
    """
    if not raw or not raw.strip():
        raise ParseError("Empty completion response")
    try:
        data = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in completion response: {e}") from e
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def coerce_score(value: Any) -> int:
    """Integer readiness score in [0, 100], or the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_READINESS_SCORE
    if math.isnan(value) or not 0 <= value <= 100:
        return DEFAULT_READINESS_SCORE
    return int(round(value))


def coerce_text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def coerce_text_list(value: Any, default: Iterable[str]) -> List[str]:
    if isinstance(value, list):
        items = [v.strip() for v in value if isinstance(v, str) and v.strip()]
        if items:
            return items
    return list(default)


def build_report(data: Mapping[str, Any], role_category: str) -> AuditReport:
    """Validate each field independently, substituting defaults.

    Also used for stored documents, where absent fields fall back one by one.
    """
    return AuditReport(
        readiness_score=coerce_score(data.get("readinessScore")),
        benchmark_summary=coerce_text(data.get("benchmarkSummary"), DEFAULT_BENCHMARK_SUMMARY),
        recommendations=coerce_text_list(data.get("recommendations"), DEFAULT_RECOMMENDATIONS),
        strengths=coerce_text_list(data.get("strengths"), DEFAULT_STRENGTHS),
        weaknesses=coerce_text_list(data.get("weaknesses"), DEFAULT_WEAKNESSES),
        role_category=role_category,
    )


REPORT_KEYS = ("readinessScore", "benchmarkSummary", "recommendations", "strengths", "weaknesses")


def report_from_payload(data: Mapping[str, Any], role_category: str) -> AuditReport:
    """AuditReport from a parsed completion reply.

    A reply missing any report key is discarded for the default report;
    a complete reply is validated field by field.
    """
    missing = [key for key in REPORT_KEYS if key not in data]
    if missing:
        if data:
            logger.warning("Report response missing keys", missing=missing)
        return AuditReport(role_category=role_category)
    return build_report(data, role_category)


def format_transcript(messages: Optional[Iterable[Any]], max_chars: int = MAX_TRANSCRIPT_CHARS) -> str:
    lines = [
        f"{'Interviewee' if m.role == 'user' else 'Interviewer'}: {m.content}"
        for m in coerce_messages(messages)
        if m.role != "system"
    ]
    return "\n".join(lines)[:max_chars]


def build_classification_prompt(role_title: str) -> str:
    return CLASSIFY_PROMPT.safe_substitute(
        categories="\n".join(f"- {c}" for c in ROLE_CATEGORIES),
        role_title=(role_title or "Not specified").strip()[:200],
    )


def build_report_prompt(
    profile: ParticipantProfile,
    insights: Mapping[str, StructuredInsight],
    messages: Optional[Iterable[Any]] = None,
) -> str:
    """Embed every structured field plus the scoring rubric."""
    data = summarize_insights(insights)

    insight_lines = []
    for name in FIELD_KEYWORDS:
        insight = insights.get(name)
        if insight is None:
            continue
        insight_lines.append(
            f"- {FIELD_LABELS.get(name, name)}: {insight.text} "
            f"(confidence {insight.confidence:.2f})"
        )

    def _join(items: List[str]) -> str:
        return ", ".join(items) if items else "None detected"

    def _value(value: Any, suffix: str = "") -> str:
        return f"{value}{suffix}" if value is not None else "Not specified"

    transcript = format_transcript(messages)
    transcript_block = f"\nTRANSCRIPT:\n{transcript}\n" if transcript else ""

    return REPORT_PROMPT.safe_substitute(
        user_name=profile.user_name or "Not specified",
        role=profile.role or "Not specified",
        department=profile.department or "Not specified",
        seniority=profile.seniority or "Not specified",
        location=profile.location or "Not specified",
        insights="\n".join(insight_lines),
        team_size=_value(data["teamSize"]),
        automation_level=_value(data["automationLevel"], "%"),
        ai_exposure_level=data["aiExposureLevel"],
        change_readiness=data["changeReadiness"],
        tools_used=_join(data["toolsUsed"]),
        ai_tools_used=_join(data["aiToolsUsed"]),
        metrics=_join(data["metricsList"]),
        hours=_value(data["timeSpentOnRepetitiveTasks"]),
        transcript=transcript_block,
    )


class ReportRequester:
    """Requests role classification and the audit report."""

    def __init__(self, client: Optional[CompletionClient] = None):
        self.client = client or get_completion_client()

    async def classify_role(self, role_title: str) -> str:
        """Classify a free-text job title; Other/Admin on any failure."""
        try:
            raw = await self.client.complete(
                build_classification_prompt(role_title),
                temperature=settings.CLASSIFY_TEMPERATURE,
            )
        except Exception as e:
            logger.warning("Role classification failed", role=role_title, error=str(e))
            return RoleCategory.OTHER_ADMIN.value

        category = normalize_role_category(raw)
        logger.info("Role classified", role=role_title, role_category=category)
        return category

    async def request_report(
        self,
        profile: ParticipantProfile,
        insights: Mapping[str, StructuredInsight],
        messages: Optional[Iterable[Any]] = None,
    ) -> AuditReport:
        """Produce an AuditReport. Never raises."""
        role_category = await self.classify_role(profile.role)

        data: Dict[str, Any] = {}
        try:
            raw = await self.client.complete(
                build_report_prompt(profile, insights, messages),
                temperature=settings.REPORT_TEMPERATURE,
                response_format={"type": "json_object"},
                system=REPORT_SYSTEM_PROMPT,
            )
            data = parse_report_payload(raw)
        except ParseError as e:
            logger.warning("Report response could not be parsed", error=str(e))
        except Exception as e:
            logger.error("Report generation failed", error=str(e), error_type=type(e).__name__)

        report = report_from_payload(data, role_category)
        logger.info(
            "Audit report ready",
            user_id=profile.user_id,
            readiness_score=report.readiness_score,
            role_category=report.role_category,
            used_defaults=not data,
        )
        return report
