"""Pydantic schemas for audit report and interview endpoints."""

from typing import Any, Optional, Union

from .base import CamelModel


class TranscriptMessage(CamelModel):
    """One transcript entry as sent by the client."""

    role: str
    content: str


class ReportGenerateRequest(CamelModel):
    """Session payload posted once a voice audit has ended.

    The free-text insight fields are optional; they only fill in fields the
    server-side extraction could not find in the transcript.
    """

    user_id: str
    employee_id: Optional[str] = None
    interview_id: Optional[str] = None
    user_name: str = ""
    role: Optional[str] = None
    department: str = ""
    seniority: str = ""
    location: str = ""
    messages: list[TranscriptMessage] = []

    responsibilities: Optional[str] = None
    pain_points: Optional[str] = None
    current_tools: Optional[str] = None
    ai_exposure: Optional[str] = None
    change_appetite: Optional[str] = None
    team_size: Optional[Union[str, int]] = None
    process_map: Optional[str] = None
    metrics_used: Optional[str] = None
    root_causes: Optional[str] = None
    data_flows: Optional[str] = None
    ai_opportunities: Optional[str] = None
    blockers: Optional[str] = None
    time_spent_on_repetitive_tasks: Optional[str] = None

    def client_fields(self) -> dict[str, Any]:
        """Insight fields keyed by document field name."""
        fields = self.model_dump(
            by_alias=True,
            include={
                "responsibilities", "pain_points", "current_tools", "ai_exposure",
                "change_appetite", "team_size", "process_map", "metrics_used",
                "root_causes", "data_flows", "ai_opportunities", "blockers",
                "time_spent_on_repetitive_tasks",
            },
        )
        return {k: str(v) for k, v in fields.items() if v is not None}


class ReportGenerateResponse(CamelModel):
    success: bool
    interview_id: Optional[str] = None
    error: Optional[str] = None


class InterviewListItem(CamelModel):
    """Schema for an interview in list responses."""

    id: str
    user_id: str
    user_name: str = ""
    role: Optional[str] = None
    department: str = ""
    type: str
    readiness_score: Optional[int] = None
    role_category: Optional[str] = None
    finalized: bool = False
    created_at: Optional[str] = None


class InterviewStats(CamelModel):
    total: int
    finalized: int
    pending: int


class FeedbackResponse(CamelModel):
    """Audit report view of a finalized interview."""

    interview_id: str
    user_id: str
    readiness_score: int
    benchmark_summary: str
    recommendations: list[str]
    strengths: list[str]
    weaknesses: list[str]
    role_category: str
    structured_data: dict[str, Any] = {}
    created_at: Optional[str] = None
