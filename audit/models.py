"""Data model for audit sessions, insights and reports."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import humps

NOT_DISCUSSED = "Not explicitly discussed during interview"

SOURCE_HEURISTIC = "heuristic"
SOURCE_DEFAULT = "default"

INTERVIEW_TYPE = "AI Readiness"

DEFAULT_READINESS_SCORE = 50
DEFAULT_BENCHMARK_SUMMARY = "AI readiness assessment completed."
DEFAULT_RECOMMENDATIONS = ("Consider exploring AI solutions for your workflow.",)
DEFAULT_STRENGTHS = ("Existing knowledge of business processes.",)
DEFAULT_WEAKNESSES = ("Limited AI exposure.",)


class Role(str, Enum):
    """Speaker of a transcript message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class CallStatus(str, Enum):
    """Lifecycle states of an audit session."""

    INACTIVE = "INACTIVE"
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"
    PROCESSING = "PROCESSING"


class RoleCategory(str, Enum):
    """Closed set of role categories used for benchmarking."""

    SOFTWARE_ENGINEERING = "Software Engineering"
    PRODUCT_MANAGEMENT = "Product Management"
    PRODUCT_DESIGN = "Product Design/UX"
    MARKETING_GROWTH = "Marketing/Growth"
    CUSTOMER_SUPPORT_OPS = "Customer Support/Ops"
    LEADERSHIP_STRATEGY = "Leadership/Strategy"
    OTHER_ADMIN = "Other/Admin"


@dataclass(frozen=True)
class Message:
    """One final transcript entry."""

    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ConversationTurn:
    """Consecutive messages grouped into one exchange."""

    user_utterances: List[str] = field(default_factory=list)
    assistant_utterances: List[str] = field(default_factory=list)

    def all_utterances(self) -> List[str]:
        return self.user_utterances + self.assistant_utterances


@dataclass
class StructuredInsight:
    """Best-evidence answer for one tracked interview field."""

    text: str = NOT_DISCUSSED
    confidence: float = 0.0
    source: str = SOURCE_DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys (e.g. toolsList, hoursPerWeek)."""
        return humps.camelize(asdict(self))


@dataclass
class ToolsInsight(StructuredInsight):
    tools_list: List[str] = field(default_factory=list)
    automation_level: Optional[int] = None


@dataclass
class AIExposureInsight(StructuredInsight):
    level: int = 0
    tools_used: List[str] = field(default_factory=list)


@dataclass
class ChangeAppetiteInsight(StructuredInsight):
    level: int = 0


@dataclass
class TeamSizeInsight(StructuredInsight):
    count: Optional[int] = None


@dataclass
class RepetitiveTimeInsight(StructuredInsight):
    hours_per_week: Optional[float] = None


@dataclass
class MetricsInsight(StructuredInsight):
    metrics_list: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AuditReport:
    """Result of report generation.

    Always usable: any field the completion service failed to provide
    carries its default value.
    """

    readiness_score: int = DEFAULT_READINESS_SCORE
    benchmark_summary: str = DEFAULT_BENCHMARK_SUMMARY
    recommendations: List[str] = field(default_factory=lambda: list(DEFAULT_RECOMMENDATIONS))
    strengths: List[str] = field(default_factory=lambda: list(DEFAULT_STRENGTHS))
    weaknesses: List[str] = field(default_factory=lambda: list(DEFAULT_WEAKNESSES))
    role_category: str = RoleCategory.OTHER_ADMIN.value

    def to_dict(self) -> Dict[str, Any]:
        return humps.camelize(asdict(self))


@dataclass
class ParticipantProfile:
    """Who is being interviewed; passed to the voice agent and stored."""

    user_id: str
    interview_id: Optional[str] = None
    user_name: str = ""
    role: str = "Professional"
    department: str = ""
    seniority: str = ""
    location: str = ""

    def variable_values(self) -> Dict[str, str]:
        """Template variables handed to the voice assistant."""
        return {
            "userId": self.user_id,
            "userName": self.user_name,
            "user_jobTitle": self.role,
            "user_department": self.department,
            "user_seniority": self.seniority,
            "user_location": self.location,
        }


@dataclass
class InterviewDocument:
    """Everything persisted for one audit session."""

    profile: ParticipantProfile
    messages: List[Message]
    insights: Dict[str, StructuredInsight]
    structured_data: Dict[str, Any]
    report: AuditReport
    finalized: bool
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_document(self) -> Dict[str, Any]:
        """Flatten into the stable stored schema.

        Every legacy text field is present, defaulted rather than omitted.
        """
        doc: Dict[str, Any] = {
            "userId": self.profile.user_id,
            "interviewId": self.profile.interview_id,
            "userName": self.profile.user_name,
            "role": self.profile.role,
            "department": self.profile.department,
            "seniority": self.profile.seniority,
            "location": self.profile.location,
            "type": INTERVIEW_TYPE,
            "level": "N/A",
            "messages": [m.to_dict() for m in self.messages],
            "structuredInsights": {name: i.to_dict() for name, i in self.insights.items()},
            "structuredData": dict(self.structured_data),
        }
        for name, insight in self.insights.items():
            doc[name] = insight.text

        doc.update(self.report.to_dict())
        doc["finalized"] = self.finalized
        doc["createdAt"] = self.created_at
        return doc
