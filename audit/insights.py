"""Heuristic insight extraction from an interview transcript.

Turns the message log into one StructuredInsight per tracked field using
keyword relevance and response scoring. No network calls; the same log
always yields the same result.

Algorithm:
1. Group messages into turns (a user message after a turn that already
   holds an assistant message opens a new turn).
2. A turn is relevant to a field when any of its messages contains one of
   the field's keywords.
3. User utterances from relevant turns are scored; the best one becomes the
   field text, optionally joined with a close runner-up.
4. Field-specific passes pull tools, levels and numbers out of the text.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from audit.models import (
    NOT_DISCUSSED,
    SOURCE_HEURISTIC,
    AIExposureInsight,
    ChangeAppetiteInsight,
    ConversationTurn,
    Message,
    MetricsInsight,
    RepetitiveTimeInsight,
    Role,
    StructuredInsight,
    TeamSizeInsight,
    ToolsInsight,
)

logger = structlog.get_logger()

EXTRACTION_VERSION = "3.0"

# Keywords are matched against normalized text: lowercase, every run of
# punctuation/whitespace collapsed to one space, padded with spaces.
# A leading or trailing space in a keyword therefore means a word boundary.
FIELD_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "responsibilities": (
        "responsib", "role", "day to day", "typical day", "in charge",
        "manage", "oversee", "accountable", "my job", "duties", "handle",
    ),
    "painPoints": (
        "pain", "challeng", "frustrat", "problem", "bottleneck", "difficult",
        "struggle", " slow", "manual", "tedious", "time consuming", "waste",
        "annoy", "headache",
    ),
    "currentTools": (
        "tool", "software", "platform", "system", " excel", "spreadsheet",
        " crm", " erp", "automat", " stack",
    ),
    "aiExposure": (
        " ai ", "artificial intelligence", "chatgpt", "chat gpt", " gpt",
        "copilot", "machine learning", "generative", " llm",
    ),
    "changeAppetite": (
        "change", "adopt", "new tool", "new technolog", "open to", "willing",
        "appetite", "transform", "embrace", "resist", "comfortable with",
    ),
    "teamSize": (
        " team", "people", " staff", "headcount", "direct report",
        "colleagues", "members", "employees",
    ),
    "processMap": (
        "process", "workflow", " step", "procedure", "pipeline", "hand off",
        "handoff", "approval",
    ),
    "metricsUsed": (
        "metric", "measure", " kpi", " track", "target", " okr", "dashboard",
        "success look",
    ),
    "rootCauses": (
        "root cause", "because", "reason", " cause", " why ", "stems from",
        "due to",
    ),
    "dataFlows": (
        " data", "information", "database", "export", "import", "integrat",
        " sync", "source of truth",
    ),
    "aiOpportunities": (
        "opportunit", "automate", "magic wand", " wish", "if you could",
        "save time", "saving time", "free up",
    ),
    "blockers": (
        "blocker", "block", "barrier", "obstacle", "prevent", "holding back",
        "hold back", "budget", " risk",
    ),
    "timeSpentOnRepetitiveTasks": (
        "repetitive", " hour", "time spent", "how long", "per week", "a week",
        "each day", "routine",
    ),
}

TRACKED_FIELDS: Tuple[str, ...] = tuple(FIELD_KEYWORDS)

# Fields where a close runner-up adds complementary detail
COMBINE_FIELDS = frozenset({"responsibilities", "painPoints", "currentTools"})
COMBINE_MAX_SCORE_GAP = 5

REASONING_CONNECTIVES = (" because ", " since ", " due to ")

KNOWN_TOOLS: Tuple[Tuple[str, str], ...] = (
    ("Excel", " excel"),
    ("Google Sheets", "google sheets"),
    ("Google Workspace", "google workspace"),
    ("Salesforce", "salesforce"),
    ("HubSpot", "hubspot"),
    ("Jira", " jira"),
    ("Confluence", "confluence"),
    ("Slack", " slack"),
    ("Microsoft Teams", "microsoft teams"),
    ("Microsoft Teams", " ms teams"),
    ("SharePoint", "sharepoint"),
    ("Outlook", "outlook"),
    ("Notion", " notion"),
    ("Asana", " asana"),
    ("Trello", "trello"),
    ("Monday.com", "monday com"),
    ("SAP", " sap "),
    ("Oracle", " oracle"),
    ("Workday", "workday"),
    ("ServiceNow", "servicenow"),
    ("Zendesk", "zendesk"),
    ("Freshdesk", "freshdesk"),
    ("Intercom", "intercom"),
    ("Power BI", "power bi"),
    ("Tableau", "tableau"),
    ("Looker", "looker"),
    ("Figma", "figma"),
    ("GitHub", "github"),
    ("GitLab", "gitlab"),
    ("QuickBooks", "quickbooks"),
    ("Xero", " xero"),
    ("Zapier", "zapier"),
    ("Airtable", "airtable"),
    ("Shopify", "shopify"),
    ("Mailchimp", "mailchimp"),
    ("Canva", " canva"),
)

KNOWN_AI_TOOLS: Tuple[Tuple[str, str], ...] = (
    ("ChatGPT", "chatgpt"),
    ("ChatGPT", "chat gpt"),
    ("Copilot", "copilot"),
    ("Claude", " claude"),
    ("Gemini", "gemini"),
    ("Bard", " bard "),
    ("Midjourney", "midjourney"),
    ("DALL-E", "dall e"),
    ("Perplexity", "perplexity"),
    ("Jasper", "jasper"),
    ("Grammarly", "grammarly"),
    ("Otter", " otter"),
)

KNOWN_METRICS: Tuple[Tuple[str, str], ...] = (
    ("KPIs", " kpi"),
    ("OKRs", " okr"),
    ("NPS", " nps "),
    ("CSAT", "csat"),
    ("Customer satisfaction", "customer satisfaction"),
    ("Revenue", "revenue"),
    ("Conversion rate", "conversion"),
    ("Churn", "churn"),
    ("Retention", "retention"),
    ("SLA", " sla"),
    ("Response time", "response time"),
    ("Resolution time", "resolution time"),
    ("Turnaround time", "turnaround"),
    ("ROI", " roi "),
    ("Velocity", "velocity"),
    ("Uptime", "uptime"),
    ("Engagement", "engagement"),
    ("Ticket volume", "ticket volume"),
    ("Lead time", "lead time"),
    ("Cycle time", "cycle time"),
    ("Utilisation", "utilisation"),
    ("Utilisation", "utilization"),
)

AI_POSITIVE = (
    "daily", "every day", "regularly", "all the time", "comfortable",
    "familiar", "experiment", "love", "rely on", "integrated", "often",
    "frequently", "use it", "using it", "built",
)
AI_NEGATIVE = (
    "never", "not really", "haven t", "have not", "don t use", "do not use",
    "no experience", "unfamiliar", "not familiar", "sceptic", "skeptic",
    "not allowed", "banned", "rarely", "nervous",
)
CHANGE_POSITIVE = (
    "excited", "open to", "eager", "willing", "keen", "love to", "happy to",
    "embrace", "looking forward", "enthusias", "curious", "ready",
)
CHANGE_NEGATIVE = (
    "resist", "reluctant", "worried", "concern", "hesitant", "afraid",
    "cautious", "sceptic", "skeptic", "not ready", "push back", "pushback",
    "fear", "slow to adopt",
)
NEUTRAL_LEVEL = 3
MAX_LEVEL = 5

AUTOMATION_PHRASES: Tuple[Tuple[str, int], ...] = (
    ("fully automated", 90),
    ("completely automated", 90),
    ("mostly automated", 70),
    ("largely automated", 70),
    ("partially automated", 40),
    ("semi automated", 40),
    ("some automation", 40),
    ("mostly manual", 10),
    ("completely manual", 5),
    ("all manual", 5),
    ("manually", 15),
)

WORD_NUMBERS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
    "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50, "hundred": 100,
}
_WORD_NUMBER_RE = re.compile(r"\b(" + "|".join(WORD_NUMBERS) + r")\b")
_TEAM_SIZE_PATTERNS = (
    re.compile(r"team of (\d+)"),
    re.compile(
        r"(\d+)\s*(?:people|persons|person|members|staff|employees|colleagues|"
        r"direct reports|reports|engineers|developers|designers|agents|analysts|"
        r"marketers|managers|consultants)"
    ),
)
_SOLO_PHRASES = ("just me", "by myself", "on my own", "solo")
_PERCENT_RE = re.compile(r"(\d{1,3})\s*(?:%|percent)")
_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?)\b")
_PER_DAY_RE = re.compile(r"^\s*(?:a|per|each|every)\s+day|^\s*daily")
_NORMALIZE_RE = re.compile(r"[^a-z0-9%]+")
_DIGIT_RE = re.compile(r"\d")

WORK_DAYS_PER_WEEK = 5

MessageLike = Union[Message, Mapping[str, Any]]


def normalize(text: str) -> str:
    """Lowercase and collapse punctuation so keywords match on word edges."""
    return f" {_NORMALIZE_RE.sub(' ', text.lower()).strip()} "


def coerce_messages(messages: Optional[Iterable[MessageLike]]) -> List[Message]:
    """Keep only well-formed messages, in order.

    Accepts Message objects or mappings with ``role``/``content`` keys.
    Anything else is skipped rather than raising.
    """
    valid_roles = {r.value for r in Role}
    result: List[Message] = []
    for m in messages or []:
        if isinstance(m, Message):
            role, content = m.role, m.content
        elif isinstance(m, Mapping):
            role, content = m.get("role"), m.get("content")
        else:
            continue
        if isinstance(role, Role):
            role = role.value
        if role not in valid_roles or not isinstance(content, str) or not content.strip():
            continue
        result.append(Message(role=role, content=content.strip()))
    return result


def group_turns(messages: Sequence[Message]) -> List[ConversationTurn]:
    """Group consecutive messages into conversation turns.

    System messages carry no conversational content and are skipped.
    """
    turns: List[ConversationTurn] = []
    current: Optional[ConversationTurn] = None

    for m in messages:
        if m.role == Role.USER.value:
            if current is None or current.assistant_utterances:
                current = ConversationTurn()
                turns.append(current)
            current.user_utterances.append(m.content)
        elif m.role == Role.ASSISTANT.value:
            if current is None:
                current = ConversationTurn()
                turns.append(current)
            current.assistant_utterances.append(m.content)

    return turns


def keyword_hits(text: str, keywords: Iterable[str]) -> int:
    """Count distinct keywords present in text."""
    norm = normalize(text)
    return sum(1 for kw in set(keywords) if kw in norm)


def score_utterance(text: str, keywords: Iterable[str]) -> float:
    """Score how informative an answer is for a field."""
    norm = normalize(text)
    score = min(len(text) / 20, 10)
    score += 2 * keyword_hits(text, keywords)
    if _DIGIT_RE.search(text):
        score += 5
    if any(conn in norm for conn in REASONING_CONNECTIVES):
        score += 3
    if "," in text:
        score += 2
    return score


def is_relevant(turn: ConversationTurn, keywords: Iterable[str]) -> bool:
    return any(keyword_hits(u, keywords) for u in turn.all_utterances())


def select_best_answer(
    turns: Sequence[ConversationTurn],
    field_name: str,
) -> Optional[Tuple[str, float]]:
    """Pick the best-scoring user answer for a field.

    Returns (text, top_score) or None when no turn touched the field.
    """
    keywords = FIELD_KEYWORDS[field_name]
    candidates: List[str] = []
    for turn in turns:
        if not is_relevant(turn, keywords):
            continue
        for utterance in turn.user_utterances:
            if utterance not in candidates:
                candidates.append(utterance)

    if not candidates:
        return None

    # sorted() is stable: equal scores keep conversational order
    ranked = sorted(
        ((score_utterance(c, keywords), c) for c in candidates),
        key=lambda pair: pair[0],
        reverse=True,
    )
    top_score, text = ranked[0]

    if field_name in COMBINE_FIELDS and len(ranked) > 1:
        second_score, second = ranked[1]
        if top_score - second_score < COMBINE_MAX_SCORE_GAP and second.lower() not in text.lower():
            text = f"{text} {second}"

    return text, top_score


def match_labels(text: str, catalogue: Iterable[Tuple[str, str]]) -> List[str]:
    """Return catalogue labels whose keyword appears in text, deduplicated."""
    norm = normalize(text)
    found: List[str] = []
    for label, keyword in catalogue:
        if keyword in norm and label not in found:
            found.append(label)
    return found


def sentiment_level(text: str, positive: Iterable[str], negative: Iterable[str]) -> int:
    """Map positive vs negative keyword counts onto a 0-5 level.

    Equal counts (including none) give the neutral level. Negative phrases
    are removed before counting positives so that "not familiar" does not
    also count as "familiar".
    """
    norm = normalize(text)
    neg = 0
    for kw in negative:
        if kw in norm:
            neg += 1
            norm = norm.replace(kw, " ")
    pos = sum(1 for kw in positive if kw in norm)
    level = NEUTRAL_LEVEL + (pos - neg)
    return max(0, min(MAX_LEVEL, level))


def parse_automation_level(text: str) -> Optional[int]:
    match = _PERCENT_RE.search(text.lower())
    if match:
        return min(int(match.group(1)), 100)
    norm = normalize(text)
    for phrase, level in AUTOMATION_PHRASES:
        if f" {phrase} " in norm:
            return level
    return None


def parse_team_size(text: str) -> Optional[int]:
    lowered = text.lower()
    with_digits = _WORD_NUMBER_RE.sub(lambda m: str(WORD_NUMBERS[m.group(1)]), lowered)
    for pattern in _TEAM_SIZE_PATTERNS:
        match = pattern.search(with_digits)
        if match:
            return int(match.group(1))
    norm = normalize(text)
    if any(f" {p} " in norm for p in _SOLO_PHRASES):
        return 1
    return None


def parse_hours_per_week(text: str) -> Optional[float]:
    lowered = text.lower()
    match = _HOURS_RE.search(lowered)
    if not match:
        return None
    hours = float(match.group(1))
    if _PER_DAY_RE.search(lowered[match.end():]):
        hours *= WORK_DAYS_PER_WEEK
    return round(hours, 1)


def _base_fields(answer: Optional[Tuple[str, float]]) -> Dict[str, Any]:
    if answer is None:
        return {}
    text, top_score = answer
    return {
        "text": text,
        "confidence": min(top_score / 20, 1.0),
        "source": SOURCE_HEURISTIC,
    }


def build_insight(field_name: str, answer: Optional[Tuple[str, float]]) -> StructuredInsight:
    """Build the typed insight for one field from its selected answer."""
    base = _base_fields(answer)
    text = base.get("text", "")
    discussed = answer is not None

    if field_name == "currentTools":
        return ToolsInsight(
            **base,
            tools_list=match_labels(text, KNOWN_TOOLS),
            automation_level=parse_automation_level(text) if discussed else None,
        )
    if field_name == "aiExposure":
        return AIExposureInsight(
            **base,
            level=sentiment_level(text, AI_POSITIVE, AI_NEGATIVE) if discussed else 0,
            tools_used=match_labels(text, KNOWN_AI_TOOLS),
        )
    if field_name == "changeAppetite":
        return ChangeAppetiteInsight(
            **base,
            level=sentiment_level(text, CHANGE_POSITIVE, CHANGE_NEGATIVE) if discussed else 0,
        )
    if field_name == "teamSize":
        return TeamSizeInsight(**base, count=parse_team_size(text) if discussed else None)
    if field_name == "timeSpentOnRepetitiveTasks":
        return RepetitiveTimeInsight(
            **base,
            hours_per_week=parse_hours_per_week(text) if discussed else None,
        )
    if field_name == "metricsUsed":
        return MetricsInsight(**base, metrics_list=match_labels(text, KNOWN_METRICS))
    return StructuredInsight(**base)


def extract_insights(messages: Optional[Iterable[MessageLike]]) -> Dict[str, StructuredInsight]:
    """Extract a StructuredInsight for every tracked field.

    Never raises; an empty or unusable log yields defaults for every field.
    """
    log = coerce_messages(messages)
    turns = group_turns(log)

    insights: Dict[str, StructuredInsight] = {}
    for field_name in TRACKED_FIELDS:
        answer = select_best_answer(turns, field_name) if turns else None
        insights[field_name] = build_insight(field_name, answer)

    discussed = [name for name, i in insights.items() if i.text != NOT_DISCUSSED]
    logger.debug(
        "Insights extracted",
        version=EXTRACTION_VERSION,
        messages=len(log),
        turns=len(turns),
        fields_discussed=len(discussed),
    )
    return insights


def summarize_insights(insights: Mapping[str, StructuredInsight]) -> Dict[str, Any]:
    """Flat numeric/categorical summary used in prompts and training export."""
    tools = insights.get("currentTools")
    ai = insights.get("aiExposure")
    change = insights.get("changeAppetite")
    team = insights.get("teamSize")
    hours = insights.get("timeSpentOnRepetitiveTasks")
    metrics = insights.get("metricsUsed")

    return {
        "teamSize": getattr(team, "count", None),
        "automationLevel": getattr(tools, "automation_level", None),
        "aiExposureLevel": getattr(ai, "level", 0),
        "changeReadiness": getattr(change, "level", 0),
        "toolsUsed": list(getattr(tools, "tools_list", [])),
        "aiToolsUsed": list(getattr(ai, "tools_used", [])),
        "timeSpentOnRepetitiveTasks": getattr(hours, "hours_per_week", None),
        "metricsList": list(getattr(metrics, "metrics_list", [])),
    }


def count_substantive_user_messages(
    messages: Optional[Iterable[MessageLike]],
    min_chars: int = 10,
) -> int:
    """Count user messages longer than ``min_chars`` characters."""
    return sum(
        1
        for m in coerce_messages(messages)
        if m.role == Role.USER.value and len(m.content) > min_chars
    )
