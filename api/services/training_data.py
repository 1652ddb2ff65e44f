"""Fine-tuning data derived from finalized interview documents."""

import json
from typing import Any, Dict, Iterable, Iterator, List, Mapping

TrainingPair = Dict[str, str]

MAX_HISTORY_MESSAGES = 4

CONSULTANT_CONTEXT = (
    "You are Leila, Principal AI Strategy Consultant at SingularShift, conducting an "
    "AI readiness interview with a {role} in the {department} department.\n"
    "Your goal is to understand their workflows, tools, challenges, and opportunities "
    "for AI implementation.\n"
    "Respond in a warm, professional tone with short, focused questions. Use British English."
)


def _structured_block(interview: Mapping[str, Any], include_score: bool = False) -> str:
    data = interview.get("structuredData") or {}
    context = [
        f"• Role: {interview.get('role')}",
        f"• Department: {interview.get('department')}",
        f"• Team Size: {data.get('teamSize') or 'Not specified'}",
    ]
    if include_score:
        context.append(f"• Readiness Score: {interview.get('readinessScore')}/100")

    structured = [
        f"• Automation Level: {data.get('automationLevel') or 'Not detected'}%",
        f"• AI Exposure Level: {data.get('aiExposureLevel') or 0}/5",
        f"• Change Readiness: {data.get('changeReadiness') or 0}/5",
        f"• Tools Used: {', '.join(data.get('toolsUsed') or []) or 'None detected'}",
        f"• AI Tools Used: {', '.join(data.get('aiToolsUsed') or []) or 'None detected'}",
        "• Time Spent on Repetitive Tasks: "
        f"{data.get('timeSpentOnRepetitiveTasks') or 'Not specified'} hours/week",
    ]
    return "INTERVIEW CONTEXT:\n" + "\n".join(context) + "\n\nSTRUCTURED DATA:\n" + "\n".join(structured)


def _consultant_prompt(task: str, interview: Mapping[str, Any], instruction: str, include_score: bool = False) -> str:
    return (
        f"You are an AI readiness consultant analyzing interview data to produce {task}.\n\n"
        f"{_structured_block(interview, include_score)}\n\n{instruction}"
    )


def conversation_pairs(interview: Mapping[str, Any]) -> List[TrainingPair]:
    """One pair per user message answered by the assistant, with recent history."""
    messages = [
        m for m in interview.get("messages") or []
        if isinstance(m, Mapping) and isinstance(m.get("content"), str)
    ]
    system_context = CONSULTANT_CONTEXT.format(
        role=interview.get("role"),
        department=interview.get("department"),
    )

    pairs: List[TrainingPair] = []
    history: List[Mapping[str, Any]] = []
    for current, following in zip(messages, messages[1:]):
        if current.get("role") != "user" or following.get("role") != "assistant":
            continue

        prompt = system_context
        if history:
            prompt += "\n\nConversation history:\n"
            for m in history:
                speaker = "User" if m.get("role") == "user" else "You"
                prompt += f"{speaker}: {m['content'].strip()}\n"
        prompt += f"\nUser: {current['content'].strip()}\n\nYou: "

        pairs.append({"prompt": prompt.strip(), "response": following["content"].strip()})

        history.extend([current, following])
        history = history[-MAX_HISTORY_MESSAGES:]
    return pairs


def report_pairs(interview: Mapping[str, Any]) -> List[TrainingPair]:
    """Score, recommendation and benchmark samples for report generation."""
    score = interview.get("readinessScore")
    if not interview.get("structuredData") or score is None:
        return []

    pairs = [{
        "prompt": _consultant_prompt(
            "a readiness score",
            interview,
            "Provide an AI readiness score from 0-100 based on this data. "
            "Return only the score as a number.",
        ),
        "response": str(score),
    }]

    recommendations = interview.get("recommendations") or []
    if recommendations:
        pairs.append({
            "prompt": _consultant_prompt(
                "recommendations",
                interview,
                "Based on this data, provide 3 specific, practical recommendations for "
                "improving AI readiness. Each recommendation should follow the format: "
                '"Implement [specific solution] for [specific process] to address '
                '[specific pain point]." Return only the recommendations.',
            ),
            "response": "\n\n".join(recommendations),
        })

    summary = interview.get("benchmarkSummary")
    if summary:
        pairs.append({
            "prompt": _consultant_prompt(
                "a benchmark summary",
                interview,
                "Provide a concise, evidence-based benchmark summary (100-150 words) "
                "with role-specific context.",
                include_score=True,
            ),
            "response": summary,
        })
    return pairs


def format_interview_for_training(interview: Mapping[str, Any]) -> List[TrainingPair]:
    return conversation_pairs(interview) + report_pairs(interview)


def iter_jsonl(pairs: Iterable[TrainingPair]) -> Iterator[str]:
    """Newline-delimited JSON lines, one per pair."""
    for pair in pairs:
        yield json.dumps(pair, ensure_ascii=False) + "\n"
