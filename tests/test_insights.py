"""Tests for heuristic insight extraction.

Tests cover:
- Message coercion and turn grouping
- Utterance scoring and best-answer selection
- Field-specific parsing (tools, levels, team size, hours)
- Defaults for undiscussed fields and determinism
"""

import pytest

from audit.insights import (
    TRACKED_FIELDS,
    coerce_messages,
    count_substantive_user_messages,
    extract_insights,
    group_turns,
    match_labels,
    KNOWN_TOOLS,
    AI_NEGATIVE,
    AI_POSITIVE,
    normalize,
    parse_automation_level,
    parse_hours_per_week,
    parse_team_size,
    score_utterance,
    select_best_answer,
    sentiment_level,
    summarize_insights,
    FIELD_KEYWORDS,
)
from audit.models import NOT_DISCUSSED, Message, ToolsInsight


def msg(role, content):
    return {"role": role, "content": content}


# =============================================================================
# Message handling
# =============================================================================


class TestMessageHandling:
    """Test coercion and grouping of the message log."""

    def test_normalize_pads_and_collapses_punctuation(self):
        assert normalize("Hello, World!") == " hello world "

    def test_coerce_skips_malformed_messages(self):
        messages = [
            None,
            "just text",
            {"role": "robot", "content": "beep"},
            {"role": "user"},
            {"role": "user", "content": "   "},
            {"role": "user", "content": 42},
            Message(role="assistant", content="Hello"),
            {"role": "user", "content": "  Hi there  "},
        ]

        result = coerce_messages(messages)

        assert result == [
            Message(role="assistant", content="Hello"),
            Message(role="user", content="Hi there"),
        ]

    def test_coerce_none_is_empty(self):
        assert coerce_messages(None) == []

    def test_group_turns_coalesces_same_role(self):
        turns = group_turns(coerce_messages([
            msg("user", "a"),
            msg("user", "b"),
            msg("assistant", "c"),
            msg("assistant", "d"),
            msg("user", "e"),
            msg("system", "ignored"),
            msg("assistant", "f"),
        ]))

        assert len(turns) == 2
        assert turns[0].user_utterances == ["a", "b"]
        assert turns[0].assistant_utterances == ["c", "d"]
        assert turns[1].user_utterances == ["e"]
        assert turns[1].assistant_utterances == ["f"]

    def test_group_turns_leading_assistant(self):
        turns = group_turns(coerce_messages([
            msg("assistant", "Welcome"),
            msg("user", "Thanks"),
        ]))

        assert len(turns) == 2
        assert turns[0].user_utterances == []
        assert turns[1].user_utterances == ["Thanks"]

    def test_count_substantive_user_messages(self):
        messages = [
            msg("user", "short"),
            msg("user", "exactly10c"),
            msg("user", "eleven char"),
            msg("assistant", "a long assistant message"),
        ]
        assert count_substantive_user_messages(messages) == 1


# =============================================================================
# Scoring and selection
# =============================================================================


class TestScoring:
    """Test utterance scoring and answer selection."""

    def test_score_components(self):
        text = "We lose 5 hours, because of manual entry"
        # 40 chars -> 2.0, one keyword -> 2, digit 5, connective 3, comma 2
        assert score_utterance(text, FIELD_KEYWORDS["painPoints"]) == pytest.approx(14.0)

    def test_length_component_is_capped(self):
        assert score_utterance("x" * 400, ()) == pytest.approx(10.0)

    def test_no_relevant_turn_returns_none(self):
        turns = group_turns(coerce_messages([
            msg("assistant", "Hello"),
            msg("user", "Hi"),
        ]))
        assert select_best_answer(turns, "blockers") is None

    def test_close_runner_up_is_combined(self):
        turns = group_turns(coerce_messages([
            msg("user", "I handle payroll."),
            msg("assistant", "And what else is in your role?"),
            msg("user", "I also run audits."),
            msg("assistant", "Thanks, I have noted your role."),
        ]))

        text, score = select_best_answer(turns, "responsibilities")

        assert text == "I handle payroll. I also run audits."
        assert score == pytest.approx(2.85)

    def test_runner_up_not_combined_outside_combine_fields(self):
        turns = group_turns(coerce_messages([
            msg("user", "Budget is tight."),
            msg("assistant", "Any other blockers?"),
            msg("user", "Legal review."),
            msg("assistant", "Understood, blockers noted."),
        ]))

        text, _ = select_best_answer(turns, "blockers")

        assert text == "Budget is tight."


# =============================================================================
# Field parsing
# =============================================================================


class TestFieldParsing:
    """Test typed extras derived from the selected text."""

    @pytest.mark.parametrize("text,expected", [
        ("About 30% of it is automated", 30),
        ("It's mostly manual", 10),
        ("We do it manually", 15),
        ("No idea really", None),
    ])
    def test_automation_level(self, text, expected):
        assert parse_automation_level(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("I lead a team of 12", 12),
        ("We have five engineers", 5),
        ("It's just me", 1),
        ("Hard to say", None),
    ])
    def test_team_size(self, text, expected):
        assert parse_team_size(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("about 2 hours a day", 10.0),
        ("roughly 6 hours per week", 6.0),
        ("1.5 hrs each day", 7.5),
        ("quite a lot", None),
    ])
    def test_hours_per_week(self, text, expected):
        assert parse_hours_per_week(text) == expected

    def test_sentiment_neutral_when_balanced(self):
        assert sentiment_level("hmm", AI_POSITIVE, AI_NEGATIVE) == 3

    def test_sentiment_negative(self):
        assert sentiment_level("I have never used it", AI_POSITIVE, AI_NEGATIVE) == 2

    def test_negated_positive_is_not_counted(self):
        assert sentiment_level("I'm not familiar with it", AI_POSITIVE, AI_NEGATIVE) == 2

    def test_sentiment_is_clamped(self):
        text = "I use it daily, regularly, often and frequently, I love it"
        assert sentiment_level(text, AI_POSITIVE, AI_NEGATIVE) == 5

    def test_match_labels_deduplicates(self):
        assert match_labels("We use MS Teams and Microsoft Teams", KNOWN_TOOLS) == ["Microsoft Teams"]


# =============================================================================
# Extraction
# =============================================================================


class TestExtractInsights:
    """Test end-to-end extraction."""

    def test_manage_onboarding_and_bottleneck(self):
        insights = extract_insights([
            msg("user", "I manage onboarding for 10 people"),
            msg("assistant", "..."),
            msg("user", "Our biggest bottleneck is manual data entry"),
            msg("assistant", "..."),
        ])

        assert "manage onboarding" in insights["responsibilities"].text
        assert "manual data entry" in insights["painPoints"].text
        assert insights["painPoints"].source == "heuristic"
        assert 0 < insights["painPoints"].confidence <= 1

    def test_empty_log_yields_defaults(self):
        insights = extract_insights([])

        assert set(insights) == set(TRACKED_FIELDS)
        for insight in insights.values():
            assert insight.text == NOT_DISCUSSED
            assert insight.confidence == 0
            assert insight.source == "default"
        assert insights["aiExposure"].level == 0
        assert insights["teamSize"].count is None
        assert insights["currentTools"].tools_list == []

    def test_typed_extras_from_transcript(self, audit_transcript):
        insights = extract_insights(audit_transcript)

        assert insights["teamSize"].count == 8
        assert insights["timeSpentOnRepetitiveTasks"].hours_per_week == 10.0
        assert insights["aiExposure"].tools_used == ["ChatGPT"]
        assert insights["aiExposure"].level == 5

    def test_extraction_is_deterministic(self, audit_transcript):
        assert extract_insights(audit_transcript) == extract_insights(audit_transcript)

    def test_summary_shape(self, audit_transcript):
        summary = summarize_insights(extract_insights(audit_transcript))

        assert summary["teamSize"] == 8
        assert summary["aiExposureLevel"] == 5
        assert summary["aiToolsUsed"] == ["ChatGPT"]
        assert set(summary) == {
            "teamSize", "automationLevel", "aiExposureLevel", "changeReadiness",
            "toolsUsed", "aiToolsUsed", "timeSpentOnRepetitiveTasks", "metricsList",
        }

    def test_insight_serializes_camel_case(self):
        insight = ToolsInsight(text="Excel", confidence=0.5, source="heuristic",
                               tools_list=["Excel"], automation_level=20)

        assert insight.to_dict() == {
            "text": "Excel",
            "confidence": 0.5,
            "source": "heuristic",
            "toolsList": ["Excel"],
            "automationLevel": 20,
        }
