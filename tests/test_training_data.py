"""Tests for training data export formatting."""

import json

from api.services.training_data import (
    conversation_pairs,
    format_interview_for_training,
    iter_jsonl,
    report_pairs,
)


def interview(**overrides):
    doc = {
        "role": "Support Lead",
        "department": "Customer Success",
        "messages": [
            {"role": "assistant", "content": "Welcome!"},
            {"role": "user", "content": "first answer"},
            {"role": "assistant", "content": "first reply"},
            {"role": "user", "content": "second answer"},
            {"role": "assistant", "content": "second reply"},
            {"role": "user", "content": "third answer"},
            {"role": "assistant", "content": "third reply"},
            {"role": "user", "content": "unanswered"},
        ],
        "structuredData": {
            "teamSize": 6,
            "automationLevel": None,
            "aiExposureLevel": 2,
            "changeReadiness": 4,
            "toolsUsed": ["Zendesk", "Slack"],
            "aiToolsUsed": [],
            "timeSpentOnRepetitiveTasks": 12.0,
            "metricsList": [],
        },
        "readinessScore": 64,
        "recommendations": ["Implement macros", "Implement triage"],
        "benchmarkSummary": "In line with peers.",
    }
    doc.update(overrides)
    return doc


class TestConversationPairs:
    def test_pairs_follow_user_assistant_exchanges(self):
        pairs = conversation_pairs(interview())

        assert [p["response"] for p in pairs] == ["first reply", "second reply", "third reply"]
        assert pairs[0]["prompt"].startswith("You are Leila")
        assert "Support Lead in the Customer Success department" in pairs[0]["prompt"]
        assert pairs[0]["prompt"].endswith("User: first answer\n\nYou:")
        assert "Conversation history" not in pairs[0]["prompt"]

    def test_history_keeps_last_four_messages(self):
        pairs = conversation_pairs(interview())

        assert "Conversation history:\nUser: first answer\nYou: first reply" in pairs[1]["prompt"]
        third = pairs[2]["prompt"]
        assert "User: first answer\nYou: first reply\nUser: second answer\nYou: second reply" in third

        extra = interview()
        extra["messages"] = extra["messages"][:-1] + [
            {"role": "user", "content": "fourth answer"},
            {"role": "assistant", "content": "fourth reply"},
        ]
        fourth = conversation_pairs(extra)[3]["prompt"]
        assert "first answer" not in fourth
        assert "second answer" in fourth

    def test_malformed_messages_are_skipped(self):
        pairs = conversation_pairs(interview(messages=[None, {"role": "user"}]))
        assert pairs == []


class TestReportPairs:
    def test_three_report_samples(self):
        pairs = report_pairs(interview())

        assert [p["response"] for p in pairs] == [
            "64",
            "Implement macros\n\nImplement triage",
            "In line with peers.",
        ]
        assert "Automation Level: Not detected%" in pairs[0]["prompt"]
        assert "Tools Used: Zendesk, Slack" in pairs[0]["prompt"]
        assert "AI Tools Used: None detected" in pairs[0]["prompt"]
        assert "Readiness Score: 64/100" in pairs[2]["prompt"]

    def test_without_structured_data(self):
        assert report_pairs(interview(structuredData=None)) == []

    def test_without_recommendations(self):
        pairs = report_pairs(interview(recommendations=[]))
        assert [p["response"] for p in pairs] == ["64", "In line with peers."]

    def test_format_combines_both(self):
        assert len(format_interview_for_training(interview())) == 6


def test_iter_jsonl():
    lines = list(iter_jsonl([{"prompt": "p", "response": "r"}, {"prompt": "é", "response": "s"}]))

    assert all(line.endswith("\n") for line in lines)
    assert json.loads(lines[1]) == {"prompt": "é", "response": "s"}
