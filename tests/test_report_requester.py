"""Tests for role classification, report prompt construction and parsing."""

import json

import pytest

from audit.errors import CompletionError, ParseError
from audit.insights import extract_insights
from audit.models import AuditReport, RoleCategory
from audit.report_requester import (
    REPORT_SYSTEM_PROMPT,
    ReportRequester,
    build_report,
    build_report_prompt,
    normalize_role_category,
    parse_report_payload,
    report_from_payload,
    strip_code_fences,
)

from conftest import REPORT_JSON, FakeCompletionClient


# =============================================================================
# Parsing
# =============================================================================


class TestParsing:
    """Test fence stripping and per-field validation."""

    def test_fenced_json_is_parsed(self):
        raw = (
            "```json\n"
            '{"readinessScore": 73, "benchmarkSummary": "Ahead of peers.", '
            '"recommendations": ["Implement X"], "strengths": ["S"], "weaknesses": ["W"]}'
            "\n```"
        )

        report = build_report(parse_report_payload(raw), "Other/Admin")

        assert report.readiness_score == 73
        assert report.benchmark_summary == "Ahead of peers."
        assert report.recommendations == ["Implement X"]

    def test_strip_code_fences_plain(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    @pytest.mark.parametrize("raw", ["", "   ", "not json", "[1, 2]", '"text"'])
    def test_malformed_payload_raises_parse_error(self, raw):
        with pytest.raises(ParseError):
            parse_report_payload(raw)

    def test_missing_keys_yield_exact_defaults(self):
        assert build_report({}, RoleCategory.OTHER_ADMIN.value) == AuditReport()

    def test_single_key_reply_is_discarded(self):
        data = parse_report_payload('{"readinessScore": 80}')
        assert report_from_payload(data, "Other/Admin") == AuditReport()

    def test_complete_reply_is_kept(self):
        report = report_from_payload(json.loads(REPORT_JSON), "Marketing/Growth")
        assert report.readiness_score == 68
        assert report.role_category == "Marketing/Growth"

    @pytest.mark.parametrize("value", [150, -1, "80", True, None, float("nan"), [70]])
    def test_invalid_score_defaults_to_50(self, value):
        assert build_report({"readinessScore": value}, "Other/Admin").readiness_score == 50

    def test_float_score_is_rounded(self):
        report = build_report({"readinessScore": 72.6}, "Other/Admin")
        assert report.readiness_score == 73
        assert isinstance(report.readiness_score, int)

    def test_list_fields_are_filtered(self):
        report = build_report({"recommendations": ["a", 3, "", "  b "]}, "Other/Admin")
        assert report.recommendations == ["a", "b"]

    def test_wrong_list_types_default(self):
        report = build_report(
            {"strengths": "one strength", "weaknesses": [], "benchmarkSummary": 12},
            "Other/Admin",
        )
        assert report.strengths == ["Existing knowledge of business processes."]
        assert report.weaknesses == ["Limited AI exposure."]
        assert report.benchmark_summary == "AI readiness assessment completed."


# =============================================================================
# Role classification
# =============================================================================


class TestRoleCategory:
    """Test clamping of classifier replies onto the closed set."""

    @pytest.mark.parametrize("raw,expected", [
        ('"Software Engineering"\n', "Software Engineering"),
        ("product management.", "Product Management"),
        ("Category: Marketing/Growth", "Marketing/Growth"),
        ("Engineering", "Software Engineering"),
        ("Chief Astronaut", "Other/Admin"),
        ("Luxury Brand Marketing", "Marketing/Growth"),
        ("DevOps Lead", "Software Engineering"),
        ("Head of UX", "Product Design/UX"),
        ("Sales Ops", "Customer Support/Ops"),
        ("Cropsey Analyst", "Other/Admin"),
        ("", "Other/Admin"),
        (None, "Other/Admin"),
    ])
    def test_normalize_role_category(self, raw, expected):
        assert normalize_role_category(raw) == expected

    @pytest.mark.asyncio
    async def test_classify_role_sends_title_and_categories(self):
        client = FakeCompletionClient(["'Leadership/Strategy'"])
        requester = ReportRequester(client)

        category = await requester.classify_role("VP of Strategy")

        assert category == "Leadership/Strategy"
        prompt = client.calls[0]["prompt"]
        assert "VP of Strategy" in prompt
        for c in RoleCategory:
            assert c.value in prompt

    @pytest.mark.asyncio
    async def test_classify_role_failure_defaults(self):
        requester = ReportRequester(FakeCompletionClient([CompletionError("timeout")]))
        assert await requester.classify_role("Analyst") == "Other/Admin"


# =============================================================================
# Report request
# =============================================================================


class TestRequestReport:
    """Test the two-call report flow."""

    def test_prompt_embeds_fields_and_rubric(self, profile, audit_transcript):
        prompt = build_report_prompt(profile, extract_insights(audit_transcript))

        assert "Onboarding Manager" in prompt
        assert "Team Size: 8" in prompt
        assert "25%" in prompt
        assert "Technical readiness" in prompt
        assert "Strategic readiness" in prompt
        assert '"readinessScore"' in prompt

    @pytest.mark.asyncio
    async def test_successful_report(self, profile, audit_transcript):
        client = FakeCompletionClient(["Customer Support/Ops", REPORT_JSON])
        requester = ReportRequester(client)

        report = await requester.request_report(
            profile, extract_insights(audit_transcript), audit_transcript
        )

        assert report.readiness_score == 68
        assert report.role_category == "Customer Support/Ops"
        assert report.strengths == ["Daily use of ChatGPT."]
        assert len(client.calls) == 2
        report_call = client.calls[1]
        assert report_call["response_format"] == {"type": "json_object"}
        assert report_call["system"] == REPORT_SYSTEM_PROMPT
        assert "TRANSCRIPT:" in report_call["prompt"]

    @pytest.mark.asyncio
    async def test_completion_failure_yields_default_report(self, profile):
        client = FakeCompletionClient([
            CompletionError("timeout"),
            CompletionError("timeout"),
        ])

        report = await ReportRequester(client).request_report(profile, extract_insights([]))

        assert report == AuditReport()
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_unexpected_exception_yields_default_report(self, profile):
        client = FakeCompletionClient(["Other/Admin", RuntimeError("socket closed")])

        report = await ReportRequester(client).request_report(profile, extract_insights([]))

        assert report == AuditReport()

    @pytest.mark.asyncio
    async def test_invalid_values_default_per_field(self, profile):
        raw = json.dumps({
            "readinessScore": 120,
            "benchmarkSummary": "",
            "recommendations": ["Implement ticket triage."],
            "strengths": ["Curious team"],
            "weaknesses": "none",
        })
        client = FakeCompletionClient(["Product Design/UX", raw])

        report = await ReportRequester(client).request_report(profile, extract_insights([]))

        assert report.readiness_score == 50
        assert report.benchmark_summary == "AI readiness assessment completed."
        assert report.recommendations == ["Implement ticket triage."]
        assert report.strengths == ["Curious team"]
        assert report.weaknesses == ["Limited AI exposure."]
        assert report.role_category == "Product Design/UX"

    @pytest.mark.asyncio
    async def test_reply_missing_keys_yields_default_report(self, profile):
        client = FakeCompletionClient(["Product Design/UX", json.dumps({"readinessScore": 80})])

        report = await ReportRequester(client).request_report(profile, extract_insights([]))

        assert report == AuditReport(role_category="Product Design/UX")
