"""
tests/test_validator.py

Tests for llm/validator.py — JSON extraction, field-by-field merging over
the heuristic fallback, clamping and anomaly-list parsing.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from honeyshield.backend.llm.validator import extract_json, merge_analysis, parse_anomalies
from honeyshield.backend.models import AttackAnalysis

T_FIRST = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
T_LAST = datetime(2024, 6, 1, 11, 0, tzinfo=timezone.utc)


def _fallback() -> AttackAnalysis:
    return AttackAnalysis(
        attack_type="SQL Injection",
        technique="Boolean-based Blind SQL Injection",
        risk_score=6,
        confidence=80,
        recommendations=["Implement parameterized queries"],
        is_new_pattern=False,
    )


def _remote(**overrides) -> str:
    data = {
        "attackType": "SQL Injection (tautology)",
        "technique": "Authentication bypass via OR 1=1",
        "riskScore": 8,
        "confidence": 91,
        "recommendations": ["Use prepared statements", "Enable WAF"],
        "isNewPattern": True,
        "patternName": "Tautology Login Bypass",
        "patternDescription": "Classic always-true predicate on login form",
    }
    data.update(overrides)
    return json.dumps(data)


# ---------------------------------------------------------------------------
# JSON extraction
# ---------------------------------------------------------------------------

class TestExtractJson:

    def test_plain_object(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_markdown_fence(self):
        assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_preamble_text(self):
        assert extract_json('Here is the analysis: {"a": 1} hope it helps') == {"a": 1}

    @pytest.mark.parametrize("raw", ["", "   ", "no json here", "{broken"])
    def test_unparseable_returns_none(self, raw):
        assert extract_json(raw) is None


# ---------------------------------------------------------------------------
# merge_analysis
# ---------------------------------------------------------------------------

class TestMergeAnalysis:

    def test_full_reply_overrides_fallback(self):
        result = merge_analysis(_remote(), _fallback())
        assert result.technique == "Authentication bypass via OR 1=1"
        assert result.risk_score == 8
        assert result.confidence == 91
        assert result.recommendations == ["Use prepared statements", "Enable WAF"]
        assert result.is_new_pattern is True
        assert result.pattern_name == "Tautology Login Bypass"

    def test_out_of_range_numbers_are_clamped(self):
        result = merge_analysis(_remote(riskScore=15, confidence=250), _fallback())
        assert result.risk_score == 10
        assert result.confidence == 100

    def test_negative_numbers_are_clamped(self):
        result = merge_analysis(_remote(riskScore=-3, confidence=-1), _fallback())
        assert result.risk_score == 1
        assert result.confidence == 0

    def test_missing_fields_use_fallback(self):
        result = merge_analysis(json.dumps({"technique": "Remote label"}), _fallback())
        fb = _fallback()
        assert result.technique == "Remote label"
        assert result.attack_type == fb.attack_type
        assert result.risk_score == fb.risk_score
        assert result.confidence == fb.confidence
        assert result.recommendations == fb.recommendations
        assert result.is_new_pattern is False

    @pytest.mark.parametrize("field,bad", [
        ("riskScore", "high"),
        ("riskScore", True),
        ("confidence", None),
        ("recommendations", "just a string"),
        ("isNewPattern", "yes"),
        ("technique", 42),
    ])
    def test_wrong_type_uses_fallback(self, field, bad):
        result = merge_analysis(_remote(**{field: bad}), _fallback())
        fb = _fallback()
        expected = {
            "riskScore": ("risk_score", fb.risk_score),
            "confidence": ("confidence", fb.confidence),
            "recommendations": ("recommendations", fb.recommendations),
            "isNewPattern": ("is_new_pattern", fb.is_new_pattern),
            "technique": ("technique", fb.technique),
        }[field]
        assert getattr(result, expected[0]) == expected[1]

    def test_float_scores_rounded(self):
        result = merge_analysis(_remote(riskScore=7.6, confidence=88.4), _fallback())
        assert result.risk_score == 8
        assert result.confidence == 88

    def test_non_object_reply_returns_none(self):
        assert merge_analysis("[1, 2, 3]", _fallback()) is None
        assert merge_analysis("sorry, I cannot help", _fallback()) is None

    def test_fallback_not_mutated(self):
        fb = _fallback()
        merge_analysis(_remote(), fb)
        assert fb == _fallback()


# ---------------------------------------------------------------------------
# parse_anomalies
# ---------------------------------------------------------------------------

class TestParseAnomalies:

    def test_anomaly_list(self):
        raw = json.dumps({"anomalies": [{
            "name": "Slow Credential Spray",
            "description": "Low-rate logins from many sources",
            "confidence": 82,
            "technique": "Password spraying",
            "riskScore": 7,
            "occurrences": 12,
        }]})
        patterns = parse_anomalies(raw, T_FIRST, T_LAST)
        assert len(patterns) == 1
        p = patterns[0]
        assert p.name == "Slow Credential Spray"
        assert p.risk_score == 7
        assert p.occurrences == 12
        assert p.first_seen == T_FIRST
        assert p.last_seen == T_LAST
        assert p.status == "new"
        assert p.ai_generated is True

    def test_defaults_and_clamping(self):
        raw = json.dumps({"anomalies": [{"confidence": 400, "riskScore": 0}]})
        p = parse_anomalies(raw, T_FIRST, T_LAST)[0]
        assert p.name == "Unknown Pattern"
        assert p.description == "No description available"
        assert p.technique == "Unknown"
        assert p.confidence == 100
        assert p.risk_score == 1
        assert p.occurrences == 1

    def test_bare_list_accepted(self):
        raw = json.dumps([{"name": "A"}, "not an object", {"name": "B"}])
        assert [p.name for p in parse_anomalies(raw, T_FIRST, T_LAST)] == ["A", "B"]

    def test_empty_list(self):
        assert parse_anomalies('{"anomalies": []}', T_FIRST, T_LAST) == []

    def test_garbage_returns_none(self):
        assert parse_anomalies("nope", T_FIRST, T_LAST) is None
        assert parse_anomalies('{"anomalies": "none"}', T_FIRST, T_LAST) is None


# ---------------------------------------------------------------------------
# Extreme and non-finite numbers
# ---------------------------------------------------------------------------

HUGE_INT = "9" * 400


class TestUntrustedNumbers:

    def test_int_too_large_for_float_uses_fallback(self):
        raw = '{"riskScore": ' + HUGE_INT + ', "confidence": ' + HUGE_INT + '}'
        result = merge_analysis(raw, _fallback())
        assert result.risk_score == _fallback().risk_score
        assert result.confidence == _fallback().confidence

    @pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_uses_fallback(self, token):
        raw = '{"riskScore": %s, "confidence": %s}' % (token, token)
        result = merge_analysis(raw, _fallback())
        assert result.risk_score == _fallback().risk_score
        assert result.confidence == _fallback().confidence

    def test_huge_float_is_clamped(self):
        result = merge_analysis('{"riskScore": 1e300, "confidence": -1e300}', _fallback())
        assert result.risk_score == 10
        assert result.confidence == 0

    @pytest.mark.parametrize("value,expected", [
        ("1e30", 10_000),
        ("123456789012", 10_000),
        (HUGE_INT, 1),
        ("NaN", 1),
        ("-Infinity", 1),
        ("-5", 1),
        ("7.9", 7),
    ])
    def test_anomaly_occurrences_bounded(self, value, expected):
        raw = '{"anomalies": [{"name": "x", "occurrences": %s}]}' % value
        assert parse_anomalies(raw, T_FIRST, T_LAST)[0].occurrences == expected

    def test_anomaly_scores_with_huge_values(self):
        raw = '{"anomalies": [{"confidence": %s, "riskScore": 1e30}]}' % HUGE_INT
        p = parse_anomalies(raw, T_FIRST, T_LAST)[0]
        assert p.confidence == 50
        assert p.risk_score == 10
