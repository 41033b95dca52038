"""
tests/test_client.py

Tests for llm/client.py — the remote adapter, driven through
httpx.MockTransport so no network is used.
"""

from __future__ import annotations

import json
import random
from datetime import datetime, timezone

import httpx
import pytest

from honeyshield.backend.engine.anomaly import AnomalyAnalyzer
from honeyshield.backend.engine.scorer import ThreatScorer
from honeyshield.backend.llm.client import LLMClient
from honeyshield.backend.llm.gatekeeper import LLMGatekeeper
from honeyshield.backend.models import AttackPattern, TrafficLog


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def make_log(source_ip: str = "203.0.113.5", attack_type: str = "SQL Injection", offset: int = 0) -> TrafficLog:
    return TrafficLog(
        timestamp=datetime(2024, 6, 1, 12, 0, offset, tzinfo=timezone.utc),
        source_ip=source_ip,
        country="RU",
        attack_type=attack_type,
        target="/admin/login.php",
        severity="high",
        status="blocked",
        method="POST",
        port=443,
        payload="' OR '1'='1",
        user_agent="curl/7.68.0",
        id=1,
    )


def completion(content: dict | str) -> dict:
    if not isinstance(content, str):
        content = json.dumps(content)
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]


def make_client(recorder: Recorder, clock: FakeClock | None = None, api_key: str | None = "sk-test") -> LLMClient:
    gatekeeper = LLMGatekeeper(
        enabled=bool(api_key),
        min_interval_seconds=2.0,
        quota_cooldown_seconds=300.0,
        clock=clock or FakeClock(),
    )
    return LLMClient(
        api_key=api_key,
        base_url="https://llm.example.test/v1",
        model="test-model",
        timeout=5.0,
        gatekeeper=gatekeeper,
        transport=httpx.MockTransport(recorder),
    )


@pytest.fixture
def scorer():
    return ThreatScorer(rng=random.Random(0), random_new_pattern_rate=0.0)


REMOTE_ANALYSIS = {
    "attackType": "SQL Injection",
    "technique": "Tautology-based authentication bypass",
    "riskScore": 12,
    "confidence": 93,
    "recommendations": ["Use prepared statements"],
    "isNewPattern": False,
}


# ---------------------------------------------------------------------------
# analyze()
# ---------------------------------------------------------------------------

class TestAnalyze:

    @pytest.mark.asyncio
    async def test_success_merges_and_clamps(self, scorer):
        recorder = Recorder(httpx.Response(200, json=completion(REMOTE_ANALYSIS)))
        client = make_client(recorder)
        log = make_log()

        result = await client.analyze(log, scorer.score_log(log))

        assert result.technique == "Tautology-based authentication bypass"
        assert result.risk_score == 10
        assert result.confidence == 93
        assert client.stats["calls_made"] == 1

    @pytest.mark.asyncio
    async def test_request_shape(self, scorer):
        recorder = Recorder(httpx.Response(200, json=completion(REMOTE_ANALYSIS)))
        client = make_client(recorder)
        log = make_log()

        await client.analyze(log, scorer.score_log(log))

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://llm.example.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == "test-model"
        assert body["response_format"] == {"type": "json_object"}
        assert [m["role"] for m in body["messages"]] == ["system", "user"]
        assert "203.0.113.5" in body["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_two_quick_calls_make_one_request(self, scorer):
        recorder = Recorder(httpx.Response(200, json=completion(REMOTE_ANALYSIS)))
        clock = FakeClock()
        client = make_client(recorder, clock=clock)
        first_log, second_log = make_log(), make_log(source_ip="198.51.100.7")
        second_fallback = scorer.score_log(second_log)

        first = await client.analyze(first_log, scorer.score_log(first_log))
        clock.now += 1.0
        second = await client.analyze(second_log, second_fallback)

        assert len(recorder.requests) == 1
        assert first.technique == "Tautology-based authentication bypass"
        assert second == second_fallback

    @pytest.mark.asyncio
    async def test_no_api_key_never_calls(self, scorer):
        recorder = Recorder(httpx.Response(200, json=completion(REMOTE_ANALYSIS)))
        client = make_client(recorder, api_key=None)
        log = make_log()
        fallback = scorer.score_log(log)

        assert await client.analyze(log, fallback) == fallback
        assert recorder.requests == []
        assert client.enabled is False

    @pytest.mark.asyncio
    async def test_429_starts_cooldown(self, scorer):
        recorder = Recorder(
            httpx.Response(429, json={"error": {"message": "quota exceeded"}}),
            httpx.Response(200, json=completion(REMOTE_ANALYSIS)),
        )
        clock = FakeClock()
        client = make_client(recorder, clock=clock)
        log = make_log()
        fallback = scorer.score_log(log)

        assert await client.analyze(log, fallback) == fallback
        assert client.stats["quota_errors"] == 1

        clock.now += 60
        assert await client.analyze(log, fallback) == fallback
        assert len(recorder.requests) == 1

        clock.now += 300
        result = await client.analyze(log, fallback)
        assert len(recorder.requests) == 2
        assert result.technique == "Tautology-based authentication bypass"

    @pytest.mark.asyncio
    async def test_server_error_returns_fallback(self, scorer):
        recorder = Recorder(httpx.Response(500, text="internal error"))
        client = make_client(recorder)
        log = make_log()
        fallback = scorer.score_log(log)

        assert await client.analyze(log, fallback) == fallback
        assert client.stats["fallbacks_used"] == 1
        assert client.gatekeeper.cooldown_remaining == 0.0

    @pytest.mark.asyncio
    async def test_transport_error_returns_fallback(self, scorer):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = LLMClient(
            api_key="sk-test",
            gatekeeper=LLMGatekeeper(clock=FakeClock()),
            transport=httpx.MockTransport(handler),
        )
        log = make_log()
        fallback = scorer.score_log(log)
        assert await client.analyze(log, fallback) == fallback

    @pytest.mark.asyncio
    async def test_unparseable_reply_returns_fallback(self, scorer):
        recorder = Recorder(httpx.Response(200, json=completion("I'm sorry, I can't do that.")))
        client = make_client(recorder)
        log = make_log()
        fallback = scorer.score_log(log)

        assert await client.analyze(log, fallback) == fallback
        assert client.stats["parse_errors"] == 1


# ---------------------------------------------------------------------------
# detect_anomalies()
# ---------------------------------------------------------------------------

class TestDetectAnomalies:

    def _batch(self) -> list[TrafficLog]:
        return [
            make_log(attack_type="SQL Injection", offset=0),
            make_log(attack_type="XSS Attempt", offset=10),
            make_log(attack_type="Brute Force", offset=20),
        ]

    @pytest.mark.asyncio
    async def test_remote_results_appended_after_rules(self):
        remote = {"anomalies": [{
            "name": "Credential Stuffing Burst",
            "description": "Rapid logins",
            "confidence": 88,
            "technique": "Credential stuffing",
            "riskScore": 99,
            "occurrences": 3,
        }]}
        recorder = Recorder(httpx.Response(200, json=completion(remote)))
        client = make_client(recorder)
        batch = self._batch()
        rule_patterns = AnomalyAnalyzer().analyze(batch)

        result = await client.detect_anomalies(batch, rule_patterns)

        assert [p.name for p in result] == [
            "Multi-Vector Coordinated Attack",
            "Credential Stuffing Burst",
        ]
        remote_pattern = result[-1]
        assert isinstance(remote_pattern, AttackPattern)
        assert remote_pattern.risk_score == 10
        assert remote_pattern.first_seen == batch[0].timestamp
        assert remote_pattern.last_seen == batch[-1].timestamp

    @pytest.mark.asyncio
    async def test_failure_returns_rule_patterns_only(self):
        recorder = Recorder(httpx.Response(503, text="unavailable"))
        client = make_client(recorder)
        batch = self._batch()
        rule_patterns = AnomalyAnalyzer().analyze(batch)

        assert await client.detect_anomalies(batch, rule_patterns) == rule_patterns

    @pytest.mark.asyncio
    async def test_empty_batch_skips_remote(self):
        recorder = Recorder(httpx.Response(200, json=completion({"anomalies": []})))
        client = make_client(recorder)
        assert await client.detect_anomalies([], []) == []
        assert recorder.requests == []


# ---------------------------------------------------------------------------
# Hostile replies
# ---------------------------------------------------------------------------

class TestHostileReplies:

    @pytest.mark.asyncio
    async def test_int_too_large_for_float_keeps_fallback_score(self, scorer):
        content = '{"technique": "Remote label", "riskScore": ' + "9" * 400 + "}"
        recorder = Recorder(httpx.Response(200, json=completion(content)))
        client = make_client(recorder)
        log = make_log()
        fallback = scorer.score_log(log)

        result = await client.analyze(log, fallback)

        assert result.technique == "Remote label"
        assert result.risk_score == fallback.risk_score

    @pytest.mark.asyncio
    async def test_validator_failure_returns_fallback(self, scorer, monkeypatch):
        def explode(raw, fallback):
            raise ValueError("malformed")

        monkeypatch.setattr("honeyshield.backend.llm.client.merge_analysis", explode)
        recorder = Recorder(httpx.Response(200, json=completion(REMOTE_ANALYSIS)))
        client = make_client(recorder)
        log = make_log()
        fallback = scorer.score_log(log)

        assert await client.analyze(log, fallback) == fallback
        assert client.stats["parse_errors"] == 1

    @pytest.mark.asyncio
    async def test_anomaly_parse_failure_returns_rule_patterns(self, monkeypatch):
        def explode(raw, first_seen, last_seen):
            raise ValueError("malformed")

        monkeypatch.setattr("honeyshield.backend.llm.client.parse_anomalies", explode)
        recorder = Recorder(httpx.Response(200, json=completion({"anomalies": []})))
        client = make_client(recorder)
        batch = [make_log(attack_type=t, offset=i) for i, t in
                 enumerate(["SQL Injection", "XSS Attempt", "Brute Force"])]
        rule_patterns = AnomalyAnalyzer().analyze(batch)

        assert await client.detect_anomalies(batch, rule_patterns) == rule_patterns

    @pytest.mark.asyncio
    async def test_huge_occurrences_are_clamped(self):
        remote = '{"anomalies": [{"name": "Flood", "occurrences": 1e30}]}'
        recorder = Recorder(httpx.Response(200, json=completion(remote)))
        client = make_client(recorder)

        result = await client.detect_anomalies([make_log()], [])

        assert [p.occurrences for p in result] == [10_000]
