"""
llm/client.py

Async client for an OpenAI-compatible chat-completions endpoint, wrapped
around the heuristic fallback.

Responsibilities:
  - Ask the gatekeeper whether a remote call is allowed right now
  - POST the sanitized prompt to {base_url}/chat/completions
  - Merge the JSON reply over the caller's fallback
  - Return the fallback unchanged on any failure (never raises)

Usage:
    client = LLMClient(api_key="sk-...", model="gpt-4o")
    analysis = await client.analyze(log, fallback=scorer.score_log(log))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import httpx

from ..models import AttackAnalysis, AttackPattern, TrafficLog
from .gatekeeper import LLMGatekeeper
from .prompt_builder import build_analysis_prompt, build_anomaly_prompt
from .validator import merge_analysis, parse_anomalies

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Args:
        api_key:    bearer token; None puts the client in fallback-only mode
        base_url:   API root, e.g. "https://api.openai.com/v1"
        model:      model name sent with every request
        timeout:    hard per-call timeout in seconds
        gatekeeper: shared rate/cooldown guard (one is created if omitted)
        transport:  optional httpx transport, used by tests
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o",
        timeout: float = 15.0,
        gatekeeper: LLMGatekeeper | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.gatekeeper = gatekeeper or LLMGatekeeper(enabled=bool(api_key))
        if not api_key:
            self.gatekeeper.enabled = False
        self._transport = transport
        self.stats: dict[str, int] = {
            "calls_made": 0,
            "fallbacks_used": 0,
            "quota_errors": 0,
            "parse_errors": 0,
            "timeouts": 0,
        }

    @property
    def enabled(self) -> bool:
        return self.gatekeeper.enabled

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def analyze(self, log: TrafficLog, fallback: AttackAnalysis) -> AttackAnalysis:
        """
        Return the remote analysis of *log* merged over *fallback*.

        Never raises. Any skip or failure returns *fallback* as-is.
        """
        should_call, reason = self.gatekeeper.should_call()
        if not should_call:
            self.stats["fallbacks_used"] += 1
            logger.debug("Remote analysis skipped for %s reason=%s", log.source_ip, reason)
            return fallback

        system_prompt, user_prompt = build_analysis_prompt(log)
        raw = await self._complete(system_prompt, user_prompt)
        if raw is None:
            self.stats["fallbacks_used"] += 1
            return fallback

        try:
            merged = merge_analysis(raw, fallback)
        except Exception as exc:
            logger.warning("Remote analysis reply rejected for %s: %s", log.source_ip, exc)
            merged = None
        if merged is None:
            self.stats["parse_errors"] += 1
            self.stats["fallbacks_used"] += 1
            logger.warning("Remote analysis unparseable for %s, using heuristic result", log.source_ip)
            return fallback

        logger.info(
            "Remote analysis for %s: %s risk=%d conf=%d",
            log.source_ip, merged.technique, merged.risk_score, merged.confidence,
        )
        return merged

    async def detect_anomalies(
        self,
        logs: Sequence[TrafficLog],
        fallback: Sequence[AttackPattern],
    ) -> list[AttackPattern]:
        """
        Return *fallback* patterns plus any the remote model reports.

        Never raises. Any skip or failure returns *fallback* alone.
        """
        result = list(fallback)
        if not logs:
            return result

        should_call, reason = self.gatekeeper.should_call()
        if not should_call:
            self.stats["fallbacks_used"] += 1
            logger.debug("Remote anomaly detection skipped reason=%s", reason)
            return result

        system_prompt, user_prompt = build_anomaly_prompt(logs)
        raw = await self._complete(system_prompt, user_prompt)
        if raw is None:
            self.stats["fallbacks_used"] += 1
            return result

        timestamps = [log.timestamp for log in logs]
        try:
            remote = parse_anomalies(raw, min(timestamps), max(timestamps))
        except Exception as exc:
            logger.warning("Remote anomaly reply rejected: %s", exc)
            remote = None
        if remote is None:
            self.stats["parse_errors"] += 1
            self.stats["fallbacks_used"] += 1
            return result

        if remote:
            logger.info("Remote anomaly detection reported %d pattern(s)", len(remote))
        return result + remote

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _complete(self, system_prompt: str, user_prompt: str) -> str | None:
        """
        POST a chat completion request.
        Returns the message content or None on timeout/error.
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0.2,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        self.stats["calls_made"] += 1
        try:
            async with asyncio.timeout(self.timeout):
                async with httpx.AsyncClient(
                    timeout=self.timeout + 1, transport=self._transport
                ) as client:
                    resp = await client.post(
                        f"{self.base_url}/chat/completions",
                        json=payload,
                        headers=headers,
                    )
                    if resp.status_code == 429:
                        self.stats["quota_errors"] += 1
                        self.gatekeeper.record_quota_error()
                        return None
                    resp.raise_for_status()
                    data = resp.json()
                    # {"choices": [{"message": {"content": "..."}}]}
                    choices = data.get("choices") or [{}]
                    content = choices[0].get("message", {}).get("content", "")
                    return content if content else None

        except TimeoutError:
            self.stats["timeouts"] += 1
            logger.warning("Remote analysis call timed out after %.1fs", self.timeout)
            return None
        except Exception as exc:
            logger.warning("Remote analysis call failed: %s", exc)
            return None
