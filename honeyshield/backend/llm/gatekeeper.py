"""
llm/gatekeeper.py

LLMGatekeeper — decides whether the adapter may make a remote call now.

Checks (in order):
  1. API key   → no key configured means permanent fallback-only mode
  2. Cooldown  → after a quota / rate-limit error, remote calls are
                 suppressed for quota_cooldown_seconds (5 min default)
  3. Interval  → at most one remote call every min_interval_seconds
                 (2 s default), process-wide

The clock is injectable so tests can drive time explicitly.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class LLMGatekeeper:
    """
    Guards the remote API from being called too frequently.

    All decision logic is synchronous and fast (no I/O).
    """

    def __init__(
        self,
        enabled: bool = True,
        min_interval_seconds: float = 2.0,
        quota_cooldown_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.enabled = enabled
        self.min_interval_seconds = min_interval_seconds
        self.quota_cooldown_seconds = quota_cooldown_seconds
        self._clock = clock

        self._last_call: float | None = None
        self._cooldown_until: float | None = None

    def should_call(self) -> tuple[bool, str]:
        """
        Return (should_call, reason_string).

        Reasons for skipping: NO_API_KEY, QUOTA_COOLDOWN, RATE_LIMITED.
        Reason for calling:   APPROVED (the call time is recorded).
        """
        if not self.enabled:
            return False, "NO_API_KEY"

        now = self._clock()

        if self._cooldown_until is not None:
            if now < self._cooldown_until:
                return False, "QUOTA_COOLDOWN"
            logger.info("Quota cooldown elapsed — remote analysis re-enabled")
            self._cooldown_until = None

        if self._last_call is not None and now - self._last_call < self.min_interval_seconds:
            return False, "RATE_LIMITED"

        self._last_call = now
        return True, "APPROVED"

    def record_quota_error(self) -> None:
        """Suppress remote calls for the configured cooldown window."""
        self._cooldown_until = self._clock() + self.quota_cooldown_seconds
        logger.warning(
            "Remote API quota/rate limit hit — remote analysis disabled for %.0fs",
            self.quota_cooldown_seconds,
        )

    @property
    def cooldown_remaining(self) -> float:
        if self._cooldown_until is None:
            return 0.0
        return max(0.0, self._cooldown_until - self._clock())
