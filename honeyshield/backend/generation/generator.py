"""
generation/generator.py

MockDataGenerator — produces plausible-looking records for demo and seeding.

Every draw goes through the injected random.Random so tests can seed it,
and "now" comes from an injectable clock.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Callable

from ..models import (
    AttackPattern,
    DatasetStats,
    PatternStatus,
    SystemMetrics,
    TrafficLog,
    utcnow,
)
from . import pools

_DAY_SECONDS = 24 * 60 * 60


class MockDataGenerator:
    """
    Pure functions of the random source, except for reading the clock.

    Args:
        rng:   random source; a fresh unseeded Random if omitted
        clock: returns the current UTC datetime
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def generate_traffic_log(self) -> TrafficLog:
        rng = self._rng
        now = self._clock()
        return TrafficLog(
            timestamp=now - timedelta(seconds=rng.random() * _DAY_SECONDS),
            source_ip=self._random_ip(),
            country=rng.choice(pools.COUNTRIES),
            attack_type=rng.choice(pools.ATTACK_TYPES),
            target=rng.choice(pools.TARGETS),
            severity=rng.choice(pools.SEVERITIES),
            status=rng.choice(pools.LOG_STATUSES),
            payload=rng.choice(pools.PAYLOADS),
            user_agent=rng.choice(pools.USER_AGENTS),
            method=rng.choice(pools.METHODS),
            port=443 if rng.random() < 0.2 else 80,
        )

    def generate_attack_pattern(self) -> AttackPattern:
        rng = self._rng
        template = rng.choice(pools.PATTERN_TEMPLATES)
        now = self._clock()
        return AttackPattern(
            name=template["name"],
            description=template["description"],
            technique=template["technique"],
            confidence=rng.randrange(70, 100),
            occurrences=rng.randrange(5, 55),
            first_seen=now - timedelta(seconds=rng.random() * _DAY_SECONDS / 2),
            last_seen=now,
            risk_score=rng.randrange(6, 10),
            status=(
                PatternStatus.NEW.value
                if rng.random() < 0.5
                else PatternStatus.UNDER_REVIEW.value
            ),
            ai_generated=True,
        )

    def generate_system_metrics(self) -> SystemMetrics:
        rng = self._rng
        return SystemMetrics(
            attacks_today=rng.randrange(200, 300),
            unique_ips=rng.randrange(70, 100),
            ai_detections=rng.randrange(140, 190),
            blocked_attempts=rng.randrange(1500, 2000),
            uptime=self._random_uptime(),
            last_updated=self._clock(),
        )

    def generate_dataset_stats(self) -> DatasetStats:
        rng = self._rng
        return DatasetStats(
            sql_samples=rng.randrange(15000, 16000),
            brute_force_samples=rng.randrange(12000, 13000),
            xss_samples=rng.randrange(8500, 9000),
            ddos_patterns=rng.randrange(6000, 6500),
            model_accuracy=rng.randrange(92, 97),
            last_retraining=self._clock() - timedelta(seconds=rng.random() * 7 * _DAY_SECONDS),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _random_ip(self) -> str:
        # Octets 0–254; reserved ranges are not filtered.
        return ".".join(str(self._rng.randrange(0, 255)) for _ in range(4))

    def _random_uptime(self) -> str:
        rng = self._rng
        return f"{rng.randrange(30)}d {rng.randrange(24)}h {rng.randrange(60)}m"
