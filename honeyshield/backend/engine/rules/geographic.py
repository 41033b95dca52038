"""
engine/rules/geographic.py

Unusual concentration of attacks from a country outside the expected set.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from ...models import AttackPattern, TrafficLog
from .base import BaseDetector

EXPECTED_COUNTRIES: frozenset[str] = frozenset({"CN", "RU", "US"})


class GeographicConcentrationDetector(BaseDetector):
    name = "geographic_concentration"
    order = 30
    enabled = True

    min_logs: int = 5

    def analyze(self, logs: Sequence[TrafficLog]) -> list[AttackPattern]:
        by_country: dict[str, list[TrafficLog]] = defaultdict(list)
        for log in logs:
            by_country[log.country].append(log)

        patterns: list[AttackPattern] = []
        for country, group in by_country.items():
            if country in EXPECTED_COUNTRIES or len(group) < self.min_logs:
                continue
            timestamps = [log.timestamp for log in group]
            patterns.append(self.make_pattern(
                name="Geographic Attack Concentration",
                description=f"{len(group)} attacks originated from {country} within the analysis window",
                technique="Geographically concentrated campaign",
                confidence=75,
                risk_score=6,
                occurrences=len(group),
                first_seen=min(timestamps),
                last_seen=max(timestamps),
            ))
        return patterns
