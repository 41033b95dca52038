"""
engine/rules/coordinated.py

One source address using several attack types inside the batch.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from ...models import AttackPattern, TrafficLog
from .base import BaseDetector


class CoordinatedAttackDetector(BaseDetector):
    name = "coordinated_attack"
    order = 10
    enabled = True

    min_logs: int = 3
    min_attack_types: int = 2

    def analyze(self, logs: Sequence[TrafficLog]) -> list[AttackPattern]:
        by_source: dict[str, list[TrafficLog]] = defaultdict(list)
        for log in logs:
            by_source[log.source_ip].append(log)

        patterns: list[AttackPattern] = []
        for source_ip, group in by_source.items():
            attack_types = sorted({log.attack_type for log in group})
            if len(group) < self.min_logs or len(attack_types) < self.min_attack_types:
                continue
            timestamps = [log.timestamp for log in group]
            patterns.append(self.make_pattern(
                name="Multi-Vector Coordinated Attack",
                description=(
                    f"Source {source_ip} launched {len(group)} attacks using "
                    f"{len(attack_types)} techniques: {', '.join(attack_types)}"
                ),
                technique="Multi-vector coordinated attack",
                confidence=85,
                risk_score=8,
                occurrences=len(group),
                first_seen=min(timestamps),
                last_seen=max(timestamps),
            ))
        return patterns
