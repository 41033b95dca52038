"""
engine/rules/sequence.py

Reconnaissance immediately followed by exploitation from the same source.

Pairwise over the time-sorted batch: every qualifying adjacent pair emits
its own pattern, repeats included.
"""

from __future__ import annotations

from collections.abc import Sequence

from ...models import AttackPattern, TrafficLog
from .base import BaseDetector


def is_reconnaissance(attack_type: str) -> bool:
    lowered = attack_type.lower()
    return "directory" in lowered or "traversal" in lowered


def is_exploitation(attack_type: str) -> bool:
    return "sql" in attack_type.lower()


class ReconToExploitDetector(BaseDetector):
    name = "recon_to_exploit"
    order = 20
    enabled = True

    def analyze(self, logs: Sequence[TrafficLog]) -> list[AttackPattern]:
        ordered = sorted(logs, key=lambda log: log.timestamp)
        patterns: list[AttackPattern] = []

        for earlier, later in zip(ordered, ordered[1:]):
            if earlier.source_ip != later.source_ip:
                continue
            if not (is_reconnaissance(earlier.attack_type) and is_exploitation(later.attack_type)):
                continue
            patterns.append(self.make_pattern(
                name="Reconnaissance-to-Exploitation Sequence",
                description=(
                    f"Source {earlier.source_ip} moved from {earlier.attack_type} "
                    f"on {earlier.target} to {later.attack_type} on {later.target}"
                ),
                technique="Reconnaissance followed by SQL injection",
                confidence=80,
                risk_score=9,
                occurrences=2,
                first_seen=earlier.timestamp,
                last_seen=later.timestamp,
            ))
        return patterns
