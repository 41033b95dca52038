"""
engine/rules/payload.py

Payload-level anomalies across the batch: encoded payloads and polyglots
(script and injection markers in the same payload).
"""

from __future__ import annotations

from collections.abc import Sequence

from ...models import AttackPattern, TrafficLog
from .base import BaseDetector

ENCODING_MARKERS: tuple[str, ...] = ("%u", "&#x", "base64")
SCRIPT_MARKERS: tuple[str, ...] = ("<script", "javascript:", "onerror=", "onload=")
INJECTION_MARKERS: tuple[str, ...] = ("union", "select", "' or", "drop table", "sleep(", "--")


def is_encoded(payload: str) -> bool:
    lowered = payload.lower()
    return any(marker in lowered for marker in ENCODING_MARKERS)


def is_polyglot(payload: str) -> bool:
    lowered = payload.lower()
    return (
        any(marker in lowered for marker in SCRIPT_MARKERS)
        and any(marker in lowered for marker in INJECTION_MARKERS)
    )


class PayloadAnomalyDetector(BaseDetector):
    name = "payload_anomaly"
    order = 40
    enabled = True

    min_encoded: int = 2
    min_polyglot: int = 1

    def analyze(self, logs: Sequence[TrafficLog]) -> list[AttackPattern]:
        with_payload = [log for log in logs if log.payload]
        encoded = [log for log in with_payload if is_encoded(log.payload)]
        polyglot = [log for log in with_payload if is_polyglot(log.payload)]

        patterns: list[AttackPattern] = []
        if len(encoded) >= self.min_encoded:
            timestamps = [log.timestamp for log in encoded]
            patterns.append(self.make_pattern(
                name="Encoded Payload Attack Pattern",
                description=f"{len(encoded)} payloads used encoding to evade signature matching",
                technique="Payload obfuscation via encoding",
                confidence=85,
                risk_score=7,
                occurrences=len(encoded),
                first_seen=min(timestamps),
                last_seen=max(timestamps),
            ))
        if len(polyglot) >= self.min_polyglot:
            timestamps = [log.timestamp for log in polyglot]
            patterns.append(self.make_pattern(
                name="Polyglot Attack Vector",
                description=f"{len(polyglot)} payloads combined script and injection syntax",
                technique="Polyglot XSS/SQL injection payload",
                confidence=90,
                risk_score=9,
                occurrences=len(polyglot),
                first_seen=min(timestamps),
                last_seen=max(timestamps),
            ))
        return patterns
