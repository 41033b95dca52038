"""
engine/rules/base.py

Abstract base class that all batch anomaly detectors must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from ...models import AttackPattern, PatternStatus, TrafficLog, clamp_confidence, clamp_risk


class BaseDetector(ABC):
    """
    Contract that every anomaly detector must satisfy.

    Class-level attributes:
        name    — unique snake_case identifier
        order   — position in the analyzer's output (lower runs first)
        enabled — False for detectors that should not be loaded

    The analyze() method MUST:
        - Treat the batch as read-only
        - Keep no state between calls (same batch → same output)
        - Derive every timestamp from the batch, never from the clock
    """

    name: str = ""
    order: int = 100
    enabled: bool = True

    @abstractmethod
    def analyze(self, logs: Sequence[TrafficLog]) -> list[AttackPattern]:
        """Return zero or more candidate patterns for the batch."""
        ...

    @staticmethod
    def make_pattern(
        *,
        name: str,
        description: str,
        technique: str,
        confidence: int,
        risk_score: int,
        occurrences: int,
        first_seen: datetime,
        last_seen: datetime,
    ) -> AttackPattern:
        return AttackPattern(
            name=name,
            description=description,
            technique=technique,
            confidence=clamp_confidence(confidence),
            risk_score=clamp_risk(risk_score),
            occurrences=occurrences,
            first_seen=first_seen,
            last_seen=last_seen,
            status=PatternStatus.NEW.value,
            ai_generated=True,
        )

    def __repr__(self) -> str:
        return f"<Detector:{self.name} enabled={self.enabled}>"
