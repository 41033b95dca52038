"""
backend/models.py

Shared dataclasses for every stage of the dashboard backend.
Defining all of them here locks the contracts between the generator,
the scoring engine, the LLM adapter and the storage layer.

All timestamps are timezone-aware UTC datetimes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

RISK_MIN, RISK_MAX = 1, 10
CONFIDENCE_MIN, CONFIDENCE_MAX = 0, 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp_risk(value: float) -> int:
    """Clamp a risk score into [1, 10]."""
    return int(max(RISK_MIN, min(RISK_MAX, round(value))))


def clamp_confidence(value: float) -> int:
    """Clamp a confidence percentage into [0, 100]."""
    return int(max(CONFIDENCE_MIN, min(CONFIDENCE_MAX, round(value))))


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    HIGH   = "high"
    MEDIUM = "medium"
    LOW    = "low"


class LogStatus(str, Enum):
    BLOCKED   = "blocked"
    MONITORED = "monitored"
    ANALYZED  = "analyzed"


class PatternStatus(str, Enum):
    """Attack pattern review lifecycle, in forward order."""

    NEW              = "new"
    UNDER_REVIEW     = "under_review"
    CONFIRMED        = "confirmed"
    ADDED_TO_DATASET = "added_to_dataset"

    @property
    def rank(self) -> int:
        return list(PatternStatus).index(self)

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]


ACTIVE_PATTERN_STATUSES: frozenset[str] = frozenset({
    PatternStatus.NEW.value,
    PatternStatus.UNDER_REVIEW.value,
})


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------

@dataclass
class TrafficLog:
    """One synthetic (or real-shaped) security event. Never updated once stored."""

    timestamp: datetime
    source_ip: str
    country: str
    """ISO-like 2-letter code, e.g. 'CN'."""

    attack_type: str
    target: str
    severity: str
    """One of: 'high' | 'medium' | 'low'."""

    status: str
    """One of: 'blocked' | 'monitored' | 'analyzed'."""

    method: str
    port: int
    payload: str | None = None
    user_agent: str | None = None
    id: int | None = None


@dataclass
class AttackPattern:
    """A named recurring threat signature. Only `status` changes after creation."""

    name: str
    description: str
    confidence: int
    occurrences: int
    first_seen: datetime
    last_seen: datetime
    technique: str
    risk_score: int
    status: str = PatternStatus.NEW.value
    ai_generated: bool = True
    id: int | None = None


@dataclass
class AIAnalysisResult:
    """Analysis of one traffic log. trafficLogId is a weak reference."""

    attack_type: str
    technique: str
    risk_score: int
    confidence: int
    recommendations: list[str]
    timestamp: datetime
    traffic_log_id: int | None = None
    id: int | None = None


@dataclass
class SystemMetrics:
    attacks_today: int
    unique_ips: int
    ai_detections: int
    blocked_attempts: int
    uptime: str
    last_updated: datetime
    id: int | None = None


@dataclass
class DatasetStats:
    sql_samples: int
    brute_force_samples: int
    xss_samples: int
    ddos_patterns: int
    model_accuracy: int
    """Percentage 0–100."""

    last_retraining: datetime
    id: int | None = None


# ---------------------------------------------------------------------------
# Analysis output (scorer and LLM adapter)
# ---------------------------------------------------------------------------

@dataclass
class AttackAnalysis:
    """Result of scoring a single TrafficLog, heuristically or remotely."""

    attack_type: str
    technique: str
    risk_score: int
    """Clamped to [1, 10]."""

    confidence: int
    """Clamped to [0, 100]."""

    recommendations: list[str] = field(default_factory=list)
    is_new_pattern: bool = False
    pattern_name: str | None = None
    pattern_description: str | None = None

    def to_result(self, traffic_log_id: int | None, timestamp: datetime | None = None) -> AIAnalysisResult:
        return AIAnalysisResult(
            traffic_log_id=traffic_log_id,
            attack_type=self.attack_type,
            technique=self.technique,
            risk_score=clamp_risk(self.risk_score),
            confidence=clamp_confidence(self.confidence),
            recommendations=list(self.recommendations),
            timestamp=timestamp or utcnow(),
        )
