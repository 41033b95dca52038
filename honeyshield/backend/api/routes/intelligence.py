"""
api/routes/intelligence.py

Read-shaping views over stored patterns and logs:

GET /api/threat-intelligence — every pattern as a threat-feed entry
GET /api/threat-trends       — per-day severity counts for the last 7 days
GET /api/geographic-threats  — top 10 source countries by log count
"""

from __future__ import annotations

from collections import Counter
from datetime import timedelta

from fastapi import APIRouter, Depends

from ...generation.pools import COUNTRY_NAMES
from ...models import AttackPattern, PatternStatus
from ..deps import get_services
from ..errors import internal_errors
from ..serializers import (
    GeographicThreatResponse,
    ThreatIntelligenceResponse,
    ThreatTrendResponse,
)

router = APIRouter(tags=["intelligence"])

_TREND_DAYS = 7
_TREND_LOG_WINDOW = 100
_GEO_LOG_WINDOW = 200
_GEO_TOP_N = 10

# Fixed demo values shown on every threat-feed entry
_SOURCE_COUNTRIES = ["CN", "RU", "US"]
_TARGET_PORTS = "80,443,22"

_MITIGATION_BY_STATUS: dict[str, str] = {
    PatternStatus.NEW.value:              "active",
    PatternStatus.UNDER_REVIEW.value:     "contained",
    PatternStatus.CONFIRMED.value:        "contained",
    PatternStatus.ADDED_TO_DATASET.value: "resolved",
}


def threat_severity(risk_score: int) -> str:
    if risk_score >= 8:
        return "critical"
    if risk_score >= 6:
        return "high"
    if risk_score >= 4:
        return "medium"
    return "low"


def geo_severity(threat_count: int) -> tuple[str, int]:
    """Return (severity, riskScore) for a country's log count."""
    if threat_count >= 20:
        return "critical", 9
    if threat_count >= 10:
        return "high", 7
    if threat_count >= 5:
        return "medium", 5
    return "low", 3


def _to_threat(pattern: AttackPattern) -> ThreatIntelligenceResponse:
    return ThreatIntelligenceResponse(
        id=pattern.id,
        threat_name=pattern.name,
        severity=threat_severity(pattern.risk_score),
        confidence=pattern.confidence,
        first_seen=pattern.first_seen,
        last_seen=pattern.last_seen,
        attack_count=pattern.occurrences,
        source_countries=list(_SOURCE_COUNTRIES),
        target_ports=_TARGET_PORTS,
        description=pattern.description,
        mitigation_status=_MITIGATION_BY_STATUS.get(pattern.status, "active"),
        tags=[pattern.technique, "automated-detection"],
    )


@router.get("/threat-intelligence", response_model=list[ThreatIntelligenceResponse])
async def threat_intelligence(services=Depends(get_services)) -> list[ThreatIntelligenceResponse]:
    with internal_errors("Failed to fetch threat intelligence"):
        patterns = services.store.get_attack_patterns()
    return [_to_threat(p) for p in patterns]


@router.get("/threat-trends", response_model=list[ThreatTrendResponse])
async def threat_trends(services=Depends(get_services)) -> list[ThreatTrendResponse]:
    """
    Buckets the most recent logs by UTC day, oldest day first.
    Log severities map one level up: high → critical, medium → high,
    low → medium. Nothing maps to low.
    """
    with internal_errors("Failed to fetch threat trends"):
        logs = services.store.get_traffic_logs(limit=_TREND_LOG_WINDOW)
    today = services.clock().date()

    per_day: dict[tuple, int] = Counter(
        (log.timestamp.date(), log.severity) for log in logs
    )
    trends = []
    for offset in range(_TREND_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        trends.append(ThreatTrendResponse(
            date=day.isoformat(),
            critical=per_day[(day, "high")],
            high=per_day[(day, "medium")],
            medium=per_day[(day, "low")],
            low=0,
        ))
    return trends


@router.get("/geographic-threats", response_model=list[GeographicThreatResponse])
async def geographic_threats(services=Depends(get_services)) -> list[GeographicThreatResponse]:
    with internal_errors("Failed to fetch geographic threats"):
        logs = services.store.get_traffic_logs(limit=_GEO_LOG_WINDOW)

    counts = Counter(log.country for log in logs)
    result = []
    # most_common() keeps first-seen order for ties
    for code, count in counts.most_common(_GEO_TOP_N):
        severity, risk = geo_severity(count)
        result.append(GeographicThreatResponse(
            country=COUNTRY_NAMES.get(code, code),
            code=code,
            threat_count=count,
            severity=severity,
            risk_score=risk,
        ))
    return result
