"""
api/serializers.py

Response/request models for the dashboard API.

Field names are snake_case in Python and camelCase on the wire; the
dashboard depends on the exact keys (sourceIP, uniqueIPs, riskScore, ...).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import (
    AIAnalysisResult,
    AttackPattern,
    DatasetStats,
    SystemMetrics,
    TrafficLog,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class TrafficLogResponse(CamelModel):
    id: int
    timestamp: datetime
    source_ip: str = Field(alias="sourceIP")
    country: str
    attack_type: str
    target: str
    severity: str
    status: str
    payload: str | None = None
    user_agent: str | None = None
    method: str
    port: int

    @classmethod
    def from_log(cls, log: TrafficLog) -> "TrafficLogResponse":
        return cls(
            id=log.id,
            timestamp=log.timestamp,
            source_ip=log.source_ip,
            country=log.country,
            attack_type=log.attack_type,
            target=log.target,
            severity=log.severity,
            status=log.status,
            payload=log.payload,
            user_agent=log.user_agent,
            method=log.method,
            port=log.port,
        )


class PaginatedTrafficLogsResponse(CamelModel):
    data: list[TrafficLogResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class AttackPatternResponse(CamelModel):
    id: int
    name: str
    description: str
    confidence: int
    occurrences: int
    first_seen: datetime
    last_seen: datetime
    technique: str
    risk_score: int
    status: str
    ai_generated: bool

    @classmethod
    def from_pattern(cls, pattern: AttackPattern) -> "AttackPatternResponse":
        return cls(
            id=pattern.id,
            name=pattern.name,
            description=pattern.description,
            confidence=pattern.confidence,
            occurrences=pattern.occurrences,
            first_seen=pattern.first_seen,
            last_seen=pattern.last_seen,
            technique=pattern.technique,
            risk_score=pattern.risk_score,
            status=pattern.status,
            ai_generated=pattern.ai_generated,
        )


class PatternStatusUpdate(CamelModel):
    status: str | None = None


class AIAnalysisResponse(CamelModel):
    id: int
    traffic_log_id: int | None = None
    attack_type: str
    technique: str
    risk_score: int
    confidence: int
    recommendations: list[str]
    timestamp: datetime

    @classmethod
    def from_result(cls, result: AIAnalysisResult) -> "AIAnalysisResponse":
        return cls(
            id=result.id,
            traffic_log_id=result.traffic_log_id,
            attack_type=result.attack_type,
            technique=result.technique,
            risk_score=result.risk_score,
            confidence=result.confidence,
            recommendations=list(result.recommendations),
            timestamp=result.timestamp,
        )


class SystemMetricsResponse(CamelModel):
    id: int | None = None
    attacks_today: int
    unique_ips: int = Field(alias="uniqueIPs")
    ai_detections: int
    blocked_attempts: int
    uptime: str
    last_updated: datetime

    @classmethod
    def from_metrics(cls, metrics: SystemMetrics) -> "SystemMetricsResponse":
        return cls(
            id=metrics.id,
            attacks_today=metrics.attacks_today,
            unique_ips=metrics.unique_ips,
            ai_detections=metrics.ai_detections,
            blocked_attempts=metrics.blocked_attempts,
            uptime=metrics.uptime,
            last_updated=metrics.last_updated,
        )


class DatasetStatsResponse(CamelModel):
    id: int | None = None
    sql_samples: int
    brute_force_samples: int
    xss_samples: int
    ddos_patterns: int
    model_accuracy: int
    last_retraining: datetime

    @classmethod
    def from_stats(cls, stats: DatasetStats) -> "DatasetStatsResponse":
        return cls(
            id=stats.id,
            sql_samples=stats.sql_samples,
            brute_force_samples=stats.brute_force_samples,
            xss_samples=stats.xss_samples,
            ddos_patterns=stats.ddos_patterns,
            model_accuracy=stats.model_accuracy,
            last_retraining=stats.last_retraining,
        )


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------

class ThreatIntelligenceResponse(CamelModel):
    id: int
    threat_name: str
    severity: str
    """One of: 'critical' | 'high' | 'medium' | 'low'."""

    confidence: int
    first_seen: datetime
    last_seen: datetime
    attack_count: int
    source_countries: list[str]
    target_ports: str
    description: str
    mitigation_status: str
    """One of: 'active' | 'contained' | 'resolved'."""

    ioc_type: str = "pattern"
    tags: list[str]


class ThreatTrendResponse(CamelModel):
    date: str
    critical: int
    high: int
    medium: int
    low: int


class GeographicThreatResponse(CamelModel):
    country: str
    code: str
    threat_count: int
    severity: str
    risk_score: int


class SystemStatusResponse(CamelModel):
    uptime: str
    memory_usage: int
    cpu_usage: int
    disk_usage: int
    network_connections: int
    active_threats: int
    blocked_ips: int = Field(alias="blockedIPs")
    feed: dict[str, int]


class SecurityConfig(CamelModel):
    auto_block: bool = True
    alert_threshold: int = 5
    real_time_monitoring: bool = True
    log_retention: int = 30
    ai_analysis: bool = True
    geo_blocking: bool = False
    rate_limit_enabled: bool = True
    max_requests_per_minute: int = 100


class ActionResponse(CamelModel):
    success: bool
    message: str


class LLMStatusResponse(CamelModel):
    enabled: bool
    model: str
    base_url: str
    cooldown_remaining: float
    calls_made: int
    fallbacks_used: int
    quota_errors: int
    parse_errors: int
    timeouts: int
