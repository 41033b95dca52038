"""
storage/base.py

Store — the persistence interface every backend implements.

Callers (routes, feed) only ever see this interface; the concrete backend
is chosen once by open_store() from the DATABASE_URL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import (
    AIAnalysisResult,
    AttackPattern,
    DatasetStats,
    SystemMetrics,
    TrafficLog,
)

# Query alias → substring matched against TrafficLog.attack_type
ATTACK_TYPE_ALIASES: dict[str, str] = {
    "sql":   "SQL Injection",
    "xss":   "XSS",
    "brute": "Brute Force",
    "ddos":  "DDoS",
}


def resolve_attack_type(alias: str | None) -> str | None:
    """Map a query alias to its substring filter. Unknown aliases and 'all' mean no filter."""
    if not alias:
        return None
    return ATTACK_TYPE_ALIASES.get(alias.lower())


def resolve_severity(severity: str | None) -> str | None:
    if not severity or severity.lower() == "all":
        return None
    return severity.lower()


class Store(ABC):
    """
    CRUD over the five record types.

    TrafficLog and AIAnalysisResult are append-only. AttackPattern only
    changes status. SystemMetrics and DatasetStats hold a single current
    row replaced on update (last write wins).
    """

    # ------------------------------------------------------------------
    # Traffic logs
    # ------------------------------------------------------------------

    @abstractmethod
    def create_traffic_log(self, log: TrafficLog) -> TrafficLog: ...

    @abstractmethod
    def get_traffic_log(self, log_id: int) -> TrafficLog | None: ...

    @abstractmethod
    def get_traffic_logs(
        self,
        severity: str | None = None,
        attack_type: str | None = None,
        ip_address: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[TrafficLog]:
        """Filtered logs, newest first."""

    @abstractmethod
    def count_traffic_logs(
        self,
        severity: str | None = None,
        attack_type: str | None = None,
        ip_address: str | None = None,
    ) -> int: ...

    # ------------------------------------------------------------------
    # Attack patterns
    # ------------------------------------------------------------------

    @abstractmethod
    def create_attack_pattern(self, pattern: AttackPattern) -> AttackPattern: ...

    @abstractmethod
    def get_attack_pattern(self, pattern_id: int) -> AttackPattern | None: ...

    @abstractmethod
    def get_attack_patterns(self) -> list[AttackPattern]:
        """All patterns, most recently seen first."""

    @abstractmethod
    def get_active_attack_patterns(self) -> list[AttackPattern]:
        """Patterns with status 'new' or 'under_review', most recently seen first."""

    @abstractmethod
    def update_attack_pattern_status(self, pattern_id: int, status: str) -> AttackPattern | None:
        """Set status; None if the pattern does not exist."""

    # ------------------------------------------------------------------
    # Analysis results
    # ------------------------------------------------------------------

    @abstractmethod
    def create_ai_analysis_result(self, result: AIAnalysisResult) -> AIAnalysisResult: ...

    @abstractmethod
    def get_ai_analysis_results(self, limit: int = 10) -> list[AIAnalysisResult]:
        """Most recent results, newest first."""

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @abstractmethod
    def get_system_metrics(self) -> SystemMetrics | None: ...

    @abstractmethod
    def update_system_metrics(self, metrics: SystemMetrics) -> SystemMetrics: ...

    @abstractmethod
    def get_dataset_stats(self) -> DatasetStats | None: ...

    @abstractmethod
    def update_dataset_stats(self, stats: DatasetStats) -> DatasetStats: ...

    def close(self) -> None:
        """Release backend resources. No-op by default."""
