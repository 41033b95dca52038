"""
storage/memory.py

In-process Store backed by plain dicts. Used by tests and memory:// URLs.
Records are copied on the way in and out so callers never share state
with the store.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace

from ..models import (
    ACTIVE_PATTERN_STATUSES,
    AIAnalysisResult,
    AttackPattern,
    DatasetStats,
    SystemMetrics,
    TrafficLog,
)
from .base import Store, resolve_attack_type, resolve_severity

logger = logging.getLogger(__name__)


class MemoryStore(Store):
    def __init__(self) -> None:
        self._logs: dict[int, TrafficLog] = {}
        self._patterns: dict[int, AttackPattern] = {}
        self._results: dict[int, AIAnalysisResult] = {}
        self._metrics: SystemMetrics | None = None
        self._dataset: DatasetStats | None = None
        self._log_ids = itertools.count(1)
        self._pattern_ids = itertools.count(1)
        self._result_ids = itertools.count(1)
        logger.info("In-memory store initialised")

    # ==================================================================
    # Traffic logs
    # ==================================================================

    def create_traffic_log(self, log: TrafficLog) -> TrafficLog:
        stored = replace(log, id=next(self._log_ids))
        self._logs[stored.id] = stored
        return replace(stored)

    def get_traffic_log(self, log_id: int) -> TrafficLog | None:
        log = self._logs.get(log_id)
        return replace(log) if log else None

    def get_traffic_logs(
        self,
        severity: str | None = None,
        attack_type: str | None = None,
        ip_address: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[TrafficLog]:
        matched = self._filter_logs(severity, attack_type, ip_address)
        matched.sort(key=lambda log: (log.timestamp, log.id), reverse=True)
        return [replace(log) for log in matched[offset:offset + limit]]

    def count_traffic_logs(
        self,
        severity: str | None = None,
        attack_type: str | None = None,
        ip_address: str | None = None,
    ) -> int:
        return len(self._filter_logs(severity, attack_type, ip_address))

    def _filter_logs(
        self,
        severity: str | None,
        attack_type: str | None,
        ip_address: str | None,
    ) -> list[TrafficLog]:
        severity = resolve_severity(severity)
        type_substring = resolve_attack_type(attack_type)
        result = []
        for log in self._logs.values():
            if severity and log.severity != severity:
                continue
            if type_substring and type_substring not in log.attack_type:
                continue
            if ip_address and ip_address not in log.source_ip:
                continue
            result.append(log)
        return result

    # ==================================================================
    # Attack patterns
    # ==================================================================

    def create_attack_pattern(self, pattern: AttackPattern) -> AttackPattern:
        stored = replace(pattern, id=next(self._pattern_ids))
        self._patterns[stored.id] = stored
        return replace(stored)

    def get_attack_pattern(self, pattern_id: int) -> AttackPattern | None:
        pattern = self._patterns.get(pattern_id)
        return replace(pattern) if pattern else None

    def get_attack_patterns(self) -> list[AttackPattern]:
        patterns = sorted(
            self._patterns.values(), key=lambda p: (p.last_seen, p.id), reverse=True
        )
        return [replace(p) for p in patterns]

    def get_active_attack_patterns(self) -> list[AttackPattern]:
        return [p for p in self.get_attack_patterns() if p.status in ACTIVE_PATTERN_STATUSES]

    def update_attack_pattern_status(self, pattern_id: int, status: str) -> AttackPattern | None:
        pattern = self._patterns.get(pattern_id)
        if pattern is None:
            return None
        pattern.status = status
        return replace(pattern)

    # ==================================================================
    # Analysis results
    # ==================================================================

    def create_ai_analysis_result(self, result: AIAnalysisResult) -> AIAnalysisResult:
        stored = replace(result, id=next(self._result_ids), recommendations=list(result.recommendations))
        self._results[stored.id] = stored
        return replace(stored, recommendations=list(stored.recommendations))

    def get_ai_analysis_results(self, limit: int = 10) -> list[AIAnalysisResult]:
        results = sorted(
            self._results.values(), key=lambda r: (r.timestamp, r.id), reverse=True
        )
        return [replace(r, recommendations=list(r.recommendations)) for r in results[:limit]]

    # ==================================================================
    # Snapshots
    # ==================================================================

    def get_system_metrics(self) -> SystemMetrics | None:
        return replace(self._metrics) if self._metrics else None

    def update_system_metrics(self, metrics: SystemMetrics) -> SystemMetrics:
        self._metrics = replace(metrics, id=1)
        return replace(self._metrics)

    def get_dataset_stats(self) -> DatasetStats | None:
        return replace(self._dataset) if self._dataset else None

    def update_dataset_stats(self, stats: DatasetStats) -> DatasetStats:
        self._dataset = replace(stats, id=1)
        return replace(self._dataset)
