"""
storage/repository.py

SqliteStore — the production Store over a Database connection.

Write failures propagate to the caller; the API layer turns them into a
500 and the feed counts them as a failed tick.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from ..models import (
    ACTIVE_PATTERN_STATUSES,
    AIAnalysisResult,
    AttackPattern,
    DatasetStats,
    SystemMetrics,
    TrafficLog,
)
from .base import Store, resolve_attack_type, resolve_severity
from .database import Database

logger = logging.getLogger(__name__)

_SNAPSHOT_ROW_ID = 1


def _to_epoch(value: datetime) -> float:
    return value.timestamp()


def _from_epoch(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class SqliteStore(Store):
    def __init__(self, db: Database) -> None:
        self._db = db

    # ==================================================================
    # Traffic logs
    # ==================================================================

    def create_traffic_log(self, log: TrafficLog) -> TrafficLog:
        cur = self._db.execute(
            """
            INSERT INTO traffic_logs (
                timestamp, source_ip, country, attack_type, target,
                severity, status, payload, user_agent, method, port
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _to_epoch(log.timestamp), log.source_ip, log.country,
                log.attack_type, log.target, log.severity, log.status,
                log.payload, log.user_agent, log.method, log.port,
            ),
        )
        self._db.commit()
        return self.get_traffic_log(cur.lastrowid)  # type: ignore[return-value]

    def get_traffic_log(self, log_id: int) -> TrafficLog | None:
        row = self._db.execute(
            "SELECT * FROM traffic_logs WHERE id = ?", (log_id,)
        ).fetchone()
        return self._row_to_log(row) if row else None

    def get_traffic_logs(
        self,
        severity: str | None = None,
        attack_type: str | None = None,
        ip_address: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[TrafficLog]:
        where, params = self._build_where(severity, attack_type, ip_address)
        sql = f"""
            SELECT * FROM traffic_logs
            {where}
            ORDER BY timestamp DESC, id DESC
            LIMIT ? OFFSET ?
        """
        params.extend([limit, offset])
        rows = self._db.execute(sql, tuple(params)).fetchall()
        return [self._row_to_log(r) for r in rows]

    def count_traffic_logs(
        self,
        severity: str | None = None,
        attack_type: str | None = None,
        ip_address: str | None = None,
    ) -> int:
        where, params = self._build_where(severity, attack_type, ip_address)
        row = self._db.execute(
            f"SELECT COUNT(*) FROM traffic_logs {where}", tuple(params)
        ).fetchone()
        return row[0] if row else 0

    # ==================================================================
    # Attack patterns
    # ==================================================================

    def create_attack_pattern(self, pattern: AttackPattern) -> AttackPattern:
        cur = self._db.execute(
            """
            INSERT INTO attack_patterns (
                name, description, confidence, occurrences, first_seen,
                last_seen, technique, risk_score, status, ai_generated
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                pattern.name, pattern.description, pattern.confidence,
                pattern.occurrences, _to_epoch(pattern.first_seen),
                _to_epoch(pattern.last_seen), pattern.technique,
                pattern.risk_score, pattern.status, int(pattern.ai_generated),
            ),
        )
        self._db.commit()
        return self.get_attack_pattern(cur.lastrowid)  # type: ignore[return-value]

    def get_attack_pattern(self, pattern_id: int) -> AttackPattern | None:
        row = self._db.execute(
            "SELECT * FROM attack_patterns WHERE id = ?", (pattern_id,)
        ).fetchone()
        return self._row_to_pattern(row) if row else None

    def get_attack_patterns(self) -> list[AttackPattern]:
        rows = self._db.execute(
            "SELECT * FROM attack_patterns ORDER BY last_seen DESC, id DESC"
        ).fetchall()
        return [self._row_to_pattern(r) for r in rows]

    def get_active_attack_patterns(self) -> list[AttackPattern]:
        statuses = sorted(ACTIVE_PATTERN_STATUSES)
        placeholders = ", ".join("?" for _ in statuses)
        rows = self._db.execute(
            f"""
            SELECT * FROM attack_patterns
            WHERE status IN ({placeholders})
            ORDER BY last_seen DESC, id DESC
            """,
            tuple(statuses),
        ).fetchall()
        return [self._row_to_pattern(r) for r in rows]

    def update_attack_pattern_status(self, pattern_id: int, status: str) -> AttackPattern | None:
        cur = self._db.execute(
            "UPDATE attack_patterns SET status = ? WHERE id = ?", (status, pattern_id)
        )
        self._db.commit()
        if cur.rowcount == 0:
            return None
        return self.get_attack_pattern(pattern_id)

    # ==================================================================
    # Analysis results
    # ==================================================================

    def create_ai_analysis_result(self, result: AIAnalysisResult) -> AIAnalysisResult:
        cur = self._db.execute(
            """
            INSERT INTO ai_analysis_results (
                traffic_log_id, attack_type, technique, risk_score,
                confidence, recommendations, timestamp
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                result.traffic_log_id, result.attack_type, result.technique,
                result.risk_score, result.confidence,
                json.dumps(list(result.recommendations)), _to_epoch(result.timestamp),
            ),
        )
        self._db.commit()
        row = self._db.execute(
            "SELECT * FROM ai_analysis_results WHERE id = ?", (cur.lastrowid,)
        ).fetchone()
        return self._row_to_result(row)

    def get_ai_analysis_results(self, limit: int = 10) -> list[AIAnalysisResult]:
        rows = self._db.execute(
            "SELECT * FROM ai_analysis_results ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._row_to_result(r) for r in rows]

    # ==================================================================
    # Snapshots
    # ==================================================================

    def get_system_metrics(self) -> SystemMetrics | None:
        row = self._db.execute(
            "SELECT * FROM system_metrics WHERE id = ?", (_SNAPSHOT_ROW_ID,)
        ).fetchone()
        if row is None:
            return None
        d = dict(row)
        d["last_updated"] = _from_epoch(d["last_updated"])
        return SystemMetrics(**d)

    def update_system_metrics(self, metrics: SystemMetrics) -> SystemMetrics:
        self._db.execute(
            """
            INSERT OR REPLACE INTO system_metrics (
                id, attacks_today, unique_ips, ai_detections,
                blocked_attempts, uptime, last_updated
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _SNAPSHOT_ROW_ID, metrics.attacks_today, metrics.unique_ips,
                metrics.ai_detections, metrics.blocked_attempts, metrics.uptime,
                _to_epoch(metrics.last_updated),
            ),
        )
        self._db.commit()
        return self.get_system_metrics()  # type: ignore[return-value]

    def get_dataset_stats(self) -> DatasetStats | None:
        row = self._db.execute(
            "SELECT * FROM dataset_stats WHERE id = ?", (_SNAPSHOT_ROW_ID,)
        ).fetchone()
        if row is None:
            return None
        d = dict(row)
        d["last_retraining"] = _from_epoch(d["last_retraining"])
        return DatasetStats(**d)

    def update_dataset_stats(self, stats: DatasetStats) -> DatasetStats:
        self._db.execute(
            """
            INSERT OR REPLACE INTO dataset_stats (
                id, sql_samples, brute_force_samples, xss_samples,
                ddos_patterns, model_accuracy, last_retraining
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _SNAPSHOT_ROW_ID, stats.sql_samples, stats.brute_force_samples,
                stats.xss_samples, stats.ddos_patterns, stats.model_accuracy,
                _to_epoch(stats.last_retraining),
            ),
        )
        self._db.commit()
        return self.get_dataset_stats()  # type: ignore[return-value]

    def close(self) -> None:
        self._db.close()

    # ==================================================================
    # Internal helpers
    # ==================================================================

    @staticmethod
    def _build_where(
        severity: str | None,
        attack_type: str | None,
        ip_address: str | None,
    ) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        severity = resolve_severity(severity)
        if severity:
            clauses.append("severity = ?")
            params.append(severity)
        type_substring = resolve_attack_type(attack_type)
        if type_substring:
            # instr() is case-sensitive, matching the in-memory backend
            clauses.append("instr(attack_type, ?) > 0")
            params.append(type_substring)
        if ip_address:
            clauses.append("instr(source_ip, ?) > 0")
            params.append(ip_address)
        where = "WHERE " + " AND ".join(clauses) if clauses else ""
        return where, params

    @staticmethod
    def _row_to_log(row: Any) -> TrafficLog:
        d = dict(row)
        d["timestamp"] = _from_epoch(d["timestamp"])
        return TrafficLog(**d)

    @staticmethod
    def _row_to_pattern(row: Any) -> AttackPattern:
        d = dict(row)
        d["first_seen"] = _from_epoch(d["first_seen"])
        d["last_seen"] = _from_epoch(d["last_seen"])
        d["ai_generated"] = bool(d["ai_generated"])
        return AttackPattern(**d)

    @staticmethod
    def _row_to_result(row: Any) -> AIAnalysisResult:
        d = dict(row)
        d["timestamp"] = _from_epoch(d["timestamp"])
        try:
            recommendations = json.loads(d.get("recommendations") or "[]")
        except (TypeError, json.JSONDecodeError):
            logger.warning("Analysis %s has unreadable recommendations", d.get("id"))
            recommendations = []
        d["recommendations"] = [str(r) for r in recommendations] if isinstance(recommendations, list) else []
        return AIAnalysisResult(**d)
