"""
tests/test_storage.py

Behavioural tests shared by both Store backends (MemoryStore and
SqliteStore on ":memory:"), plus backend-specific checks for SQLite
persistence and open_store() URL handling.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from honeyshield.backend.models import (
    AIAnalysisResult,
    AttackPattern,
    DatasetStats,
    SystemMetrics,
    TrafficLog,
)
from honeyshield.backend.storage import (
    Database,
    MemoryStore,
    SqliteStore,
    open_store,
)
from honeyshield.backend.storage.base import resolve_attack_type, resolve_severity

T0 = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    if request.param == "memory":
        s = MemoryStore()
        yield s
        s.close()
    else:
        db = Database(":memory:")
        db.init_schema()
        s = SqliteStore(db)
        yield s
        s.close()


def make_log(
    offset_s: int = 0,
    severity: str = "low",
    attack_type: str = "SQL Injection",
    source_ip: str = "10.0.0.1",
) -> TrafficLog:
    return TrafficLog(
        timestamp=T0 + timedelta(seconds=offset_s),
        source_ip=source_ip,
        country="CN",
        attack_type=attack_type,
        target="/login",
        severity=severity,
        status="blocked",
        method="POST",
        port=443,
        payload="' OR 1=1--",
        user_agent="sqlmap/1.5",
    )


def make_pattern(name: str = "Pattern", status: str = "new", offset_s: int = 0) -> AttackPattern:
    return AttackPattern(
        name=name,
        description="desc",
        confidence=80,
        occurrences=3,
        first_seen=T0,
        last_seen=T0 + timedelta(seconds=offset_s),
        technique="tech",
        risk_score=7,
        status=status,
    )


def make_result(offset_s: int = 0, traffic_log_id: int | None = 1) -> AIAnalysisResult:
    return AIAnalysisResult(
        traffic_log_id=traffic_log_id,
        attack_type="SQL Injection",
        technique="Union-based SQL Injection",
        risk_score=8,
        confidence=90,
        recommendations=["Implement parameterized queries", "Deploy a WAF"],
        timestamp=T0 + timedelta(seconds=offset_s),
    )


# ---------------------------------------------------------------------------
# Alias resolution
# ---------------------------------------------------------------------------

class TestFilterResolution:

    @pytest.mark.parametrize("alias,expected", [
        ("sql", "SQL Injection"),
        ("XSS", "XSS"),
        ("brute", "Brute Force"),
        ("ddos", "DDoS"),
        ("all", None),
        ("rootkit", None),
        (None, None),
    ])
    def test_attack_type_alias(self, alias, expected):
        assert resolve_attack_type(alias) == expected

    def test_severity_all_means_no_filter(self):
        assert resolve_severity("all") is None
        assert resolve_severity("HIGH") == "high"


# ---------------------------------------------------------------------------
# Traffic logs
# ---------------------------------------------------------------------------

class TestTrafficLogs:

    def test_create_assigns_id_and_round_trips(self, store):
        created = store.create_traffic_log(make_log())
        assert created.id is not None
        fetched = store.get_traffic_log(created.id)
        assert fetched == created
        assert fetched.timestamp == T0
        assert fetched.timestamp.tzinfo is not None

    def test_missing_log_is_none(self, store):
        assert store.get_traffic_log(999) is None

    def test_newest_first(self, store):
        for i in range(3):
            store.create_traffic_log(make_log(offset_s=i))
        logs = store.get_traffic_logs()
        assert [log.timestamp for log in logs] == [
            T0 + timedelta(seconds=2), T0 + timedelta(seconds=1), T0,
        ]

    def test_pagination(self, store):
        for i in range(25):
            store.create_traffic_log(make_log(offset_s=i))
        page3 = store.get_traffic_logs(limit=10, offset=20)
        assert len(page3) == 5
        assert page3[0].timestamp == T0 + timedelta(seconds=4)
        assert store.count_traffic_logs() == 25

    def test_severity_filter(self, store):
        store.create_traffic_log(make_log(severity="high"))
        store.create_traffic_log(make_log(severity="low"))
        assert [log.severity for log in store.get_traffic_logs(severity="high")] == ["high"]
        assert store.count_traffic_logs(severity="all") == 2

    def test_attack_type_alias_filter(self, store):
        store.create_traffic_log(make_log(attack_type="SQL Injection"))
        store.create_traffic_log(make_log(attack_type="XSS Attempt"))
        store.create_traffic_log(make_log(attack_type="DDoS Attack"))
        assert [log.attack_type for log in store.get_traffic_logs(attack_type="xss")] == ["XSS Attempt"]
        assert store.count_traffic_logs(attack_type="unknown") == 3

    def test_ip_substring_filter(self, store):
        store.create_traffic_log(make_log(source_ip="192.168.1.10"))
        store.create_traffic_log(make_log(source_ip="10.0.0.5"))
        assert store.count_traffic_logs(ip_address="192.168") == 1

    def test_combined_filters(self, store):
        store.create_traffic_log(make_log(severity="high", attack_type="SQL Injection"))
        store.create_traffic_log(make_log(severity="low", attack_type="SQL Injection"))
        store.create_traffic_log(make_log(severity="high", attack_type="Brute Force"))
        assert store.count_traffic_logs(severity="high", attack_type="sql") == 1

    def test_null_payload_round_trips(self, store):
        log = make_log()
        log.payload = None
        log.user_agent = None
        created = store.create_traffic_log(log)
        fetched = store.get_traffic_log(created.id)
        assert fetched.payload is None
        assert fetched.user_agent is None


# ---------------------------------------------------------------------------
# Attack patterns
# ---------------------------------------------------------------------------

class TestAttackPatterns:

    def test_create_and_get(self, store):
        created = store.create_attack_pattern(make_pattern())
        fetched = store.get_attack_pattern(created.id)
        assert fetched == created
        assert fetched.ai_generated is True

    def test_all_sorted_by_last_seen(self, store):
        store.create_attack_pattern(make_pattern("old", offset_s=0))
        store.create_attack_pattern(make_pattern("new", offset_s=60))
        assert [p.name for p in store.get_attack_patterns()] == ["new", "old"]

    def test_active_excludes_confirmed_and_dataset(self, store):
        for status in ("new", "under_review", "confirmed", "added_to_dataset"):
            store.create_attack_pattern(make_pattern(status, status=status))
        assert {p.status for p in store.get_active_attack_patterns()} == {"new", "under_review"}
        assert len(store.get_attack_patterns()) == 4

    def test_update_status(self, store):
        created = store.create_attack_pattern(make_pattern())
        updated = store.update_attack_pattern_status(created.id, "confirmed")
        assert updated.status == "confirmed"
        assert updated.name == created.name
        assert store.get_attack_pattern(created.id).status == "confirmed"
        assert store.get_active_attack_patterns() == []

    def test_update_unknown_is_none(self, store):
        assert store.update_attack_pattern_status(404, "confirmed") is None

    def test_returned_copy_is_detached(self, store):
        created = store.create_attack_pattern(make_pattern())
        created.status = "confirmed"
        assert store.get_attack_pattern(created.id).status == "new"


# ---------------------------------------------------------------------------
# Analysis results
# ---------------------------------------------------------------------------

class TestAnalysisResults:

    def test_recommendations_round_trip(self, store):
        created = store.create_ai_analysis_result(make_result())
        assert created.id is not None
        assert created.recommendations == ["Implement parameterized queries", "Deploy a WAF"]

    def test_newest_first_with_limit(self, store):
        for i in range(15):
            store.create_ai_analysis_result(make_result(offset_s=i))
        results = store.get_ai_analysis_results(limit=10)
        assert len(results) == 10
        assert results[0].timestamp == T0 + timedelta(seconds=14)

    def test_weak_reference_allowed(self, store):
        created = store.create_ai_analysis_result(make_result(traffic_log_id=12345))
        assert created.traffic_log_id == 12345


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

class TestSnapshots:

    def test_empty_store_has_no_snapshots(self, store):
        assert store.get_system_metrics() is None
        assert store.get_dataset_stats() is None

    def test_metrics_replaced_last_write_wins(self, store):
        first = SystemMetrics(1, 2, 3, 4, "99.9%", T0)
        second = SystemMetrics(10, 20, 30, 40, "99.8%", T0 + timedelta(hours=1))
        store.update_system_metrics(first)
        store.update_system_metrics(second)
        current = store.get_system_metrics()
        assert current.attacks_today == 10
        assert current.uptime == "99.8%"
        assert current.last_updated == T0 + timedelta(hours=1)

    def test_dataset_stats_replaced(self, store):
        store.update_dataset_stats(DatasetStats(1, 2, 3, 4, 90, T0))
        store.update_dataset_stats(DatasetStats(5, 6, 7, 8, 95, T0))
        stats = store.get_dataset_stats()
        assert stats.sql_samples == 5
        assert stats.model_accuracy == 95


# ---------------------------------------------------------------------------
# SQLite specifics
# ---------------------------------------------------------------------------

class TestSqlitePersistence:

    def test_data_survives_reopen(self, tmp_path):
        path = str(tmp_path / "nested" / "honeyshield.db")
        db = Database(path)
        db.init_schema()
        SqliteStore(db).create_traffic_log(make_log())
        db.close()

        db = Database(path)
        db.init_schema()
        store = SqliteStore(db)
        assert store.count_traffic_logs() == 1
        store.close()

    def test_init_schema_idempotent(self):
        db = Database(":memory:")
        db.init_schema()
        db.init_schema()
        rows = db.execute("SELECT version FROM schema_version").fetchall()
        assert len(rows) == 1
        db.close()


# ---------------------------------------------------------------------------
# open_store
# ---------------------------------------------------------------------------

class TestOpenStore:

    def test_memory_url(self):
        assert isinstance(open_store("memory://"), MemoryStore)

    def test_sqlite_memory_url(self):
        store = open_store("sqlite:///:memory:")
        assert isinstance(store, SqliteStore)
        assert store.count_traffic_logs() == 0
        store.close()

    def test_sqlite_file_url(self, tmp_path):
        store = open_store(f"sqlite:///{tmp_path / 'app.db'}")
        assert isinstance(store, SqliteStore)
        store.close()
        assert (tmp_path / "app.db").exists()

    def test_unknown_scheme_rejected(self):
        with pytest.raises(ValueError):
            open_store("postgres://localhost/db")
