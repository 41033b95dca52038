"""
storage/database.py

SQLite connection and schema initialisation for the HoneyShield storage layer.

Design decisions:
  - WAL journal mode for concurrent readers + one writer without blocking.
  - check_same_thread=False: request handlers and feed ticks share one
    connection; all writes are serialised through SqliteStore.
  - busy_timeout=5000ms: instead of raising SQLITE_BUSY immediately, SQLite
    will spin-wait up to 5 seconds, allowing WAL readers to finish.
  - Timestamps are stored as REAL unix epoch seconds (UTC).
  - Snapshot tables (system_metrics, dataset_stats) hold a single row, id=1.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import time

logger = logging.getLogger(__name__)

_CURRENT_SCHEMA_VERSION = 1


class Database:
    """
    Thin wrapper around a sqlite3 connection.

    Usage:
        db = Database("data/honeyshield.db")
        db.init_schema()
        # ... pass db to SqliteStore ...
        db.close()
    """

    def __init__(self, db_path: str = "data/honeyshield.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row  # rows behave like dicts
        self._configure()
        logger.info("Database opened — path=%r", db_path)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _configure(self) -> None:
        """Apply performance and safety PRAGMAs."""
        cur = self.conn.cursor()
        cur.execute("PRAGMA journal_mode=WAL")
        cur.execute("PRAGMA busy_timeout=5000")
        cur.execute("PRAGMA synchronous=NORMAL")  # safe with WAL
        self.conn.commit()

    # ------------------------------------------------------------------
    # Schema initialisation
    # ------------------------------------------------------------------

    def init_schema(self) -> None:
        """Create all tables and indexes if they don't already exist."""
        cur = self.conn.cursor()

        cur.executescript("""
            CREATE TABLE IF NOT EXISTS traffic_logs (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp   REAL NOT NULL,
                source_ip   TEXT NOT NULL,
                country     TEXT NOT NULL,
                attack_type TEXT NOT NULL,
                target      TEXT NOT NULL,
                severity    TEXT NOT NULL,
                status      TEXT NOT NULL,
                payload     TEXT,
                user_agent  TEXT,
                method      TEXT NOT NULL,
                port        INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS attack_patterns (
                id           INTEGER PRIMARY KEY AUTOINCREMENT,
                name         TEXT NOT NULL,
                description  TEXT NOT NULL,
                confidence   INTEGER NOT NULL,
                occurrences  INTEGER NOT NULL,
                first_seen   REAL NOT NULL,
                last_seen    REAL NOT NULL,
                technique    TEXT NOT NULL,
                risk_score   INTEGER NOT NULL,
                status       TEXT NOT NULL DEFAULT 'new',
                ai_generated INTEGER NOT NULL DEFAULT 1
            );

            -- traffic_log_id is a weak reference: no foreign key
            CREATE TABLE IF NOT EXISTS ai_analysis_results (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                traffic_log_id  INTEGER,
                attack_type     TEXT NOT NULL,
                technique       TEXT NOT NULL,
                risk_score      INTEGER NOT NULL,
                confidence      INTEGER NOT NULL,
                recommendations TEXT NOT NULL,
                timestamp       REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS system_metrics (
                id               INTEGER PRIMARY KEY,
                attacks_today    INTEGER NOT NULL,
                unique_ips       INTEGER NOT NULL,
                ai_detections    INTEGER NOT NULL,
                blocked_attempts INTEGER NOT NULL,
                uptime           TEXT NOT NULL,
                last_updated     REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS dataset_stats (
                id                  INTEGER PRIMARY KEY,
                sql_samples         INTEGER NOT NULL,
                brute_force_samples INTEGER NOT NULL,
                xss_samples         INTEGER NOT NULL,
                ddos_patterns       INTEGER NOT NULL,
                model_accuracy      INTEGER NOT NULL,
                last_retraining     REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS schema_version (
                version    INTEGER PRIMARY KEY,
                applied_at REAL NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_traffic_logs_timestamp
                ON traffic_logs(timestamp DESC);
            CREATE INDEX IF NOT EXISTS idx_traffic_logs_severity
                ON traffic_logs(severity);
            CREATE INDEX IF NOT EXISTS idx_attack_patterns_status
                ON attack_patterns(status);
            CREATE INDEX IF NOT EXISTS idx_ai_analysis_timestamp
                ON ai_analysis_results(timestamp DESC);
        """)

        # Record schema version (ignore if already present)
        cur.execute(
            "INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
            (_CURRENT_SCHEMA_VERSION, time.time()),
        )
        self.conn.commit()
        logger.info("Schema initialised (version=%d)", _CURRENT_SCHEMA_VERSION)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Flush and close the SQLite connection."""
        try:
            self.conn.commit()
            self.conn.close()
            logger.info("Database closed — path=%r", self.db_path)
        except sqlite3.Error as exc:
            logger.warning("Error closing database: %s", exc)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a single parameterized statement."""
        return self.conn.execute(sql, params)

    def commit(self) -> None:
        self.conn.commit()
