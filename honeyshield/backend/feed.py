"""
backend/feed.py

LiveFeed — the simulated live telemetry feed.

Three independent timer loops share one Store:

  log tick      every U(30, 60) s   generate a log, store it, analyze it
                                    (heuristic + remote adapter), store the
                                    analysis, bump attacksToday
  pattern tick  every U(120, 180) s inject a generated pattern with 40%
                                    probability (0 when demo patterns are off)
  anomaly tick  every 300 s         run the batch analyzer (+ remote adapter)
                                    over the 20 most recent logs

A tick that raises is logged and counted in FeedMetrics; the loop keeps
going. All loops stop promptly once the shutdown event is set.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime

from .engine.anomaly import AnomalyAnalyzer
from .engine.scorer import ThreatScorer
from .generation.generator import MockDataGenerator
from .llm.client import LLMClient
from .metrics import FeedMetrics
from .models import TrafficLog, utcnow
from .storage.base import Store

logger = logging.getLogger(__name__)

SEED_LOG_COUNT = 50
SEED_PATTERN_COUNT = 5
SEED_ANALYSIS_COUNT = 10


class LiveFeed:
    """
    Args:
        store:     persistence backend shared with the API
        generator: mock record source
        scorer:    heuristic single-log scorer (also the remote fallback)
        analyzer:  rule-based batch anomaly analyzer
        llm_client: remote adapter; returns the fallback when unavailable
        metrics:   counters exposed on /health and /api/system-status
        rng:       random source for tick intervals and pattern injection
        pattern_injection_rate: chance a pattern tick injects a pattern
    """

    def __init__(
        self,
        store: Store,
        generator: MockDataGenerator,
        scorer: ThreatScorer,
        analyzer: AnomalyAnalyzer,
        llm_client: LLMClient,
        metrics: FeedMetrics | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
        log_interval: tuple[float, float] = (30.0, 60.0),
        pattern_interval: tuple[float, float] = (120.0, 180.0),
        anomaly_interval: float = 300.0,
        anomaly_batch_size: int = 20,
        pattern_injection_rate: float = 0.4,
    ) -> None:
        self.store = store
        self.generator = generator
        self.scorer = scorer
        self.analyzer = analyzer
        self.llm_client = llm_client
        self.metrics = metrics or FeedMetrics()
        self._rng = rng or random.Random()
        self._clock = clock
        self.log_interval = log_interval
        self.pattern_interval = pattern_interval
        self.anomaly_interval = anomaly_interval
        self.anomaly_batch_size = anomaly_batch_size
        self.pattern_injection_rate = pattern_injection_rate

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    async def seed(self) -> None:
        """Create the initial demo data set."""
        self.store.update_system_metrics(self.generator.generate_system_metrics())
        self.store.update_dataset_stats(self.generator.generate_dataset_stats())

        for _ in range(SEED_LOG_COUNT):
            self.store.create_traffic_log(self.generator.generate_traffic_log())
            self.metrics.logs_generated.inc()

        for _ in range(SEED_PATTERN_COUNT):
            self.store.create_attack_pattern(self.generator.generate_attack_pattern())

        for log in self.store.get_traffic_logs(limit=SEED_ANALYSIS_COUNT):
            await self._analyze_and_store(log)

        logger.info(
            "Seeded %d logs, %d patterns, %d analyses",
            SEED_LOG_COUNT, SEED_PATTERN_COUNT, SEED_ANALYSIS_COUNT,
        )

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def log_tick(self) -> TrafficLog:
        log = self.store.create_traffic_log(self.generator.generate_traffic_log())
        self.metrics.logs_generated.inc()
        await self._analyze_and_store(log)

        current = self.store.get_system_metrics()
        if current is not None:
            self.store.update_system_metrics(
                replace(current, attacks_today=current.attacks_today + 1, last_updated=self._clock())
            )
        logger.debug("New traffic log %s from %s (%s)", log.id, log.source_ip, log.attack_type)
        return log

    async def pattern_tick(self) -> bool:
        """Return True if a pattern was injected."""
        if self._rng.random() >= self.pattern_injection_rate:
            return False
        pattern = self.store.create_attack_pattern(self.generator.generate_attack_pattern())
        self.metrics.patterns_injected.inc()
        logger.info("Injected attack pattern %d: %s", pattern.id, pattern.name)
        return True

    async def anomaly_tick(self) -> int:
        """Return the number of patterns stored."""
        recent = self.store.get_traffic_logs(limit=self.anomaly_batch_size)
        rule_patterns = self.analyzer.analyze(recent)
        anomalies = await self.llm_client.detect_anomalies(recent, rule_patterns)

        for pattern in anomalies:
            self.store.create_attack_pattern(pattern)
        self.metrics.anomalies_detected.inc(len(anomalies))

        if anomalies:
            logger.info("Detected %d new attack patterns from anomaly analysis", len(anomalies))
        return len(anomalies)

    async def _analyze_and_store(self, log: TrafficLog) -> None:
        fallback = self.scorer.score_log(log)
        analysis = await self.llm_client.analyze(log, fallback)
        self.store.create_ai_analysis_result(
            analysis.to_result(traffic_log_id=log.id, timestamp=self._clock())
        )
        self.metrics.analyses_created.inc()

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Run all three loops until *shutdown_event* is set."""
        logger.info(
            "Live feed started (logs every %.0f–%.0fs, patterns every %.0f–%.0fs at %.0f%%, anomalies every %.0fs)",
            *self.log_interval, *self.pattern_interval,
            self.pattern_injection_rate * 100, self.anomaly_interval,
        )
        await asyncio.gather(
            self._loop("log", self.log_tick, lambda: self._rng.uniform(*self.log_interval), shutdown_event),
            self._loop("pattern", self.pattern_tick, lambda: self._rng.uniform(*self.pattern_interval), shutdown_event),
            self._loop("anomaly", self.anomaly_tick, lambda: self.anomaly_interval, shutdown_event),
        )
        logger.info("Live feed stopped — %s", self.metrics.as_dict())

    async def _loop(
        self,
        name: str,
        tick: Callable[[], Awaitable[object]],
        next_delay: Callable[[], float],
        shutdown_event: asyncio.Event,
    ) -> None:
        while not shutdown_event.is_set():
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=next_delay())
                break
            except asyncio.TimeoutError:
                pass
            try:
                await tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                self.metrics.tick_failures.inc()
                logger.exception("Feed %s tick failed", name)
