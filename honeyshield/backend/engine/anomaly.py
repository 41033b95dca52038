"""
engine/anomaly.py

AnomalyAnalyzer — runs every batch detector over a window of recent logs.

Detectors are plugin classes discovered from engine/rules/ and run in
their declared order. They run independently; their outputs are
concatenated without cross-deduplication.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
import time
from collections.abc import Sequence

from ..models import AttackPattern, TrafficLog
from . import rules as rules_pkg
from .rules.base import BaseDetector

logger = logging.getLogger(__name__)

_DETECTOR_SLOW_MS = 50.0


class AnomalyAnalyzer:
    """
    Args:
        detectors: explicit detector list; discovered from engine/rules/ if omitted
    """

    def __init__(self, detectors: Sequence[BaseDetector] | None = None) -> None:
        loaded = list(detectors) if detectors is not None else self._load_detectors()
        self.detectors: list[BaseDetector] = sorted(loaded, key=lambda d: d.order)
        self.stats: dict[str, int] = {
            "batches_analyzed": 0,
            "patterns_emitted": 0,
            "detector_errors": 0,
        }
        logger.info(
            "AnomalyAnalyzer loaded %d detector(s): %s",
            len(self.detectors),
            [d.name for d in self.detectors],
        )

    def analyze(self, logs: Sequence[TrafficLog]) -> list[AttackPattern]:
        """Return candidate patterns for *logs*. The batch is not modified."""
        self.stats["batches_analyzed"] += 1
        batch = tuple(logs)
        if not batch:
            return []

        patterns: list[AttackPattern] = []
        for detector in self.detectors:
            patterns.extend(self._safe_analyze(detector, batch))

        self.stats["patterns_emitted"] += len(patterns)
        if patterns:
            logger.info(
                "Anomaly sweep over %d log(s) produced %d pattern(s): %s",
                len(batch), len(patterns), [p.name for p in patterns],
            )
        return patterns

    def _safe_analyze(
        self, detector: BaseDetector, batch: tuple[TrafficLog, ...]
    ) -> list[AttackPattern]:
        t0 = time.monotonic()
        try:
            result = detector.analyze(batch)
        except Exception as exc:
            self.stats["detector_errors"] += 1
            logger.exception("Detector %r raised an unhandled exception: %s", detector.name, exc)
            result = []
        elapsed_ms = (time.monotonic() - t0) * 1000
        if elapsed_ms > _DETECTOR_SLOW_MS:
            logger.warning("Detector %r took %.1fms", detector.name, elapsed_ms)
        return result

    def _load_detectors(self) -> list[BaseDetector]:
        detectors: list[BaseDetector] = []
        for _, module_name, _ in pkgutil.iter_modules(rules_pkg.__path__):
            if module_name == "base":
                continue
            try:
                module = importlib.import_module(f"{rules_pkg.__name__}.{module_name}")
            except Exception as exc:
                logger.error("Failed to import detector module %r: %s", module_name, exc)
                continue
            for _, obj in inspect.getmembers(module, inspect.isclass):
                if (
                    issubclass(obj, BaseDetector)
                    and obj is not BaseDetector
                    and obj.__module__ == module.__name__
                ):
                    try:
                        instance: BaseDetector = obj()
                        if instance.enabled:
                            detectors.append(instance)
                    except Exception as exc:
                        logger.error("Failed to instantiate detector %r: %s", obj, exc)
        return detectors
