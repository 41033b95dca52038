"""
api/routes/system.py

GET  /api/system-status    — simulated host gauges plus live feed counters
GET  /api/security-config  — default security toggles
POST /api/security-config  — accepted and logged, never persisted
GET  /api/export-report    — JSON report download (honeypot-report.json)

Nothing here enforces anything: blocking, rate limiting and geo-blocking
are display values only.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...models import Severity
from ..deps import get_services
from ..errors import internal_errors
from ..serializers import (
    ActionResponse,
    AttackPatternResponse,
    DatasetStatsResponse,
    SecurityConfig,
    SystemMetricsResponse,
    SystemStatusResponse,
    TrafficLogResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["system"])

_STATUS_LOG_WINDOW = 50
_REPORT_LOG_LIMIT = 1000
_REPORT_RECENT_LOGS = 100


def format_uptime(seconds: float) -> str:
    """Render a duration as '{d}d {h}h {m}m'."""
    minutes = int(seconds) // 60
    days, minutes = divmod(minutes, 24 * 60)
    hours, minutes = divmod(minutes, 60)
    return f"{days}d {hours}h {minutes}m"


@router.get("/system-status", response_model=SystemStatusResponse)
async def system_status(services=Depends(get_services)) -> SystemStatusResponse:
    with internal_errors("Failed to fetch system status"):
        logs = services.store.get_traffic_logs(limit=_STATUS_LOG_WINDOW)
    rng = services.rng
    return SystemStatusResponse(
        uptime=format_uptime(time.monotonic() - services.started_at),
        memory_usage=rng.randrange(40, 70),
        cpu_usage=rng.randrange(15, 35),
        disk_usage=rng.randrange(30, 50),
        network_connections=rng.randrange(100, 150),
        active_threats=sum(1 for log in logs if log.severity == Severity.HIGH.value),
        blocked_ips=rng.randrange(800, 900),
        feed=services.feed_metrics.as_dict(),
    )


@router.get("/security-config", response_model=SecurityConfig)
async def read_security_config() -> SecurityConfig:
    return SecurityConfig()


@router.post("/security-config", response_model=ActionResponse)
async def update_security_config(config: SecurityConfig | None = None) -> ActionResponse:
    submitted = config.model_dump(by_alias=True) if config else {}
    logger.info("Security configuration submitted (not persisted): %s", submitted)
    return ActionResponse(success=True, message="Configuration updated successfully")


@router.get("/export-report")
async def export_report(services=Depends(get_services)) -> JSONResponse:
    store = services.store
    with internal_errors("Failed to generate export report"):
        logs = store.get_traffic_logs(limit=_REPORT_LOG_LIMIT)
        patterns = store.get_attack_patterns()
        metrics = store.get_system_metrics()
        stats = store.get_dataset_stats()

        report = {
            "generatedAt": services.clock().isoformat(),
            "summary": _dump(SystemMetricsResponse.from_metrics(metrics)) if metrics else None,
            "datasetStats": _dump(DatasetStatsResponse.from_stats(stats)) if stats else None,
            "recentLogs": [_dump(TrafficLogResponse.from_log(log)) for log in logs[:_REPORT_RECENT_LOGS]],
            "attackPatterns": [_dump(AttackPatternResponse.from_pattern(p)) for p in patterns],
            "totalLogEntries": len(logs),
        }

    return JSONResponse(
        content=report,
        headers={"Content-Disposition": "attachment; filename=honeypot-report.json"},
    )


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)
