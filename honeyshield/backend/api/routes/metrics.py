"""
api/routes/metrics.py

GET /api/metrics — current SystemMetrics snapshot (null before seeding)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...storage.base import Store
from ..deps import get_store
from ..errors import internal_errors
from ..serializers import SystemMetricsResponse

router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_model=SystemMetricsResponse | None)
async def get_metrics(store: Store = Depends(get_store)) -> SystemMetricsResponse | None:
    with internal_errors("Failed to fetch metrics"):
        metrics = store.get_system_metrics()
    return SystemMetricsResponse.from_metrics(metrics) if metrics else None
