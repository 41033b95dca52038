"""
api/routes/traffic.py

GET /api/traffic-logs       — filtered, paginated traffic logs, newest first
GET /api/traffic-logs/{id}  — single log lookup
"""

from __future__ import annotations

import math
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from ...storage.base import Store
from ..deps import get_store
from ..errors import internal_errors
from ..serializers import PaginatedTrafficLogsResponse, TrafficLogResponse

router = APIRouter(prefix="/traffic-logs", tags=["traffic"])


@router.get("", response_model=PaginatedTrafficLogsResponse)
async def list_traffic_logs(
    severity:    Annotated[str | None, Query()]                     = None,
    attack_type: Annotated[str | None, Query(alias="attackType")]   = None,
    ip_address:  Annotated[str | None, Query(alias="ipAddress")]    = None,
    page:        Annotated[int,        Query(ge=1)]                 = 1,
    limit:       Annotated[int,        Query(ge=1, le=1000)]        = 10,
    store:       Store = Depends(get_store),
) -> PaginatedTrafficLogsResponse:
    """
    attackType accepts the aliases sql, xss, brute and ddos; any other
    value (including 'all') applies no type filter. severity 'all' is
    likewise no filter. ipAddress matches as a substring.
    """
    filters = dict(severity=severity, attack_type=attack_type, ip_address=ip_address)
    with internal_errors("Failed to fetch traffic logs"):
        logs = store.get_traffic_logs(limit=limit, offset=(page - 1) * limit, **filters)
        total = store.count_traffic_logs(**filters)
    return PaginatedTrafficLogsResponse(
        data=[TrafficLogResponse.from_log(log) for log in logs],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


@router.get("/{log_id}", response_model=TrafficLogResponse)
async def get_traffic_log(log_id: int, store: Store = Depends(get_store)) -> TrafficLogResponse:
    with internal_errors("Failed to fetch traffic log"):
        log = store.get_traffic_log(log_id)
    if log is None:
        raise HTTPException(status_code=404, detail="Traffic log not found")
    return TrafficLogResponse.from_log(log)
