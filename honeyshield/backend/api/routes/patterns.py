"""
api/routes/patterns.py

GET   /api/attack-patterns       — patterns still awaiting triage (new / under_review)
PATCH /api/attack-patterns/{id}  — change a pattern's review status
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...models import PatternStatus
from ...storage.base import Store
from ..deps import get_store
from ..errors import internal_errors
from ..serializers import AttackPatternResponse, PatternStatusUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/attack-patterns", tags=["patterns"])


@router.get("", response_model=list[AttackPatternResponse])
async def list_active_patterns(store: Store = Depends(get_store)) -> list[AttackPatternResponse]:
    with internal_errors("Failed to fetch attack patterns"):
        patterns = store.get_active_attack_patterns()
    return [AttackPatternResponse.from_pattern(p) for p in patterns]


@router.patch("/{pattern_id}", response_model=AttackPatternResponse)
async def update_pattern_status(
    pattern_id: int,
    update: PatternStatusUpdate | None = None,
    store: Store = Depends(get_store),
) -> AttackPatternResponse:
    """
    Any of the four lifecycle values is accepted. Moving backwards is
    allowed but logged, since no reverse transition is defined.
    """
    requested = update.status if update else None
    if not requested:
        raise HTTPException(status_code=400, detail="Status is required")
    try:
        new_status = PatternStatus(requested)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status {requested!r}; expected one of {PatternStatus.values()}",
        )

    with internal_errors("Failed to update attack pattern"):
        current = store.get_attack_pattern(pattern_id)
        if current is None:
            raise HTTPException(status_code=404, detail="Attack pattern not found")
        if current.status in PatternStatus.values() and PatternStatus(current.status).rank > new_status.rank:
            logger.warning(
                "Attack pattern %d moved backwards: %s → %s",
                pattern_id, current.status, new_status.value,
            )
        pattern = store.update_attack_pattern_status(pattern_id, new_status.value)
        if pattern is None:
            raise HTTPException(status_code=404, detail="Attack pattern not found")

    logger.info("Attack pattern %d status → %s", pattern_id, new_status.value)
    return AttackPatternResponse.from_pattern(pattern)
