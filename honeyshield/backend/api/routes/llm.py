"""
api/routes/llm.py

GET  /api/llm/status           — adapter mode, model info and call statistics
POST /api/llm/analyze/{log_id} — on-demand analysis of a stored traffic log

On-demand analysis still goes through the gatekeeper: when the remote API
is unavailable, cooling down or rate limited, the heuristic result is
stored instead.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_services
from ..errors import internal_errors
from ..serializers import AIAnalysisResponse, LLMStatusResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/llm", tags=["llm"])


@router.get("/status", response_model=LLMStatusResponse)
async def llm_status(services=Depends(get_services)) -> LLMStatusResponse:
    client = services.llm_client
    stats = client.stats
    return LLMStatusResponse(
        enabled=client.enabled,
        model=client.model,
        base_url=client.base_url,
        cooldown_remaining=round(client.gatekeeper.cooldown_remaining, 1),
        calls_made=stats.get("calls_made", 0),
        fallbacks_used=stats.get("fallbacks_used", 0),
        quota_errors=stats.get("quota_errors", 0),
        parse_errors=stats.get("parse_errors", 0),
        timeouts=stats.get("timeouts", 0),
    )


@router.post("/analyze/{log_id}", response_model=AIAnalysisResponse)
async def analyze_log(log_id: int, services=Depends(get_services)) -> AIAnalysisResponse:
    """Score a stored log, enrich it remotely if allowed, and persist the result."""
    store = services.store
    with internal_errors("Failed to analyze traffic log"):
        log = store.get_traffic_log(log_id)
        if log is None:
            raise HTTPException(status_code=404, detail="Traffic log not found")

        fallback = services.scorer.score_log(log)
        analysis = await services.llm_client.analyze(log, fallback)
        result = store.create_ai_analysis_result(
            analysis.to_result(traffic_log_id=log.id, timestamp=services.clock())
        )

    logger.info("On-demand analysis stored for log %d: %s", log_id, result.technique)
    return AIAnalysisResponse.from_result(result)
