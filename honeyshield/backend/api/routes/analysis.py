"""
api/routes/analysis.py

GET  /api/ai-analysis    — most recent analysis results, newest first
GET  /api/dataset-stats  — current DatasetStats snapshot
POST /api/retrain-model  — simulated retraining: accuracy +1–3, capped at 99
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ...storage.base import Store
from ..deps import get_services, get_store
from ..errors import internal_errors
from ..serializers import ActionResponse, AIAnalysisResponse, DatasetStatsResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["analysis"])

_MAX_MODEL_ACCURACY = 99


@router.get("/ai-analysis", response_model=list[AIAnalysisResponse])
async def list_analysis_results(
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    store: Store = Depends(get_store),
) -> list[AIAnalysisResponse]:
    with internal_errors("Failed to fetch AI analysis results"):
        results = store.get_ai_analysis_results(limit=limit)
    return [AIAnalysisResponse.from_result(r) for r in results]


@router.get("/dataset-stats", response_model=DatasetStatsResponse | None)
async def get_dataset_stats(store: Store = Depends(get_store)) -> DatasetStatsResponse | None:
    with internal_errors("Failed to fetch dataset stats"):
        stats = store.get_dataset_stats()
    return DatasetStatsResponse.from_stats(stats) if stats else None


@router.post("/retrain-model", response_model=ActionResponse)
async def retrain_model(services=Depends(get_services)) -> ActionResponse:
    with internal_errors("Failed to retrain model"):
        current = services.store.get_dataset_stats()
        if current is not None:
            accuracy = min(_MAX_MODEL_ACCURACY, current.model_accuracy + services.rng.randint(1, 3))
            services.store.update_dataset_stats(
                replace(current, model_accuracy=accuracy, last_retraining=services.clock())
            )
            logger.info("Model retraining simulated: accuracy %d%% → %d%%", current.model_accuracy, accuracy)
    return ActionResponse(success=True, message="Model retraining initiated")
