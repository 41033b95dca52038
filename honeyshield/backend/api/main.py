"""
api/main.py

FastAPI application factory.

All collaborators are built by the caller and handed over in an
AppServices bundle stored on app.state; routes reach them through the
dependencies in api/deps.py. Nothing here is a module-level singleton.
"""

from __future__ import annotations

import logging
import random
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import Settings
from ..engine.scorer import ThreatScorer
from ..llm.client import LLMClient
from ..metrics import FeedMetrics
from ..models import utcnow
from ..storage.base import Store
from .errors import install_error_handlers
from .routes import analysis as analysis_router
from .routes import intelligence as intelligence_router
from .routes import llm as llm_router
from .routes import metrics as metrics_router
from .routes import patterns as patterns_router
from .routes import system as system_router
from .routes import traffic as traffic_router

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    store: Store
    scorer: ThreatScorer
    llm_client: LLMClient
    settings: Settings
    feed_metrics: FeedMetrics = field(default_factory=FeedMetrics)
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], datetime] = utcnow
    started_at: float = field(default_factory=time.monotonic)


def create_app(services: AppServices) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup")
        yield
        logger.info("FastAPI shutdown")

    app = FastAPI(
        title="HoneyShield — Honeypot Security Dashboard",
        version="1.0.0",
        description="Synthetic attack telemetry with heuristic and AI-assisted analysis",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=services.settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    # REST routers
    app.include_router(metrics_router.router,      prefix="/api")
    app.include_router(traffic_router.router,      prefix="/api")
    app.include_router(patterns_router.router,     prefix="/api")
    app.include_router(analysis_router.router,     prefix="/api")
    app.include_router(intelligence_router.router, prefix="/api")
    app.include_router(system_router.router,       prefix="/api")
    app.include_router(llm_router.router,          prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "llm_enabled": services.llm_client.enabled,
            "feed": services.feed_metrics.as_dict(),
        }

    return app
