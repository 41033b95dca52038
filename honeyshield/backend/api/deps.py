"""
api/deps.py

FastAPI dependencies resolving collaborators from app.state.
Tests replace them via app.dependency_overrides or by building the app
with their own AppServices.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from ..storage.base import Store

if TYPE_CHECKING:
    from .main import AppServices


def get_services(request: Request) -> "AppServices":
    return request.app.state.services


def get_store(request: Request) -> Store:
    return request.app.state.services.store
