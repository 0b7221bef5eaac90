from __future__ import annotations

from fastapi import APIRouter

from app.api.v1.endpoints import health, scheduler, tasks

api_router = APIRouter()
api_router.include_router(health.router, tags=["system"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(scheduler.router, prefix="/scheduler", tags=["scheduler"])
