# homely/routers/health.py
from __future__ import annotations

from fastapi import APIRouter

from ..config import settings
from ..schemas import HealthOut

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
def health():
    return {"status": "ok", "version": settings.app_version, "env": settings.app_env}
