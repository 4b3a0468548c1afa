# face_gateway/routers/health_router.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from face_gateway.core.config import Settings
from face_gateway.schemas.face_schema import HealthResponse
from face_gateway.services.face_service import get_app_settings

router = APIRouter(tags=["system"])

@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    return HealthResponse(ok=True, service=settings.service_name, env=settings.environment)
