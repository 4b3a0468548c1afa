# face_gateway/services/face_service.py
from __future__ import annotations

from fastapi import Request

from face_gateway.core.config import Settings
from face_gateway.core.errors import InternalError
from face_gateway.services.adapters.face_adapter import FaceAdapter
from face_gateway.services.adapters.face_mock_adapter import FaceMockAdapter
from face_gateway.services.adapters.face_rekognition_adapter import FaceRekognitionAdapter


def select_adapter(settings: Settings) -> FaceAdapter:
    if settings.face_mode == "mock":
        return FaceMockAdapter()
    return FaceRekognitionAdapter(region=settings.aws_region)


def get_face_adapter(request: Request) -> FaceAdapter:
    """Route dependency: the adapter built once in the application lifespan."""
    adapter = getattr(request.app.state, "face_adapter", None)
    if adapter is None:
        raise InternalError("Face adapter not initialized")
    return adapter


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
