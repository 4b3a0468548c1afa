# face_gateway/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple, Union

from dotenv import load_dotenv

# Load .env file
load_dotenv()

DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024
DEFAULT_MAX_BODY_BYTES = 7 * 1024 * 1024


def _get_env(name: str, default: str = "") -> str:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_cors_origins() -> Union[str, Tuple[str, ...]]:
    raw = _get_env("CORS_ORIGINS", "*")
    if raw.strip() == "*":
        return "*"
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    """Process-wide settings resolved from environment variables."""

    host: str = "127.0.0.1"
    port: int = 3000
    environment: str = "development"
    service_name: str = "face-gateway"
    log_level: str = "INFO"

    cors_origins: Union[str, Tuple[str, ...]] = "*"
    api_key: str = ""

    aws_region: str = "us-east-1"
    collection_id: str = "face-gateway-faces"

    # "rekognition" talks to AWS, "mock" keeps faces in memory (local dev)
    face_mode: str = "rekognition"

    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    rate_limit: str = "120/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def build_settings() -> Settings:
    return Settings(
        host=_get_env("HOST", "127.0.0.1"),
        port=_get_env_int("PORT", 3000),
        environment=_get_env("ENVIRONMENT", "development").lower(),
        service_name=_get_env("SERVICE_NAME", "face-gateway"),
        log_level=_get_env("LOG_LEVEL", "INFO"),
        cors_origins=_get_cors_origins(),
        api_key=_get_env("API_KEY", ""),
        aws_region=_get_env("AWS_REGION", "us-east-1"),
        collection_id=_get_env("REKOGNITION_COLLECTION_ID", "face-gateway-faces"),
        face_mode=_get_env("FACE_MODE", "rekognition").lower(),
        max_image_bytes=_get_env_int("MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES),
        max_body_bytes=_get_env_int("MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
        rate_limit=_get_env("RATE_LIMIT", "120/minute"),
    )


@lru_cache
def get_settings() -> Settings:
    return build_settings()
