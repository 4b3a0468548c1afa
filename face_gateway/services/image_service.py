# face_gateway/services/image_service.py
from __future__ import annotations

import base64
import binascii
import math
import re
from typing import Any, Optional

from fastapi import UploadFile

from face_gateway.core.errors import BadRequestError, PayloadTooLargeError

DEFAULT_THRESHOLD = 80.0

_DATA_URL_RE = re.compile(r"^data:(.*?);base64,(.*)$", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def parse_base64_image(value: Any) -> Optional[bytes]:
    """
    Decode a base64 image string into bytes.
    Accepts raw base64 or a data URL such as "data:image/jpeg;base64,...".
    Returns None when nothing usable was sent; invalid base64 is a bad_request.
    """
    if not value or not isinstance(value, str):
        return None

    match = _DATA_URL_RE.match(value.strip())
    payload = match.group(2) if match else value

    # tolerate line breaks, the URL-safe alphabet and missing padding
    payload = _WHITESPACE_RE.sub("", payload).replace("-", "+").replace("_", "/")
    payload = payload.rstrip("=")
    payload += "=" * (-len(payload) % 4)

    try:
        return base64.b64decode(payload)
    except (binascii.Error, ValueError):
        raise BadRequestError("Invalid base64 image")


async def read_upload(upload: Optional[UploadFile]) -> Optional[bytes]:
    if upload is None:
        return None
    try:
        return await upload.read()
    finally:
        await upload.close()


def validate_image_bytes(data: Optional[bytes], max_bytes: int) -> bytes:
    if data is None:
        raise BadRequestError("Image is required")
    if len(data) == 0:
        raise BadRequestError("Image is empty")
    if len(data) > max_bytes:
        raise PayloadTooLargeError(f"Image too large (max {max_bytes} bytes)")
    return data


def parse_threshold(value: Any, default: float = DEFAULT_THRESHOLD) -> float:
    """Similarity threshold in percent; missing or blank means the default."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise BadRequestError("threshold must be a number")
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        raise BadRequestError("threshold must be a number")
    if math.isnan(threshold) or not 0.0 <= threshold <= 100.0:
        raise BadRequestError("threshold must be between 0 and 100")
    return threshold


def require_field(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise BadRequestError(f"{name} is required")
    return value
