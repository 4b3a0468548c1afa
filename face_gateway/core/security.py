# face_gateway/core/security.py
from __future__ import annotations

import hmac
from typing import Optional

from face_gateway.core.config import Settings

API_KEY_HEADER = "x-api-key"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def api_key_is_valid(settings: Settings, provided: Optional[str]) -> bool:
    """
    Shared-secret check applied to every request, before its body is read.
    Always valid when no API_KEY is configured.
    """
    expected = settings.api_key
    if not expected:
        return True
    if not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())
