# face_gateway/core/errors.py
from __future__ import annotations

from typing import Optional

CREDENTIALS_MESSAGE = "AWS credentials not configured/invalid on server"


class GatewayError(Exception):
    """Base class for every error the API turns into a JSON error payload."""

    kind: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def error_name(self) -> str:
        return self.kind


class BadRequestError(GatewayError):
    kind = "bad_request"
    status_code = 400


class UnauthorizedError(GatewayError):
    kind = "unauthorized"
    status_code = 401


class NotFoundError(GatewayError):
    kind = "not_found"
    status_code = 404


class PayloadTooLargeError(GatewayError):
    kind = "payload_too_large"
    status_code = 413


class RateLimitedError(GatewayError):
    kind = "rate_limited"
    status_code = 429


class InternalError(GatewayError):
    kind = "internal_error"
    status_code = 500


class ProviderError(GatewayError):
    """Failure reported by the face-recognition provider.

    ``provider_code`` is the upstream error code (e.g. ``InvalidParameterException``),
    ``upstream_status`` the HTTP status the provider answered with, when known.
    The response status follows the upstream status when it is a 4xx/5xx.
    """

    kind = "provider_error"

    def __init__(
        self,
        message: str,
        *,
        provider_code: Optional[str] = None,
        upstream_status: Optional[int] = None,
        detail: Optional[str] = None,
        credentials_error: bool = False,
    ) -> None:
        super().__init__(message)
        self.provider_code = provider_code
        self.upstream_status = upstream_status
        self.credentials_error = credentials_error
        # raw upstream message, only surfaced outside production
        self.detail = detail or message

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.upstream_status is not None and 400 <= self.upstream_status < 600:
            return self.upstream_status
        return 500

    @property
    def error_name(self) -> str:
        return self.provider_code or self.kind
