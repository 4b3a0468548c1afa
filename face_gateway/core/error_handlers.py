# face_gateway/core/error_handlers.py
from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from face_gateway.core.errors import (
    BadRequestError,
    GatewayError,
    InternalError,
    NotFoundError,
    PayloadTooLargeError,
    ProviderError,
)
from face_gateway.core.security import SECURITY_HEADERS
from face_gateway.schemas.face_schema import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Internal server error"


def _client_message(exc: GatewayError) -> str:
    if exc.status_code != 500:
        return exc.message
    if isinstance(exc, ProviderError) and exc.credentials_error:
        return exc.message
    return GENERIC_MESSAGE


def build_error_response(request: Request, exc: GatewayError, cause: BaseException | None = None) -> JSONResponse:
    """Single normalization point: log everything, answer with a minimal payload."""
    cause = cause or exc
    status = exc.status_code
    name = exc.error_name
    raw_message = exc.detail if isinstance(exc, ProviderError) else str(cause)

    log = logger.error if status >= 500 else logger.warning
    log(
        f"[error] method={request.method} path={request.url.path} status={status} "
        f"name={name} message={raw_message}",
        exc_info=cause if status >= 500 else None,
    )

    payload = ErrorResponse(error=name, message=_client_message(exc))

    settings = getattr(request.app.state, "settings", None)
    if settings is None or not settings.is_production:
        payload.details = raw_message
        payload.stack = "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))
        if isinstance(exc, ProviderError) and exc.upstream_status is not None:
            payload.providerStatus = exc.upstream_status

    return JSONResponse(status_code=status, content=payload.model_dump(exclude_none=True))


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return build_error_response(request, exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        error: GatewayError = NotFoundError("Route not found")
    elif exc.status_code == 413:
        error = PayloadTooLargeError(str(exc.detail))
    else:
        error = GatewayError(str(exc.detail))
        error.status_code = exc.status_code
        error.kind = "method_not_allowed" if exc.status_code == 405 else "http_error"
    response = build_error_response(request, error, exc)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return build_error_response(request, BadRequestError(message), exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    response = build_error_response(request, InternalError(str(exc) or type(exc).__name__), exc)
    # runs outside of the access_log middleware
    response.headers.update(SECURITY_HEADERS)
    return response


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
