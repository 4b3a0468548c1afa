# face_gateway/core/middleware.py
from __future__ import annotations

import logging
import time
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from face_gateway.core.config import Settings
from face_gateway.core.error_handlers import build_error_response
from face_gateway.core.errors import (
    BadRequestError,
    PayloadTooLargeError,
    RateLimitedError,
    UnauthorizedError,
)
from face_gateway.core.security import API_KEY_HEADER, SECURITY_HEADERS, api_key_is_valid

logger = logging.getLogger("face_gateway.access")


class BodyTooLargeError(HTTPException):
    """Raised from inside `receive`; FastAPI re-raises HTTPExceptions met while reading a body."""

    def __init__(self, max_body_bytes: int) -> None:
        super().__init__(status_code=413, detail=f"Request body too large (max {max_body_bytes} bytes)")


class BodySizeLimitMiddleware:
    """
    Caps the request body at `max_body_bytes`.
    A declared Content-Length is rejected up front, chunked bodies are counted while they stream.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                response = build_error_response(request, BadRequestError("Invalid Content-Length header"))
                await response(scope, receive, send)
                return
            if size > self.max_body_bytes:
                too_large = BodyTooLargeError(self.max_body_bytes)
                response = build_error_response(request, PayloadTooLargeError(too_large.detail))
                await response(scope, receive, send)
                return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise BodyTooLargeError(self.max_body_bytes)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except BodyTooLargeError as e:
            # body read outside of a route, no exception handler in between
            if response_started:
                raise
            response = build_error_response(request, PayloadTooLargeError(e.detail))
            await response(scope, receive, send)


def cors_options(settings: Settings) -> Dict[str, Any]:
    # Outside production any origin is allowed (Flutter web dev servers use random ports)
    if not settings.is_production or settings.cors_origins == "*":
        return {"allow_origin_regex": ".*", "allow_credentials": True}
    return {"allow_origins": list(settings.cors_origins), "allow_credentials": True}


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def register_middleware(app: FastAPI, settings: Settings) -> None:
    # Starlette runs the last registered middleware first:
    # CORS -> access_log -> rate_limit -> api_key -> body size -> routes

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    @app.middleware("http")
    async def api_key_check(request: Request, call_next):
        if not api_key_is_valid(settings, request.headers.get(API_KEY_HEADER)):
            return build_error_response(request, UnauthorizedError("Missing or invalid API key"))
        return await call_next(request)

    # Fixed window per client address, shared by every route
    rate_limit: RateLimitItem = parse(settings.rate_limit)
    limiter = FixedWindowRateLimiter(MemoryStorage())

    @app.middleware("http")
    async def rate_limit_check(request: Request, call_next):
        key = client_address(request)
        allowed = limiter.hit(rate_limit, key)
        reset_at, remaining = limiter.get_window_stats(rate_limit, key)
        headers = {
            "X-RateLimit-Limit": str(rate_limit.amount),
            "X-RateLimit-Remaining": str(max(remaining, 0)),
            "X-RateLimit-Reset": str(int(reset_at)),
        }
        if allowed:
            response = await call_next(request)
        else:
            response = build_error_response(request, RateLimitedError(f"Rate limit exceeded: {rate_limit}"))
            headers["Retry-After"] = str(max(int(reset_at - time.time()), 1))
        response.headers.update(headers)
        return response

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # answered by the outermost 500 handler
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(f"{request.method} {request.url.path} 500 {elapsed_ms:.1f}ms")
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_methods=["*"],
        allow_headers=["*"],
        **cors_options(settings),
    )
