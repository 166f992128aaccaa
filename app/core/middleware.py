"""
Custom middleware for request logging and body size limits
"""

import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class _BodyTooLarge(Exception):
    pass


class BodySizeLimitMiddleware:
    """Reject requests whose body exceeds the configured limit.

    The declared Content-Length is checked up front; bodies without one
    (chunked uploads) are counted as they are read.
    """

    def __init__(self, app: ASGIApp, max_body_size: int = 50 * 1024 * 1024):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                declared = 0
            if declared > self.max_body_size:
                await self._reject(scope, receive, send, declared)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    raise _BodyTooLarge()
            return message

        try:
            await self.app(scope, limited_receive, send)
        except _BodyTooLarge:
            await self._reject(scope, receive, send, received)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, size: int):
        logger.warning(
            "Rejected %s %s: body of %d+ bytes exceeds %d",
            scope.get("method"),
            scope.get("path"),
            size,
            self.max_body_size,
        )
        response = JSONResponse(
            status_code=413,
            content={"error": "Payload too large", "limit": self.max_body_size},
        )
        await response(scope, receive, send)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests for monitoring"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_host = request.client.host if request.client is not None else "unknown"
        logger.info(
            "Request: %s %s from %s", request.method, request.url.path, client_host
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "Response: %s %s -> %d in %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
        )

        return response
