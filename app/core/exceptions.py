"""
Custom exception handlers and error types
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /health",
    "POST /render",
    "GET /videos/{video_id}",
]


class RenderServiceError(Exception):
    """Base exception for the render service"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class MissingInputError(RenderServiceError):
    """Raised when a render request carries no job description"""

    def __init__(self, message: str = "videoData is required", received: Any = None):
        super().__init__(message, "MISSING_INPUT")
        self.received = received


class InvalidInputError(MissingInputError):
    """Raised when the job description is present but structurally invalid"""

    def __init__(
        self,
        message: str = "Invalid videoData",
        received: Any = None,
        validation_errors: Optional[List[dict]] = None,
    ):
        super().__init__(message, received)
        self.error_code = "INVALID_INPUT"
        self.validation_errors = validation_errors or []


class BundleError(RenderServiceError):
    """Raised when the rendering project cannot be bundled"""

    def __init__(self, message: str, entry_point: Optional[str] = None):
        super().__init__(message, "BUNDLE_ERROR")
        self.entry_point = entry_point


class CompositionError(RenderServiceError):
    """Raised when the named composition cannot be resolved"""

    def __init__(self, message: str, composition_id: Optional[str] = None):
        super().__init__(message, "COMPOSITION_ERROR")
        self.composition_id = composition_id


class RenderError(RenderServiceError):
    """Raised when encoding fails, times out or the output is unusable
    Args:
        message (str): Error message from the engine
        details (Optional[str]): Tail of the engine output, if any
    """

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message, "RENDER_ERROR")
        self.details = details


class CleanupWarning(UserWarning):
    """Non-fatal problem while removing a transient artifact"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to remove {path}: {reason}")


async def not_found_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render 404s with the list of known endpoints, other HTTP errors as detail"""
    if exc.status_code == 404:
        logger.warning("Route not found: %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not found",
                "path": request.url.path,
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            },
        )

    logger.warning("HTTP exception: %s - %s", exc.status_code, exc.detail)
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {"error": "HTTP Error", "details": str(exc.detail)}
    return JSONResponse(
        status_code=exc.status_code, content={"detail": detail}, headers=exc.headers
    )
