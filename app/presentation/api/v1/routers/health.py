"""
Health check API endpoints
"""

from fastapi import APIRouter, Request

from app.core.config import settings
from app.core.exceptions import AVAILABLE_ENDPOINTS
from app.core.monitoring import health_checker

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint that returns service status and process diagnostics
    """
    use_case = getattr(request.app.state, "render_use_case", None)
    return health_checker.get_process_health(
        service=settings.service_name,
        environment=settings.environment,
        output_directory=settings.output_directory,
        render_slots=use_case.slot_usage if use_case is not None else None,
    )


@router.get("/")
async def root():
    """
    Root endpoint
    """
    return {
        "status": "running",
        "service": settings.service_name,
        "version": settings.api_version,
        "endpoints": AVAILABLE_ENDPOINTS,
    }
