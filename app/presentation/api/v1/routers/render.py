import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.application.use_cases.render_video import RenderVideoUseCase
from app.core.pyd_schemas import RenderFailure, RenderSuccess
from app.presentation.api.v1.dependencies.render import get_render_video_use_case
from app.presentation.api.v1.schemas.render import ClientErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["render"])


@router.post(
    "/render",
    responses={
        200: {"model": RenderSuccess},
        400: {"model": ClientErrorResponse},
        500: {"model": RenderFailure},
    },
)
async def render_video(
    request: Request,
    use_case: RenderVideoUseCase = Depends(get_render_video_use_case),
):
    """Render a video from `{"videoData": {...}}` and report where it was written."""
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else None
    except (ValueError, UnicodeDecodeError):
        logger.warning("Render request body is not valid JSON (%d bytes)", len(raw))
        payload = None

    result = await use_case.handle_render_request(payload)
    return JSONResponse(status_code=result.status_code, content=result.body)
