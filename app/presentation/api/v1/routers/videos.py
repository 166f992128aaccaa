import os

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, JSONResponse

from app.application.interfaces import IArtifactStore
from app.presentation.api.v1.dependencies.render import get_artifact_store
from app.presentation.api.v1.schemas.render import NotFoundResponse

router = APIRouter(prefix="/videos", tags=["videos"])


@router.get("/{video_id}", responses={404: {"model": NotFoundResponse}})
async def download_video(
    video_id: str, store: IArtifactStore = Depends(get_artifact_store)
):
    """Stream a previously rendered video."""
    path = store.locate(video_id)
    if path is None:
        return JSONResponse(
            status_code=404, content={"error": "Video not found", "videoId": video_id}
        )
    return FileResponse(path, media_type="video/mp4", filename=os.path.basename(path))
