from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, confloat, constr


class VideoAsset(BaseModel):
    """One scene: a still or clip shown for `duration` seconds with a caption."""

    model_config = ConfigDict(extra="allow")

    url: constr(strip_whitespace=True, min_length=1)
    duration: confloat(gt=0)
    text: str = ""


class JobRequest(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    video_id: Optional[constr(strip_whitespace=True, min_length=1)] = Field(
        default=None, alias="videoId"
    )
    channel_name: Optional[str] = Field(default=None, alias="channelName")
    video_assets: List[VideoAsset] = Field(default_factory=list, alias="videoAssets")
    audio_base64: Optional[str] = Field(default=None, alias="audioBase64")

    @property
    def total_duration_seconds(self) -> float:
        return sum(asset.duration for asset in self.video_assets)

    def scene_frames(self, fps: int) -> List[int]:
        """Frames each scene occupies at `fps` (whole frames, rounded down)."""
        return [math.floor(asset.duration * fps) for asset in self.video_assets]

    def to_input_props(self, video_id: str) -> Dict[str, Any]:
        """Props handed to the composition, with the resolved job id filled in."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["videoId"] = video_id
        return {"videoData": data}


class CompositionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    width: int
    height: int
    fps: Union[int, float]
    duration_in_frames: int = Field(alias="durationInFrames")

    @computed_field(alias="durationInSeconds")
    @property
    def duration_in_seconds(self) -> float:
        if not self.fps:
            return 0.0
        return round(self.duration_in_frames / self.fps, 2)


class RenderSuccess(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success"] = "success"
    video_id: str = Field(alias="videoId")
    output_path: str = Field(alias="outputPath")
    render_time: str = Field(alias="renderTime")
    composition: CompositionMetadata
    timestamp: str


class RenderFailure(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str = "Video rendering failed"
    message: str
    video_id: Optional[str] = Field(default=None, alias="videoId")
    kind: Optional[str] = None
    render_time: str = Field(alias="renderTime")
    stack: Optional[str] = None


def format_render_time(seconds: float) -> str:
    return f"{seconds:.2f}s"
