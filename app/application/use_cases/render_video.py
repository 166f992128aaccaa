from __future__ import annotations

import asyncio
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Dict, Mapping

from pydantic import ValidationError

from app.application.interfaces import IIdGenerator, IJobLogger
from app.application.pipeline.render.invoker import RenderInvoker
from app.core.exceptions import InvalidInputError, MissingInputError
from app.core.pyd_schemas import (
    JobRequest,
    RenderFailure,
    RenderSuccess,
    format_render_time,
)
from utils.resource_manager import TransientArtifact


@dataclass(slots=True)
class JobResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


class RenderVideoUseCase:
    """Turns one render request into one HTTP-shaped response.

    This is the error boundary of the service: it validates the payload,
    waits for a free render slot, drives the invoker and always releases the
    bundle artifact before answering. It never raises.
    """

    def __init__(
        self,
        invoker: RenderInvoker,
        id_generator: IIdGenerator,
        job_logger: IJobLogger,
        *,
        production: bool = False,
        max_concurrent_renders: int = 1,
    ) -> None:
        if max_concurrent_renders < 1:
            raise ValueError("max_concurrent_renders must be at least 1")
        self._invoker = invoker
        self._ids = id_generator
        self._log = job_logger
        self.production = production
        self.max_concurrent_renders = max_concurrent_renders
        self._slot = asyncio.Semaphore(max_concurrent_renders)
        self._active = 0

    @property
    def slot_usage(self) -> Dict[str, int]:
        return {"active": self._active, "limit": self.max_concurrent_renders}

    def parse_request(self, payload: Any) -> JobRequest:
        """Extract and validate `videoData` from the request body."""
        video_data = payload.get("videoData") if isinstance(payload, Mapping) else None
        if not video_data:
            raise MissingInputError(received=payload)
        if not isinstance(video_data, Mapping):
            raise InvalidInputError(
                "videoData must be an object",
                received=payload,
            )
        try:
            return JobRequest.model_validate(video_data)
        except ValidationError as e:
            raise InvalidInputError(
                received=payload,
                validation_errors=e.errors(include_url=False, include_context=False),
            ) from e

    async def handle_render_request(self, payload: Any) -> JobResponse:
        try:
            job_request = self.parse_request(payload)
        except InvalidInputError as e:
            self._log.warn(e.message, {"errors": e.validation_errors})
            return JobResponse(
                400,
                {
                    "error": e.message,
                    "details": e.validation_errors,
                    "received": e.received,
                },
            )
        except MissingInputError as e:
            self._log.warn("Render request rejected: videoData is missing")
            return JobResponse(400, {"error": e.message, "received": e.received})

        job_id = job_request.video_id or self._ids.new_id()
        self._log.info(
            f"Render request received: {job_id}",
            {
                "scenes": len(job_request.video_assets),
                "footageSeconds": job_request.total_duration_seconds,
                "hasAudio": bool(job_request.audio_base64),
                "channelName": job_request.channel_name,
            },
        )

        if self._slot.locked():
            self._log.info(f"Waiting for a free render slot: {job_id}", self.slot_usage)

        async with self._slot:
            self._active += 1
            start = perf_counter()
            try:
                async with TransientArtifact(self._log, label="bundle") as artifact:
                    result = await self._invoker.render_job(
                        job_id, job_request, artifact
                    )
            except Exception as e:  # noqa: BLE001
                return self._failure(job_id, e, perf_counter() - start)
            finally:
                self._active -= 1

        elapsed = perf_counter() - start
        outcome = RenderSuccess(
            video_id=job_id,
            output_path=result.output_path,
            render_time=format_render_time(elapsed),
            composition=result.composition,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        self._log.success(
            f"Video rendered: {job_id}",
            {"outputPath": outcome.output_path, "renderTime": outcome.render_time},
        )
        return JobResponse(200, outcome.model_dump(by_alias=True))

    def _failure(self, job_id: str, exc: Exception, elapsed: float) -> JobResponse:
        self._log.error(f"Render failed: {job_id}", exc)
        outcome = RenderFailure(
            message=str(exc) or exc.__class__.__name__,
            video_id=job_id,
            kind=exc.__class__.__name__,
            render_time=format_render_time(elapsed),
            stack=None
            if self.production
            else "".join(traceback.format_exception(exc)),
        )
        return JobResponse(500, outcome.model_dump(by_alias=True, exclude_none=True))
