from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict

from app.application.interfaces import IArtifactStore, IJobLogger, IRenderEngine
from app.application.pipeline.base import PipelineContext
from app.application.pipeline.render.builder import build_render_pipeline
from app.application.pipeline.render.progress import ProgressReporter
from app.core.exceptions import RenderError
from app.core.pyd_schemas import CompositionMetadata, JobRequest
from utils.resource_manager import TransientArtifact


def _current_step(ctx: PipelineContext) -> str:
    if ctx.has("composition"):
        return "render_media"
    if ctx.has("bundle_location"):
        return "select_composition"
    return "bundle"


@dataclass(frozen=True, slots=True)
class RenderResult:
    output_path: str
    composition: CompositionMetadata
    step_durations: Dict[str, float] = field(default_factory=dict)


class RenderInvoker:
    """Runs the bundle -> composition -> render sequence for one job.

    The bundle location is handed to `artifact`; releasing it is the caller's
    job. Errors from any step propagate unchanged, except a timeout of the
    whole sequence which surfaces as RenderError.
    """

    def __init__(
        self,
        engine: IRenderEngine,
        store: IArtifactStore,
        job_logger: IJobLogger,
        *,
        entry_point: str,
        composition_id: str,
        codec: str = "h264",
        timeout: float | None = 300.0,
        progress_step: int = 10,
    ) -> None:
        self._engine = engine
        self._store = store
        self._log = job_logger
        self.entry_point = entry_point
        self.composition_id = composition_id
        self.codec = codec
        self.timeout = timeout
        self.progress_step = progress_step

    async def render_job(
        self, job_id: str, job_request: JobRequest, artifact: TransientArtifact
    ) -> RenderResult:
        reporter = ProgressReporter(self._log, job_id=job_id, step=self.progress_step)
        pipeline = build_render_pipeline(
            self._engine,
            self._store,
            artifact,
            entry_point=self.entry_point,
            composition_id=self.composition_id,
            codec=self.codec,
            on_progress=reporter,
        )
        ctx = PipelineContext(
            input={
                "job_id": job_id,
                "job_request": job_request,
                "input_props": job_request.to_input_props(job_id),
            }
        )
        ctx.set_run_id(job_id)

        self._log.render("start", f"{job_id}: {' -> '.join(pipeline.step_names)}")
        try:
            if self.timeout:
                result = await asyncio.wait_for(
                    pipeline.execute(ctx), timeout=self.timeout
                )
            else:
                result = await pipeline.execute(ctx)
        except asyncio.TimeoutError as e:
            raise RenderError(
                f"Render timed out after {self.timeout:g}s during {_current_step(ctx)}"
            ) from e

        step_durations = {s["name"]: round(s["duration"], 3) for s in result["steps"]}
        self._log.info(
            f"Render pipeline finished: {job_id}",
            {"steps": step_durations, "total": round(result["duration"], 3)},
        )
        return RenderResult(
            output_path=ctx.get("output_path"),
            composition=ctx.get("composition"),
            step_durations=step_durations,
        )
