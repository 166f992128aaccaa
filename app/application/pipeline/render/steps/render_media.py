from __future__ import annotations

import os
import logging

from app.application.pipeline.base import PipelineContext, BaseStep
from app.application.interfaces import IArtifactStore, IRenderEngine, ProgressCallback
from app.core.exceptions import RenderError


logger = logging.getLogger(__name__)


class RenderMediaStep(BaseStep):
    name = "render_media"
    required_keys = ["bundle_location", "composition"]

    def __init__(
        self,
        engine: IRenderEngine,
        store: IArtifactStore,
        *,
        codec: str,
        on_progress: ProgressCallback | None = None,
    ):
        self.engine = engine
        self.store = store
        self.codec = codec
        self.on_progress = on_progress

    async def run(self, context: PipelineContext) -> None:
        job_id = context.input["job_id"]
        composition = context.get("composition")
        serve_url = context.get("bundle_location")

        try:
            output_path = self.store.output_path(job_id)
        except OSError as e:
            raise RenderError(f"Output location is not writable: {e}") from e

        logger.info("Rendering %s with codec %s -> %s", job_id, self.codec, output_path)

        try:
            await self.engine.render_media(
                composition,
                serve_url,
                codec=self.codec,
                output_location=output_path,
                input_props=context.input["input_props"],
                on_progress=self.on_progress,
            )
        except RenderError:
            raise
        except Exception as e:  # noqa: BLE001
            raise RenderError(str(e) or e.__class__.__name__) from e

        if not os.path.exists(output_path):
            raise RenderError(
                f"Render reported success but output not found: {output_path}"
            )
        size = os.path.getsize(output_path)
        if size <= 0:
            raise RenderError(f"Render produced an empty file: {output_path}")

        logger.info("✅ Render done: %s (%.2f MB)", output_path, size / (1024 * 1024))
        context.set("output_path", output_path)
