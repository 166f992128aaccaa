from __future__ import annotations

import logging

from app.application.pipeline.base import PipelineContext, BaseStep
from app.application.interfaces.renderer import IRenderEngine
from app.core.exceptions import CompositionError


logger = logging.getLogger(__name__)


class SelectCompositionStep(BaseStep):
    name = "select_composition"
    required_keys = ["bundle_location"]

    def __init__(self, engine: IRenderEngine, composition_id: str):
        self.engine = engine
        self.composition_id = composition_id

    async def run(self, context: PipelineContext) -> None:
        serve_url = context.get("bundle_location")
        input_props = context.input["input_props"]

        try:
            composition = await self.engine.select_composition(
                serve_url, self.composition_id, input_props
            )
        except CompositionError:
            raise
        except Exception as e:  # noqa: BLE001
            raise CompositionError(
                f"Could not resolve composition '{self.composition_id}': {e}",
                composition_id=self.composition_id,
            ) from e

        logger.info(
            "Composition %s: %dx%d @ %sfps, %d frames (%.2fs)",
            composition.id,
            composition.width,
            composition.height,
            composition.fps,
            composition.duration_in_frames,
            composition.duration_in_seconds,
        )

        job_request = context.input.get("job_request")
        if job_request is not None and composition.fps:
            scene_frames = sum(job_request.scene_frames(int(composition.fps)))
            if scene_frames > composition.duration_in_frames:
                logger.warning(
                    "Scenes need %d frames but composition %s has %d; the tail will be cut",
                    scene_frames,
                    composition.id,
                    composition.duration_in_frames,
                )

        context.set("composition", composition)
