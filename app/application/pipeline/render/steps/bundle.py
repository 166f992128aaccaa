from __future__ import annotations

import logging

from app.application.pipeline.base import PipelineContext, BaseStep
from app.application.interfaces.renderer import IRenderEngine
from app.core.exceptions import BundleError
from utils.resource_manager import TransientArtifact


logger = logging.getLogger(__name__)


class BundleStep(BaseStep):
    """Package the rendering project; the bundle is owned by `artifact`."""

    name = "bundle"

    def __init__(
        self, engine: IRenderEngine, entry_point: str, artifact: TransientArtifact
    ):
        self.engine = engine
        self.entry_point = entry_point
        self.artifact = artifact

    async def run(self, context: PipelineContext) -> None:
        try:
            location = await self.engine.bundle(self.entry_point)
        except BundleError:
            raise
        except Exception as e:  # noqa: BLE001
            raise BundleError(
                f"Failed to bundle {self.entry_point}: {e}",
                entry_point=self.entry_point,
            ) from e

        if not location:
            raise BundleError(
                f"Bundler returned no location for {self.entry_point}",
                entry_point=self.entry_point,
            )

        self.artifact.adopt(location)
        logger.info("Bundle ready at %s", location)
        context.set("bundle_location", location)
