from __future__ import annotations

from app.application.pipeline.base import Pipeline, make_logging_middleware
from app.application.pipeline.factory import PipelineFactory
from app.application.pipeline.render.steps.bundle import BundleStep
from app.application.pipeline.render.steps.select_composition import (
    SelectCompositionStep,
)
from app.application.pipeline.render.steps.render_media import RenderMediaStep
from app.application.interfaces import IArtifactStore, IRenderEngine, ProgressCallback
from utils.resource_manager import TransientArtifact


def build_render_pipeline(
    engine: IRenderEngine,
    store: IArtifactStore,
    artifact: TransientArtifact,
    *,
    entry_point: str,
    composition_id: str,
    codec: str,
    on_progress: ProgressCallback | None = None,
    enable_logging_middleware: bool = True,
) -> Pipeline:
    """bundle -> select_composition -> render_media, fail-fast, no retries."""

    middlewares = [make_logging_middleware()] if enable_logging_middleware else []
    factory = PipelineFactory(middlewares=middlewares)
    factory.add(BundleStep(engine, entry_point, artifact))
    factory.add(SelectCompositionStep(engine, composition_id))
    factory.add(RenderMediaStep(engine, store, codec=codec, on_progress=on_progress))

    return factory.build()
