from __future__ import annotations

from types import SimpleNamespace

from fastapi import Request

from app.application.pipeline.render.invoker import RenderInvoker
from app.application.use_cases.render_video import RenderVideoUseCase
from app.core.config import settings
from app.infrastructure.adapters.bundles.render import get_render_adapter_bundle


def build_render_video_use_case(
    adapters: SimpleNamespace | None = None,
) -> RenderVideoUseCase:
    """Compose the RenderVideoUseCase once per process; it owns the render slot."""
    adapters = adapters or get_render_adapter_bundle()
    invoker = RenderInvoker(
        adapters.engine,
        adapters.store,
        adapters.job_logger,
        entry_point=settings.remotion_entry_point,
        composition_id=settings.remotion_composition_id,
        codec=settings.remotion_codec,
        timeout=settings.render_timeout_seconds,
        progress_step=settings.progress_log_step,
    )
    return RenderVideoUseCase(
        invoker,
        adapters.id_generator,
        adapters.job_logger,
        production=settings.is_production,
        max_concurrent_renders=settings.max_concurrent_renders,
    )


def get_render_video_use_case(request: Request) -> RenderVideoUseCase:
    return request.app.state.render_use_case


def get_artifact_store(request: Request):
    return request.app.state.artifact_store
