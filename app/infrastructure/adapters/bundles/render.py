from __future__ import annotations

import logging
from types import SimpleNamespace

from app.core.config import settings
from app.infrastructure.adapters import (
    LocalArtifactStore,
    LoggingJobLogger,
    RemotionCliEngine,
    TimestampIdGenerator,
)


def get_render_adapter_bundle() -> SimpleNamespace:
    """Provide the concrete adapters the render flow runs against."""
    return SimpleNamespace(
        engine=RemotionCliEngine(),
        store=LocalArtifactStore(settings.output_directory),
        id_generator=TimestampIdGenerator(prefix=settings.job_id_prefix),
        job_logger=LoggingJobLogger(
            logging.getLogger("app.render"), production=settings.is_production
        ),
    )
