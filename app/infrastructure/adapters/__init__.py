from .artifact_store_local import LocalArtifactStore
from .id_generator import SystemClock, TimestampIdGenerator
from .job_logger import LoggingJobLogger
from .remotion_cli import RemotionCliEngine

__all__ = [
    "LocalArtifactStore",
    "SystemClock",
    "TimestampIdGenerator",
    "LoggingJobLogger",
    "RemotionCliEngine",
]
