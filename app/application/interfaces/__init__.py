from .artifact_store import IArtifactStore
from .renderer import IRenderEngine, ProgressCallback
from .job_logger import IJobLogger
from .job_ids import IClock, IIdGenerator

__all__ = [
    "IArtifactStore",
    "IRenderEngine",
    "ProgressCallback",
    "IJobLogger",
    "IIdGenerator",
    "IClock",
]
