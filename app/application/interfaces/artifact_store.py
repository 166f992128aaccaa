from __future__ import annotations
from typing import Protocol, Optional


class IArtifactStore(Protocol):
    """Local store for rendered output files keyed by job id."""

    def output_path(self, job_id: str) -> str:
        """Return the absolute output path for a job, creating its directory."""
        ...

    def locate(self, job_id: str) -> Optional[str]:
        """Return the path of an existing non-empty output, else None."""
        ...
