"""
Resource management utilities for transient render artifacts
"""

import os
import time
import logging
import shutil
from typing import Any, Optional

from app.core.config import settings
from app.core.exceptions import CleanupWarning

logger = logging.getLogger(__name__)


class TransientArtifact:
    """Owns one filesystem path for the duration of a job.

    The path is adopted once the producing step returns it and removed
    recursively on release. Release is idempotent and never raises; failures
    are reported as a CleanupWarning through the given logger's ``warn``.

    Example:
        async with TransientArtifact(job_logger, label="bundle") as artifact:
            artifact.adopt(await engine.bundle(entry_point))
            ...
        # path is gone here, whatever happened inside the block
    """

    def __init__(self, job_logger: Any, *, label: str = "artifact"):
        self._log = job_logger
        self.label = label
        self._path: Optional[str] = None
        self.released = False

    @property
    def path(self) -> Optional[str]:
        return self._path

    def adopt(self, path: str) -> str:
        if self._path and self._path != path:
            # A second adoption replaces the first; do not leak the old one
            self.release()
        self._path = path
        self.released = False
        return path

    def release(self) -> Optional[CleanupWarning]:
        """Remove the adopted path; return the warning if removal failed"""
        path, self._path = self._path, None
        self.released = True
        if not path:
            return None
        try:
            if os.path.isdir(path):
                shutil.rmtree(path)
            elif os.path.exists(path):
                os.remove(path)
            else:
                return None
            self._log.info(f"Cleaned up {self.label}: {path}")
            return None
        except (OSError, shutil.Error) as e:
            warning = CleanupWarning(path, str(e))
            self._log.warn(
                f"Failed to clean up {self.label}",
                {"path": path, "reason": str(e)},
            )
            return warning

    async def __aenter__(self) -> "TransientArtifact":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __enter__(self) -> "TransientArtifact":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def cleanup_old_temp_directories(
    base_pattern: Optional[str] = None,
    max_age_hours: Optional[float] = None,
    base_dir: Optional[str] = None,
) -> int:
    """Remove stale directories left under the temp base dir by a crashed process

    Returns the number of directories removed.
    """
    if base_pattern is None:
        base_pattern = settings.bundle_dir_prefix
    if max_age_hours is None:
        max_age_hours = settings.bundle_max_age_hours
    if base_dir is None:
        base_dir = settings.temp_base_dir

    removed = 0
    try:
        current_time = time.time()
        max_age_seconds = max_age_hours * 3600

        if not os.path.isdir(base_dir):
            return 0

        for item in os.listdir(base_dir):
            if not item.startswith(base_pattern):
                continue
            path = os.path.join(base_dir, item)
            if not os.path.isdir(path):
                continue
            try:
                age_seconds = current_time - os.path.getmtime(path)
                if age_seconds <= max_age_seconds:
                    continue
                logger.info(
                    "🧹 Cleaning up stale temp directory: %s (age: %.1fh)",
                    path,
                    age_seconds / 3600,
                )
                shutil.rmtree(path, ignore_errors=True)
                if not os.path.exists(path):
                    removed += 1
            except (OSError, shutil.Error) as e:
                logger.warning("Failed to process temp directory %s: %s", path, str(e))
    except OSError as e:
        logger.warning("Failed to cleanup old temp directories: %s", str(e))
    return removed
