from __future__ import annotations

import math
from typing import Optional

from app.application.interfaces.job_logger import IJobLogger


class ProgressThrottle:
    """Decides which progress ticks are worth a log line.

    Progress is bucketed into ``step``-point percentages; a tick passes only
    when it lands in a higher bucket than the last one that passed. Ticks that
    go backwards or stay within the same bucket are dropped.

        >>> t = ProgressThrottle(step=10)
        >>> [t.should_log(p) for p in (0.05, 0.12, 0.21, 0.33, 0.41)]
        [False, True, True, True, True]
    """

    def __init__(self, step: int = 10):
        if step <= 0:
            raise ValueError("step must be positive")
        self.step = step
        self.last_logged = 0

    @staticmethod
    def to_percent(progress: float) -> int:
        return max(0, min(100, round(progress * 100)))

    @staticmethod
    def reached_percent(progress: float) -> int:
        # floor, so a bucket is entered only once its threshold is crossed
        return max(0, min(100, math.floor(progress * 100 + 1e-9)))

    def should_log(self, progress: float) -> bool:
        bucket = self.reached_percent(progress) // self.step * self.step
        if bucket > self.last_logged:
            self.last_logged = bucket
            return True
        return False


class ProgressReporter:
    """Progress callback for the engine: throttles ticks into render log lines."""

    def __init__(
        self,
        job_logger: IJobLogger,
        *,
        job_id: Optional[str] = None,
        step: int = 10,
    ):
        self._log = job_logger
        self.job_id = job_id
        self.throttle = ProgressThrottle(step)

    def __call__(self, progress: float) -> None:
        if self.throttle.should_log(progress):
            percent = ProgressThrottle.to_percent(progress)
            self._log.render("rendering", f"{self.job_id or 'job'}: {percent}%")
