from __future__ import annotations

import datetime as _dt
from typing import Optional

from app.application.interfaces.job_ids import IClock


class SystemClock:
    def now(self) -> _dt.datetime:
        return _dt.datetime.now(_dt.timezone.utc)


class TimestampIdGenerator:
    """Job ids derived from the clock in epoch milliseconds, e.g. video_1718000000123.

    Distinct timestamps always give distinct ids. Two calls within the same
    millisecond get a numeric suffix instead of colliding.
    """

    def __init__(self, clock: Optional[IClock] = None, *, prefix: str = "video_"):
        self._clock = clock or SystemClock()
        self.prefix = prefix
        self._last_millis: Optional[int] = None
        self._repeat = 0

    def new_id(self) -> str:
        millis = int(self._clock.now().timestamp() * 1000)
        if millis == self._last_millis:
            self._repeat += 1
            return f"{self.prefix}{millis}_{self._repeat}"
        self._last_millis = millis
        self._repeat = 0
        return f"{self.prefix}{millis}"
