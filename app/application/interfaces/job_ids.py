from __future__ import annotations

import datetime as _dt
from typing import Protocol


class IClock(Protocol):
    """Wall clock that job ids are derived from; tests pin it to fixed instants."""

    def now(self) -> _dt.datetime: ...


class IIdGenerator(Protocol):
    """Issues the job id for a render request that arrives without a videoId.

    The id doubles as the output file stem, so it must be unique per job
    and safe to use as a single path component.
    """

    def new_id(self) -> str: ...
