from __future__ import annotations

import json
import logging
from typing import Any, Optional


class LoggingJobLogger:
    """IJobLogger backed by the standard logging module.

    Mirrors the info/warn/error/success/render vocabulary used throughout the
    render flow. Optional data is pretty-printed as JSON on the following
    line; tracebacks are only logged outside production.
    """

    def __init__(
        self, logger: Optional[logging.Logger] = None, *, production: bool = False
    ) -> None:
        self._logger = logger or logging.getLogger("app.render")
        self.production = production

    def _data(self, level: int, data: Any) -> None:
        if data is None:
            return
        try:
            text = json.dumps(data, indent=2, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            text = repr(data)
        self._logger.log(level, "%s", text)

    def info(self, message: str, data: Any = None) -> None:
        self._logger.info("%s", message)
        self._data(logging.INFO, data)

    def warn(self, message: str, data: Any = None) -> None:
        self._logger.warning("%s", message)
        self._data(logging.WARNING, data)

    def error(self, message: str, error: Optional[BaseException] = None) -> None:
        self._logger.error("%s", message)
        if error is None:
            return
        self._logger.error("Error details: %s", error)
        if not self.production:
            self._logger.error(
                "Stack:", exc_info=(type(error), error, error.__traceback__)
            )

    def success(self, message: str, data: Any = None) -> None:
        self._logger.info("✅ %s", message)
        self._data(logging.INFO, data)

    def render(self, stage: str, message: str, data: Any = None) -> None:
        self._logger.info("[RENDER] %s: %s", stage, message)
        self._data(logging.INFO, data)
