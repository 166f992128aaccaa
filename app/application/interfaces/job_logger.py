from __future__ import annotations
from typing import Any, Optional, Protocol


class IJobLogger(Protocol):
    """Logging collaborator injected into the render coordinator."""

    def info(self, message: str, data: Any = None) -> None: ...

    def warn(self, message: str, data: Any = None) -> None: ...

    def error(self, message: str, error: Optional[BaseException] = None) -> None: ...

    def success(self, message: str, data: Any = None) -> None: ...

    def render(self, stage: str, message: str, data: Any = None) -> None: ...
