from typing import Any, List, Optional

from pydantic import BaseModel


class ClientErrorResponse(BaseModel):
    error: str
    received: Any = None
    details: Optional[List[dict]] = None


class NotFoundResponse(BaseModel):
    error: str
    path: Optional[str] = None
    availableEndpoints: Optional[List[str]] = None
    videoId: Optional[str] = None
