from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from student_portal.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class FieldErrorDetail(BaseModel):
    """One rejected input; ``field`` uses the client's (camelCase) name"""

    field: str
    message: str
    type: Optional[str] = None


class NotificationDetail(BaseModel):
    """A toast raised while handling the request"""

    id: int
    level: str
    message: str
    expires_at: str = Field(..., description="ISO timestamp after which it auto-closes")


class ApiResponse(BaseModel):
    """Envelope shared by every JSON response"""

    success: bool
    status: ResponseStatus
    message: str = Field(..., description="Human-readable message")
    data: Optional[Any] = None
    meta: Optional[Dict[str, Any]] = None
    errors: Optional[List[FieldErrorDetail]] = None
    notifications: Optional[List[NotificationDetail]] = None
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    request_id: str = Field(..., description="Echoed X-Request-ID")
    path: Optional[str] = None
