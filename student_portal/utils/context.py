from contextvars import ContextVar
from typing import Optional

request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_email_context: ContextVar[Optional[str]] = ContextVar("user_email", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_context.get()


def set_request_id(request_id: str) -> None:
    """Set the request ID in context."""
    request_id_context.set(request_id)


def get_user_email() -> Optional[str]:
    """Email of the signed-in user handling the current request, if any."""
    return user_email_context.get()


def set_user_email(email: Optional[str]) -> None:
    user_email_context.set(email)
