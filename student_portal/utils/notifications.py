import enum
import itertools
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from fastapi import Request

from student_portal.config.settings import settings
from student_portal.utils.logging import get_logger

logger = get_logger()


class NotificationLevel(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass
class Notification:
    id: int
    level: NotificationLevel
    message: str
    created_at: datetime
    expires_at: datetime
    dismissed: bool = False

    def is_active(self, now: datetime) -> bool:
        return not self.dismissed and now < self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level.value,
            "message": self.message,
            "expiresAt": self.expires_at.isoformat(),
        }


class Notifier:
    """Transient, dismissible, auto-expiring messages for the user."""

    def __init__(
        self,
        auto_close_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if auto_close_seconds is None:
            auto_close_seconds = settings.NOTIFICATION_AUTO_CLOSE_SECONDS
        self.auto_close = timedelta(seconds=auto_close_seconds)
        self.clock = clock
        self._notifications: List[Notification] = []
        self._ids = itertools.count(1)

    def success(self, message: str) -> Notification:
        return self._push(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> Notification:
        return self._push(NotificationLevel.ERROR, message)

    def info(self, message: str) -> Notification:
        return self._push(NotificationLevel.INFO, message)

    def dismiss(self, notification_id: int) -> bool:
        for notification in self._notifications:
            if notification.id == notification_id and not notification.dismissed:
                notification.dismissed = True
                return True
        return False

    def active(self) -> List[Notification]:
        now = self.clock()
        return [n for n in self._notifications if n.is_active(now)]

    def dump(self) -> List[Dict[str, Any]]:
        return [n.to_dict() for n in self.active()]

    def _push(self, level: NotificationLevel, message: str) -> Notification:
        now = self.clock()
        notification = Notification(
            id=next(self._ids),
            level=level,
            message=message,
            created_at=now,
            expires_at=now + self.auto_close,
        )
        self._notifications.append(notification)

        if level is NotificationLevel.ERROR:
            logger.warning(f"Notify [{level.value}]: {message}")
        else:
            logger.info(f"Notify [{level.value}]: {message}")
        return notification


def get_notifier(request: Request) -> Notifier:
    """One notifier per request, shared with the exception handlers"""
    notifier = getattr(request.state, "notifier", None)
    if notifier is None:
        notifier = Notifier()
        request.state.notifier = notifier
    return notifier
