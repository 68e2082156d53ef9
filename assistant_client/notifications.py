"""Toast-style notifications surfaced to the user.

Core components report recoverable problems here instead of raising into
the view. The base notifier logs and keeps a short history; the UI layer
subclasses it to display toasts.
"""

import logging
from collections import deque
from enum import Enum

from pydantic import BaseModel

from assistant_client.client.errors import AuthorizationError, ChatClientError

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "info": logging.INFO,
    "positive": logging.INFO,
    "warning": logging.WARNING,
    "negative": logging.ERROR,
}


class NotificationLevel(str, Enum):
    """Severity of a notification (matches NiceGUI notify types)."""

    INFO = "info"
    POSITIVE = "positive"
    WARNING = "warning"
    NEGATIVE = "negative"


class Notification(BaseModel):
    level: NotificationLevel
    title: str
    description: str | None = None


class Notifier:
    """Records and logs notifications.

    Args:
        history_size: Number of recent notifications to keep.
    """

    def __init__(self, history_size: int = 50) -> None:
        self.history: deque[Notification] = deque(maxlen=history_size)

    def notify(
        self,
        level: NotificationLevel,
        title: str,
        description: str | None = None,
    ) -> Notification:
        notification = Notification(level=level, title=title, description=description)
        self.history.append(notification)
        logger.log(
            _LOG_LEVELS[level.value],
            f"{title}: {description}" if description else title,
        )
        self.show(notification)
        return notification

    def show(self, notification: Notification) -> None:
        """Display a notification. Headless by default."""

    def error(self, title: str, description: str | None = None) -> Notification:
        return self.notify(NotificationLevel.NEGATIVE, title, description)

    def warning(self, title: str, description: str | None = None) -> Notification:
        return self.notify(NotificationLevel.WARNING, title, description)

    def success(self, title: str, description: str | None = None) -> Notification:
        return self.notify(NotificationLevel.POSITIVE, title, description)

    def from_error(self, error: ChatClientError, title: str | None = None) -> Notification:
        """Notify about a client error, keeping authorization problems distinct."""
        if isinstance(error, AuthorizationError) or title is None:
            return self.error(error.title, error.description)
        return self.error(title, error.description)
