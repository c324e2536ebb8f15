"""
Shared state for console controllers: the notification feed.
"""
from typing import List, Optional
import logging

from app.schemas import Notification

logger = logging.getLogger(__name__)


class ConsoleController:
    """Base class recording the notifications a console action produces."""

    def __init__(self):
        self.notifications: List[Notification] = []
        self.last_error: Optional[str] = None

    @property
    def last_notification(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None

    @property
    def failed(self) -> bool:
        last = self.last_notification
        return last is not None and last.variant == "destructive"

    def notify_success(self, description: str) -> Notification:
        notification = Notification(title="Success", description=description)
        self.notifications.append(notification)
        logger.info(description)
        return notification

    def notify_error(self, description: str, error: Optional[Exception] = None) -> Notification:
        notification = Notification(title="Error", description=description, variant="destructive")
        self.notifications.append(notification)
        self.last_error = str(error) if error is not None else None
        if error is not None:
            logger.warning(f"{description}: {str(error)}")
        else:
            logger.warning(description)
        return notification
