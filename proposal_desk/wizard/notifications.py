"""Toast notifications raised by the wizard and the contract portal."""

import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Notification(BaseModel):
    level: NotificationLevel
    message: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Notifier:
    """Collects toasts for the UI layer; every toast is also logged."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def success(self, message: str) -> None:
        logger.info(message)
        self._push(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        logger.warning(message)
        self._push(NotificationLevel.ERROR, message)

    def info(self, message: str) -> None:
        logger.info(message)
        self._push(NotificationLevel.INFO, message)

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None

    def clear(self) -> None:
        self.notifications.clear()

    def _push(self, level: NotificationLevel, message: str) -> None:
        self.notifications.append(Notification(level=level, message=message))
