"""Application events broadcast to decoupled UI listeners."""

import logging
from enum import Enum

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)


class EventCategory(str, Enum):
    """Who an event is about."""

    KODI = "kodi"
    KODI_REMOTE = "kodi_remote"


class EventName(str, Enum):
    """What happened."""

    OPEN = "open"


class EventBus(QObject):
    """Broadcasts (category, name) pairs.

    Example:
        bus = EventBus()
        bus.event_emitted.connect(lambda category, name: print(category, name))
        bus.publish(EventCategory.KODI, EventName.OPEN)
    """

    event_emitted = Signal(str, str)  # category, name

    def publish(self, category: EventCategory, name: EventName) -> None:
        """Broadcast an event."""
        logger.debug("Event %s/%s", category.value, name.value)
        self.event_emitted.emit(category.value, name.value)
