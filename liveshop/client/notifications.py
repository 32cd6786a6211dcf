"""
Notification side channel
Stores report the outcome of every operation here; UIs subscribe to render toasts
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
import logging

logger = logging.getLogger(__name__)

class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    title: str
    message: str = ""
    code: Optional[str] = None

Listener = Callable[[Notification], None]

class Notifier:
    """Collects notifications and fans them out to subscribers"""

    def __init__(self):
        self.history: List[Notification] = []
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(
        self,
        kind: NotificationKind,
        title: str,
        message: str = "",
        code: Optional[str] = None
    ) -> Notification:
        notification = Notification(NotificationKind(kind), title, message, code)
        self.history.append(notification)
        logger.debug("%s notification: %s %s", notification.kind.value, title, message)

        for listener in list(self._listeners):
            listener(notification)

        return notification

    def success(self, title: str, message: str = "", code: Optional[str] = None) -> Notification:
        return self.notify(NotificationKind.SUCCESS, title, message, code)

    def error(self, title: str, message: str = "", code: Optional[str] = None) -> Notification:
        return self.notify(NotificationKind.ERROR, title, message, code)

    def warning(self, title: str, message: str = "", code: Optional[str] = None) -> Notification:
        return self.notify(NotificationKind.WARNING, title, message, code)

    def info(self, title: str, message: str = "", code: Optional[str] = None) -> Notification:
        return self.notify(NotificationKind.INFO, title, message, code)

    def count(self, kind: NotificationKind, code: Optional[str] = None) -> int:
        """Number of notifications of a kind, optionally narrowed to one code"""
        kind = NotificationKind(kind)
        return sum(
            1 for n in self.history
            if n.kind == kind and (code is None or n.code == code)
        )

    def clear(self) -> None:
        self.history.clear()
