from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..domain.models import PushMessage

logger = logging.getLogger(__name__)

NotificationHandler = Callable[[PushMessage], bool]


@dataclass
class _Registration:
    password: Optional[str]
    handler: NotificationHandler


class NotificationAuthError(Exception):
    pass


class UnknownNotificationError(Exception):
    pass


class NotificationRegistry:
    """Routes inbound notifications (``POST /api/notifications/{id}``) to the
    accessory registered under that id."""

    def __init__(self) -> None:
        self._registrations: dict[str, _Registration] = {}

    def register(self, notification_id: str, password: Optional[str], handler: NotificationHandler) -> bool:
        """Returns False when the id is already taken; the first registration is kept."""
        if notification_id in self._registrations:
            logger.warning("Notification id '%s' is already registered, ignoring duplicate", notification_id)
            return False
        self._registrations[notification_id] = _Registration(password=password, handler=handler)
        logger.info("Registered notification id '%s'", notification_id)
        return True

    def register_if_defined(
        self,
        notification_id: Optional[str],
        password: Optional[str],
        handler: NotificationHandler,
    ) -> bool:
        if not notification_id:
            return False
        return self.register(notification_id, password, handler)

    def unregister(self, notification_id: str, handler: Optional[NotificationHandler] = None) -> None:
        """Remove the id; with ``handler`` only if the id still routes to it."""
        reg = self._registrations.get(notification_id)
        if reg is None or (handler is not None and reg.handler != handler):
            return
        del self._registrations[notification_id]

    def ids(self) -> list[str]:
        return sorted(self._registrations)

    def deliver(self, notification_id: str, password: Optional[str], characteristic: str, value: float) -> bool:
        reg = self._registrations.get(notification_id)
        if reg is None:
            raise UnknownNotificationError(notification_id)
        if reg.password is not None and not hmac.compare_digest(reg.password, password or ""):
            raise NotificationAuthError(notification_id)

        return reg.handler(PushMessage(channel="notification", characteristic=characteristic, value=value))
