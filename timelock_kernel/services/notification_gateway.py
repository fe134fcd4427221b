"""
NotificationGateway -- outbound notifications to employees.

The kernel only needs one call, ``send(notification_type, recipient,
payload)``.  Delivery (email, push, in-app) belongs to whatever
implementation is injected; the default one writes a structured log line so
a deployment without a notifier still leaves a trace.

Callers treat the gateway as best-effort: a raised exception is logged and
reported on the result, never propagated to the user.
"""

from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from timelock_kernel.logging_config import get_logger

logger = get_logger("services.notification")


class NotificationGateway(ABC):
    """Abstract notification sink."""

    @abstractmethod
    def send(
        self,
        notification_type: str,
        recipient: UUID,
        payload: dict[str, Any],
    ) -> None:
        """Deliver one notification to the user ``recipient``."""
        ...


class LoggingNotificationGateway(NotificationGateway):
    """Default gateway: records the notification in the log stream."""

    def send(
        self,
        notification_type: str,
        recipient: UUID,
        payload: dict[str, Any],
    ) -> None:
        logger.info(
            "notification_dispatched",
            extra={
                "notification_type": notification_type,
                "recipient": str(recipient),
                "payload": payload,
            },
        )
