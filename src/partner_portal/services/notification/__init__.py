"""Admin notification delivery."""

from partner_portal.services.notification.sinks import (
    CeleryNotificationSink,
    DatabaseNotificationSink,
    build_notification_sink,
)

__all__ = [
    "CeleryNotificationSink",
    "DatabaseNotificationSink",
    "build_notification_sink",
]
