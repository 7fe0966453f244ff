"""Notification sinks for admin in-app notifications."""

import logging
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.core.config import Settings, get_settings
from partner_portal.repositories.notification import NotificationRepository
from partner_portal.services.workflow.schemas import NotificationCategory

logger = logging.getLogger(__name__)


class DatabaseNotificationSink:
    """Writes notifications straight to the notifications table."""

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None):
        if session_factory is None:
            from partner_portal.infrastructure.database.session import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self._session_factory = session_factory

    async def send(
        self,
        admin_id: str,
        title: str,
        message: str,
        category: NotificationCategory,
    ) -> None:
        async with self._session_factory() as session:
            await NotificationRepository(session).create({
                "recipient_admin_id": admin_id,
                "title": title,
                "message": message,
                "category": category.value,
            })
            await session.commit()
        logger.debug(f"Stored notification for admin {admin_id}: {title}")


class CeleryNotificationSink:
    """Enqueues notifications for the Celery worker to write."""

    def __init__(self, task: Any | None = None):
        """Initialize sink.

        Args:
            task: Celery task to enqueue (defaults to deliver_admin_notification)
        """
        self._task = task

    @property
    def task(self) -> Any:
        if self._task is None:
            from partner_portal.tasks.notification_tasks import deliver_admin_notification

            self._task = deliver_admin_notification
        return self._task

    async def send(
        self,
        admin_id: str,
        title: str,
        message: str,
        category: NotificationCategory,
    ) -> None:
        self.task.delay(admin_id, title, message, category.value)
        logger.debug(f"Queued notification for admin {admin_id}: {title}")


def build_notification_sink(
    settings: Settings | None = None,
) -> DatabaseNotificationSink | CeleryNotificationSink:
    """Build the sink selected by `notification_dispatch`.

    Args:
        settings: Application settings

    Returns:
        Notification sink
    """
    settings = settings or get_settings()
    if settings.notification_dispatch == "celery":
        return CeleryNotificationSink()
    return DatabaseNotificationSink()
