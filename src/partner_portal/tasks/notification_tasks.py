"""Admin notification delivery tasks."""

from typing import Any

from partner_portal.services.notification.sinks import DatabaseNotificationSink
from partner_portal.services.workflow.schemas import NotificationCategory
from partner_portal.tasks.base import async_task, get_task_logger

logger = get_task_logger("notification_tasks")


@async_task(queue="high")
async def deliver_admin_notification(
    self,
    admin_id: str,
    title: str,
    message: str,
    category: str = NotificationCategory.INFO.value,
) -> dict[str, Any]:
    """Write an in-app notification for one admin.

    Failures are retried by RetryableTask.

    @param admin_id - Recipient admin ID
    @param title - Notification title
    @param message - Notification body
    @param category - NotificationCategory value
    @returns Delivery result
    """
    logger.info(
        "Delivering admin notification",
        extra={"admin_id": admin_id, "title": title},
    )
    await DatabaseNotificationSink().send(
        admin_id, title, message, NotificationCategory(category)
    )
    return {"status": "delivered", "admin_id": admin_id}
