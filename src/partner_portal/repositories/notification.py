"""Repository for admin notification operations."""

from partner_portal.models.notification import Notification
from partner_portal.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification database operations."""

    model = Notification
