"""Repository layer for database operations.

Async repository implementations using SQLAlchemy 2.x.
"""

from partner_portal.repositories.admin import AdminRepository
from partner_portal.repositories.audit_log import AuditLogRepository
from partner_portal.repositories.base import BaseRepository
from partner_portal.repositories.form import ReviewFormRepository
from partner_portal.repositories.ledger import LedgerRepository
from partner_portal.repositories.notification import NotificationRepository

__all__ = [
    "BaseRepository",
    "AdminRepository",
    "AuditLogRepository",
    "LedgerRepository",
    "NotificationRepository",
    "ReviewFormRepository",
]
