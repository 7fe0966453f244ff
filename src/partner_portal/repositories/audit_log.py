"""Repository for audit log operations."""

from partner_portal.models.audit import AuditLog
from partner_portal.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for AuditLog database operations."""

    model = AuditLog
