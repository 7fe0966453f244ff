"""Database models for the partner portal."""

from partner_portal.models.admin import Admin, AdminRegion
from partner_portal.models.audit import AuditLog
from partner_portal.models.base import Base, TimestampMixin
from partner_portal.models.form import ApprovalLedgerEntry, ReviewForm
from partner_portal.models.notification import Notification

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Actors
    "Admin",
    "AdminRegion",
    # Review workflow
    "ReviewForm",
    "ApprovalLedgerEntry",
    # Side effects
    "Notification",
    "AuditLog",
]
