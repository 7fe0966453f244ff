"""Audit recording service module."""

from partner_portal.services.audit.recorder import AuditRecorder, get_audit_recorder
from partner_portal.services.audit.schemas import AuditEntry

__all__ = [
    # Schemas
    "AuditEntry",
    # Service
    "AuditRecorder",
    "get_audit_recorder",
]
