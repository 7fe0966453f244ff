"""Audit recorder: log and persist to audit_logs."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.repositories.audit_log import AuditLogRepository
from partner_portal.services.audit.schemas import AuditEntry

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Audit sink for workflow events."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] | None = None,
        *,
        persist: bool = True,
    ):
        """Initialize audit recorder.

        Args:
            session_factory: Factory for database sessions (defaults to the app's)
            persist: Write entries to the audit_logs table
        """
        if session_factory is None and persist:
            from partner_portal.infrastructure.database.session import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self._session_factory = session_factory
        self.persist = persist

    async def record(
        self,
        admin_id: str | None,
        action: str,
        target_type: str,
        target_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditEntry:
        """Record an audit event.

        Args:
            admin_id: Acting admin, None for public submissions
            action: Action name
            target_type: Type of affected entity
            target_id: ID of affected entity
            metadata: Event details

        Returns:
            The created audit entry
        """
        entry = AuditEntry(
            entry_id=str(uuid4()),
            timestamp=datetime.now(timezone.utc),
            action=action,
            admin_id=admin_id,
            target_type=target_type,
            target_id=target_id,
            metadata=metadata or {},
        )

        logger.info(
            f"[AUDIT] {action}: {target_type} {target_id}",
            extra={
                "audit_entry_id": entry.entry_id,
                "admin_id": admin_id,
                "target_type": target_type,
                "target_id": target_id,
            },
        )

        if self.persist and self._session_factory is not None:
            async with self._session_factory() as session:
                await AuditLogRepository(session).create({
                    "action": action,
                    "target_type": target_type,
                    "target_id": target_id,
                    "admin_id": admin_id,
                    "event_metadata": entry.metadata,
                    "created_at": entry.timestamp,
                })
                await session.commit()

        return entry


_audit_recorder: AuditRecorder | None = None


def get_audit_recorder() -> AuditRecorder:
    """Get or create the audit recorder singleton."""
    global _audit_recorder
    if _audit_recorder is None:
        _audit_recorder = AuditRecorder()
    return _audit_recorder
