"""Post-commit side effects: notification delivery and audit recording."""

import logging

from partner_portal.services.workflow.ports import AdminDirectory, AuditSink, NotificationSink
from partner_portal.services.workflow.schemas import (
    AuditEvent,
    NotificationIntent,
    RecipientSelector,
)

logger = logging.getLogger(__name__)


class EffectDispatcher:
    """Resolves notification selectors and hands effects to the sinks.

    Every failure is logged and swallowed: by the time effects run the
    transition has already committed.
    """

    def __init__(
        self,
        directory: AdminDirectory,
        notification_sink: NotificationSink,
        audit_sink: AuditSink,
    ):
        self.directory = directory
        self.notification_sink = notification_sink
        self.audit_sink = audit_sink

    async def resolve(self, selector: RecipientSelector) -> list[str]:
        """Resolve a selector to distinct admin IDs.

        @param selector - Recipient selector
        @returns Admin IDs in directory order
        """
        if selector.admin_id is not None:
            return [selector.admin_id]
        if selector.role is None:
            return []
        admin_ids = await self.directory.list_admins(
            selector.role,
            selector.region_code,
            selector.sbu_code,
            match_sbu=selector.match_sbu,
        )
        return list(dict.fromkeys(admin_ids))

    async def dispatch(
        self,
        notifications: list[NotificationIntent],
        audit_event: AuditEvent | None = None,
    ) -> int:
        """Send notifications and record the audit event.

        @param notifications - Notification intents
        @param audit_event - Audit event, if any
        @returns Number of notifications handed to the sink
        """
        sent = 0
        for intent in notifications:
            try:
                recipients = await self.resolve(intent.selector)
            except Exception:
                logger.exception(f"Failed to resolve recipients for '{intent.title}'")
                continue
            for admin_id in recipients:
                try:
                    await self.notification_sink.send(
                        admin_id, intent.title, intent.message, intent.category
                    )
                    sent += 1
                except Exception:
                    logger.exception(f"Failed to notify admin {admin_id}: '{intent.title}'")

        if audit_event is not None:
            try:
                await self.audit_sink.record(
                    audit_event.admin_id,
                    audit_event.action,
                    audit_event.target_type,
                    audit_event.target_id,
                    audit_event.metadata,
                )
            except Exception:
                logger.exception(
                    f"Failed to record audit event {audit_event.action} "
                    f"for {audit_event.target_id}"
                )
        return sent
