"""Interfaces the workflow core consumes.

SQLAlchemy implementations live in `store.py`; tests use in-memory fakes.
"""

from typing import Any, Protocol

from partner_portal.services.workflow.schemas import (
    AdminIdentity,
    AdminRole,
    FormQuery,
    FormSnapshot,
    FormStatus,
    LedgerEntry,
    NotificationCategory,
)


class FormStore(Protocol):
    """Persistent forms and their approval ledger."""

    async def load_form(self, form_id: str) -> FormSnapshot | None: ...

    async def load_ledger(self, form_id: str) -> list[LedgerEntry]: ...

    async def commit_transition(
        self,
        form_id: str,
        expected_status: FormStatus,
        new_status: FormStatus,
        entry: LedgerEntry,
        claim_admin_id: str | None = None,
    ) -> FormSnapshot | None:
        """Move the form and append `entry` in one unit of work.

        Returns None, writing nothing, when the form is no longer at
        `expected_status` (or is already claimed while claiming).
        """
        ...

    async def create_form(self, form: FormSnapshot) -> FormSnapshot: ...

    async def update_form(
        self,
        form_id: str,
        expected_status: FormStatus,
        changes: dict[str, Any],
        claim_admin_id: str | None = None,
    ) -> FormSnapshot | None: ...

    async def list_forms(self, query: FormQuery) -> tuple[list[FormSnapshot], int]:
        """One page of forms matching `query`, newest first, and the total."""
        ...


class AdminDirectory(Protocol):
    """Admin lookups. Only enabled admins are returned by `list_admins`."""

    async def get_admin(self, admin_id: str) -> AdminIdentity | None: ...

    async def list_admins(
        self,
        role: AdminRole,
        region_code: str | None = None,
        sbu_code: str | None = None,
        match_sbu: bool = False,
    ) -> list[str]: ...


class NotificationSink(Protocol):
    async def send(
        self,
        admin_id: str,
        title: str,
        message: str,
        category: NotificationCategory,
    ) -> None: ...


class AuditSink(Protocol):
    async def record(
        self,
        admin_id: str | None,
        action: str,
        target_type: str,
        target_id: str,
        metadata: dict[str, Any],
    ) -> None: ...
