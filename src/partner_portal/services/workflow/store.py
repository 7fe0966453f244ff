"""SQLAlchemy implementations of the workflow store and admin directory."""

import logging
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.infrastructure.database.session import AsyncSessionLocal
from partner_portal.models.admin import Admin
from partner_portal.models.form import ApprovalLedgerEntry, ReviewForm
from partner_portal.repositories.admin import AdminRepository
from partner_portal.repositories.form import QueueBranch, ReviewFormRepository
from partner_portal.repositories.ledger import LedgerRepository
from partner_portal.services.workflow.authority import (
    region_covers,
    region_scope,
    scope_covers,
)
from partner_portal.services.workflow.schemas import (
    AdminIdentity,
    AdminRole,
    FormKind,
    FormQuery,
    FormSnapshot,
    FormStatus,
    LedgerEntry,
    RegionAssignment,
)

logger = logging.getLogger(__name__)


def form_to_snapshot(form: ReviewForm) -> FormSnapshot:
    """Convert a ReviewForm row to a snapshot."""
    return FormSnapshot(
        id=form.id,
        kind=FormKind(form.kind),
        status=FormStatus(form.status),
        region_code=form.region_code,
        sbu_code=form.sbu_code,
        created_by_admin_id=form.created_by_admin_id,
        business_name=form.business_name,
        payload=form.payload or {},
        created_at=form.created_at,
        updated_at=form.updated_at,
    )


def ledger_row_to_entry(row: ApprovalLedgerEntry) -> LedgerEntry:
    """Convert a ledger row to its schema."""
    return LedgerEntry(
        id=row.id,
        form_id=row.form_id,
        admin_id=row.admin_id,
        actor_role=AdminRole(row.actor_role),
        action=row.action,
        comments=row.comments,
        signature_url=row.signature_url,
        signature_date=row.signature_date,
        score=row.score,
        created_at=row.created_at,
    )


def entry_to_ledger_row(entry: LedgerEntry) -> ApprovalLedgerEntry:
    """Build a ledger row from its schema."""
    return ApprovalLedgerEntry(
        id=entry.id,
        form_id=entry.form_id,
        admin_id=entry.admin_id,
        actor_role=entry.actor_role.value,
        action=entry.action.value,
        comments=entry.comments,
        signature_url=entry.signature_url,
        signature_date=entry.signature_date,
        score=entry.score,
        created_at=entry.created_at,
    )


def admin_to_identity(admin: Admin) -> AdminIdentity:
    """Convert an Admin row to the identity the workflow acts on."""
    return AdminIdentity(
        id=admin.id,
        role=AdminRole(admin.role),
        regions=[
            RegionAssignment(region_code=r.region_code, sbu_code=r.sbu_code)
            for r in admin.regions
        ],
        name=admin.name,
        enabled=admin.enabled,
    )


class SqlAlchemyFormStore:
    """Form store backed by PostgreSQL.

    Each write runs in its own session and transaction. Status changes are
    conditional UPDATEs keyed on the status the caller read.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None):
        """Initialize store.

        @param session_factory - Optional factory for creating database sessions
        """
        self._session_factory = session_factory or AsyncSessionLocal

    async def load_form(self, form_id: str) -> FormSnapshot | None:
        async with self._session_factory() as session:
            form = await ReviewFormRepository(session).get_by_id(form_id)
            return form_to_snapshot(form) if form else None

    async def load_ledger(self, form_id: str) -> list[LedgerEntry]:
        async with self._session_factory() as session:
            rows = await LedgerRepository(session).get_by_form(form_id)
            return [ledger_row_to_entry(row) for row in rows]

    async def commit_transition(
        self,
        form_id: str,
        expected_status: FormStatus,
        new_status: FormStatus,
        entry: LedgerEntry,
        claim_admin_id: str | None = None,
    ) -> FormSnapshot | None:
        """Move a form to `new_status` and append `entry` atomically.

        @param form_id - Form ID
        @param expected_status - Status the caller read
        @param new_status - Target status
        @param entry - Ledger entry to append
        @param claim_admin_id - Set as creator when the form is unclaimed
        @returns Updated snapshot, or None when the guard did not match
        """
        values: dict[str, Any] = {"status": new_status.value}
        if claim_admin_id is not None:
            values["created_by_admin_id"] = claim_admin_id

        async with self._session_factory() as session:
            row = await ReviewFormRepository(session).compare_and_set(
                form_id,
                expected_status.value,
                values,
                claim=claim_admin_id is not None,
            )
            if row is None:
                await session.rollback()
                logger.debug(f"Status guard missed for form {form_id} at {expected_status.value}")
                return None

            await LedgerRepository(session).append(entry_to_ledger_row(entry))
            await session.commit()
            return form_to_snapshot(row)

    async def create_form(self, form: FormSnapshot) -> FormSnapshot:
        async with self._session_factory() as session:
            row = await ReviewFormRepository(session).create({
                "id": form.id,
                "kind": form.kind.value,
                "status": form.status.value,
                "region_code": form.region_code,
                "sbu_code": form.sbu_code,
                "created_by_admin_id": form.created_by_admin_id,
                "business_name": form.business_name,
                "payload": form.payload,
            })
            await session.commit()
            return form_to_snapshot(row)

    async def update_form(
        self,
        form_id: str,
        expected_status: FormStatus,
        changes: dict[str, Any],
        claim_admin_id: str | None = None,
    ) -> FormSnapshot | None:
        """Write editable fields under the same status guard as transitions.

        @param form_id - Form ID
        @param expected_status - Status the caller read
        @param changes - Column values to write
        @param claim_admin_id - Set as creator when the form is unclaimed
        @returns Updated snapshot, or None when the guard did not match
        """
        values = dict(changes)
        if claim_admin_id is not None:
            values["created_by_admin_id"] = claim_admin_id

        async with self._session_factory() as session:
            row = await ReviewFormRepository(session).compare_and_set(
                form_id,
                expected_status.value,
                values,
                claim=claim_admin_id is not None,
            )
            if row is None:
                await session.rollback()
                return None
            await session.commit()
            return form_to_snapshot(row)

    async def list_forms(self, query: FormQuery) -> tuple[list[FormSnapshot], int]:
        branches = [
            QueueBranch(
                status=clause.status.value,
                regions=(
                    None
                    if clause.regions is None
                    else tuple((r.region_code, r.sbu_code) for r in clause.regions)
                ),
                created_by_admin_id=clause.created_by_admin_id,
                unclaimed=clause.unclaimed,
            )
            for clause in query.clauses
        ]
        async with self._session_factory() as session:
            rows, total = await ReviewFormRepository(session).search(
                query.kind.value,
                branches,
                involved_admin_id=query.involved_admin_id,
                status=query.status.value if query.status else None,
                region_code=query.region_code,
                skip=query.offset,
                limit=query.limit,
            )
            return [form_to_snapshot(row) for row in rows], total


class SqlAlchemyAdminDirectory:
    """Admin directory backed by the admins table."""

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None):
        self._session_factory = session_factory or AsyncSessionLocal

    async def get_admin(self, admin_id: str) -> AdminIdentity | None:
        async with self._session_factory() as session:
            admin = await AdminRepository(session).get_with_regions(admin_id)
            return admin_to_identity(admin) if admin else None

    async def list_admins(
        self,
        role: AdminRole,
        region_code: str | None = None,
        sbu_code: str | None = None,
        match_sbu: bool = False,
    ) -> list[str]:
        """List enabled admins holding a role, optionally within a region.

        @param role - Admin role
        @param region_code - Only admins assigned to this region
        @param sbu_code - Business unit, used with `match_sbu`
        @param match_sbu - Apply the SBU-qualified coordinator rule
        @returns Admin IDs
        """
        async with self._session_factory() as session:
            admins = await AdminRepository(session).get_enabled_by_role(role.value)

        admin_ids = []
        for admin in admins:
            identity = admin_to_identity(admin)
            if region_code is not None:
                scope = region_scope(identity)
                if match_sbu:
                    if not scope_covers(scope, region_code, sbu_code):
                        continue
                elif not region_covers(scope, region_code):
                    continue
            admin_ids.append(identity.id)
        return admin_ids


# Singleton instance
_admin_directory: SqlAlchemyAdminDirectory | None = None


def get_admin_directory() -> SqlAlchemyAdminDirectory:
    """Get or create the admin directory singleton."""
    global _admin_directory
    if _admin_directory is None:
        _admin_directory = SqlAlchemyAdminDirectory()
    return _admin_directory
