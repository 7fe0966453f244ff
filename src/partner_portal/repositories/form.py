"""Repository for review form operations."""

from dataclasses import dataclass
from typing import Any, Sequence

from sqlalchemy import ColumnElement, and_, desc, func, or_, select, update

from partner_portal.models.form import ApprovalLedgerEntry, ReviewForm
from partner_portal.repositories.base import BaseRepository


@dataclass(frozen=True)
class QueueBranch:
    """Forms at one status, optionally narrowed by creator or region.

    `regions` holds (region_code, sbu_code) pairs; sbu_code None matches
    every SBU of the region, and `regions` None matches every region.
    """

    status: str
    regions: tuple[tuple[str, str | None], ...] | None = None
    created_by_admin_id: str | None = None
    unclaimed: bool = False


class ReviewFormRepository(BaseRepository[ReviewForm]):
    """Repository for ReviewForm database operations.

    Status changes go through `compare_and_set` so that two reviewers acting
    on the same form cannot both succeed.
    """

    model = ReviewForm

    async def compare_and_set(
        self,
        form_id: str,
        expected_status: str,
        values: dict[str, Any],
        *,
        claim: bool = False,
    ) -> ReviewForm | None:
        """Update a form only if its status is still `expected_status`.

        When `claim` is set the row must also be unclaimed.

        @param form_id - Form ID
        @param expected_status - Status read before the change
        @param values - Column values to write
        @param claim - Require created_by_admin_id to be NULL
        @returns Updated form, or None if the guard did not match
        """
        stmt = update(self.model).where(
            self.model.id == form_id,
            self.model.status == expected_status,
        )
        if claim:
            stmt = stmt.where(self.model.created_by_admin_id.is_(None))
        stmt = (
            stmt.values(**values, updated_at=func.now())
            .returning(self.model)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    def _search_filter(
        self,
        kind: str,
        branches: Sequence[QueueBranch],
        *,
        involved_admin_id: str | None = None,
        status: str | None = None,
        region_code: str | None = None,
    ) -> ColumnElement[bool] | None:
        """Build the WHERE clause of `search`, or None when nothing can match."""
        options: list[ColumnElement[bool]] = [
            self._branch_filter(branch) for branch in branches
        ]
        if involved_admin_id is not None:
            acted_on = select(ApprovalLedgerEntry.form_id).where(
                ApprovalLedgerEntry.admin_id == involved_admin_id
            )
            options.append(
                or_(
                    self.model.created_by_admin_id == involved_admin_id,
                    self.model.id.in_(acted_on),
                )
            )
        if not options:
            return None

        conditions: list[ColumnElement[bool]] = [self.model.kind == kind, or_(*options)]
        if status is not None:
            conditions.append(self.model.status == status)
        if region_code is not None:
            conditions.append(self.model.region_code == region_code)
        return and_(*conditions)

    def _branch_filter(self, branch: QueueBranch) -> ColumnElement[bool]:
        conditions: list[ColumnElement[bool]] = [self.model.status == branch.status]
        if branch.created_by_admin_id is not None:
            conditions.append(self.model.created_by_admin_id == branch.created_by_admin_id)
        if branch.unclaimed:
            conditions.append(self.model.created_by_admin_id.is_(None))
        if branch.regions is not None:
            conditions.append(
                or_(
                    *(
                        self.model.region_code == region
                        if sbu is None
                        else and_(self.model.region_code == region, self.model.sbu_code == sbu)
                        for region, sbu in branch.regions
                    )
                )
            )
        return and_(*conditions)

    async def search(
        self,
        kind: str,
        branches: Sequence[QueueBranch],
        *,
        involved_admin_id: str | None = None,
        status: str | None = None,
        region_code: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[ReviewForm], int]:
        """List forms matching any branch, newest first, with the total count.

        @param kind - Form kind
        @param branches - Alternative (status, scope) selections
        @param involved_admin_id - Also match forms this admin created or acted on
        @param status - Restrict to one status
        @param region_code - Restrict to one region
        @param skip - Pagination offset
        @param limit - Maximum results
        @returns (forms on the page, total matching forms)
        """
        where = self._search_filter(
            kind,
            branches,
            involved_admin_id=involved_admin_id,
            status=status,
            region_code=region_code,
        )
        if where is None:
            return [], 0

        total = await self.session.scalar(
            select(func.count()).select_from(self.model).where(where)
        )
        stmt = (
            select(self.model)
            .where(where)
            .order_by(desc(self.model.created_at), self.model.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all(), total or 0
