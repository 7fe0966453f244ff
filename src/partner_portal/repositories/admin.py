"""Repository for admin directory lookups."""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from partner_portal.models.admin import Admin
from partner_portal.repositories.base import BaseRepository


class AdminRepository(BaseRepository[Admin]):
    """Repository for Admin database operations."""

    model = Admin

    async def get_with_regions(self, admin_id: str) -> Admin | None:
        """Get admin with region assignments loaded.

        @param admin_id - Admin ID
        @returns Admin or None
        """
        stmt = (
            select(self.model)
            .options(selectinload(self.model.regions))
            .where(self.model.id == admin_id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_enabled_by_role(self, role: str) -> Sequence[Admin]:
        """Get enabled admins holding a role, with regions loaded.

        @param role - Admin role
        @returns List of admins
        """
        stmt = (
            select(self.model)
            .options(selectinload(self.model.regions))
            .where(self.model.role == role, self.model.enabled.is_(True))
            .order_by(self.model.id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
