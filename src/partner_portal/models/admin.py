"""Admin and region assignment models."""

from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_portal.models.base import Base, TimestampMixin


class Admin(Base, TimestampMixin):
    """Administrative reviewer account."""

    __tablename__ = "admins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    regions: Mapped[list["AdminRegion"]] = relationship(
        "AdminRegion",
        back_populates="admin",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('COORDINATOR', 'MANAGER', 'SENIOR_MANAGER', "
            "'GOVERNANCE', 'LEGAL', 'FULL')",
            name="admin_role",
        ),
    )


class AdminRegion(Base):
    """Region (and optional strategic business unit) assigned to an admin."""

    __tablename__ = "admin_regions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    admin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    region_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    sbu_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    admin: Mapped["Admin"] = relationship("Admin", back_populates="regions")

    __table_args__ = (
        UniqueConstraint("admin_id", "region_code", "sbu_code", name="uq_admin_region"),
    )
