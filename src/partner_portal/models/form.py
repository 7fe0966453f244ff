"""Review form and approval ledger models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_portal.models.base import Base, TimestampMixin


class ReviewForm(Base, TimestampMixin):
    """Onboard request or data request moving through the review chain."""

    __tablename__ = "review_forms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    # Scope
    region_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    sbu_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Creator / claimant, null for unclaimed public submissions
    created_by_admin_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("admins.id"), nullable=True, index=True
    )

    # Business payload
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    ledger: Mapped[list["ApprovalLedgerEntry"]] = relationship(
        "ApprovalLedgerEntry",
        back_populates="form",
        lazy="selectin",
        order_by="ApprovalLedgerEntry.created_at",
    )

    __table_args__ = (
        Index("idx_review_form_kind_status", "kind", "status"),
        CheckConstraint(
            "kind IN ('ONBOARD_REQUEST', 'DATA_REQUEST')",
            name="review_form_kind",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'PENDING_COORDINATOR', 'PENDING_MANAGER', "
            "'PENDING_SENIOR_MANAGER', 'PENDING_GOVERNANCE_CHECK', 'PENDING_LEGAL', "
            "'APPROVED', 'DENIED')",
            name="review_form_status",
        ),
    )


class ApprovalLedgerEntry(Base):
    """Append-only record of one successful workflow transition."""

    __tablename__ = "approval_ledger"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    form_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("review_forms.id"), nullable=False, index=True
    )
    admin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("admins.id"), nullable=False, index=True
    )
    # Role held when acting, never re-read from admins
    actor_role: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(10), nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    signature_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    signature_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    form: Mapped["ReviewForm"] = relationship("ReviewForm", back_populates="ledger")

    __table_args__ = (
        CheckConstraint(
            "action IN ('SUBMITTED', 'APPROVED', 'DENIED')", name="ledger_action"
        ),
        CheckConstraint(
            "score IS NULL OR (score >= 1 AND score <= 100)", name="ledger_score"
        ),
    )
