"""Create admin, review form, ledger, notification and audit tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ========================================
    # 1. admins / admin_regions
    # ========================================
    op.create_table(
        "admins",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default="true"),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint(
            "role IN ('COORDINATOR', 'MANAGER', 'SENIOR_MANAGER', 'GOVERNANCE', 'LEGAL', 'FULL')",
            name="admin_role",
        ),
    )
    op.create_index("ix_admins_role", "admins", ["role"])

    op.create_table(
        "admin_regions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("admin_id", sa.String(36), nullable=False),
        sa.Column("region_code", sa.String(20), nullable=False),
        sa.Column("sbu_code", sa.String(20), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["admin_id"], ["admins.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("admin_id", "region_code", "sbu_code", name="uq_admin_region"),
    )
    op.create_index("ix_admin_regions_admin_id", "admin_regions", ["admin_id"])
    op.create_index("ix_admin_regions_region_code", "admin_regions", ["region_code"])

    # ========================================
    # 2. review_forms
    # ========================================
    op.create_table(
        "review_forms",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        # Scope
        sa.Column("region_code", sa.String(20), nullable=False),
        sa.Column("sbu_code", sa.String(20), nullable=True),
        # Creator / claimant
        sa.Column("created_by_admin_id", sa.String(36), nullable=True),
        # Business payload
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("payload", JSONB(), nullable=False, server_default="{}"),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["created_by_admin_id"], ["admins.id"]),
        sa.CheckConstraint(
            "kind IN ('ONBOARD_REQUEST', 'DATA_REQUEST')",
            name="review_form_kind",
        ),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'PENDING_COORDINATOR', 'PENDING_MANAGER', "
            "'PENDING_SENIOR_MANAGER', 'PENDING_GOVERNANCE_CHECK', 'PENDING_LEGAL', "
            "'APPROVED', 'DENIED')",
            name="review_form_status",
        ),
    )
    op.create_index("ix_review_forms_kind", "review_forms", ["kind"])
    op.create_index("ix_review_forms_status", "review_forms", ["status"])
    op.create_index("ix_review_forms_region_code", "review_forms", ["region_code"])
    op.create_index("ix_review_forms_created_by_admin_id", "review_forms", ["created_by_admin_id"])
    op.create_index("idx_review_form_kind_status", "review_forms", ["kind", "status"])

    # ========================================
    # 3. approval_ledger (append-only)
    # ========================================
    op.create_table(
        "approval_ledger",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("form_id", sa.String(36), nullable=False),
        sa.Column("admin_id", sa.String(36), nullable=False),
        sa.Column("actor_role", sa.String(20), nullable=False),
        sa.Column("action", sa.String(10), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("signature_url", sa.String(500), nullable=True),
        sa.Column("signature_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["form_id"], ["review_forms.id"]),
        sa.ForeignKeyConstraint(["admin_id"], ["admins.id"]),
        sa.CheckConstraint("action IN ('SUBMITTED', 'APPROVED', 'DENIED')", name="ledger_action"),
        sa.CheckConstraint("score IS NULL OR (score >= 1 AND score <= 100)", name="ledger_score"),
    )
    op.create_index("ix_approval_ledger_form_id", "approval_ledger", ["form_id"])
    op.create_index("ix_approval_ledger_admin_id", "approval_ledger", ["admin_id"])

    # ========================================
    # 4. notifications
    # ========================================
    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("recipient_admin_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("category", sa.String(10), nullable=False, server_default="INFO"),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["recipient_admin_id"], ["admins.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "category IN ('INFO', 'SUCCESS', 'WARNING', 'ERROR')",
            name="notification_category",
        ),
    )
    op.create_index("ix_notifications_recipient_admin_id", "notifications", ["recipient_admin_id"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    # ========================================
    # 5. audit_logs
    # ========================================
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("action", sa.String(80), nullable=False),
        sa.Column("target_type", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100), nullable=True),
        sa.Column("admin_id", sa.String(36), nullable=True),
        sa.Column("metadata", JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_target_type", "audit_logs", ["target_type"])
    op.create_index("ix_audit_logs_admin_id", "audit_logs", ["admin_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("notifications")
    op.drop_table("approval_ledger")
    op.drop_table("review_forms")
    op.drop_table("admin_regions")
    op.drop_table("admins")
