"""Schemas for the audit recorder."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AuditEntry(BaseModel):
    """Audit log entry."""

    entry_id: str = Field(..., description="Unique entry ID")
    timestamp: datetime = Field(..., description="Event timestamp")
    action: str = Field(..., description="Action name, e.g. ONBOARD_REQUEST_APPROVED")

    # Actor information
    admin_id: str | None = Field(None, description="Acting admin, null for public submissions")

    # Target information
    target_type: str = Field(..., description="Type of entity affected")
    target_id: str | None = Field(None, description="ID of entity affected")

    metadata: dict[str, Any] = Field(default_factory=dict, description="Event details")
