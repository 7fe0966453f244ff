"""Review workflow schemas."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FormKind(str, Enum):
    """Kinds of reviewable forms."""

    ONBOARD_REQUEST = "ONBOARD_REQUEST"
    DATA_REQUEST = "DATA_REQUEST"


class FormStatus(str, Enum):
    """Lifecycle status of a form."""

    DRAFT = "DRAFT"
    PENDING_COORDINATOR = "PENDING_COORDINATOR"
    PENDING_MANAGER = "PENDING_MANAGER"
    PENDING_SENIOR_MANAGER = "PENDING_SENIOR_MANAGER"
    PENDING_GOVERNANCE_CHECK = "PENDING_GOVERNANCE_CHECK"
    PENDING_LEGAL = "PENDING_LEGAL"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class AdminRole(str, Enum):
    """Admin roles. FULL is the superuser role."""

    COORDINATOR = "COORDINATOR"
    MANAGER = "MANAGER"
    SENIOR_MANAGER = "SENIOR_MANAGER"
    GOVERNANCE = "GOVERNANCE"
    LEGAL = "LEGAL"
    FULL = "FULL"


class WorkflowAction(str, Enum):
    """Actions a reviewer can request."""

    SUBMIT = "SUBMIT"
    DENY = "DENY"


class LedgerAction(str, Enum):
    """Action recorded in the approval ledger."""

    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class NotificationCategory(str, Enum):
    """Display category of an admin notification."""

    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class RegionAssignment(BaseModel):
    """Region, optionally narrowed to one strategic business unit."""

    model_config = ConfigDict(frozen=True)

    region_code: str = Field(..., description="Region code")
    sbu_code: str | None = Field(None, description="Business unit code within the region")


class AdminIdentity(BaseModel):
    """Acting admin, as loaded from the admin directory at request time."""

    id: str = Field(..., description="Admin ID")
    role: AdminRole = Field(..., description="Current role")
    regions: list[RegionAssignment] = Field(
        default_factory=list, description="Region/SBU assignments"
    )
    name: str | None = Field(None, description="Display name")
    enabled: bool = Field(default=True, description="Whether the account is active")


class FormSnapshot(BaseModel):
    """Point-in-time view of a form."""

    id: str = Field(..., description="Form ID")
    kind: FormKind = Field(..., description="Form kind")
    status: FormStatus = Field(..., description="Current status")
    region_code: str = Field(..., description="Region the form belongs to")
    sbu_code: str | None = Field(None, description="Business unit within the region")
    created_by_admin_id: str | None = Field(
        None, description="Creator or claimant; null while a public submission is unclaimed"
    )
    business_name: str = Field(..., description="Business the form is about")
    payload: dict[str, Any] = Field(default_factory=dict, description="Business payload")
    created_at: datetime | None = Field(None, description="Created timestamp")
    updated_at: datetime | None = Field(None, description="Updated timestamp")


class LedgerEntry(BaseModel):
    """Immutable approval ledger entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Entry ID")
    form_id: str = Field(..., description="Form ID")
    admin_id: str = Field(..., description="Acting admin")
    actor_role: AdminRole = Field(..., description="Role held when acting")
    action: LedgerAction = Field(..., description="Recorded action")
    comments: str | None = Field(None, description="Reviewer comments")
    signature_url: str | None = Field(None, description="Signature image reference")
    signature_date: datetime | None = Field(None, description="Date of signature")
    score: int | None = Field(None, description="Governance or legal score")
    created_at: datetime = Field(..., description="Action timestamp")


class TransitionPayload(BaseModel):
    """Reviewer input accompanying a submit or deny action.

    The score range is checked by the engine so that an out-of-range score
    surfaces as a workflow validation failure.
    """

    comments: str | None = Field(None, max_length=5000, description="Comments")
    signature_url: str | None = Field(None, max_length=500, description="Signature reference")
    signature_date: datetime | None = Field(None, description="Signature date")
    score: int | None = Field(None, description="Final-stage score")


class RecipientSelector(BaseModel):
    """Either one specific admin or every enabled admin holding a role."""

    model_config = ConfigDict(frozen=True)

    admin_id: str | None = None
    role: AdminRole | None = None
    region_code: str | None = None
    sbu_code: str | None = None
    # Apply the coordinator (region + SBU) rule instead of region only
    match_sbu: bool = False

    @classmethod
    def by_admin(cls, admin_id: str) -> "RecipientSelector":
        return cls(admin_id=admin_id)

    @classmethod
    def by_role(
        cls,
        role: AdminRole,
        region_code: str | None = None,
        sbu_code: str | None = None,
        *,
        match_sbu: bool = False,
    ) -> "RecipientSelector":
        return cls(
            role=role, region_code=region_code, sbu_code=sbu_code, match_sbu=match_sbu
        )


class NotificationIntent(BaseModel):
    """Notification to send once a transition has committed."""

    selector: RecipientSelector = Field(..., description="Who receives it")
    title: str = Field(..., description="Notification title")
    message: str = Field(..., description="Notification body")
    category: NotificationCategory = Field(
        default=NotificationCategory.INFO, description="Display category"
    )


class AuditEvent(BaseModel):
    """Audit event forwarded to the audit sink."""

    admin_id: str | None = Field(None, description="Acting admin, null for public submissions")
    action: str = Field(..., description="Audit action name")
    target_type: str = Field(..., description="Target entity type")
    target_id: str = Field(..., description="Target entity ID")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Event details")


class TransitionResult(BaseModel):
    """Outcome of a committed transition plus its post-commit intents."""

    form: FormSnapshot
    previous_status: FormStatus
    new_status: FormStatus
    ledger_entry: LedgerEntry
    notifications: list[NotificationIntent] = Field(default_factory=list)
    audit_event: AuditEvent


class FormDetail(BaseModel):
    """Form together with its chronological ledger."""

    form: FormSnapshot
    ledger: list[LedgerEntry] = Field(default_factory=list)


class QueueClause(BaseModel):
    """Forms at one status that a reviewer may act on.

    `regions` None means any region; an assignment without an SBU matches
    every SBU of its region.
    """

    model_config = ConfigDict(frozen=True)

    status: FormStatus
    regions: tuple[RegionAssignment, ...] | None = None
    created_by_admin_id: str | None = None
    unclaimed: bool = False

    def matches(self, form: FormSnapshot) -> bool:
        if form.status != self.status:
            return False
        creator = self.created_by_admin_id
        if creator is not None and form.created_by_admin_id != creator:
            return False
        if self.unclaimed and form.created_by_admin_id is not None:
            return False
        if self.regions is None:
            return True
        return any(
            r.region_code == form.region_code and r.sbu_code in (None, form.sbu_code)
            for r in self.regions
        )


class FormQuery(BaseModel):
    """One page of a reviewer's form list.

    A form is listed when any clause matches it, or when `involved_admin_id`
    created it or has a ledger entry on it. `status` and `region_code`
    narrow the result further.
    """

    kind: FormKind
    clauses: list[QueueClause] = Field(default_factory=list)
    involved_admin_id: str | None = None
    status: FormStatus | None = None
    region_code: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class FormPage(BaseModel):
    """Paginated form list."""

    items: list[FormSnapshot] = Field(default_factory=list)
    page: int = Field(..., description="Page number, from 1")
    limit: int = Field(..., description="Page size")
    total: int = Field(..., description="Forms matching the query")
    total_pages: int = Field(..., description="Number of pages")


class FormCreate(BaseModel):
    """Create a form (admin-authored draft or public submission)."""

    region_code: str = Field(..., min_length=1, max_length=20, description="Region")
    sbu_code: str | None = Field(None, max_length=20, description="Business unit")
    business_name: str = Field(..., min_length=1, max_length=255, description="Business name")
    payload: dict[str, Any] = Field(default_factory=dict, description="Business payload")


class FormUpdate(BaseModel):
    """Partial update of a form's editable fields."""

    region_code: str | None = Field(None, min_length=1, max_length=20)
    sbu_code: str | None = Field(None, max_length=20)
    business_name: str | None = Field(None, min_length=1, max_length=255)
    payload: dict[str, Any] | None = None


class FormActionResponse(BaseModel):
    """Response of a submit or deny action."""

    form: FormSnapshot
    ledger_entry: LedgerEntry


class PublicSubmissionResponse(BaseModel):
    """Response of an unauthenticated submission."""

    id: str = Field(..., description="Form ID")
    message: str = Field(..., description="Confirmation message")
