"""Sequential multi-role review workflow for onboard and data requests."""

from partner_portal.services.workflow.authority import (
    AuthorityDecision,
    AuthorityResolver,
    region_covers,
    region_scope,
    scope_covers,
)
from partner_portal.services.workflow.engine import (
    WorkflowEngine,
    get_workflow_engine,
    reset_workflow_engine,
)
from partner_portal.services.workflow.errors import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    WorkflowError,
    WorkflowErrorKind,
    WorkflowValidationError,
)
from partner_portal.services.workflow.forms import (
    FormService,
    get_form_service,
    reset_form_service,
)
from partner_portal.services.workflow.notifications import notifications_for
from partner_portal.services.workflow.schemas import (
    AdminIdentity,
    AdminRole,
    FormKind,
    FormPage,
    FormQuery,
    FormSnapshot,
    FormStatus,
    LedgerAction,
    LedgerEntry,
    NotificationCategory,
    QueueClause,
    RegionAssignment,
    TransitionPayload,
    TransitionResult,
    WorkflowAction,
)
from partner_portal.services.workflow.transitions import (
    DATA_REQUEST_WORKFLOW,
    ONBOARD_REQUEST_WORKFLOW,
    WorkflowDefinition,
    get_workflow,
)

__all__ = [
    # Schemas
    "AdminIdentity",
    "AdminRole",
    "FormKind",
    "FormPage",
    "FormQuery",
    "FormSnapshot",
    "FormStatus",
    "LedgerAction",
    "LedgerEntry",
    "NotificationCategory",
    "QueueClause",
    "RegionAssignment",
    "TransitionPayload",
    "TransitionResult",
    "WorkflowAction",
    # Errors
    "WorkflowError",
    "WorkflowErrorKind",
    "NotFoundError",
    "InvalidTransitionError",
    "ForbiddenError",
    "WorkflowValidationError",
    "ConflictError",
    # Table and authority
    "WorkflowDefinition",
    "ONBOARD_REQUEST_WORKFLOW",
    "DATA_REQUEST_WORKFLOW",
    "get_workflow",
    "AuthorityDecision",
    "AuthorityResolver",
    "region_scope",
    "scope_covers",
    "region_covers",
    "notifications_for",
    # Services
    "WorkflowEngine",
    "get_workflow_engine",
    "reset_workflow_engine",
    "FormService",
    "get_form_service",
    "reset_form_service",
]
