"""Workflow engine for sequential multi-role form review.

Flow for every action:
1. Load the form (NotFound)
2. Look up the transition for its status (InvalidTransition)
3. Check the actor's authority (Forbidden)
4. Validate reviewer input (ValidationError)
5. Compare-and-set the status and append the ledger entry (Conflict)
6. Dispatch notifications and one audit event, best effort
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from partner_portal.core.config import Settings, get_settings
from partner_portal.services.workflow.authority import AuthorityResolver
from partner_portal.services.workflow.dispatcher import EffectDispatcher
from partner_portal.services.workflow.errors import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    WorkflowValidationError,
)
from partner_portal.services.workflow.notifications import notifications_for
from partner_portal.services.workflow.ports import (
    AdminDirectory,
    AuditSink,
    FormStore,
    NotificationSink,
)
from partner_portal.services.workflow.schemas import (
    AdminIdentity,
    AuditEvent,
    FormKind,
    FormSnapshot,
    LedgerEntry,
    TransitionPayload,
    TransitionResult,
    WorkflowAction,
)
from partner_portal.services.workflow.transitions import (
    WORKFLOWS,
    Transition,
    WorkflowDefinition,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class WorkflowEngine:
    """Applies submit/deny actions to forms.

    The engine holds no per-request state; the acting admin is passed into
    every call.
    """

    def __init__(
        self,
        store: FormStore,
        directory: AdminDirectory,
        notification_sink: NotificationSink,
        audit_sink: AuditSink,
        *,
        definitions: dict[FormKind, WorkflowDefinition] | None = None,
        resolver: AuthorityResolver | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        """Initialize workflow engine.

        @param store - Form store
        @param directory - Admin directory used to resolve notification recipients
        @param notification_sink - Notification sink
        @param audit_sink - Audit sink
        @param definitions - Workflow per form kind (defaults to both built-ins)
        @param resolver - Authority resolver
        @param settings - Settings providing the score range and FULL override
        @param clock - Timestamp source for ledger entries
        @param id_factory - ID source for ledger entries
        """
        self.settings = settings or get_settings()
        self.store = store
        self.definitions = definitions or WORKFLOWS
        self.resolver = resolver or AuthorityResolver(
            full_override=self.settings.full_role_override
        )
        self.dispatcher = EffectDispatcher(directory, notification_sink, audit_sink)
        self._clock = clock or _utcnow
        self._id_factory = id_factory or _new_id

    def definition_for(self, kind: FormKind) -> WorkflowDefinition:
        return self.definitions[kind]

    def _validate(
        self,
        definition: WorkflowDefinition,
        transition: Transition,
        payload: TransitionPayload,
    ) -> None:
        """Validate reviewer input for a transition.

        @raises WorkflowValidationError on missing comments or a bad score
        """
        if transition.requires_comments and not (payload.comments or "").strip():
            raise WorkflowValidationError("Please provide a reason for denial.")

        if transition.requires_score:
            low, high = self.settings.score_min, self.settings.score_max
            if payload.score is None:
                raise WorkflowValidationError(f"{definition.score_label} is required.")
            if not low <= payload.score <= high:
                raise WorkflowValidationError(
                    f"{definition.score_label} must be {low}-{high}."
                )

    def _audit_event(
        self,
        definition: WorkflowDefinition,
        transition: Transition,
        form: FormSnapshot,
        actor: AdminIdentity,
        payload: TransitionPayload,
    ) -> AuditEvent:
        metadata: dict[str, Any] = {
            "business_name": form.business_name,
            "from": transition.from_status.value,
            "to": transition.to_status.value,
        }
        if transition.requires_score:
            metadata[definition.score_field] = payload.score
        if transition.requires_comments:
            metadata["reason"] = payload.comments
        return AuditEvent(
            admin_id=actor.id,
            action=transition.audit_action,
            target_type=definition.target_type,
            target_id=form.id,
            metadata=metadata,
        )

    async def transition(
        self,
        form_id: str,
        actor: AdminIdentity,
        action: WorkflowAction,
        payload: TransitionPayload | None = None,
        *,
        kind: FormKind | None = None,
    ) -> TransitionResult:
        """Apply an action and return the committed result without dispatching.

        @param form_id - Form ID
        @param actor - Acting admin
        @param action - SUBMIT or DENY
        @param payload - Reviewer input
        @param kind - Expected form kind; a mismatch is treated as not found
        @returns TransitionResult with undispatched notification intents
        @raises WorkflowError subclass describing the single failure
        """
        payload = payload or TransitionPayload()

        form = await self.store.load_form(form_id)
        if form is None or (kind is not None and form.kind != kind):
            raise NotFoundError("Form not found")

        definition = self.definition_for(form.kind)
        transition = definition.lookup(form.status, action)
        if transition is None:
            raise InvalidTransitionError(
                f"Cannot {action.value.lower()} {definition.noun}s "
                f"with status {form.status.value}"
            )
        listed = definition.lookup(
            form.status, action, actor.role, full_override=self.resolver.full_override
        )
        if listed is None and actor.enabled:
            raise InvalidTransitionError(
                f"Only {transition.reviewers} can {transition.verb} "
                f"{definition.noun}s with status {form.status.value}"
            )

        decision = self.resolver.check(actor, form, transition)
        if not decision:
            raise ForbiddenError(decision.reason or "You cannot act on this form")

        self._validate(definition, transition, payload)

        ledger = await self.store.load_ledger(form.id)
        entry = LedgerEntry(
            id=self._id_factory(),
            form_id=form.id,
            admin_id=actor.id,
            actor_role=actor.role,
            action=transition.ledger_action,
            comments=payload.comments,
            signature_url=payload.signature_url,
            signature_date=payload.signature_date,
            score=payload.score if transition.requires_score else None,
            created_at=self._clock(),
        )
        # only the stage's own role takes ownership of an unclaimed form
        claims = (
            transition.claims
            and form.created_by_admin_id is None
            and actor.role == transition.required_role
        )
        claim_admin_id = actor.id if claims else None

        updated = await self.store.commit_transition(
            form.id,
            form.status,
            transition.to_status,
            entry,
            claim_admin_id=claim_admin_id,
        )
        if updated is None:
            logger.warning(
                f"Lost race on form {form.id}: expected {form.status.value}, "
                f"actor {actor.id}"
            )
            raise ConflictError(
                "This form was already actioned by someone else. "
                "Reload it and try again."
            )

        logger.info(
            f"Form {form.id} ({form.kind.value}) {form.status.value} -> "
            f"{updated.status.value} by {actor.id} ({actor.role.value})"
        )

        return TransitionResult(
            form=updated,
            previous_status=form.status,
            new_status=updated.status,
            ledger_entry=entry,
            notifications=notifications_for(
                definition, updated, form.status, updated.status, actor, payload, ledger
            ),
            audit_event=self._audit_event(definition, transition, form, actor, payload),
        )

    async def dispatch(self, result: TransitionResult) -> None:
        """Deliver a result's notifications and audit event. Never raises."""
        await self.dispatcher.dispatch(result.notifications, result.audit_event)

    async def execute(
        self,
        form_id: str,
        actor: AdminIdentity,
        action: WorkflowAction,
        payload: TransitionPayload | None = None,
        *,
        kind: FormKind | None = None,
    ) -> TransitionResult:
        """Apply an action, then dispatch its side effects.

        @param form_id - Form ID
        @param actor - Acting admin
        @param action - SUBMIT or DENY
        @param payload - Reviewer input
        @param kind - Expected form kind
        @returns Committed TransitionResult
        """
        result = await self.transition(form_id, actor, action, payload, kind=kind)
        await self.dispatch(result)
        return result


# Singleton instance
_workflow_engine: WorkflowEngine | None = None


def get_workflow_engine() -> WorkflowEngine:
    """Get or create the workflow engine wired to the database.

    @returns WorkflowEngine singleton
    """
    global _workflow_engine
    if _workflow_engine is None:
        from partner_portal.services.audit.recorder import get_audit_recorder
        from partner_portal.services.notification.sinks import build_notification_sink
        from partner_portal.services.workflow.store import (
            SqlAlchemyFormStore,
            get_admin_directory,
        )

        settings = get_settings()
        _workflow_engine = WorkflowEngine(
            SqlAlchemyFormStore(),
            get_admin_directory(),
            build_notification_sink(settings),
            get_audit_recorder(),
            settings=settings,
        )
    return _workflow_engine


def reset_workflow_engine() -> None:
    """Reset the workflow engine singleton."""
    global _workflow_engine
    _workflow_engine = None
