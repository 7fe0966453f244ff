"""Form authoring: drafts, public intake, edits and reviewer queues.

Status changes are left to `WorkflowEngine`; this service only creates forms
and rewrites their editable fields under the same status guard.
"""

import logging
import math
import uuid
from typing import Any, Callable

from partner_portal.core.config import Settings, get_settings
from partner_portal.services.workflow.authority import (
    OUT_OF_REGION,
    AuthorityResolver,
    region_covers,
    region_scope,
    scope_covers,
)
from partner_portal.services.workflow.dispatcher import EffectDispatcher
from partner_portal.services.workflow.errors import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
)
from partner_portal.services.workflow.notifications import intake_notifications
from partner_portal.services.workflow.ports import (
    AdminDirectory,
    AuditSink,
    FormStore,
    NotificationSink,
)
from partner_portal.services.workflow.schemas import (
    AdminIdentity,
    AdminRole,
    AuditEvent,
    FormCreate,
    FormDetail,
    FormKind,
    FormPage,
    FormQuery,
    FormSnapshot,
    FormStatus,
    FormUpdate,
)
from partner_portal.services.workflow.transitions import WORKFLOWS, WorkflowDefinition

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class FormService:
    """Creates, edits and lists review forms."""

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
        id_factory: Callable[[], str] | None = None,
    ):
        settings = settings or get_settings()
        self.store = store
        self.definitions = definitions or WORKFLOWS
        self.resolver = resolver or AuthorityResolver(
            full_override=settings.full_role_override
        )
        self.dispatcher = EffectDispatcher(directory, notification_sink, audit_sink)
        self._id_factory = id_factory or _new_id

    async def _load(self, form_id: str, kind: FormKind | None) -> FormSnapshot:
        form = await self.store.load_form(form_id)
        if form is None or (kind is not None and form.kind != kind):
            raise NotFoundError("Form not found")
        return form

    @staticmethod
    def _check_region(actor: AdminIdentity, region_code: str, sbu_code: str | None) -> None:
        scope = region_scope(actor)
        if sbu_code:
            allowed = scope_covers(scope, region_code, sbu_code)
        else:
            allowed = region_covers(scope, region_code)
        if not allowed:
            raise ForbiddenError(OUT_OF_REGION)

    async def create_draft(
        self, actor: AdminIdentity, kind: FormKind, data: FormCreate
    ) -> FormSnapshot:
        """Create a draft owned by a coordinator.

        @param actor - Acting admin, must be an enabled coordinator
        @param kind - Form kind
        @param data - Form fields
        @returns Created form in DRAFT
        @raises ForbiddenError when the actor is not a coordinator for the region
        """
        definition = self.definitions[kind]
        if not actor.enabled or actor.role != AdminRole.COORDINATOR:
            raise ForbiddenError(f"Only coordinators can create {definition.noun}s")
        self._check_region(actor, data.region_code, data.sbu_code)

        form = await self.store.create_form(
            FormSnapshot(
                id=self._id_factory(),
                kind=kind,
                status=FormStatus.DRAFT,
                region_code=data.region_code,
                sbu_code=data.sbu_code,
                created_by_admin_id=actor.id,
                business_name=data.business_name,
                payload=data.payload,
            )
        )
        logger.info(f"Created {kind.value} draft {form.id} by {actor.id}")

        await self.dispatcher.dispatch(
            [],
            AuditEvent(
                admin_id=actor.id,
                action=definition.audit_action("CREATED"),
                target_type=definition.target_type,
                target_id=form.id,
                metadata={
                    "business_name": form.business_name,
                    "region_code": form.region_code,
                    "sbu_code": form.sbu_code,
                },
            ),
        )
        return form

    async def submit_public(self, kind: FormKind, data: FormCreate) -> FormSnapshot:
        """Accept an unauthenticated submission into the intake stage, unclaimed.

        @param kind - Form kind, must accept public submissions
        @param data - Form fields
        @returns Created form
        @raises InvalidTransitionError when the kind has no public intake
        """
        definition = self.definitions[kind]
        if not definition.public_intake:
            raise InvalidTransitionError(
                f"Public submissions are not accepted for {definition.noun}s"
            )

        form = await self.store.create_form(
            FormSnapshot(
                id=self._id_factory(),
                kind=kind,
                status=definition.stages[0].status,
                region_code=data.region_code,
                sbu_code=data.sbu_code,
                created_by_admin_id=None,
                business_name=data.business_name,
                payload=data.payload,
            )
        )
        logger.info(f"Public {kind.value} {form.id} submitted for region {form.region_code}")

        await self.dispatcher.dispatch(
            intake_notifications(definition, form),
            AuditEvent(
                admin_id=None,
                action=definition.audit_action("PUBLIC_SUBMITTED"),
                target_type=definition.target_type,
                target_id=form.id,
                metadata={
                    "business_name": form.business_name,
                    "region_code": form.region_code,
                    "sbu_code": form.sbu_code,
                },
            ),
        )
        return form

    async def edit_form(
        self,
        form_id: str,
        actor: AdminIdentity,
        data: FormUpdate,
        *,
        kind: FormKind | None = None,
    ) -> FormSnapshot:
        """Edit a form's fields without changing its status.

        At the intake stage an in-scope coordinator may edit and thereby claim
        an unclaimed form. DRAFT and DENIED forms are edited by their creator.

        @param form_id - Form ID
        @param actor - Acting admin
        @param data - Fields to change
        @param kind - Expected form kind
        @returns Updated form
        """
        form = await self._load(form_id, kind)
        definition = self.definitions[form.kind]
        stage = definition.stage_for(form.status)
        claim_admin_id = None

        if stage is not None and stage.intake:
            decision = self.resolver.can_act(actor, form, definition)
            if not decision:
                raise ForbiddenError(decision.reason or "You cannot edit this form")
            if actor.role == stage.role:
                if form.created_by_admin_id is None:
                    claim_admin_id = actor.id
                elif form.created_by_admin_id != actor.id:
                    raise ConflictError("This form has already been claimed by another coordinator")
        elif form.status in (FormStatus.DRAFT, FormStatus.DENIED):
            if not actor.enabled or form.created_by_admin_id != actor.id:
                raise ForbiddenError("Only the creator can edit this form")
        else:
            raise InvalidTransitionError(
                f"Forms with status {form.status.value} cannot be edited"
            )

        changes: dict[str, Any] = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key == "sbu_code"
        }
        if "region_code" in changes or "sbu_code" in changes:
            self._check_region(
                actor,
                changes.get("region_code", form.region_code),
                changes.get("sbu_code", form.sbu_code),
            )

        if not changes and claim_admin_id is None:
            return form

        updated = await self.store.update_form(
            form.id, form.status, changes, claim_admin_id=claim_admin_id
        )
        if updated is None:
            logger.warning(f"Edit of form {form.id} lost race at {form.status.value}")
            raise ConflictError(
                "This form was changed by someone else. Reload it and try again."
            )

        logger.info(f"Form {form.id} edited by {actor.id}: {sorted(changes)}")
        await self.dispatcher.dispatch(
            [],
            AuditEvent(
                admin_id=actor.id,
                action=definition.audit_action("UPDATED"),
                target_type=definition.target_type,
                target_id=form.id,
                metadata={
                    "business_name": updated.business_name,
                    "fields": sorted(changes),
                    "claimed": claim_admin_id is not None,
                },
            ),
        )
        return updated

    async def list_actionable(
        self,
        actor: AdminIdentity,
        kind: FormKind,
        *,
        status: FormStatus | None = None,
        region_code: str | None = None,
        include_involved: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> FormPage:
        """List forms of a kind the actor can move forward right now.

        @param actor - Acting admin
        @param kind - Form kind
        @param status - Only forms at this status
        @param region_code - Only forms in this region
        @param include_involved - Also list forms the actor created or acted on
        @param page - Page number, from 1
        @param limit - Page size
        @returns One page of forms, newest first
        """
        definition = self.definitions[kind]
        query = FormQuery(
            kind=kind,
            clauses=self.resolver.queue_clauses(actor, definition),
            involved_admin_id=actor.id if include_involved else None,
            status=status,
            region_code=region_code,
            page=page,
            limit=limit,
        )
        items, total = await self.store.list_forms(query)
        return FormPage(
            items=items,
            page=query.page,
            limit=query.limit,
            total=total,
            total_pages=math.ceil(total / query.limit) if total else 0,
        )

    async def get_form_detail(
        self, form_id: str, kind: FormKind | None = None
    ) -> FormDetail:
        """Get a form and its ledger in chronological order."""
        form = await self._load(form_id, kind)
        ledger = await self.store.load_ledger(form.id)
        return FormDetail(form=form, ledger=ledger)


# Singleton instance
_form_service: FormService | None = None


def get_form_service() -> FormService:
    """Get or create the form service wired to the database."""
    global _form_service
    if _form_service is None:
        from partner_portal.services.audit.recorder import get_audit_recorder
        from partner_portal.services.notification.sinks import build_notification_sink
        from partner_portal.services.workflow.store import (
            SqlAlchemyFormStore,
            get_admin_directory,
        )

        settings = get_settings()
        _form_service = FormService(
            SqlAlchemyFormStore(),
            get_admin_directory(),
            build_notification_sink(settings),
            get_audit_recorder(),
            settings=settings,
        )
    return _form_service


def reset_form_service() -> None:
    """Reset the form service singleton."""
    global _form_service
    _form_service = None
