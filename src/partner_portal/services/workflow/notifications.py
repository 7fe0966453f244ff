"""Notification fan-out for workflow transitions.

Builds notification intents as data; `EffectDispatcher` resolves and sends
them after the transition has committed.
"""

from partner_portal.services.workflow.schemas import (
    AdminIdentity,
    FormSnapshot,
    FormStatus,
    LedgerEntry,
    NotificationCategory,
    NotificationIntent,
    RecipientSelector,
    TransitionPayload,
)
from partner_portal.services.workflow.transitions import (
    ScopeRule,
    Stage,
    WorkflowDefinition,
)


def _stage_selector(stage: Stage, form: FormSnapshot) -> RecipientSelector:
    if stage.scope == ScopeRule.REGION:
        return RecipientSelector.by_role(stage.role, form.region_code)
    if stage.scope == ScopeRule.REGION_SBU:
        return RecipientSelector.by_role(
            stage.role, form.region_code, form.sbu_code, match_sbu=True
        )
    return RecipientSelector.by_role(stage.role)


def notifications_for(
    definition: WorkflowDefinition,
    form: FormSnapshot,
    from_status: FormStatus,
    to_status: FormStatus,
    actor: AdminIdentity,
    payload: TransitionPayload,
    ledger: list[LedgerEntry],
) -> list[NotificationIntent]:
    """Compute who hears about a transition and what they are told.

    @param definition - Workflow of the form's kind
    @param form - Form before the transition
    @param from_status - Status the form left
    @param to_status - Status the form entered
    @param actor - Admin who acted
    @param payload - Reviewer input
    @param ledger - Ledger entries prior to this transition
    @returns Notification intents, unresolved
    """
    name = form.business_name
    noun = definition.noun
    creator = form.created_by_admin_id
    title = f"{definition.title}: {name}"
    intents: list[NotificationIntent] = []

    if to_status == FormStatus.DENIED:
        if creator:
            intents.append(
                NotificationIntent(
                    selector=RecipientSelector.by_admin(creator),
                    title=f"{definition.title} Denied: {name}",
                    message=(
                        f'Your {noun} for "{name}" has been denied. '
                        f"Reason: {payload.comments}"
                    ),
                    category=NotificationCategory.WARNING,
                )
            )
        return intents

    if to_status == FormStatus.APPROVED:
        message = (
            f'{noun.capitalize()} for "{name}" has been fully approved '
            f"{definition.final_stage.approved_by} with a score of {payload.score}%."
        )
        recipients: list[str] = []
        if creator:
            recipients.append(creator)
        for entry in ledger:
            if entry.admin_id in (actor.id, creator) or entry.admin_id in recipients:
                continue
            recipients.append(entry.admin_id)
        for admin_id in recipients:
            intents.append(
                NotificationIntent(
                    selector=RecipientSelector.by_admin(admin_id),
                    title=title,
                    message=message,
                    category=NotificationCategory.SUCCESS,
                )
            )
        return intents

    to_stage = definition.stage_for(to_status)
    if to_stage is None:
        return intents

    from_stage = definition.stage_for(from_status)
    if from_stage is None or from_stage.intake:
        message = f'A new {noun} for "{name}" has been submitted for your review.'
    else:
        message = (
            f'{noun.capitalize()} for "{name}" has been approved '
            f"{from_stage.approved_by} and needs {to_stage.needs}."
        )
    intents.append(
        NotificationIntent(
            selector=_stage_selector(to_stage, form),
            title=title,
            message=message,
        )
    )

    if from_stage is not None and not from_stage.intake and creator and creator != actor.id:
        intents.append(
            NotificationIntent(
                selector=RecipientSelector.by_admin(creator),
                title=title,
                message=f'Your {noun} for "{name}" has been approved {from_stage.approved_by}.',
                category=NotificationCategory.SUCCESS,
            )
        )
    return intents


def intake_notifications(
    definition: WorkflowDefinition, form: FormSnapshot
) -> list[NotificationIntent]:
    """Notify in-scope coordinators about a new public submission."""
    return [
        NotificationIntent(
            selector=_stage_selector(definition.stages[0], form),
            title=f"New {definition.title} Submission",
            message=(
                f'A new partner {definition.noun} for "{form.business_name}" '
                "has been submitted and needs your review."
            ),
        )
    ]
