"""Data-driven transition table for the review workflow.

Both form kinds are instances of one `WorkflowDefinition` built from an
ordered stage list:

    ONBOARD_REQUEST: PENDING_COORDINATOR -> PENDING_MANAGER
                     -> PENDING_SENIOR_MANAGER -> PENDING_GOVERNANCE_CHECK -> APPROVED
    DATA_REQUEST:    PENDING_MANAGER -> PENDING_SENIOR_MANAGER -> PENDING_LEGAL -> APPROVED

Every pending stage may also deny (-> DENIED, comments required). DRAFT and
DENIED forms are submitted by their creator straight to PENDING_MANAGER.

Rows are per (status, action, role): a role with no row at a status gets no
transition, whatever its region.
"""

from dataclasses import dataclass
from enum import Enum

from partner_portal.services.workflow.schemas import (
    AdminRole,
    FormKind,
    FormStatus,
    LedgerAction,
    WorkflowAction,
)


class ScopeRule(str, Enum):
    """How far an admin's region assignments must reach to act."""

    GLOBAL = "GLOBAL"  # any form
    REGION = "REGION"  # form region in admin regions
    REGION_SBU = "REGION_SBU"  # region, plus SBU when the assignment names one
    CREATOR = "CREATOR"  # only the form's creator


@dataclass(frozen=True)
class Stage:
    """A pending status and the reviewers who clear it."""

    status: FormStatus
    role: AdminRole
    scope: ScopeRule
    reviewers: str  # plural, used in refusals
    approved_by: str  # "approved {approved_by}" in notifications
    needs: str = "your review"
    audit_name: str = ""
    intake: bool = False  # public submissions wait here unclaimed


@dataclass(frozen=True)
class Transition:
    """One legal (status, action) -> status move."""

    from_status: FormStatus
    action: WorkflowAction
    to_status: FormStatus
    required_role: AdminRole
    scope: ScopeRule
    ledger_action: LedgerAction
    audit_action: str
    reviewers: str
    requires_comments: bool = False
    requires_score: bool = False
    claims: bool = False

    @property
    def verb(self) -> str:
        if self.action == WorkflowAction.DENY:
            return "deny"
        if self.ledger_action == LedgerAction.SUBMITTED:
            return "submit"
        return "approve"

    def lists_role(self, role: AdminRole, full_override: bool = True) -> bool:
        """Whether the table has this move for `role`.

        FULL is listed at every reviewer stage while the override is on,
        never on creator rows.
        """
        if role == self.required_role:
            return True
        return role == AdminRole.FULL and full_override and self.scope != ScopeRule.CREATOR


class WorkflowDefinition:
    """Transition table for one form kind.

    @param kind - Form kind
    @param stages - Ordered pending stages, intake first
    @param score_field - Payload name of the final-stage score
    @param score_label - Human name of the score, used in refusals
    @param noun - Lower-case noun used in messages ("onboard request")
    @param target_type - Audit target type
    @param creator_entry - Status a creator's submission lands in
    """

    def __init__(
        self,
        kind: FormKind,
        stages: list[Stage],
        *,
        score_field: str,
        score_label: str,
        noun: str,
        target_type: str,
        creator_entry: FormStatus = FormStatus.PENDING_MANAGER,
    ):
        if not stages:
            raise ValueError("A workflow needs at least one stage")
        self.kind = kind
        self.stages: tuple[Stage, ...] = tuple(stages)
        self.score_field = score_field
        self.score_label = score_label
        self.noun = noun
        self.target_type = target_type
        self.creator_entry = creator_entry
        self._stages_by_status = {stage.status: stage for stage in self.stages}
        if creator_entry not in self._stages_by_status:
            raise ValueError(f"Creator entry {creator_entry} is not a stage of {kind}")
        self._table = self._build_table()

    @property
    def title(self) -> str:
        """Title-cased noun, e.g. "Onboard Request"."""
        return self.noun.title()

    @property
    def public_intake(self) -> bool:
        return self.stages[0].intake

    @property
    def final_stage(self) -> Stage:
        return self.stages[-1]

    def audit_action(self, suffix: str) -> str:
        return f"{self.kind.value}_{suffix}"

    def stage_for(self, status: FormStatus) -> Stage | None:
        return self._stages_by_status.get(status)

    def lookup(
        self,
        status: FormStatus,
        action: WorkflowAction,
        role: AdminRole | None = None,
        *,
        full_override: bool = True,
    ) -> Transition | None:
        """Find the transition for a status/action pair, optionally for a role.

        @param status - Current form status
        @param action - Requested action
        @param role - Acting role; None matches any role
        @param full_override - Whether FULL is listed at reviewer stages
        @returns Transition or None when the move is not legal
        """
        transition = self._table.get((status, action))
        if transition is None or role is None:
            return transition
        return transition if transition.lists_role(role, full_override) else None

    def actionable_statuses(self) -> list[FormStatus]:
        """Statuses from which at least one transition exists."""
        seen: list[FormStatus] = []
        for status, _ in self._table:
            if status not in seen:
                seen.append(status)
        return seen

    def _build_table(self) -> dict[tuple[FormStatus, WorkflowAction], Transition]:
        table: dict[tuple[FormStatus, WorkflowAction], Transition] = {}
        entry_stage = self._stages_by_status[self.creator_entry]

        for index, stage in enumerate(self.stages):
            is_final = index == len(self.stages) - 1
            if is_final:
                to_status = FormStatus.APPROVED
                audit_action = self.audit_action("APPROVED")
            else:
                next_stage = self.stages[index + 1]
                to_status = next_stage.status
                audit_action = self.audit_action(f"SUBMITTED_TO_{next_stage.audit_name}")

            table[(stage.status, WorkflowAction.SUBMIT)] = Transition(
                from_status=stage.status,
                action=WorkflowAction.SUBMIT,
                to_status=to_status,
                required_role=stage.role,
                scope=stage.scope,
                ledger_action=LedgerAction.SUBMITTED if stage.intake else LedgerAction.APPROVED,
                audit_action=audit_action,
                reviewers=stage.reviewers,
                requires_score=is_final,
                claims=stage.intake,
            )
            table[(stage.status, WorkflowAction.DENY)] = Transition(
                from_status=stage.status,
                action=WorkflowAction.DENY,
                to_status=FormStatus.DENIED,
                required_role=stage.role,
                scope=stage.scope,
                ledger_action=LedgerAction.DENIED,
                audit_action=self.audit_action("DENIED"),
                reviewers=stage.reviewers,
                requires_comments=True,
            )

        for status in (FormStatus.DRAFT, FormStatus.DENIED):
            table[(status, WorkflowAction.SUBMIT)] = Transition(
                from_status=status,
                action=WorkflowAction.SUBMIT,
                to_status=entry_stage.status,
                required_role=AdminRole.COORDINATOR,
                scope=ScopeRule.CREATOR,
                ledger_action=LedgerAction.SUBMITTED,
                audit_action=self.audit_action(f"SUBMITTED_TO_{entry_stage.audit_name}"),
                reviewers="the creator",
                # a denied form nobody claimed is picked up by an in-scope coordinator
                claims=status == FormStatus.DENIED,
            )
        return table


COORDINATOR_STAGE = Stage(
    status=FormStatus.PENDING_COORDINATOR,
    role=AdminRole.COORDINATOR,
    scope=ScopeRule.REGION_SBU,
    reviewers="coordinators",
    approved_by="by a coordinator",
    audit_name="COORDINATOR",
    intake=True,
)

MANAGER_STAGE = Stage(
    status=FormStatus.PENDING_MANAGER,
    role=AdminRole.MANAGER,
    scope=ScopeRule.GLOBAL,
    reviewers="managers",
    approved_by="by a manager",
    audit_name="MANAGER",
)

SENIOR_MANAGER_STAGE = Stage(
    status=FormStatus.PENDING_SENIOR_MANAGER,
    role=AdminRole.SENIOR_MANAGER,
    scope=ScopeRule.REGION,
    reviewers="senior managers",
    approved_by="by senior management",
    audit_name="SENIOR_MANAGER",
)

ONBOARD_REQUEST_WORKFLOW = WorkflowDefinition(
    FormKind.ONBOARD_REQUEST,
    [
        COORDINATOR_STAGE,
        MANAGER_STAGE,
        SENIOR_MANAGER_STAGE,
        Stage(
            status=FormStatus.PENDING_GOVERNANCE_CHECK,
            role=AdminRole.GOVERNANCE,
            scope=ScopeRule.GLOBAL,
            reviewers="governance reviewers",
            approved_by="after governance check",
            needs="governance review",
            audit_name="GOVERNANCE",
        ),
    ],
    score_field="governance_score",
    score_label="Governance score",
    noun="onboard request",
    target_type="OnboardRequestForm",
)

DATA_REQUEST_WORKFLOW = WorkflowDefinition(
    FormKind.DATA_REQUEST,
    [
        MANAGER_STAGE,
        SENIOR_MANAGER_STAGE,
        Stage(
            status=FormStatus.PENDING_LEGAL,
            role=AdminRole.LEGAL,
            scope=ScopeRule.GLOBAL,
            reviewers="legal reviewers",
            approved_by="by legal",
            needs="legal review",
            audit_name="LEGAL",
        ),
    ],
    score_field="legal_score",
    score_label="Legal score",
    noun="data request",
    target_type="DataRequestForm",
)

WORKFLOWS: dict[FormKind, WorkflowDefinition] = {
    FormKind.ONBOARD_REQUEST: ONBOARD_REQUEST_WORKFLOW,
    FormKind.DATA_REQUEST: DATA_REQUEST_WORKFLOW,
}


def get_workflow(kind: FormKind) -> WorkflowDefinition:
    """Get the workflow definition for a form kind."""
    return WORKFLOWS[kind]
