"""Role and region authority checks.

Pure functions over plain values; nothing here touches the database.
"""

from dataclasses import dataclass

from partner_portal.services.workflow.schemas import (
    AdminIdentity,
    AdminRole,
    FormSnapshot,
    QueueClause,
    RegionAssignment,
    WorkflowAction,
)
from partner_portal.services.workflow.transitions import (
    ScopeRule,
    Transition,
    WorkflowDefinition,
)

OUT_OF_REGION = "This form is not in your assigned region"

RegionScope = set[tuple[str, str | None]]


def region_scope(admin: AdminIdentity) -> RegionScope:
    """Get the (region, sbu) pairs an admin is assigned to.

    Args:
        admin: Acting admin

    Returns:
        Set of (region_code, sbu_code) tuples, sbu_code None when unqualified
    """
    return {(r.region_code, r.sbu_code) for r in admin.regions}


def scope_covers(scope: RegionScope, region_code: str, sbu_code: str | None) -> bool:
    """Check a (region, sbu) pair against a coordinator scope.

    An SBU-qualified assignment for the region wins over an unqualified one:
    the form must then carry one of the assigned SBUs.
    """
    qualified = {sbu for region, sbu in scope if region == region_code and sbu is not None}
    if qualified:
        return sbu_code in qualified
    return (region_code, None) in scope


def region_covers(scope: RegionScope, region_code: str) -> bool:
    """Check a region against a scope, ignoring SBUs."""
    return any(region == region_code for region, _ in scope)


def scope_regions(admin: AdminIdentity, rule: ScopeRule) -> tuple[RegionAssignment, ...]:
    """Region assignments a clause must match for a scope rule.

    Mirrors `region_covers` for REGION and `scope_covers` for REGION_SBU:
    an SBU-qualified assignment narrows its region to the named SBUs.
    """
    scope = region_scope(admin)
    regions = sorted({region for region, _ in scope})
    result: list[RegionAssignment] = []
    for region in regions:
        qualified = sorted(
            sbu for r, sbu in scope if r == region and sbu is not None
        )
        if rule == ScopeRule.REGION_SBU and qualified:
            result.extend(RegionAssignment(region_code=region, sbu_code=sbu) for sbu in qualified)
        else:
            result.append(RegionAssignment(region_code=region))
    return tuple(result)


@dataclass(frozen=True)
class AuthorityDecision:
    """Outcome of an authority check. Truthy when allowed."""

    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def allow(cls) -> "AuthorityDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "AuthorityDecision":
        return cls(allowed=False, reason=reason)


class AuthorityResolver:
    """Decides whether an admin may take a transition on a form.

    FULL admins may act at every pending stage of every form kind when
    `full_override` is set, regardless of region. They never stand in for
    the creator of a DRAFT or DENIED form.
    """

    def __init__(self, full_override: bool = True):
        """Initialize resolver.

        Args:
            full_override: Let FULL admins act at any pending stage
        """
        self.full_override = full_override

    def lists(self, admin: AdminIdentity, transition: Transition) -> bool:
        """Whether the transition table has a row for the admin's role."""
        return transition.lists_role(admin.role, self.full_override)

    def check(
        self,
        admin: AdminIdentity,
        form: FormSnapshot,
        transition: Transition,
    ) -> AuthorityDecision:
        """Check one transition.

        Args:
            admin: Acting admin
            form: Form as loaded
            transition: Transition the admin wants to take

        Returns:
            AuthorityDecision with a user-facing reason when refused
        """
        if not admin.enabled:
            return AuthorityDecision.deny("Your admin account is disabled")

        if transition.scope == ScopeRule.CREATOR:
            if admin.role != transition.required_role:
                return AuthorityDecision.deny(
                    f"Only the creator can {transition.verb} this form"
                )
            if form.created_by_admin_id is None and transition.claims:
                return self._scope_decision(admin, form, ScopeRule.REGION_SBU)
            if form.created_by_admin_id != admin.id:
                return AuthorityDecision.deny(
                    f"Only the creator can {transition.verb} this form"
                )
            return AuthorityDecision.allow()

        if not self.lists(admin, transition):
            return AuthorityDecision.deny(
                f"Only {transition.reviewers} can {transition.verb} at this stage"
            )
        if admin.role == AdminRole.FULL:
            return AuthorityDecision.allow()
        return self._scope_decision(admin, form, transition.scope)

    @staticmethod
    def _scope_decision(
        admin: AdminIdentity, form: FormSnapshot, rule: ScopeRule
    ) -> AuthorityDecision:
        scope = region_scope(admin)
        if rule == ScopeRule.REGION and not region_covers(scope, form.region_code):
            return AuthorityDecision.deny(OUT_OF_REGION)
        if rule == ScopeRule.REGION_SBU and not scope_covers(
            scope, form.region_code, form.sbu_code
        ):
            return AuthorityDecision.deny(OUT_OF_REGION)
        return AuthorityDecision.allow()

    def can_act(
        self,
        admin: AdminIdentity,
        form: FormSnapshot,
        definition: WorkflowDefinition,
    ) -> AuthorityDecision:
        """Check whether an admin can move a form forward at its current status.

        Args:
            admin: Acting admin
            form: Form as loaded
            definition: Workflow of the form's kind

        Returns:
            AuthorityDecision for the submit transition at the form's status
        """
        transition = definition.lookup(form.status, WorkflowAction.SUBMIT)
        if transition is None:
            return AuthorityDecision.deny(
                f"No action is available while the form is {form.status.value}"
            )
        return self.check(admin, form, transition)

    def queue_clauses(
        self, admin: AdminIdentity, definition: WorkflowDefinition
    ) -> list[QueueClause]:
        """Describe, per status, the forms `can_act` would allow.

        Lets the store select an admin's queue in one query instead of
        filtering loaded rows.

        Args:
            admin: Acting admin
            definition: Workflow of the listed kind

        Returns:
            Clauses to OR together; empty when the admin can act on nothing
        """
        if not admin.enabled:
            return []

        clauses: list[QueueClause] = []
        for status in definition.actionable_statuses():
            transition = definition.lookup(status, WorkflowAction.SUBMIT)
            if transition is None:
                continue

            if transition.scope == ScopeRule.CREATOR:
                if admin.role != transition.required_role:
                    continue
                clauses.append(QueueClause(status=status, created_by_admin_id=admin.id))
                if transition.claims:
                    regions = scope_regions(admin, ScopeRule.REGION_SBU)
                    if regions:
                        clauses.append(QueueClause(status=status, regions=regions, unclaimed=True))
                continue

            if not self.lists(admin, transition):
                continue
            if admin.role == AdminRole.FULL or transition.scope == ScopeRule.GLOBAL:
                clauses.append(QueueClause(status=status))
                continue
            regions = scope_regions(admin, transition.scope)
            if regions:
                clauses.append(QueueClause(status=status, regions=regions))
        return clauses
