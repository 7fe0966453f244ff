"""Tests for form authoring and reviewer queues."""

from datetime import timedelta

import pytest

from partner_portal.services.workflow import (
    AdminRole,
    ConflictError,
    ForbiddenError,
    FormKind,
    FormStatus,
    InvalidTransitionError,
    NotFoundError,
    TransitionPayload,
    WorkflowAction,
)
from partner_portal.services.workflow.authority import OUT_OF_REGION
from partner_portal.services.workflow.schemas import FormCreate, FormUpdate
from tests.fakes import FIXED_NOW, Harness, make_admin, make_form


class TestCreateDraft:
    """Tests for FormService.create_draft."""

    def setup_method(self):
        """Set up test fixtures."""
        self.harness = Harness()
        self.coordinator = make_admin("c1", AdminRole.COORDINATOR, [("G", "SBU1")])

    @pytest.mark.asyncio
    async def test_coordinator_creates_draft(self):
        """Test a coordinator creates a draft in their SBU."""
        data = FormCreate(region_code="G", sbu_code="SBU1", business_name="Acme", payload={"tin": "1"})

        form = await self.harness.forms.create_draft(self.coordinator, FormKind.DATA_REQUEST, data)

        assert form.status == FormStatus.DRAFT
        assert form.kind == FormKind.DATA_REQUEST
        assert form.created_by_admin_id == "c1"
        assert form.payload == {"tin": "1"}
        assert self.harness.store.forms[form.id] == form
        [event] = self.harness.audit.events
        assert event["action"] == "DATA_REQUEST_CREATED"
        assert event["target_type"] == "DataRequestForm"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [AdminRole.MANAGER, AdminRole.FULL, AdminRole.LEGAL])
    async def test_non_coordinator_refused(self, role):
        """Test only coordinators create drafts."""
        data = FormCreate(region_code="G", business_name="Acme")

        with pytest.raises(ForbiddenError) as exc_info:
            await self.harness.forms.create_draft(
                make_admin("x", role, [("G", None)]), FormKind.ONBOARD_REQUEST, data
            )

        assert exc_info.value.message == "Only coordinators can create onboard requests"
        assert self.harness.store.forms == {}

    @pytest.mark.asyncio
    async def test_other_sbu_refused(self):
        """Test the draft must fall in the coordinator's SBU."""
        data = FormCreate(region_code="G", sbu_code="SBU2", business_name="Acme")

        with pytest.raises(ForbiddenError) as exc_info:
            await self.harness.forms.create_draft(self.coordinator, FormKind.ONBOARD_REQUEST, data)

        assert exc_info.value.message == OUT_OF_REGION

    @pytest.mark.asyncio
    async def test_other_region_refused(self):
        """Test the draft must fall in the coordinator's region."""
        data = FormCreate(region_code="N", business_name="Acme")

        with pytest.raises(ForbiddenError):
            await self.harness.forms.create_draft(self.coordinator, FormKind.ONBOARD_REQUEST, data)


class TestSubmitPublic:
    """Tests for FormService.submit_public."""

    @pytest.mark.asyncio
    async def test_public_submission_waits_unclaimed(self):
        """Test public intake lands at the coordinator stage, unclaimed."""
        harness = Harness(
            admins=[
                make_admin("c1", AdminRole.COORDINATOR, [("G", "SBU1")]),
                make_admin("c2", AdminRole.COORDINATOR, [("G", "SBU2")]),
                make_admin("c3", AdminRole.COORDINATOR, [("N", None)]),
            ]
        )
        data = FormCreate(region_code="G", sbu_code="SBU1", business_name="Acme")

        form = await harness.forms.submit_public(FormKind.ONBOARD_REQUEST, data)

        assert form.status == FormStatus.PENDING_COORDINATOR
        assert form.created_by_admin_id is None
        assert harness.notifications.recipients() == ["c1"]
        [event] = harness.audit.events
        assert event["admin_id"] is None
        assert event["action"] == "ONBOARD_REQUEST_PUBLIC_SUBMITTED"

    @pytest.mark.asyncio
    async def test_data_requests_have_no_public_intake(self):
        """Test data requests cannot be submitted publicly."""
        harness = Harness()

        with pytest.raises(InvalidTransitionError):
            await harness.forms.submit_public(
                FormKind.DATA_REQUEST, FormCreate(region_code="G", business_name="Acme")
            )

        assert harness.store.forms == {}


class TestEditForm:
    """Tests for FormService.edit_form."""

    def setup_method(self):
        """Set up test fixtures."""
        self.coordinator = make_admin("c1", AdminRole.COORDINATOR, [("G", None)])

    @pytest.mark.asyncio
    async def test_coordinator_edit_claims_public_submission(self):
        """Test editing an unclaimed intake form claims it."""
        form = make_form(status=FormStatus.PENDING_COORDINATOR, created_by_admin_id=None)
        harness = Harness(form)

        updated = await harness.forms.edit_form(
            form.id, self.coordinator, FormUpdate(business_name="Acme Ltd")
        )

        assert updated.business_name == "Acme Ltd"
        assert updated.created_by_admin_id == "c1"
        assert updated.status == FormStatus.PENDING_COORDINATOR
        assert harness.audit.events[0]["metadata"]["claimed"] is True
        assert harness.store.ledgers[form.id] == []

    @pytest.mark.asyncio
    async def test_edit_claimed_by_other_coordinator_conflicts(self):
        """Test a form claimed by someone else cannot be edited."""
        form = make_form(status=FormStatus.PENDING_COORDINATOR, created_by_admin_id="c9")
        harness = Harness(form)

        with pytest.raises(ConflictError):
            await harness.forms.edit_form(form.id, self.coordinator, FormUpdate(business_name="X"))

    @pytest.mark.asyncio
    async def test_out_of_scope_coordinator_cannot_edit(self):
        """Test coordinators outside the region cannot edit intake forms."""
        form = make_form(status=FormStatus.PENDING_COORDINATOR, created_by_admin_id=None)
        harness = Harness(form)
        outsider = make_admin("c2", AdminRole.COORDINATOR, [("N", None)])

        with pytest.raises(ForbiddenError):
            await harness.forms.edit_form(form.id, outsider, FormUpdate(business_name="X"))

    @pytest.mark.asyncio
    async def test_full_admin_edits_without_claiming(self):
        """Test FULL can edit intake forms but does not become the creator."""
        form = make_form(status=FormStatus.PENDING_COORDINATOR, created_by_admin_id=None)
        harness = Harness(form)

        updated = await harness.forms.edit_form(
            form.id, make_admin("f1", AdminRole.FULL), FormUpdate(payload={"a": 1})
        )

        assert updated.payload == {"a": 1}
        assert updated.created_by_admin_id is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [FormStatus.DRAFT, FormStatus.DENIED])
    async def test_creator_edits_draft_or_denied(self, status):
        """Test creators edit their own DRAFT and DENIED forms."""
        form = make_form(status=status, created_by_admin_id="c1")
        harness = Harness(form)

        updated = await harness.forms.edit_form(form.id, self.coordinator, FormUpdate(business_name="New"))

        assert updated.business_name == "New"
        assert updated.status == status

    @pytest.mark.asyncio
    async def test_non_creator_cannot_edit_draft(self):
        """Test other admins cannot edit a draft."""
        form = make_form(status=FormStatus.DRAFT, created_by_admin_id="c9")
        harness = Harness(form)

        with pytest.raises(ForbiddenError) as exc_info:
            await harness.forms.edit_form(form.id, self.coordinator, FormUpdate(business_name="X"))

        assert exc_info.value.message == "Only the creator can edit this form"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [FormStatus.PENDING_MANAGER, FormStatus.PENDING_GOVERNANCE_CHECK, FormStatus.APPROVED]
    )
    async def test_reviewer_stages_are_not_editable(self, status):
        """Test forms past intake cannot be edited."""
        form = make_form(status=status, created_by_admin_id="c1")
        harness = Harness(form)

        with pytest.raises(InvalidTransitionError):
            await harness.forms.edit_form(form.id, self.coordinator, FormUpdate(business_name="X"))

    @pytest.mark.asyncio
    async def test_region_change_checked(self):
        """Test a creator cannot move a draft outside their region."""
        form = make_form(status=FormStatus.DRAFT, created_by_admin_id="c1")
        harness = Harness(form)

        with pytest.raises(ForbiddenError):
            await harness.forms.edit_form(form.id, self.coordinator, FormUpdate(region_code="N"))

    @pytest.mark.asyncio
    async def test_empty_edit_is_a_no_op(self):
        """Test an edit with no fields leaves the form alone."""
        form = make_form(status=FormStatus.DRAFT, created_by_admin_id="c1")
        harness = Harness(form)

        updated = await harness.forms.edit_form(form.id, self.coordinator, FormUpdate())

        assert updated == form
        assert harness.audit.events == []

    @pytest.mark.asyncio
    async def test_unknown_form(self):
        """Test editing a missing form."""
        harness = Harness()

        with pytest.raises(NotFoundError):
            await harness.forms.edit_form("missing", self.coordinator, FormUpdate(business_name="X"))


class TestQueues:
    """Tests for list_actionable and get_form_detail."""

    def setup_method(self):
        """Set up test fixtures."""
        self.forms = [
            make_form("f-coord", status=FormStatus.PENDING_COORDINATOR, created_by_admin_id=None),
            make_form("f-mgr", status=FormStatus.PENDING_MANAGER),
            make_form("f-senior-g", status=FormStatus.PENDING_SENIOR_MANAGER),
            make_form("f-senior-n", status=FormStatus.PENDING_SENIOR_MANAGER, region_code="N"),
            make_form("f-done", status=FormStatus.APPROVED),
            make_form("f-data", kind=FormKind.DATA_REQUEST, status=FormStatus.PENDING_MANAGER),
        ]

    @pytest.mark.asyncio
    async def test_senior_manager_queue_is_regional(self):
        """Test a senior manager sees only in-region forms at their stage."""
        harness = Harness(*self.forms)
        senior = make_admin("s1", AdminRole.SENIOR_MANAGER, [("G", None)])

        page = await harness.forms.list_actionable(senior, FormKind.ONBOARD_REQUEST)

        assert [f.id for f in page.items] == ["f-senior-g"]
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_manager_queue_per_kind(self):
        """Test queues are per form kind."""
        harness = Harness(*self.forms)
        manager = make_admin("m1", AdminRole.MANAGER)

        onboard = await harness.forms.list_actionable(manager, FormKind.ONBOARD_REQUEST)
        data = await harness.forms.list_actionable(manager, FormKind.DATA_REQUEST)

        assert [f.id for f in onboard.items] == ["f-mgr"]
        assert [f.id for f in data.items] == ["f-data"]

    @pytest.mark.asyncio
    async def test_full_queue_has_every_pending_form(self):
        """Test FULL sees every pending onboard request."""
        harness = Harness(*self.forms)

        page = await harness.forms.list_actionable(make_admin("f1", AdminRole.FULL), FormKind.ONBOARD_REQUEST)

        assert {f.id for f in page.items} == {"f-coord", "f-mgr", "f-senior-g", "f-senior-n"}

    @pytest.mark.asyncio
    async def test_disabled_admin_has_empty_queue(self):
        """Test a disabled admin lists nothing."""
        harness = Harness(*self.forms)
        manager = make_admin("m1", AdminRole.MANAGER, enabled=False)

        page = await harness.forms.list_actionable(manager, FormKind.ONBOARD_REQUEST)

        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0

    @pytest.mark.asyncio
    async def test_old_form_found_behind_many_newer_ones(self):
        """Test the queue is selected before paging, not after."""
        newer = [
            make_form(f"m-{n:03d}", status=FormStatus.PENDING_MANAGER).model_copy(
                update={"created_at": FIXED_NOW + timedelta(minutes=n + 1)}
            )
            for n in range(120)
        ]
        old = make_form("senior-old", status=FormStatus.PENDING_SENIOR_MANAGER).model_copy(
            update={"created_at": FIXED_NOW - timedelta(days=30)}
        )
        harness = Harness(*newer, old)
        senior = make_admin("s1", AdminRole.SENIOR_MANAGER, [("G", None)])

        page = await harness.forms.list_actionable(senior, FormKind.ONBOARD_REQUEST)

        assert [f.id for f in page.items] == ["senior-old"]
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_pagination_newest_first(self):
        """Test page and limit slice the full queue."""
        forms = [
            make_form(f"m-{n:03d}", status=FormStatus.PENDING_MANAGER).model_copy(
                update={"created_at": FIXED_NOW + timedelta(minutes=n)}
            )
            for n in range(130)
        ]
        harness = Harness(*forms)
        manager = make_admin("m1", AdminRole.MANAGER)

        page = await harness.forms.list_actionable(
            manager, FormKind.ONBOARD_REQUEST, page=3, limit=50
        )

        assert page.total == 130
        assert page.total_pages == 3
        assert len(page.items) == 30
        assert page.items[0].id == "m-029"
        assert page.items[-1].id == "m-000"

    @pytest.mark.asyncio
    async def test_status_and_region_filters(self):
        """Test filters narrow the queue."""
        harness = Harness(*self.forms)
        full = make_admin("f1", AdminRole.FULL)

        by_status = await harness.forms.list_actionable(
            full, FormKind.ONBOARD_REQUEST, status=FormStatus.PENDING_SENIOR_MANAGER
        )
        by_both = await harness.forms.list_actionable(
            full,
            FormKind.ONBOARD_REQUEST,
            status=FormStatus.PENDING_SENIOR_MANAGER,
            region_code="N",
        )

        assert {f.id for f in by_status.items} == {"f-senior-g", "f-senior-n"}
        assert [f.id for f in by_both.items] == ["f-senior-n"]

    @pytest.mark.asyncio
    async def test_involved_view_keeps_forms_already_acted_on(self):
        """Test a manager still finds a form after approving it."""
        harness = Harness(*self.forms)
        manager = make_admin("m1", AdminRole.MANAGER)
        await harness.engine.execute(
            "f-mgr", manager, WorkflowAction.SUBMIT, TransitionPayload(comments="ok")
        )

        queue = await harness.forms.list_actionable(manager, FormKind.ONBOARD_REQUEST)
        involved = await harness.forms.list_actionable(
            manager, FormKind.ONBOARD_REQUEST, include_involved=True
        )

        assert queue.items == []
        assert [f.id for f in involved.items] == ["f-mgr"]
        assert involved.items[0].status == FormStatus.PENDING_SENIOR_MANAGER

    @pytest.mark.asyncio
    async def test_involved_view_includes_own_drafts(self):
        """Test a creator sees their forms wherever they are."""
        harness = Harness(*self.forms)
        coordinator = make_admin("coord-1", AdminRole.COORDINATOR, [("G", None)])

        page = await harness.forms.list_actionable(
            coordinator, FormKind.ONBOARD_REQUEST, include_involved=True
        )

        assert {f.id for f in page.items} == {
            "f-coord", "f-mgr", "f-senior-g", "f-senior-n", "f-done",
        }

    @pytest.mark.asyncio
    async def test_unclaimed_denied_form_in_coordinator_queue(self):
        """Test an unclaimed denied form waits for an in-scope coordinator."""
        denied = make_form("f-denied", status=FormStatus.DENIED, region_code="E", sbu_code="S1", created_by_admin_id=None)
        harness = Harness(denied)

        in_scope = await harness.forms.list_actionable(
            make_admin("c1", AdminRole.COORDINATOR, [("E", "S1")]), FormKind.ONBOARD_REQUEST
        )
        other_sbu = await harness.forms.list_actionable(
            make_admin("c2", AdminRole.COORDINATOR, [("E", "S2")]), FormKind.ONBOARD_REQUEST
        )

        assert [f.id for f in in_scope.items] == ["f-denied"]
        assert other_sbu.items == []

    @pytest.mark.asyncio
    async def test_queue_matches_can_act(self):
        """Test every listed form is actionable and every actionable form is listed."""
        forms = [
            *self.forms,
            make_form("f-draft", status=FormStatus.DRAFT, created_by_admin_id="c1"),
            make_form("f-denied-c2", status=FormStatus.DENIED, created_by_admin_id="c2"),
            make_form("f-denied-open", status=FormStatus.DENIED, sbu_code="S1", created_by_admin_id=None),
            make_form("f-coord-s2", status=FormStatus.PENDING_COORDINATOR, sbu_code="S2", created_by_admin_id=None),
            make_form("f-gov", status=FormStatus.PENDING_GOVERNANCE_CHECK, region_code="N"),
        ]
        admins = [
            make_admin("c1", AdminRole.COORDINATOR, [("G", "S1")]),
            make_admin("c2", AdminRole.COORDINATOR, [("G", None)]),
            make_admin("m1", AdminRole.MANAGER),
            make_admin("s1", AdminRole.SENIOR_MANAGER, [("N", "X")]),
            make_admin("g1", AdminRole.GOVERNANCE),
            make_admin("f1", AdminRole.FULL),
            make_admin("f2", AdminRole.FULL, enabled=False),
        ]
        harness = Harness(*forms)
        resolver = harness.forms.resolver
        definition = harness.forms.definitions[FormKind.ONBOARD_REQUEST]

        for admin in admins:
            page = await harness.forms.list_actionable(admin, FormKind.ONBOARD_REQUEST, limit=100)
            expected = {
                f.id
                for f in forms
                if f.kind == FormKind.ONBOARD_REQUEST and resolver.can_act(admin, f, definition)
            }
            assert {f.id for f in page.items} == expected, admin.id

    @pytest.mark.asyncio
    async def test_form_detail_includes_ledger(self):
        """Test detail returns the chronological ledger."""
        harness = Harness(*self.forms)
        manager = make_admin("m1", AdminRole.MANAGER)
        await harness.engine.execute(
            "f-mgr", manager, WorkflowAction.SUBMIT, TransitionPayload(comments="ok")
        )

        detail = await harness.forms.get_form_detail("f-mgr", FormKind.ONBOARD_REQUEST)

        assert detail.form.status == FormStatus.PENDING_SENIOR_MANAGER
        assert [e.admin_id for e in detail.ledger] == ["m1"]

    @pytest.mark.asyncio
    async def test_form_detail_kind_mismatch(self):
        """Test detail through the wrong kind is not found."""
        harness = Harness(*self.forms)

        with pytest.raises(NotFoundError):
            await harness.forms.get_form_detail("f-data", FormKind.ONBOARD_REQUEST)
