"""Tests for the review form HTTP API."""

from unittest.mock import AsyncMock

import pytest

from partner_portal.services.auth import get_current_admin, get_directory, get_jwt_service
from partner_portal.services.workflow import (
    AdminRole,
    FormKind,
    FormStatus,
    get_form_service,
    get_workflow_engine,
)
from tests.fakes import Harness, make_admin, make_form

BASE = "/api/v1/onboard-requests"


class TestFormsApi:
    """Tests for review endpoints with an overridden actor."""

    @pytest.fixture(autouse=True)
    def wire(self, app, client):
        """Route the app to in-memory ports."""
        self.harness = Harness(
            make_form("f-mgr", status=FormStatus.PENDING_MANAGER, created_by_admin_id="c1"),
            make_form("f-senior", status=FormStatus.PENDING_SENIOR_MANAGER, region_code="N"),
            make_form("f-done", status=FormStatus.APPROVED),
            make_form("f-data", kind=FormKind.DATA_REQUEST, status=FormStatus.PENDING_MANAGER),
            admins=[make_admin("s1", AdminRole.SENIOR_MANAGER, [("G", None)])],
        )
        self.actor = make_admin("m1", AdminRole.MANAGER)
        self.app = app
        self.client = client
        app.dependency_overrides[get_workflow_engine] = lambda: self.harness.engine
        app.dependency_overrides[get_form_service] = lambda: self.harness.forms
        app.dependency_overrides[get_current_admin] = lambda: self.actor

    def test_submit(self):
        """Test a manager approval."""
        response = self.client.post(f"{BASE}/f-mgr/submit", json={"comments": "Fine"})

        assert response.status_code == 200
        body = response.json()
        assert body["form"]["status"] == "PENDING_SENIOR_MANAGER"
        assert body["ledger_entry"]["action"] == "APPROVED"
        assert body["ledger_entry"]["admin_id"] == "m1"
        assert self.harness.notifications.recipients() == ["s1", "c1"]

    def test_submit_without_body(self):
        """Test the payload is optional."""
        response = self.client.post(f"{BASE}/f-mgr/submit")

        assert response.status_code == 200

    def test_deny_without_reason(self):
        """Test validation failures map to 400."""
        response = self.client.post(f"{BASE}/f-mgr/deny", json={"comments": " "})

        assert response.status_code == 400
        assert response.json() == {
            "error": "VALIDATION_ERROR",
            "detail": "Please provide a reason for denial.",
        }

    def test_deny(self):
        """Test a denial with a reason."""
        response = self.client.post(f"{BASE}/f-mgr/deny", json={"comments": "Missing docs"})

        assert response.status_code == 200
        assert response.json()["form"]["status"] == "DENIED"

    def test_forbidden(self):
        """Test authority failures map to 403."""
        self.actor = make_admin("s1", AdminRole.SENIOR_MANAGER, [("G", None)])

        response = self.client.post(f"{BASE}/f-senior/submit")

        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"
        assert response.json()["detail"] == "This form is not in your assigned region"

    def test_invalid_transition(self):
        """Test illegal moves map to 400."""
        response = self.client.post(f"{BASE}/f-done/submit")

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_TRANSITION"

    def test_not_found(self):
        """Test unknown forms map to 404."""
        response = self.client.post(f"{BASE}/nope/submit")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_wrong_kind_route_not_found(self):
        """Test a data request is not reachable through onboard routes."""
        response = self.client.get(f"{BASE}/f-data")

        assert response.status_code == 404

    def test_conflict(self):
        """Test lost races map to 409."""
        self.harness.store.commit_transition = AsyncMock(return_value=None)

        response = self.client.post(f"{BASE}/f-mgr/submit")

        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    def test_score_validation(self):
        """Test an out-of-range final score."""
        self.actor = make_admin("l1", AdminRole.LEGAL)
        self.harness.store.add(
            make_form("f-legal", kind=FormKind.DATA_REQUEST, status=FormStatus.PENDING_LEGAL)
        )

        response = self.client.post("/api/v1/data-requests/f-legal/submit", json={"score": 101})

        assert response.status_code == 400
        assert response.json()["detail"] == "Legal score must be 1-100."

    def test_list_actionable(self):
        """Test the manager queue."""
        response = self.client.get(BASE)

        assert response.status_code == 200
        body = response.json()
        assert [f["id"] for f in body["items"]] == ["f-mgr"]
        assert (body["page"], body["limit"], body["total"], body["total_pages"]) == (1, 20, 1, 1)

    def test_list_pagination_and_filters(self):
        """Test page, limit and status reach the queue query."""
        self.actor = make_admin("f1", AdminRole.FULL)
        for n in range(5):
            self.harness.store.add(make_form(f"f-extra-{n}", status=FormStatus.PENDING_MANAGER))

        response = self.client.get(BASE, params={"status": "PENDING_MANAGER", "page": 2, "limit": 4})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 6
        assert body["total_pages"] == 2
        assert len(body["items"]) == 2
        assert all(f["status"] == "PENDING_MANAGER" for f in body["items"])

    def test_list_region_filter(self):
        """Test the region filter."""
        self.actor = make_admin("f1", AdminRole.FULL)

        response = self.client.get(BASE, params={"region_code": "N"})

        assert [f["id"] for f in response.json()["items"]] == ["f-senior"]

    def test_list_involved(self):
        """Test forms already acted on are listed on request."""
        self.client.post(f"{BASE}/f-mgr/submit")

        queue = self.client.get(BASE)
        involved = self.client.get(BASE, params={"include_involved": "true"})

        assert queue.json()["items"] == []
        assert [f["id"] for f in involved.json()["items"]] == ["f-mgr"]

    def test_list_bad_page(self):
        """Test out-of-range paging is a validation error."""
        response = self.client.get(BASE, params={"page": 0})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_wrong_role_is_invalid_transition(self):
        """Test a reviewer at another role's stage gets 400, not 403."""
        response = self.client.post(f"{BASE}/f-senior/submit")

        assert response.status_code == 400
        assert response.json() == {
            "error": "INVALID_TRANSITION",
            "detail": "Only senior managers can approve onboard requests with status PENDING_SENIOR_MANAGER",
        }

    @pytest.mark.parametrize("score", [85.5, "abc"])
    def test_malformed_score(self, score):
        """Test a non-integer score is a 400 validation error."""
        self.actor = make_admin("l1", AdminRole.LEGAL)
        self.harness.store.add(
            make_form("f-legal", kind=FormKind.DATA_REQUEST, status=FormStatus.PENDING_LEGAL)
        )

        response = self.client.post("/api/v1/data-requests/f-legal/submit", json={"score": score})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["detail"].startswith("score: ")
        assert self.harness.store.forms["f-legal"].status == FormStatus.PENDING_LEGAL
        assert self.harness.store.ledgers["f-legal"] == []

    def test_detail(self):
        """Test the detail view with ledger."""
        self.client.post(f"{BASE}/f-mgr/submit")

        response = self.client.get(f"{BASE}/f-mgr")

        assert response.status_code == 200
        assert response.json()["form"]["id"] == "f-mgr"
        assert len(response.json()["ledger"]) == 1

    def test_create_and_edit_draft(self):
        """Test a coordinator creates then edits a data request draft."""
        self.actor = make_admin("c1", AdminRole.COORDINATOR, [("G", None)])

        created = self.client.post(
            "/api/v1/data-requests",
            json={"region_code": "G", "business_name": "Acme", "payload": {"x": 1}},
        )
        assert created.status_code == 201
        form_id = created.json()["id"]
        assert created.json()["status"] == "DRAFT"

        edited = self.client.put(
            f"/api/v1/data-requests/{form_id}", json={"business_name": "Acme Ltd"}
        )

        assert edited.status_code == 200
        assert edited.json()["business_name"] == "Acme Ltd"

    def test_create_by_manager_forbidden(self):
        """Test only coordinators create drafts."""
        response = self.client.post(BASE, json={"region_code": "G", "business_name": "Acme"})

        assert response.status_code == 403

    def test_public_submission(self):
        """Test unauthenticated onboard submissions."""
        self.app.dependency_overrides.pop(get_current_admin)

        response = self.client.post(
            "/api/v1/public/onboard-requests",
            json={"region_code": "G", "sbu_code": "SBU1", "business_name": "Newco"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Your onboard request has been submitted successfully."
        form = self.harness.store.forms[body["id"]]
        assert form.status == FormStatus.PENDING_COORDINATOR
        assert form.created_by_admin_id is None

    def test_request_body_validation(self):
        """Test malformed bodies are rejected as validation errors."""
        response = self.client.post("/api/v1/public/onboard-requests", json={"region_code": "G"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert "business_name: " in response.json()["detail"]


class TestFormsApiAuth:
    """Tests for bearer authentication on review endpoints."""

    @pytest.fixture(autouse=True)
    def wire(self, app, client):
        """Route the app to in-memory ports without overriding the actor."""
        self.harness = Harness(
            make_form("f-mgr", status=FormStatus.PENDING_MANAGER),
            admins=[
                make_admin("m1", AdminRole.MANAGER),
                make_admin("off", AdminRole.MANAGER, enabled=False),
            ],
        )
        self.client = client
        app.dependency_overrides[get_workflow_engine] = lambda: self.harness.engine
        app.dependency_overrides[get_form_service] = lambda: self.harness.forms
        app.dependency_overrides[get_directory] = lambda: self.harness.directory

    def _headers(self, subject: str) -> dict[str, str]:
        token = get_jwt_service().create_access_token(subject)
        return {"Authorization": f"Bearer {token}"}

    def test_missing_token(self):
        """Test unauthenticated review requests."""
        response = self.client.post(f"{BASE}/f-mgr/submit")

        assert response.status_code == 401

    def test_invalid_token(self):
        """Test a malformed token."""
        response = self.client.post(
            f"{BASE}/f-mgr/submit", headers={"Authorization": "Bearer garbage"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_disabled_admin(self):
        """Test a valid token for a disabled admin."""
        response = self.client.post(f"{BASE}/f-mgr/submit", headers=self._headers("off"))

        assert response.status_code == 401

    def test_authenticated_submit(self):
        """Test a valid token acts as the directory admin."""
        response = self.client.post(f"{BASE}/f-mgr/submit", headers=self._headers("m1"))

        assert response.status_code == 200
        assert response.json()["ledger_entry"]["actor_role"] == "MANAGER"


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        """Test the health check."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
