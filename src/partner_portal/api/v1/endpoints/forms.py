"""Review form API endpoints, one router per form kind."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from partner_portal.services.auth import CurrentAdmin
from partner_portal.services.workflow import (
    FormKind,
    FormPage,
    FormService,
    FormSnapshot,
    FormStatus,
    TransitionPayload,
    WorkflowAction,
    WorkflowEngine,
    get_form_service,
    get_workflow_engine,
)
from partner_portal.services.workflow.schemas import (
    FormActionResponse,
    FormCreate,
    FormDetail,
    FormUpdate,
)


def build_form_router(kind: FormKind, prefix: str, tag: str) -> APIRouter:
    """Build the CRUD and review routes for one form kind.

    @param kind - Form kind served by the router
    @param prefix - URL prefix, e.g. "/onboard-requests"
    @param tag - OpenAPI tag
    @returns Configured router
    """
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("", response_model=FormPage)
    async def list_actionable_forms(
        admin: CurrentAdmin,
        service: Annotated[FormService, Depends(get_form_service)],
        form_status: FormStatus | None = Query(
            None, alias="status", description="Filter by status"
        ),
        region_code: str | None = Query(None, description="Filter by region"),
        include_involved: bool = Query(
            False, description="Also list forms you created or already acted on"
        ),
        page: int = Query(1, ge=1, description="Page number"),
        limit: int = Query(20, ge=1, le=100, description="Items per page"),
    ) -> FormPage:
        """List forms the current admin can act on now, newest first."""
        return await service.list_actionable(
            admin,
            kind,
            status=form_status,
            region_code=region_code,
            include_involved=include_involved,
            page=page,
            limit=limit,
        )

    @router.post("", response_model=FormSnapshot, status_code=status.HTTP_201_CREATED)
    async def create_form(
        data: FormCreate,
        admin: CurrentAdmin,
        service: Annotated[FormService, Depends(get_form_service)],
    ) -> FormSnapshot:
        """Create a draft. Coordinators only."""
        return await service.create_draft(admin, kind, data)

    @router.get("/{form_id}", response_model=FormDetail)
    async def get_form(
        form_id: str,
        admin: CurrentAdmin,
        service: Annotated[FormService, Depends(get_form_service)],
    ) -> FormDetail:
        """Get a form with its approval history."""
        return await service.get_form_detail(form_id, kind)

    @router.put("/{form_id}", response_model=FormSnapshot)
    async def update_form(
        form_id: str,
        data: FormUpdate,
        admin: CurrentAdmin,
        service: Annotated[FormService, Depends(get_form_service)],
    ) -> FormSnapshot:
        """Edit a form. Claims an unclaimed public submission."""
        return await service.edit_form(form_id, admin, data, kind=kind)

    @router.post("/{form_id}/submit", response_model=FormActionResponse)
    async def submit_form(
        form_id: str,
        admin: CurrentAdmin,
        engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
        payload: TransitionPayload | None = None,
    ) -> FormActionResponse:
        """Submit or approve the form at its current stage."""
        result = await engine.execute(
            form_id, admin, WorkflowAction.SUBMIT, payload, kind=kind
        )
        return FormActionResponse(form=result.form, ledger_entry=result.ledger_entry)

    @router.post("/{form_id}/deny", response_model=FormActionResponse)
    async def deny_form(
        form_id: str,
        admin: CurrentAdmin,
        engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
        payload: TransitionPayload | None = None,
    ) -> FormActionResponse:
        """Deny the form at its current stage. Comments are required."""
        result = await engine.execute(
            form_id, admin, WorkflowAction.DENY, payload, kind=kind
        )
        return FormActionResponse(form=result.form, ledger_entry=result.ledger_entry)

    return router


onboard_requests_router = build_form_router(
    FormKind.ONBOARD_REQUEST, "/onboard-requests", "Onboard Requests"
)
data_requests_router = build_form_router(
    FormKind.DATA_REQUEST, "/data-requests", "Data Requests"
)
