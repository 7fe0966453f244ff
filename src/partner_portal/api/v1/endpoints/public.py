"""Unauthenticated submission endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from partner_portal.services.workflow import FormKind, FormService, get_form_service
from partner_portal.services.workflow.schemas import FormCreate, PublicSubmissionResponse

router = APIRouter(prefix="/public", tags=["Public"])


@router.post(
    "/onboard-requests",
    response_model=PublicSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_onboard_request(
    data: FormCreate,
    service: Annotated[FormService, Depends(get_form_service)],
) -> PublicSubmissionResponse:
    """Submit a partner onboard request for coordinator review."""
    form = await service.submit_public(FormKind.ONBOARD_REQUEST, data)
    return PublicSubmissionResponse(
        id=form.id,
        message="Your onboard request has been submitted successfully.",
    )
