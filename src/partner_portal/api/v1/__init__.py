"""API v1 module."""

from fastapi import APIRouter

from partner_portal.api.v1.endpoints import forms, public

api_router = APIRouter()

# Include routers
api_router.include_router(forms.onboard_requests_router)
api_router.include_router(forms.data_requests_router)
api_router.include_router(public.router)
