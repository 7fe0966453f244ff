"""Authentication dependencies for FastAPI."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from partner_portal.services.auth.jwt_service import JWTService, get_jwt_service
from partner_portal.services.workflow.ports import AdminDirectory
from partner_portal.services.workflow.schemas import AdminIdentity
from partner_portal.services.workflow.store import get_admin_directory

logger = logging.getLogger(__name__)

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


def get_directory() -> AdminDirectory:
    """Admin directory used to resolve the acting admin."""
    return get_admin_directory()


async def get_current_admin(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
    directory: Annotated[AdminDirectory, Depends(get_directory)],
) -> AdminIdentity:
    """Resolve the acting admin from the bearer token.

    Role and regions are read from the directory on every request, never
    from the token.

    Args:
        credentials: Bearer token from request
        jwt_service: JWT service for token verification
        directory: Admin directory

    Returns:
        AdminIdentity of an enabled admin

    Raises:
        HTTPException: 401 if the token is missing or invalid, or the admin
            is unknown or disabled
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = jwt_service.verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    admin = await directory.get_admin(payload.sub)
    if admin is None or not admin.enabled:
        logger.warning(f"Rejected token for unknown or disabled admin {payload.sub}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin account not found or disabled",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return admin


# Type alias for dependency injection
CurrentAdmin = Annotated[AdminIdentity, Depends(get_current_admin)]
