"""Authentication services module."""

from partner_portal.services.auth.dependencies import (
    CurrentAdmin,
    get_current_admin,
    get_directory,
)
from partner_portal.services.auth.jwt_service import (
    JWTService,
    TokenPayload,
    get_jwt_service,
)

__all__ = [
    # JWT
    "JWTService",
    "TokenPayload",
    "get_jwt_service",
    # Dependencies
    "get_current_admin",
    "get_directory",
    # Type aliases
    "CurrentAdmin",
]
