"""JWT access token verification for admin requests.

Tokens are issued by the portal's login flow; this service signs tokens for
that flow and verifies them on every admin request.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel

from partner_portal.core.config import get_settings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload."""

    sub: str  # Admin ID
    exp: datetime  # Expiration time
    iat: datetime  # Issued at time
    type: str  # Token type, "access"
    role: str | None = None  # Role at issue time, informational only


class JWTService:
    """Service for creating and validating JWT tokens."""

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        access_token_expire_minutes: int | None = None,
    ):
        """Initialize JWT service.

        Args:
            secret_key: Secret key for signing tokens
            algorithm: JWT algorithm (default from settings)
            access_token_expire_minutes: Access token expiration in minutes
        """
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )

    def create_access_token(
        self,
        subject: str,
        role: str | None = None,
        extra_claims: dict[str, Any] | None = None,
    ) -> str:
        """Create an access token.

        Args:
            subject: Admin ID
            role: Admin role at issue time
            extra_claims: Additional claims to include

        Returns:
            Encoded JWT access token
        """
        now = datetime.now(timezone.utc)
        expire = now + timedelta(minutes=self.access_token_expire_minutes)

        payload: dict[str, Any] = {
            "sub": subject,
            "exp": expire,
            "iat": now,
            "type": "access",
            "role": role,
        }
        if extra_claims:
            payload.update(extra_claims)

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenPayload | None:
        """Verify and decode a JWT token.

        Args:
            token: JWT token to verify

        Returns:
            TokenPayload if valid, None if invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
            return TokenPayload(**payload)
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            return None

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """Verify an access token specifically.

        Args:
            token: JWT token to verify

        Returns:
            TokenPayload if valid access token, None otherwise
        """
        payload = self.verify_token(token)
        if payload and payload.type == "access":
            return payload
        return None


# Singleton instance
_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get or create JWT service singleton."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service
