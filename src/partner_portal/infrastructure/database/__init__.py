"""Database infrastructure module."""

from partner_portal.infrastructure.database.session import (
    AsyncSessionLocal,
    async_engine,
)

__all__ = [
    "async_engine",
    "AsyncSessionLocal",
]
