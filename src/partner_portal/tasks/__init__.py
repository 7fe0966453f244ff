"""Celery tasks for background processing.

This module provides async task execution for:
- Admin notification delivery
"""

from partner_portal.core.celery_app import celery_app

__all__ = ["celery_app"]
