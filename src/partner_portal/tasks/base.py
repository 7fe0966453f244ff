"""Base task class with common functionality.

Provides a foundation for Celery tasks with:
- Error handling and logging
- Retry logic
- Running coroutines from Celery's sync workers
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Coroutine, TypeVar

from celery import Task

from partner_portal.core.celery_app import celery_app

logger = logging.getLogger(__name__)

T = TypeVar("T")

# One loop per worker process; the database pool is bound to it
_worker_loop: asyncio.AbstractEventLoop | None = None


class RetryableTask(Task):
    """Task with automatic retry on failure.

    Retries with exponential backoff on transient errors.
    """

    abstract = True
    autoretry_for = (Exception,)
    retry_backoff = True
    retry_backoff_max = 600  # Max 10 minutes
    retry_jitter = True
    max_retries = 3

    def on_failure(
        self,
        exc: Exception,
        task_id: str,
        args: tuple,
        kwargs: dict,
        einfo: Any,
    ) -> None:
        """Log task failure."""
        logger.error(
            "Task %s failed after %d retries",
            self.name,
            self.request.retries,
            exc_info=exc,
            extra={
                "task_id": task_id,
                "task_name": self.name,
            },
        )

    def on_retry(
        self,
        exc: Exception,
        task_id: str,
        args: tuple,
        kwargs: dict,
        einfo: Any,
    ) -> None:
        """Log task retry."""
        logger.warning(
            "Task %s retrying (attempt %d/%d)",
            self.name,
            self.request.retries + 1,
            self.max_retries,
            extra={
                "task_id": task_id,
                "task_name": self.name,
                "exception": str(exc),
            },
        )


def run_in_worker_loop(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine on the worker's event loop.

    @param coro - Coroutine to run
    @returns Coroutine result
    """
    global _worker_loop
    if _worker_loop is None or _worker_loop.is_closed():
        _worker_loop = asyncio.new_event_loop()
    return _worker_loop.run_until_complete(coro)


def async_task(
    *args: Any,
    bind: bool = True,
    base: type[Task] = RetryableTask,
    **kwargs: Any,
) -> Callable:
    """Decorator for async Celery tasks.

    Wraps async functions to run in Celery's sync context.

    @param bind - Bind task instance to first argument
    @param base - Base task class to use
    @returns Decorated task function

    Example:
        @async_task(queue="high")
        async def deliver(self, admin_id: str) -> None:
            ...
    """

    def decorator(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
        @celery_app.task(*args, bind=bind, base=base, **kwargs)
        @functools.wraps(func)
        def wrapper(*task_args: Any, **task_kwargs: Any) -> T:
            return run_in_worker_loop(func(*task_args, **task_kwargs))

        return wrapper

    return decorator


def get_task_logger(task_name: str) -> logging.Logger:
    """Get logger for a specific task.

    @param task_name - Name of the task
    @returns Configured logger
    """
    return logging.getLogger(f"celery.task.{task_name}")
