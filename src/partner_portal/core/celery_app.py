"""Celery application configuration.

Provides the task queue used for post-commit side effects:
- Notification delivery (high priority)
- Background operations (normal priority)
"""

from celery import Celery
from celery.signals import setup_logging
from kombu import Exchange, Queue

from partner_portal.core.config import get_settings
from partner_portal.core.logging import configure_logging

settings = get_settings()

# Create Celery application
celery_app = Celery(
    "partner_portal",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "partner_portal.tasks.notification_tasks",
    ],
)

default_exchange = Exchange("default", type="direct")
priority_exchange = Exchange("priority", type="direct")

celery_app.conf.task_queues = (
    # High: notifications
    Queue(
        "high",
        exchange=priority_exchange,
        routing_key="high",
        queue_arguments={"x-max-priority": 5},
    ),
    Queue(
        "normal",
        exchange=default_exchange,
        routing_key="normal",
        queue_arguments={"x-max-priority": 0},
    ),
)

celery_app.conf.task_default_queue = "normal"
celery_app.conf.task_default_exchange = "default"
celery_app.conf.task_default_routing_key = "normal"

celery_app.conf.task_routes = {
    "partner_portal.tasks.notification_tasks.*": {"queue": "high"},
}

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_track_started=True,

    # Result backend
    result_expires=86400,

    # Retry configuration
    task_default_retry_delay=60,
    task_max_retries=3,

    # Logging
    worker_hijack_root_logger=False,

    # Broker settings
    broker_connection_retry_on_startup=True,
    broker_connection_max_retries=10,
    broker_pool_limit=10,
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(get_settings())
