"""
Celery Application Configuration

Configures Celery for background email ingestion with a Redis broker.

Redis Database Strategy:
- db=0: Celery broker (task queue)
- db=1: Result backend (task results)
"""

import logging
from celery import Celery
from config import settings

logger = logging.getLogger(__name__)

# REDIS_URL format:
# Local dev: redis://localhost:6379/0
# Production (with AUTH): redis://:password@<host>:6379/0
REDIS_BROKER_URL = settings.redis_broker_url or "redis://localhost:6379/0"
REDIS_RESULT_BACKEND = settings.redis_result_backend or "redis://localhost:6379/1"

# Create Celery app
app = Celery(
    "inboxiq",
    broker=REDIS_BROKER_URL,
    backend=REDIS_RESULT_BACKEND,
)

app.conf.update(
    # Task serialization
    task_serializer="json",
    accept_content=["json"],  # Reject pickle
    result_serializer="json",

    timezone="UTC",
    enable_utc=True,

    # Task execution
    task_track_started=True,
    task_time_limit=300,
    task_soft_time_limit=270,

    # Result backend
    result_expires=86400,  # 24 hours
    result_extended=True,

    # Redis connection settings (broker and backend)
    redis_socket_keepalive=True,
    redis_socket_timeout=10.0,
    redis_socket_connect_timeout=5.0,
    redis_retry_on_timeout=True,
    redis_backend_health_check_interval=30,
    redis_max_connections=50,

    # Broker connection settings
    broker_connection_retry_on_startup=True,
    broker_connection_retry=True,
    broker_connection_max_retries=10,
    broker_connection_timeout=5.0,

    task_acks_late=True,  # Acknowledge after execution
    task_reject_on_worker_lost=True,

    # Ingestion batches hit the vector index; one task at a time per worker
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=100,

    worker_send_task_events=True,
    task_send_sent_event=True,

    # Logging
    worker_hijack_root_logger=False,
    worker_log_format="[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
    worker_task_log_format=(
        "[%(asctime)s: %(levelname)s/%(processName)s]"
        "[%(task_name)s(%(task_id)s)] %(message)s"
    ),

    imports=(
        "tasks.ingest_tasks",
    ),
)

app.conf.task_routes = {
    "tasks.ingest_tasks.ingest_emails_background": {"queue": "email_ingest"},
}

app.conf.task_annotations = {
    "tasks.ingest_tasks.ingest_emails_background": {
        "rate_limit": "30/m",  # Bound load on the vector index
    },
}

logger.info(
    f"Celery configured - Broker: {REDIS_BROKER_URL.split('@')[-1]} (db=0), "
    f"Backend: {REDIS_RESULT_BACKEND.split('@')[-1]} (db=1)"
)
