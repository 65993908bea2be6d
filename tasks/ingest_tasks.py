"""
Background Ingestion Tasks

Celery task fired after a Gmail sync: embeds the user's unprocessed emails
into the vector index.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from celery import Task

from config import settings
from dependencies import build_container
from services.exceptions import UpstreamUnavailable
from tasks.celery_config import app

logger = logging.getLogger(__name__)


class CallbackTask(Task):
    """
    Celery task base class with lifecycle hooks.
    Task state lives in the Celery result backend.
    """

    def on_success(self, retval, task_id, args, kwargs):
        logger.info(f"Task {task_id} completed successfully: {retval.get('processed_count', 0)} emails")

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(f"Task {task_id} failed permanently: {exc}")

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.warning(f"Task {task_id} retrying due to: {exc}")


@app.task(
    bind=True,
    base=CallbackTask,
    name="tasks.ingest_tasks.ingest_emails_background",
    max_retries=5,
    autoretry_for=(UpstreamUnavailable, ConnectionError, TimeoutError),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    acks_late=True,
)
def ingest_emails_background(self, user_id: str, limit: Optional[int] = None):
    """
    Embed up to `limit` unprocessed emails for `user_id`.

    Safe to retry: already-flagged emails are skipped on the next run.
    ConfigurationError is not retried.

    Returns:
        dict: {"status": "completed", "processed_count": 20, "total_found": 20, ...}
    """
    start_time = datetime.now(timezone.utc)
    task_id = self.request.id or "local"
    limit = limit or settings.ingest_default_limit

    logger.info(f"🚀 [Task {task_id[:8]}] Ingesting up to {limit} emails for user {user_id[:8]}...")
    self.update_state(state="PROGRESS", meta={"phase": "ingesting", "limit": limit})

    result = _ingest_sync_wrapper(user_id, limit)

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(f"✅ [Task {task_id[:8]}] {result.processed_count} emails indexed in {duration:.1f}s")

    return {
        "status": "completed",
        **result.model_dump(),
        "duration_seconds": int(duration),
        "task_id": task_id
    }


def _ingest_sync_wrapper(user_id: str, limit: int):
    """
    Run the async pipeline in an isolated event loop.

    Uses fresh service instances per task so no client outlives its loop.
    """
    container = build_container(settings)
    return asyncio.run(container.ingestion.ingest_unprocessed(user_id, limit))
