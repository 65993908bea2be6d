"""
Sync API

Endpoints to embed synced emails (inline or in the background) and to check
ingestion progress.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from celery.result import AsyncResult

from dependencies import ServiceContainer, get_container
from services.exceptions import ConfigurationError, IngestionError, OperationTimeout, UpstreamUnavailable
from tasks.celery_config import app as celery_app

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/sync/process-emails")
async def process_emails(
    user_id: str = Query(...),
    limit: int = Query(50, ge=1, le=500),
    background: bool = Query(False),
    services: ServiceContainer = Depends(get_container)
):
    """
    Embed the user's unprocessed emails into the vector index.

    Args:
        user_id: Owning user
        limit: Max emails to pick up
        background: Queue a Celery task instead of running inline

    Returns:
        {"processed_count": 20, "total_found": 20, "message": "..."}
        or {"status": "queued", "task_id": "..."} in background mode
    """
    if background:
        from tasks.ingest_tasks import ingest_emails_background

        task = ingest_emails_background.delay(user_id, limit)
        logger.info(f"Queued ingestion task {task.id} for user {user_id[:8]}")
        return {"status": "queued", "task_id": task.id}

    try:
        result = await services.ingestion.ingest_unprocessed(user_id, limit)
        return result.model_dump()

    except ConfigurationError as e:
        logger.error(f"Ingestion not configured: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except OperationTimeout as e:
        logger.error(f"Ingestion timed out: {e}")
        raise HTTPException(status_code=504, detail=str(e))
    except UpstreamUnavailable as e:
        logger.error(f"Vector index unreachable: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except IngestionError as e:
        logger.error(f"Process emails error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/sync/status")
async def get_sync_status(
    user_id: str = Query(...),
    services: ServiceContainer = Depends(get_container)
):
    """
    Email counts for the user.

    Returns:
        {"user_id": "...", "counts": {"emails": 120, "emails_processed": 100}}
    """
    try:
        total = await services.store.count(user_id)
        processed = await services.store.count(user_id, {"embeddings_generated": True})

        return {
            "user_id": user_id,
            "vector_index_ready": services.index_manager.is_ready,
            "counts": {
                "emails": total,
                "emails_processed": processed
            }
        }

    except Exception as e:
        logger.error(f"Error getting sync status: {e}")
        raise HTTPException(status_code=500, detail="Failed to get sync status")


@router.get("/sync/tasks/{task_id}")
async def get_task_status(task_id: str):
    """State of a background ingestion task (PENDING, PROGRESS, SUCCESS, FAILURE)"""
    try:
        task = AsyncResult(task_id, app=celery_app)
        info = task.info if isinstance(task.info, dict) else {}
        error = str(task.info) if task.state == "FAILURE" else None

        return {
            "task_id": task_id,
            "state": task.state,
            "result": info,
            "error_message": error
        }

    except Exception as e:
        logger.error(f"Error getting task status: {e}")
        raise HTTPException(status_code=500, detail=str(e))
