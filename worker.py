"""
Celery Worker Entry Point

Starts the Celery worker process that embeds synced emails.

Usage:
    Local dev:
        celery -A worker worker --loglevel=info --queues=email_ingest

    Monitoring with Flower:
        celery -A worker flower
"""

from tasks.celery_config import app

# Import tasks to register them with Celery
from tasks import ingest_tasks

if __name__ == '__main__':
    app.start()
