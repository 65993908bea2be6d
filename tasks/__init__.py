"""
Celery Tasks Module

Exports all task modules for registration with Celery.
"""

from tasks import ingest_tasks

__all__ = ['ingest_tasks']
