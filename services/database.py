"""
Supabase Database Service
Document store for synced emails. Every query is scoped by user_id.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence
from supabase import create_client, Client

from config import settings
from models.email import EmailRecord
from services.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

EMAILS_TABLE = "emails"


class DatabaseService:
    """Owns the Supabase client (created on first use)"""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self._url = url
        self._key = key
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        if self._client is None:
            url = self._url or settings.supabase_url
            key = self._key or settings.supabase_service_key
            if not url or not key:
                raise ConfigurationError(
                    "Supabase is not set up. Add SUPABASE_URL and SUPABASE_SERVICE_KEY to .env"
                )
            self._client = create_client(url, key)
        return self._client


class EmailStore:
    """
    Email document store backed by the Supabase `emails` table.

    The supabase client is blocking, so each query runs in a worker thread.
    Callers bound them with services.timeouts.with_timeout.
    """

    def __init__(self, db: DatabaseService):
        self.db = db

    async def find(
        self,
        owner_id: str,
        filters: Optional[Dict[str, Any]] = None,
        *,
        ids: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
        columns: str = "*"
    ) -> List[EmailRecord]:
        """
        Find emails owned by `owner_id`.

        Args:
            owner_id: Owning user (always applied)
            filters: Column equality filters, e.g. {"is_read": False}
            ids: Restrict to these record ids
            order_by: Column to sort on (e.g. "date")
            descending: Sort direction
            limit: Max rows
            columns: Projection

        Returns:
            List of EmailRecord (empty when nothing matches)
        """
        def _query():
            query = self.db.client.table(EMAILS_TABLE).select(columns).eq("user_id", owner_id)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if ids is not None:
                query = query.in_("id", list(ids))
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit is not None:
                query = query.limit(limit)
            return query.execute()

        if ids is not None and not ids:
            return []

        result = await asyncio.to_thread(_query)
        return [EmailRecord(**row) for row in result.data]

    async def find_by_id(self, owner_id: str, email_id: str) -> Optional[EmailRecord]:
        """Get one email, or None if it doesn't exist for this owner"""
        records = await self.find(owner_id, ids=[email_id], limit=1)
        return records[0] if records else None

    async def update_many(
        self,
        owner_id: str,
        ids: Sequence[str],
        patch: Dict[str, Any]
    ) -> int:
        """
        Apply `patch` to every listed email owned by `owner_id`.

        Returns:
            Number of rows updated
        """
        if not ids:
            return 0

        def _update():
            return self.db.client.table(EMAILS_TABLE).update(patch)\
                .eq("user_id", owner_id)\
                .in_("id", list(ids))\
                .execute()

        result = await asyncio.to_thread(_update)
        logger.debug(f"Updated {len(result.data)} emails for user {owner_id[:8]}: {patch}")
        return len(result.data)

    async def count(self, owner_id: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count emails owned by `owner_id` matching `filters`"""
        def _count():
            query = self.db.client.table(EMAILS_TABLE)\
                .select("id", count="exact")\
                .eq("user_id", owner_id)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            return query.limit(1).execute()

        result = await asyncio.to_thread(_count)
        return result.count or 0


# Singleton instance
db_service = DatabaseService()
