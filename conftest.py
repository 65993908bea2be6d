"""
Shared pytest fixtures: in-memory stand-ins for Supabase, the vector index
and the language model.
"""

import asyncio
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from models.email import EmailAddress, EmailRecord, IndexedDocument
from services.vector_index import VectorIndexManager

BASE_DATE = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_email(
    user_id: str,
    n: int,
    subject: Optional[str] = None,
    snippet: Optional[str] = None,
    is_read: bool = False,
    sender: Optional[EmailAddress] = None,
    **kwargs
) -> EmailRecord:
    """Email `n` for `user_id`; higher n means newer"""
    return EmailRecord(
        id=f"{user_id}-email-{n}",
        user_id=user_id,
        message_id=f"{user_id}-msg-{n}",
        thread_id=f"{user_id}-thread-{n}",
        sender=sender or EmailAddress(email=f"sender{n}@example.com", name=f"Sender {n}"),
        subject=subject if subject is not None else f"Subject {n}",
        snippet=snippet if snippet is not None else f"Snippet for email {n}",
        body=f"Body of email {n}",
        date=BASE_DATE + timedelta(hours=n),
        is_read=is_read,
        **kwargs
    )


class FakeEmailStore:
    """Implements the EmailStore contract over a list"""

    def __init__(self, emails: Sequence[EmailRecord] = ()):
        self.emails: Dict[str, EmailRecord] = {email.id: email for email in emails}
        self.fail_find = False
        self.find_error: Optional[Exception] = None
        self.fail_update_after: Optional[int] = None
        self.update_calls: List[List[str]] = []
        self.find_calls: List[Dict[str, Any]] = []

    async def find(
        self,
        owner_id,
        filters=None,
        *,
        ids=None,
        order_by=None,
        descending=True,
        limit=None,
        columns="*"
    ):
        self.find_calls.append({"owner_id": owner_id, "filters": filters, "ids": ids})
        if self.find_error is not None:
            raise self.find_error
        if self.fail_find:
            raise ConnectionError("store down")

        rows = [email for email in self.emails.values() if email.user_id == owner_id]
        for column, value in (filters or {}).items():
            rows = [email for email in rows if getattr(email, column) == value]
        if ids is not None:
            rows = [email for email in rows if email.id in set(ids)]
        if order_by:
            rows.sort(key=lambda email: getattr(email, order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [email.model_copy() for email in rows]

    async def find_by_id(self, owner_id, email_id):
        records = await self.find(owner_id, ids=[email_id], limit=1)
        return records[0] if records else None

    async def update_many(self, owner_id, ids, patch):
        if self.fail_update_after is not None and len(self.update_calls) >= self.fail_update_after:
            raise ConnectionError("update failed")
        self.update_calls.append(list(ids))

        updated = 0
        for email_id in ids:
            email = self.emails.get(email_id)
            if email is not None and email.user_id == owner_id:
                self.emails[email_id] = email.model_copy(update=patch)
                updated += 1
        return updated

    async def count(self, owner_id, filters=None):
        return len(await self.find(owner_id, filters))


def _tokens(text: str) -> List[str]:
    return re.findall(r"[a-z0-9']+", text.lower())


class FakeVectorIndex:
    """Deterministic bag-of-words similarity, metadata containment filter"""

    def __init__(self):
        self.rows: Dict[str, IndexedDocument] = {}
        self.upsert_calls = 0
        self.fail_upsert = False
        self.upsert_error: Optional[Exception] = None
        self.fail_search = False
        self.hang_search = False

    async def upsert(self, documents):
        if self.upsert_error is not None:
            raise self.upsert_error
        if self.fail_upsert:
            raise ConnectionError("index write failed")
        self.upsert_calls += 1
        for doc in documents:
            self.rows[doc.metadata["docId"]] = doc
        return len(documents)

    async def similarity_search(self, query, k, filter):
        if self.hang_search:
            await asyncio.Event().wait()
        if self.fail_search:
            raise RuntimeError("index error")

        query_tokens = set(_tokens(query))
        scored = []
        for doc in self.rows.values():
            if any(doc.metadata.get(key) != value for key, value in filter.items()):
                continue
            doc_tokens = set(_tokens(doc.page_content))
            overlap = len(query_tokens & doc_tokens)
            if overlap:
                score = overlap / math.sqrt(len(query_tokens) * len(doc_tokens))
                scored.append((doc, score))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:k]


class FakeLLM:
    """LanguageModelClient stand-in"""

    def __init__(self, response: str = "Looks like Ana sent you the budget.", error: Exception = None, hang: bool = False):
        self.response = response
        self.error = error
        self.hang = hang
        self.prompts: List[str] = []

    async def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        return self.response


def make_manager(index=None, error: Exception = None, api_key: str = "test-key", index_name: str = "email_vectors"):
    calls = []

    async def connector(key, name, namespace):
        calls.append((key, name, namespace))
        if error is not None:
            raise error
        return index

    manager = VectorIndexManager(
        api_key=api_key,
        index_name=index_name,
        namespace="inboxiq",
        connector=connector
    )
    manager.connect_calls = calls
    return manager


@pytest.fixture
def vector_index():
    return FakeVectorIndex()


@pytest.fixture
def index_manager(vector_index):
    return make_manager(vector_index)


@pytest.fixture
def store():
    emails = [make_email("alice", n, is_read=(n % 2 == 0)) for n in range(1, 6)]
    emails += [make_email("bob", n, subject=f"Bob topic {n}") for n in range(1, 4)]
    return FakeEmailStore(emails)
