"""
Relevance Resolver

Decides, per question, how to pick the emails handed to the language model:

1. Fast path: "unread" style questions -> 3 newest unread emails
2. Semantic path: vector similarity search scoped to the user
3. Fallback: 2 newest emails when semantic search finds nothing or fails

Never raises; returns [] if even the fallback query fails.
"""

import logging
from typing import List, Optional

from models.email import EmailRecord, RetrievalResult
from services.database import EmailStore
from services.timeouts import with_timeout
from services.vector_index import VectorIndexManager

logger = logging.getLogger(__name__)

UNREAD_KEYWORDS = ("unread", "new emails", "latest emails", "haven't read")

FAST_PATH_LIMIT = 3
SEMANTIC_K = 5
SEMANTIC_LIMIT = 3
FALLBACK_LIMIT = 2


def is_unread_question(question: str) -> bool:
    question_lower = question.lower()
    return any(keyword in question_lower for keyword in UNREAD_KEYWORDS)


def to_retrieval_result(email: EmailRecord) -> RetrievalResult:
    subject = email.subject or "No subject"
    snippet = email.snippet or ""
    return RetrievalResult(
        type="email",
        from_=email.sender.name or email.sender.email or "Unknown",
        subject=subject,
        snippet=snippet,
        date=email.date,
        content=f"{subject}\n{snippet}"
    )


class RelevanceResolver:
    """Picks the emails that best match a user question"""

    def __init__(
        self,
        store: EmailStore,
        index_manager: VectorIndexManager,
        connect_timeout: float = 3.0,
        search_timeout: float = 5.0,
        store_timeout: float = 2.0
    ):
        self.store = store
        self.index_manager = index_manager
        self.connect_timeout = connect_timeout
        self.search_timeout = search_timeout
        self.store_timeout = store_timeout

    async def find_relevant_emails(self, owner_id: str, question: str) -> List[RetrievalResult]:
        """
        Find emails relevant to `question`, scoped to `owner_id`.

        Returns:
            Up to 3 results; [] if every tier failed
        """
        try:
            logger.info(f"🔍 Searching for: '{question}'")

            if is_unread_question(question):
                logger.info("📬 Quick search: finding unread emails...")
                unread = await with_timeout(
                    self.store.find(
                        owner_id,
                        {"is_read": False},
                        order_by="date",
                        descending=True,
                        limit=FAST_PATH_LIMIT
                    ),
                    self.store_timeout,
                    "Unread email lookup took too long"
                )
                return [to_retrieval_result(email) for email in unread]

            try:
                results = await self._semantic_search(owner_id, question)
            except Exception as e:
                logger.warning(f"AI search failed, using recent emails instead: {e}")
                return await self._recent_emails(owner_id)

            if results is None:
                logger.info("📭 No matches found, getting recent emails...")
                return await self._recent_emails(owner_id)

            logger.info(f"Found {len(results)} relevant emails")
            return results

        except Exception as e:
            logger.error(f"Error finding emails: {e}")
            return []

    async def _semantic_search(self, owner_id: str, question: str) -> Optional[List[RetrievalResult]]:
        """Returns None when the index has no matches for this owner"""
        index = await with_timeout(
            self.index_manager.get_or_connect(),
            self.connect_timeout,
            "Connecting to the vector index took too long"
        )

        matches = await with_timeout(
            index.similarity_search(question, SEMANTIC_K, {"userId": str(owner_id)}),
            self.search_timeout,
            "Similarity search took too long"
        )
        if not matches:
            return None

        email_ids = [
            doc.metadata["docId"]
            for doc, _score in matches
            if doc.metadata.get("platform") == "email" and doc.metadata.get("docId")
        ][:SEMANTIC_LIMIT]

        emails = await with_timeout(
            self.store.find(owner_id, ids=email_ids),
            self.store_timeout,
            "Email lookup took too long"
        )

        # Keep the index's similarity order
        by_id = {str(email.id): email for email in emails}
        return [to_retrieval_result(by_id[doc_id]) for doc_id in email_ids if doc_id in by_id]

    async def _recent_emails(self, owner_id: str) -> List[RetrievalResult]:
        recent = await with_timeout(
            self.store.find(owner_id, order_by="date", descending=True, limit=FALLBACK_LIMIT),
            self.store_timeout,
            "Recent email lookup took too long"
        )
        return [to_retrieval_result(email) for email in recent]
