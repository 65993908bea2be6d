"""
Email Ingestion Pipeline

Indexes emails the sync job stored but hasn't embedded yet.

Flow per call:
1. Fetch up to `limit` emails with embeddings_generated = false
2. Split into batches of 10
3. Build one IndexedDocument per email (subject + snippet)
4. Upsert the batch into the vector index
5. Flag the batch embeddings_generated = processed = true

A failing batch aborts the call. Earlier batches stay committed, so calling
again simply picks up the remaining emails.
"""

import logging
from typing import List

from models.email import EmailRecord, IndexedDocument, IngestionResult
from services.database import EmailStore
from services.exceptions import ConfigurationError, IngestionError, OperationTimeout, UpstreamUnavailable
from services.vector_index import VectorIndexManager

logger = logging.getLogger(__name__)

BATCH_SIZE = 10

# Raised as-is so callers can tell setup and outage errors apart from data errors
PASSTHROUGH_ERRORS = (ConfigurationError, UpstreamUnavailable, OperationTimeout)


def build_document(email: EmailRecord, owner_id: str) -> IndexedDocument:
    """Convert an email into a searchable text unit with metadata"""
    searchable_text = f"{email.subject or 'No Subject'}\n\n{email.snippet or ''}"

    return IndexedDocument(
        page_content=searchable_text,
        metadata={
            "userId": str(owner_id),
            "platform": "email",
            "messageId": email.message_id,
            "from": email.sender.email,
            "subject": email.subject,
            "date": email.date.isoformat(),
            "docId": str(email.id),
        }
    )


class EmailIngestionPipeline:
    """Batches unprocessed emails into the vector index"""

    def __init__(
        self,
        store: EmailStore,
        index_manager: VectorIndexManager,
        batch_size: int = BATCH_SIZE
    ):
        self.store = store
        self.index_manager = index_manager
        self.batch_size = batch_size

    async def ingest_unprocessed(self, owner_id: str, limit: int = 30) -> IngestionResult:
        """
        Index up to `limit` unprocessed emails for `owner_id`.

        Args:
            owner_id: Owning user
            limit: Max emails to pick up in this call

        Returns:
            IngestionResult with processed / found counts

        Raises:
            ConfigurationError: Store or vector index credentials missing
            UpstreamUnavailable: Vector index or embeddings endpoint unreachable
            OperationTimeout: An upstream call ran past its deadline
            IngestionError: Any other failure querying, upserting or flagging
        """
        logger.info(f"Looking for emails to process for user {owner_id[:8]}...")

        try:
            unprocessed = await self.store.find(
                owner_id,
                {"embeddings_generated": False},
                limit=limit
            )
        except PASSTHROUGH_ERRORS:
            raise
        except Exception as e:
            logger.error(f"Failed to query unprocessed emails: {e}")
            raise IngestionError(f"Failed to process emails: {e}") from e

        if not unprocessed:
            logger.info("No new emails to process")
            return IngestionResult(
                processed_count=0,
                total_found=0,
                message="All emails are already processed!"
            )

        logger.info(f"📧 Found {len(unprocessed)} emails to process")

        try:
            index = await self.index_manager.get_or_connect()
        except PASSTHROUGH_ERRORS:
            raise
        except Exception as e:
            logger.error(f"Vector index unavailable: {e}")
            raise IngestionError(f"Failed to process emails: {e}") from e

        total_processed = 0
        batches = self._batches(unprocessed)

        for batch_number, batch in enumerate(batches, 1):
            logger.info(f"Processing batch {batch_number}/{len(batches)} ({len(batch)} emails)...")
            documents = [build_document(email, owner_id) for email in batch]

            try:
                await index.upsert(documents)
                # Flag only after the upsert succeeded
                await self.store.update_many(
                    owner_id,
                    [email.id for email in batch],
                    {"embeddings_generated": True, "processed": True}
                )
            except PASSTHROUGH_ERRORS as e:
                logger.error(
                    f"❌ Batch {batch_number} failed after {total_processed} emails committed: {e}"
                )
                raise
            except Exception as e:
                logger.error(
                    f"❌ Batch {batch_number} failed after {total_processed} emails committed: {e}"
                )
                raise IngestionError(f"Failed to process emails: {e}") from e

            total_processed += len(batch)

        logger.info(f"✅ Successfully processed {total_processed} emails")
        return IngestionResult(
            processed_count=total_processed,
            total_found=len(unprocessed),
            message=f"Successfully processed {total_processed} emails"
        )

    def _batches(self, emails: List[EmailRecord]) -> List[List[EmailRecord]]:
        return [
            emails[i:i + self.batch_size]
            for i in range(0, len(emails), self.batch_size)
        ]
