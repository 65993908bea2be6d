"""
Vector Index Service

Email embeddings live in a pgvector table inside Supabase, partitioned by
namespace and filtered by owning user on every search.

Architecture:
- OpenAI: text-embedding-3-small vectors (1536 dimensions)
- Supabase: `email_vectors` table + `match_email_vectors` RPC
  (see migrations/init_schema.sql)

Usage:
    manager = VectorIndexManager(api_key, "email_vectors", "inboxiq", url=...)
    index = await manager.get_or_connect()
    await index.upsert(documents)
    matches = await index.similarity_search(question, 5, {"userId": user_id})
"""

import asyncio
import enum
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import openai
from openai import AsyncOpenAI
from supabase import create_client, Client

from models.email import IndexedDocument
from services.exceptions import ConfigurationError, UpstreamUnavailable

logger = logging.getLogger(__name__)

MATCH_FUNCTION = "match_email_vectors"


class SupabaseVectorIndex:
    """Connected handle to the email vector table"""

    def __init__(
        self,
        client: Client,
        embeddings: AsyncOpenAI,
        index_name: str,
        namespace: str,
        embedding_model: str = "text-embedding-3-small"
    ):
        self.client = client
        self.embeddings = embeddings
        self.index_name = index_name
        self.namespace = namespace
        self.embedding_model = embedding_model

    async def _embed(self, texts: List[str]) -> List[List[float]]:
        """Embed texts in a single API call"""
        # Truncate to ~8k tokens (OpenAI limit)
        truncated = [text[:32000] for text in texts]
        try:
            response = await self.embeddings.embeddings.create(
                model=self.embedding_model,
                input=truncated
            )
        except openai.APIConnectionError as e:
            raise UpstreamUnavailable(f"Embedding service unreachable: {e}") from e
        return [item.embedding for item in response.data]

    async def probe(self):
        """Cheap round trip proving the index table is reachable"""
        await asyncio.to_thread(
            lambda: self.client.table(self.index_name).select("doc_id").limit(1).execute()
        )

    async def upsert(self, documents: List[IndexedDocument]) -> int:
        """
        Embed and upsert documents, keyed by (namespace, doc_id).

        Re-upserting a document replaces its row, so repeated ingestion of
        the same email is harmless.

        Returns:
            Number of rows written
        """
        if not documents:
            return 0

        vectors = await self._embed([doc.page_content for doc in documents])
        rows = [
            {
                "namespace": self.namespace,
                "doc_id": doc.metadata["docId"],
                "content": doc.page_content,
                "metadata": doc.metadata,
                "embedding": vector,
            }
            for doc, vector in zip(documents, vectors)
        ]

        result = await asyncio.to_thread(
            lambda: self.client.table(self.index_name)
            .upsert(rows, on_conflict="namespace,doc_id")
            .execute()
        )
        logger.debug(f"Upserted {len(rows)} vectors into {self.index_name}/{self.namespace}")
        return len(result.data)

    async def similarity_search(
        self,
        query: str,
        k: int,
        filter: Dict[str, Any]
    ) -> List[Tuple[IndexedDocument, float]]:
        """
        Nearest-neighbour search restricted to rows whose metadata contains `filter`.

        Args:
            query: Natural language query
            k: Max results
            filter: Metadata containment filter, must include userId

        Returns:
            (document, similarity) pairs, best first
        """
        if "userId" not in filter:
            raise ValueError("similarity_search requires a userId filter")

        [query_embedding] = await self._embed([query])

        result = await asyncio.to_thread(
            lambda: self.client.rpc(
                MATCH_FUNCTION,
                {
                    "query_embedding": query_embedding,
                    "match_count": k,
                    "filter_namespace": self.namespace,
                    "filter_metadata": json.loads(json.dumps(filter, default=str)),
                }
            ).execute()
        )

        matches = [
            (
                IndexedDocument(page_content=row["content"], metadata=row.get("metadata") or {}),
                float(row["similarity"])
            )
            for row in result.data[:k]
        ]
        return matches


class IndexState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"


Connector = Callable[[str, str, str], Awaitable[Any]]


class VectorIndexManager:
    """
    Lazily connects to the vector index and caches the handle for the process.

    Owned by the dependency root (dependencies.py). Once READY, every caller
    gets the same handle. Concurrent callers racing before READY may each
    connect, but all of them return whichever handle was stored first.
    """

    def __init__(
        self,
        api_key: Optional[str],
        index_name: Optional[str],
        namespace: str,
        url: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        embedding_model: str = "text-embedding-3-small",
        connector: Optional[Connector] = None
    ):
        self.api_key = api_key
        self.index_name = index_name
        self.namespace = namespace
        self.url = url
        self.openai_api_key = openai_api_key
        self.embedding_model = embedding_model
        self._connector = connector or self._connect_supabase
        self._handle = None
        self.state = IndexState.DISCONNECTED

    @property
    def is_ready(self) -> bool:
        return self.state is IndexState.READY

    async def get_or_connect(self):
        """
        Return the cached index handle, connecting on first use.

        Raises:
            ConfigurationError: API key or index name missing (no retry)
            UpstreamUnavailable: Index could not be reached
        """
        if self._handle is not None:
            return self._handle

        if not self.api_key or not self.index_name:
            raise ConfigurationError(
                "Vector index is not set up. Add VECTOR_INDEX_API_KEY and VECTOR_INDEX_NAME to .env"
            )

        self.state = IndexState.CONNECTING
        try:
            handle = await self._connector(self.api_key, self.index_name, self.namespace)
        except asyncio.CancelledError:
            # Caller's deadline fired mid-connect
            if self._handle is None:
                self.state = IndexState.DISCONNECTED
            raise
        except Exception as e:
            if self._handle is None:
                self.state = IndexState.DISCONNECTED
            logger.error(f"Failed to connect to vector index '{self.index_name}': {e}")
            if isinstance(e, (ConfigurationError, UpstreamUnavailable)):
                raise
            raise UpstreamUnavailable(f"Vector index unreachable: {e}") from e

        # Another caller may have finished first; converge on its handle
        if self._handle is None:
            self._handle = handle
            logger.info(f"Connected to vector index {self.index_name}/{self.namespace}")
        self.state = IndexState.READY
        return self._handle

    async def _connect_supabase(self, api_key: str, index_name: str, namespace: str) -> SupabaseVectorIndex:
        if not self.url:
            raise ConfigurationError("Vector index URL is not set. Add VECTOR_INDEX_URL or SUPABASE_URL to .env")
        if not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is required for embeddings")

        client = await asyncio.to_thread(create_client, self.url, api_key)
        index = SupabaseVectorIndex(
            client=client,
            embeddings=AsyncOpenAI(api_key=self.openai_api_key),
            index_name=index_name,
            namespace=namespace,
            embedding_model=self.embedding_model
        )
        await index.probe()
        return index
