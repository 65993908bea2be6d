"""
Dependency root: builds the process-wide services and exposes FastAPI providers
"""

from typing import Optional
from fastapi import HTTPException, status

from config import Settings, settings as default_settings
from services.answer import AnswerComposer
from services.database import DatabaseService, EmailStore
from services.ingestion import EmailIngestionPipeline
from services.llm import LanguageModelClient
from services.reply import ReplyDrafter
from services.retrieval import RelevanceResolver
from services.vector_index import VectorIndexManager


class ServiceContainer:
    """Wires store, vector index and model into the three core operations"""

    def __init__(
        self,
        store: EmailStore,
        index_manager: VectorIndexManager,
        llm: LanguageModelClient,
        settings: Settings
    ):
        self.store = store
        self.index_manager = index_manager
        self.llm = llm

        self.resolver = RelevanceResolver(
            store,
            index_manager,
            connect_timeout=settings.index_connect_timeout,
            search_timeout=settings.similarity_search_timeout,
            store_timeout=settings.store_query_timeout
        )
        self.ingestion = EmailIngestionPipeline(
            store,
            index_manager,
            batch_size=settings.ingest_batch_size
        )
        self.composer = AnswerComposer(
            self.resolver,
            llm,
            retrieval_timeout=settings.retrieval_timeout,
            answer_timeout=settings.answer_timeout
        )
        self.drafter = ReplyDrafter(llm, reply_timeout=settings.reply_timeout)


def build_container(settings: Settings = default_settings) -> ServiceContainer:
    """Build production services from settings (no network I/O)"""
    store = EmailStore(DatabaseService(settings.supabase_url, settings.supabase_service_key))
    index_manager = VectorIndexManager(
        api_key=settings.resolved_vector_index_api_key,
        index_name=settings.vector_index_name,
        namespace=settings.vector_index_namespace,
        url=settings.resolved_vector_index_url,
        openai_api_key=settings.openai_api_key,
        embedding_model=settings.embedding_model
    )
    llm = LanguageModelClient(
        api_key=settings.openai_api_key,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.answer_timeout
    )
    return ServiceContainer(store, index_manager, llm, settings)


# This will be set by main.py on startup (or by the Celery worker)
_container: Optional[ServiceContainer] = None


def set_container(container: Optional[ServiceContainer]):
    """Called by main.py lifespan to register services"""
    global _container
    _container = container


def get_container() -> ServiceContainer:
    """Dependency for routes to access the service container"""
    if _container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Services not initialized"
        )
    return _container
