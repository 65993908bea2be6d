"""
Application Configuration
Loads settings from environment variables / .env on startup
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Supabase (document store)
    supabase_url: Optional[str] = Field(None)
    supabase_service_key: Optional[str] = Field(None)

    # Vector index (pgvector table inside Supabase by default)
    vector_index_url: Optional[str] = Field(None)
    vector_index_api_key: Optional[str] = Field(None)
    vector_index_name: Optional[str] = Field("email_vectors")
    vector_index_namespace: str = Field("inboxiq")

    # OpenAI (chat + embeddings)
    openai_api_key: Optional[str] = Field(None)
    llm_model: str = Field("gpt-4o-mini")
    llm_temperature: float = Field(0.8)
    llm_max_tokens: int = Field(200)
    embedding_model: str = Field("text-embedding-3-small")

    # Time budgets (seconds)
    index_connect_timeout: float = Field(3.0)
    similarity_search_timeout: float = Field(5.0)
    retrieval_timeout: float = Field(6.0)
    answer_timeout: float = Field(15.0)
    reply_timeout: float = Field(12.0)
    store_query_timeout: float = Field(2.0)

    # Ingestion
    ingest_batch_size: int = Field(10)
    ingest_default_limit: int = Field(30)

    # Redis (Celery broker and result backend)
    redis_broker_url: str = Field(default="redis://localhost:6379/0")
    redis_result_backend: str = Field(default="redis://localhost:6379/1")

    @field_validator("ingest_batch_size", "ingest_default_limit", "llm_max_tokens")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @property
    def resolved_vector_index_url(self) -> Optional[str]:
        return self.vector_index_url or self.supabase_url

    @property
    def resolved_vector_index_api_key(self) -> Optional[str]:
        return self.vector_index_api_key or self.supabase_service_key


# Global settings instance
settings = Settings()
