"""
Email data models
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class EmailAddress(BaseModel):
    """Sender / recipient entry"""
    email: str
    name: Optional[str] = None


class EmailRecord(BaseModel):
    """Row of the Supabase `emails` table (populated by the Gmail sync job)"""
    id: str
    user_id: str
    message_id: str
    thread_id: Optional[str] = None
    sender: EmailAddress
    recipients: List[EmailAddress] = Field(default_factory=list)
    subject: Optional[str] = None
    body: Optional[str] = None
    snippet: Optional[str] = None
    date: datetime
    is_read: bool = False
    is_starred: bool = False
    is_important: bool = False
    processed: bool = False
    embeddings_generated: bool = False
    priority: Optional[str] = None
    sentiment: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "7d3c1f0e-2a4b-4f7e-9c1d-0b5e8a6f2c11",
            "user_id": "b1a9e6c2-5d44-4c0a-8f3e-2e7d9c4b6a10",
            "message_id": "18c2f4a9d1e0b7aa",
            "sender": {"email": "ana@x.com", "name": "Ana"},
            "subject": "Q4 Planning Meeting",
            "snippet": "Can we move the planning meeting to Thursday?",
            "date": "2025-01-15T10:30:00Z",
        }
    })


class IndexedDocument(BaseModel):
    """Text unit stored in the vector index, with its metadata"""
    page_content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RetrievalResult(BaseModel):
    """Uniform shape for structured, semantic and fallback retrieval"""
    model_config = ConfigDict(populate_by_name=True)

    type: str = "email"
    from_: str = Field("Unknown", alias="from")
    subject: str = "No subject"
    snippet: str = ""
    date: datetime
    content: str = ""


class Answer(BaseModel):
    """Grounded answer returned to the caller"""
    model_config = ConfigDict(populate_by_name=True)

    answer: str
    sources: List[RetrievalResult] = Field(default_factory=list)
    found_relevant_emails: bool = Field(False, alias="foundRelevantEmails")


class IngestionResult(BaseModel):
    """Outcome of one ingestion run"""
    processed_count: int
    total_found: int
    message: str


class ReplyDraft(BaseModel):
    """AI-drafted reply to a single email"""
    subject: str
    body: str
    to: List[str]
