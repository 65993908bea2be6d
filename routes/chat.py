"""
Chat routes: question answering, reply drafting, unread summary
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from dependencies import ServiceContainer, get_container
from services.exceptions import ReplyGenerationError
from services.heuristics import analyze_sentiment, check_if_urgent

logger = logging.getLogger(__name__)
router = APIRouter()


class QueryRequest(BaseModel):
    """Request body for a question about the inbox"""
    user_id: str
    message: str


class DraftRequest(BaseModel):
    """Request body for drafting a reply"""
    user_id: str
    email_id: str
    context: Optional[str] = None


@router.post("/chat/query")
async def query_emails(
    request: QueryRequest,
    services: ServiceContainer = Depends(get_container)
):
    """
    Answer a natural language question using the user's emails.

    Returns:
        {"answer": "...", "sources": [...], "foundRelevantEmails": bool, "timestamp": "..."}
    """
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    result = await services.composer.answer_question(request.user_id, request.message)

    return {
        **result.model_dump(mode="json", by_alias=True),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.post("/chat/draft-email")
async def draft_email(
    request: DraftRequest,
    services: ServiceContainer = Depends(get_container)
):
    """Draft a reply to one of the user's emails"""
    try:
        email = await services.store.find_by_id(request.user_id, request.email_id)
        if email is None:
            raise HTTPException(status_code=404, detail="Email not found")

        draft = await services.drafter.draft_reply(email, request.context)

        return {
            "draft": draft.model_dump(),
            "message": "Draft created successfully."
        }

    except HTTPException:
        raise
    except ReplyGenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Error drafting email: {e}")
        raise HTTPException(status_code=500, detail="Failed to draft email")


@router.get("/chat/unread")
async def unread_summary(
    user_id: str = Query(...),
    limit: int = Query(20, ge=1, le=100),
    services: ServiceContainer = Depends(get_container)
):
    """Unread emails, newest first, tagged with priority and sentiment"""
    try:
        emails = await services.store.find(
            user_id,
            {"is_read": False},
            order_by="date",
            descending=True,
            limit=limit
        )
    except Exception as e:
        logger.error(f"Error getting unread emails: {e}")
        raise HTTPException(status_code=500, detail="Failed to get unread emails")

    return {
        "count": len(emails),
        "emails": [
            {
                "id": email.id,
                "from": email.sender.model_dump(),
                "subject": email.subject,
                "snippet": email.snippet,
                "date": email.date.isoformat(),
                "priority": check_if_urgent(f"{email.subject or ''} {email.snippet or ''}"),
                "sentiment": analyze_sentiment(f"{email.subject or ''} {email.snippet or ''}"),
            }
            for email in emails
        ]
    }
