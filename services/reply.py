"""
Reply Drafter - AI-written reply to one specific email
"""

import logging
from typing import Optional

from models.email import EmailRecord, ReplyDraft
from services.exceptions import ReplyGenerationError
from services.llm import LanguageModelClient
from services.timeouts import with_timeout

logger = logging.getLogger(__name__)

BODY_CHARS = 500


def build_reply_prompt(email: EmailRecord, extra_context: Optional[str] = None) -> str:
    original = (email.body or email.snippet or "")[:BODY_CHARS]
    context_line = f"Additional context: {extra_context}" if extra_context else ""

    return f"""Write a friendly, professional email reply to this:

From: {email.sender.name or email.sender.email} <{email.sender.email}>
Subject: {email.subject or ''}
Message: {original}

{context_line}

Write ONLY the email body. Keep it concise, warm, and professional."""


class ReplyDrafter:
    """Drafts replies; failures surface to the caller"""

    def __init__(self, llm: LanguageModelClient, reply_timeout: float = 12.0):
        self.llm = llm
        self.reply_timeout = reply_timeout

    async def draft_reply(self, email: EmailRecord, extra_context: Optional[str] = None) -> ReplyDraft:
        """
        Draft a reply to `email`.

        Raises:
            ReplyGenerationError: Model call failed or timed out
        """
        logger.info(f"Generating email reply for message {email.message_id}...")

        try:
            body = await with_timeout(
                self.llm.invoke(build_reply_prompt(email, extra_context)),
                self.reply_timeout,
                "Reply generation took too long"
            )
        except Exception as e:
            logger.error(f"Failed to generate reply: {e}")
            raise ReplyGenerationError(f"Could not generate email reply: {e}") from e

        return ReplyDraft(
            subject=f"Re: {email.subject or ''}",
            body=body.strip(),
            to=[email.sender.email]
        )
