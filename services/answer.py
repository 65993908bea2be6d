"""
Answer Composer

Turns retrieved emails into a prompt, asks the language model, and maps every
failure to a scripted answer. Never raises.
"""

import logging
from datetime import datetime
from typing import List

from models.email import Answer, RetrievalResult
from services.exceptions import UpstreamUnavailable
from services.llm import LanguageModelClient
from services.retrieval import RelevanceResolver
from services.timeouts import with_timeout

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are a helpful, friendly AI assistant helping the user manage their emails.
Be casual, warm, and conversational - like a smart friend.

Here's what I found in their inbox:
{context}

They asked: {question}

Give a helpful, friendly response. Keep it casual and to the point.
If you found relevant emails, mention them naturally (like "I saw an email from..." or "Looks like...").
If nothing's relevant, just say so in a friendly way.

Keep your response under 100 words unless more detail is needed.

Your response:"""

NO_EMAILS_CONTEXT = "No relevant emails found in the inbox."
EMPTY_ANSWER = "I'm having trouble with that. Can you rephrase?"
TIMEOUT_ANSWER = "That's taking longer than expected. Can you try asking in a simpler way? 🤔"
UNREACHABLE_ANSWER = "I can't reach the AI service right now. Please try again in a moment. 🔧"
GENERIC_ANSWER = "Sorry, something went wrong. Want to try again? 😅"

PREVIEW_CHARS = 100


def format_date(value: datetime) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def render_context(emails: List[RetrievalResult]) -> str:
    """Format retrieved emails as numbered blocks for the prompt"""
    if not emails:
        return NO_EMAILS_CONTEXT

    return "\n\n".join(
        f"Email {index}: From {email.from_} on {format_date(email.date)}\n"
        f"   Subject: \"{email.subject}\"\n"
        f"   Preview: {email.snippet[:PREVIEW_CHARS]}..."
        for index, email in enumerate(emails, 1)
    )


def degraded_answer(text: str) -> Answer:
    return Answer(answer=text, sources=[], found_relevant_emails=False)


class AnswerComposer:
    """Answers a question about the user's inbox"""

    def __init__(
        self,
        resolver: RelevanceResolver,
        llm: LanguageModelClient,
        retrieval_timeout: float = 6.0,
        answer_timeout: float = 15.0
    ):
        self.resolver = resolver
        self.llm = llm
        self.retrieval_timeout = retrieval_timeout
        self.answer_timeout = answer_timeout

    async def answer_question(self, owner_id: str, question: str) -> Answer:
        """
        Answer `question` from the owner's emails.

        Returns:
            Answer with sources; a degraded answer with empty sources if
            retrieval or generation timed out or failed
        """
        try:
            logger.info(f"User asked: '{question}'")

            relevant_emails = await with_timeout(
                self.resolver.find_relevant_emails(owner_id, question),
                self.retrieval_timeout,
                "Finding relevant emails took too long"
            )

            prompt = PROMPT_TEMPLATE.format(
                context=render_context(relevant_emails),
                question=question
            )

            logger.info("Asking AI to respond...")
            response = await with_timeout(
                self.llm.invoke(prompt),
                self.answer_timeout,
                "AI response took too long"
            )

            return Answer(
                answer=response.strip() or EMPTY_ANSWER,
                sources=relevant_emails,
                found_relevant_emails=len(relevant_emails) > 0
            )

        except TimeoutError as e:
            logger.error(f"Error getting AI response: {e}")
            return degraded_answer(TIMEOUT_ANSWER)
        except UpstreamUnavailable as e:
            logger.error(f"Error getting AI response: {e}")
            return degraded_answer(UNREACHABLE_ANSWER)
        except Exception as e:
            logger.error(f"Error getting AI response: {e}", exc_info=True)
            return degraded_answer(GENERIC_ANSWER)
