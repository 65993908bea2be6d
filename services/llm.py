"""
Language model client (OpenAI chat completions)
"""

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from services.exceptions import ConfigurationError, OperationTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)


class LanguageModelClient:
    """Single-prompt text generation with network-level timeout"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        temperature: float = 0.8,
        max_tokens: int = 200,
        timeout: float = 15.0
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    async def invoke(self, prompt: str) -> str:
        """
        Send one user prompt and return the completion text.

        Raises:
            OperationTimeout: Request timed out at the HTTP layer
            UpstreamUnavailable: Connection refused / network failure
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        # APITimeoutError subclasses APIConnectionError
        except openai.APITimeoutError as e:
            raise OperationTimeout(f"Language model timed out after {self.timeout}s") from e
        except openai.APIConnectionError as e:
            logger.error(f"Cannot reach language model: {e}")
            raise UpstreamUnavailable(f"Language model unreachable: {e}") from e

        return response.choices[0].message.content or ""
