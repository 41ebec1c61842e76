"""
Groq API client for the budtender chat.

Wraps the Groq SDK's chat completions with the model, temperature and token
limits from settings. Transient failures are retried by the SDK itself
(`max_retries`); anything still failing is raised to the caller, which decides
whether the user sees an error event or a 5xx.
"""

import logging
from typing import Dict, Iterator, List, Optional

from groq import Groq

from greenleaf.core.config import settings

# NEVER log API keys or full prompts
logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Raised when no Groq API key is configured."""


class GroqClient:
    """
    Thin wrapper around `groq.Groq`.

    - Model: settings.CHAT_MODEL (llama-3.3-70b-versatile by default)
    - Temperature: settings.CHAT_TEMPERATURE
    - Max tokens: settings.CHAT_MAX_TOKENS
    """

    TIMEOUT_SECONDS = 30
    MAX_RETRIES = 2

    def __init__(self, api_key: Optional[str] = None):
        api_key = api_key or settings.GROQ_API_KEY
        self.model = settings.CHAT_MODEL
        self.temperature = settings.CHAT_TEMPERATURE
        self.max_tokens = settings.CHAT_MAX_TOKENS

        if not api_key:
            logger.warning("GROQ_API_KEY not configured. Budtender chat is disabled.")
            self.client = None
        else:
            self.client = Groq(api_key=api_key, timeout=self.TIMEOUT_SECONDS, max_retries=self.MAX_RETRIES)
            logger.info(f"Groq client initialized (model={self.model})")

    def is_available(self) -> bool:
        return self.client is not None

    def _require_client(self):
        if not self.is_available():
            raise LLMUnavailableError("Groq client is not configured")

    def complete(self, messages: List[Dict[str, str]]) -> str:
        """Run one non-streaming completion and return the full reply."""
        self._require_client()
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stream=False,
        )
        if not response.choices:
            logger.warning("LLM returned no choices")
            return ""
        content = response.choices[0].message.content or ""
        logger.debug(f"LLM response received: {len(content)} chars")
        return content

    def stream(self, messages: List[Dict[str, str]]) -> Iterator[str]:
        """Yield the non-empty content deltas of a streaming completion."""
        self._require_client()
        stream = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stream=True,
        )
        chunks = 0
        for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                chunks += 1
                yield content
        logger.debug(f"LLM stream finished: {chunks} chunks")


# Singleton instance
_groq_client: Optional[GroqClient] = None


def get_groq_client() -> GroqClient:
    """Get or create singleton Groq client instance."""
    global _groq_client
    if _groq_client is None:
        _groq_client = GroqClient()
    return _groq_client
