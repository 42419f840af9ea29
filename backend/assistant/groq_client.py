"""
Groq API client for the stock assistant.

The assistant only reads: it receives a snapshot of the inventory and ledger
and returns free text. It never calls back into the database.

One attempt per request. Failures are logged and reported to the caller as
None; the user re-asks if they want another try.
"""

import logging
from typing import Optional

from groq import APIError, APITimeoutError, Groq, RateLimitError

from drugstock.core.config import settings

# Never log API keys
logger = logging.getLogger(__name__)


class GroqClient:
    """
    Minimal wrapper around the Groq chat completions API.

    - Model: settings.GROQ_MODEL
    - Temperature: 0.3 (factual summaries with some phrasing variety)
    - Max tokens: 1024 (markdown reports are a few paragraphs)
    """

    TEMPERATURE = 0.3
    MAX_TOKENS = 1024

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = api_key if api_key is not None else settings.GROQ_API_KEY
        self.model = model or settings.GROQ_MODEL

        if not api_key:
            logger.warning(
                "GROQ_API_KEY not found in environment. "
                "The stock assistant is DISABLED. Add your key to backend/.env."
            )
            self.client = None
        else:
            self.client = Groq(api_key=api_key, timeout=settings.GROQ_TIMEOUT_SECONDS, max_retries=0)
            logger.info("Groq client initialized")

    def is_available(self) -> bool:
        return self.client is not None

    def complete(self, prompt: str, system: Optional[str] = None) -> Optional[str]:
        """Send one chat completion. Returns the text, or None on any error."""
        if not self.is_available():
            return None

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
                stream=False,
            )
        except APITimeoutError:
            logger.warning("Groq API timeout")
            return None
        except RateLimitError:
            logger.warning("Groq API rate limit exceeded")
            return None
        except APIError as e:
            logger.error(f"Groq API error: {e}")
            return None

        if not response.choices:
            logger.warning("LLM returned empty response")
            return None
        content = response.choices[0].message.content or ""
        logger.debug(f"LLM response received: {len(content)} chars")
        return content


_groq_client: Optional[GroqClient] = None


def get_groq_client() -> GroqClient:
    """Get or create the shared GroqClient instance."""
    global _groq_client
    if _groq_client is None:
        _groq_client = GroqClient()
    return _groq_client
