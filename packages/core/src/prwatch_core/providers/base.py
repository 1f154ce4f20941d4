"""Base provider implementing the Template Method pattern.

All providers share the same generation algorithm:
    generate() → _call_with_retry() → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: build and store the SDK client
  - _call_api: make one raw API call and return the text response

Retry and logging live here so every provider behaves the same way when an
upstream model endpoint is flaky.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from prwatch_core.errors import ProviderError

logger = logging.getLogger(__name__)

# Shared defaults; subclasses may override as class attributes.
_MAX_RETRIES = 3
_MAX_TOKENS = 4096
_TEMPERATURE = 0.7


class BaseProvider(ABC):
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS
    TEMPERATURE: float = _TEMPERATURE

    def generate(self, prompt: str, model: str) -> str:
        """Return the model's review text for a fully rendered prompt.

        Raises ProviderError when every attempt failed or the model returned
        nothing, so the caller can abort the review for this pull request.
        """
        text = self._call_with_retry(prompt, model)
        if not text:
            raise ProviderError(f"{self.__class__.__name__} returned an empty response.")
        return text.strip()

    @abstractmethod
    def _call_api(self, prompt: str, model: str) -> str | None:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; _call_with_retry handles retries and logging.
        """

    def _call_with_retry(self, prompt: str, model: str) -> str | None:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(prompt, model)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    raise ProviderError(
                        f"{self.__class__.__name__} failed after {self.MAX_RETRIES} attempts: {e}"
                    ) from e
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        return None
