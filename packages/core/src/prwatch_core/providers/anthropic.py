from __future__ import annotations

from anthropic import Anthropic
from anthropic.types import TextBlock

from prwatch_core.providers.base import BaseProvider


class ClaudeProvider(BaseProvider):
    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(self, api_key: str):
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, prompt: str, model: str) -> str | None:
        response = self.client.messages.create(
            model=model or self.DEFAULT_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
