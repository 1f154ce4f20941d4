from __future__ import annotations

from openai import OpenAI

from prwatch_core.providers.base import BaseProvider


class OpenAIProvider(BaseProvider):
    DEFAULT_MODEL = "gpt-4-turbo-preview"

    def __init__(self, api_key: str):
        self.client = OpenAI(api_key=api_key)

    def _call_api(self, prompt: str, model: str) -> str | None:
        response = self.client.chat.completions.create(
            model=model or self.DEFAULT_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        return response.choices[0].message.content
