"""AI provider registry.

ProviderKind is the closed set of supported backends. Each kind knows the
environment variable its credential comes from; get_provider() turns a kind
plus settings into a ready client. Adding a provider means adding a member
here and one BaseProvider subclass; call sites never branch on the name.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from prwatch_core.errors import AIReviewError
from prwatch_core.providers.anthropic import ClaudeProvider
from prwatch_core.providers.base import BaseProvider
from prwatch_core.providers.openai import OpenAIProvider

if TYPE_CHECKING:
    from prwatch_core.config import AIReviewConfig


class ProviderKind(str, Enum):
    OPENAI = "openai"
    CLAUDE = "claude"

    @classmethod
    def parse(cls, value: str) -> ProviderKind:
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(repr(k.value) for k in cls)
            raise AIReviewError(f"Unknown AI provider: {value!r}. Choose {choices}.") from None

    @property
    def credential_env(self) -> str:
        return _CREDENTIAL_ENV[self]

    @property
    def provider_class(self) -> type[BaseProvider]:
        return _PROVIDER_CLASSES[self]


_CREDENTIAL_ENV = {
    ProviderKind.OPENAI: "OPENAI_API_KEY",
    ProviderKind.CLAUDE: "ANTHROPIC_API_KEY",
}

_PROVIDER_CLASSES: dict[ProviderKind, type[BaseProvider]] = {
    ProviderKind.OPENAI: OpenAIProvider,
    ProviderKind.CLAUDE: ClaudeProvider,
}


def get_provider(ai_config: AIReviewConfig) -> tuple[BaseProvider, str]:
    """Return the configured provider client and the model name to use with it.

    Raises AIReviewError for an unknown provider or a missing credential.
    """
    kind = ProviderKind.parse(ai_config.provider)
    settings = ai_config.settings_for(kind.value)
    if settings is None or not settings.api_key:
        raise AIReviewError(f"{kind.value} API key not configured. Set {kind.credential_env}.")
    return kind.provider_class(api_key=settings.api_key), settings.model


__all__ = ["BaseProvider", "ClaudeProvider", "OpenAIProvider", "ProviderKind", "get_provider"]
