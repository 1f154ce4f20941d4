"""Error taxonomy shared by every prwatch layer.

ConfigurationError and AIReviewError are fatal and raised before any fetch
begins. ApiError is raised by the gateway and carries enough detail for the
aggregator to decide whether to skip the item or abort.
"""

from __future__ import annotations


class PRWatchError(Exception):
    """Base class for all prwatch errors."""


class ConfigurationError(PRWatchError):
    """Missing or invalid configuration (token, repos, developers, provider)."""


class ApiError(PRWatchError):
    """A source-hosting API call failed.

    ``transient`` is True when the call was retried until the retry budget ran
    out (network error, rate limit, 5xx) and False when the failure was final
    on first sight (bad credentials, missing resource).
    """

    def __init__(self, message: str, *, transient: bool, attempts: int = 1, resource: str | None = None):
        super().__init__(message)
        self.message = message
        self.transient = transient
        self.attempts = attempts
        self.resource = resource

    def __str__(self) -> str:
        if self.resource:
            return f"{self.resource}: {self.message}"
        return self.message


class AIReviewError(PRWatchError):
    """AI review misconfiguration or an AI provider that kept failing."""


class ProviderError(AIReviewError):
    """An AI provider call failed on every attempt."""
