"""Bounded retry around a single GitHub API call.

The loop has three exits, each testable on its own:
  - success           → the operation's value is returned
  - non-transient     → ApiError(transient=False) raised on the first failure
  - retries exhausted → ApiError(transient=True) raised after retry_count + 1 attempts

Backoff is linear: the sleep before attempt n + 1 is ``retry_delay * n``.
Sleeping happens on the calling worker thread; there is no shared timer.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

import requests
from github import GithubException, RateLimitExceededException

from prwatch_core.errors import ApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_STATUSES = {408, 429}


def _status_of(exc: Exception) -> int | None:
    if isinstance(exc, GithubException):
        return exc.status
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code
    return None


def is_transient(exc: Exception) -> bool:
    """Return True for failures likely to succeed on retry.

    Network errors, rate limiting and 5xx responses are transient. Everything
    else with a status code (401, 403, 404, 422, ...) is final.
    """
    if isinstance(exc, RateLimitExceededException):
        return True
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    status = _status_of(exc)
    if status is None:
        # PyGithub wraps connection failures without a status in some versions.
        return isinstance(exc, requests.RequestException)
    if status == 403 and isinstance(exc, GithubException) and "rate limit" in str(exc.data).lower():
        return True
    return status in _TRANSIENT_STATUSES or status >= 500


def _describe(exc: Exception) -> str:
    if isinstance(exc, GithubException):
        message = exc.data.get("message") if isinstance(exc.data, dict) else None
        return f"{exc.status} {message or exc.__class__.__name__}"
    return str(exc) or exc.__class__.__name__


class RetryingApiGateway:
    """Run API calls with linear backoff on transient failures."""

    def __init__(self, retry_count: int = 3, retry_delay: float = 2):
        self.retry_count = retry_count
        self.retry_delay = retry_delay

    def execute(self, operation: Callable[[], T], description: str = "GitHub API call") -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return operation()
            except (GithubException, requests.RequestException) as e:
                if not is_transient(e):
                    raise ApiError(
                        f"{description} failed: {_describe(e)}",
                        transient=False,
                        attempts=attempt,
                    ) from e
                if attempt > self.retry_count:
                    raise ApiError(
                        f"{description} failed after {self.retry_count} retries: {_describe(e)}",
                        transient=True,
                        attempts=attempt,
                    ) from e
                delay = self.retry_delay * attempt
                logger.warning(
                    "API error during %s: %s. Retry %d/%d in %ss",
                    description,
                    _describe(e),
                    attempt,
                    self.retry_count,
                    delay,
                )
                time.sleep(delay)
