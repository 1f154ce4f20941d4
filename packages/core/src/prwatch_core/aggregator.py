"""Fan-out of RepoFetcher across every configured repository.

This is the one place the repository-level failure policy is decided: a
repository whose fetch raises ApiError (retries exhausted, not found,
unauthorised) is logged, recorded in AggregateResult.failures and skipped.
The remaining repositories are still reported.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from prwatch_core.errors import ApiError
from prwatch_core.gh.fetcher import RepoFetcher
from prwatch_core.models import PullRequest, Repository

if TYPE_CHECKING:
    from prwatch_core.config import Configuration

logger = logging.getLogger(__name__)


@dataclass
class AggregateResult:
    pull_requests: list[PullRequest] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)  # repo full name → error message


class ConcurrentAggregator:
    def __init__(self, fetcher: RepoFetcher):
        self._fetcher = fetcher

    def fetch_all(self, repos: list[Repository], config: Configuration) -> AggregateResult:
        """Fetch every repository, at most ``config.worker_count`` at a time.

        Each worker returns its own complete list; lists are concatenated on
        the calling thread once the future resolves, so no partially enriched
        pull request is ever visible.
        """
        result = AggregateResult()
        workers = min(config.worker_count, len(repos))
        if workers == 0:
            return result

        def fetch_one(repo: Repository) -> list[PullRequest]:
            return self._fetcher.fetch(repo, config.developers, config.include_drafts)

        if workers == 1:
            logger.info("Fetching PRs from %d repositories sequentially", len(repos))
            for repo in repos:
                self._collect(result, repo, lambda: fetch_one(repo))
            return result

        logger.info("Fetching PRs from %d repositories using %d threads", len(repos), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="prwatch-fetch") as executor:
            futures = {executor.submit(fetch_one, repo): repo for repo in repos}
            for future in as_completed(futures):
                self._collect(result, futures[future], future.result)
        return result

    @staticmethod
    def _collect(result: AggregateResult, repo: Repository, get) -> None:
        try:
            pulls = get()
        except ApiError as e:
            logger.error("Skipping %s: %s", repo, e.message)
            result.failures[repo.full_name] = e.message
            return
        logger.debug("%s: %d matching PRs", repo, len(pulls))
        result.pull_requests.extend(pulls)
