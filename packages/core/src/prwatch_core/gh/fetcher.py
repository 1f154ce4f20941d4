"""Fetches open pull requests for one repository and attaches their history."""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable

from prwatch_core.errors import ApiError
from prwatch_core.gh.client import GitHubHost
from prwatch_core.gh.gateway import RetryingApiGateway
from prwatch_core.models import PullRequest, Repository, ReviewHistory

logger = logging.getLogger(__name__)


def filter_pulls(pulls: Iterable[PullRequest], developers: Iterable[str], include_drafts: bool) -> list[PullRequest]:
    """Drop drafts (unless requested) and pull requests by unwatched authors."""
    watched = set(developers)
    return [pr for pr in pulls if (include_drafts or not pr.is_draft) and pr.author in watched]


class RepoFetcher:
    """Lists, filters and enriches pull requests for a single repository.

    Every remote call goes through the gateway. Listing failures raise
    ApiError naming the repository; enrichment failures are logged and leave
    the pull request with an empty history.
    """

    def __init__(self, host: GitHubHost, gateway: RetryingApiGateway):
        self._host = host
        self._gateway = gateway

    def fetch(self, repo: Repository, developers: Iterable[str], include_drafts: bool = False) -> list[PullRequest]:
        logger.debug("Fetching PRs from %s", repo)
        try:
            pulls = self._gateway.execute(
                lambda: self._host.list_open_pulls(repo),
                f"listing open PRs for {repo}",
            )
        except ApiError as e:
            e.resource = repo.full_name
            raise

        filtered = filter_pulls(pulls, developers, include_drafts)
        logger.debug("Found %d of %d open PRs from tracked developers in %s", len(filtered), len(pulls), repo)

        return [self._enrich(pr) for pr in filtered]

    def _enrich(self, pr: PullRequest) -> PullRequest:
        logger.debug("Loading review data for %s", pr.key)
        try:
            reviews = self._gateway.execute(
                lambda: self._host.list_reviews(pr.repo, pr.number),
                f"listing reviews for {pr.key}",
            )
            line_comments = self._gateway.execute(
                lambda: self._host.list_review_comments(pr.repo, pr.number),
                f"listing review comments for {pr.key}",
            )
            issue_comments = self._gateway.execute(
                lambda: self._host.list_issue_comments(pr.repo, pr.number),
                f"listing issue comments for {pr.key}",
            )
        except ApiError as e:
            logger.error("Error fetching review data for %s: %s", pr.key, e)
            return dataclasses.replace(pr, history=ReviewHistory(loaded=False))

        logger.debug(
            "Fetched %d reviews, %d PR comments, %d issue comments for %s",
            len(reviews),
            len(line_comments),
            len(issue_comments),
            pr.key,
        )
        history = ReviewHistory(reviews=tuple(reviews), comments=tuple(line_comments) + tuple(issue_comments))
        return dataclasses.replace(pr, history=history)
