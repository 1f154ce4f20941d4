"""Typed GitHub operations used by the fetch and review layers.

GitHubHost is the only place that touches PyGithub objects. Every method
fully materialises its result (pagination included) and converts it to the
value types in prwatch_core.models, so a retried call either yields a
complete list or raises, never half a page.

Two operations go through a plain requests.Session rather than PyGithub:
the unified diff (a media type PyGithub does not expose) and raw file
contents addressed by the ``contents_url`` of a changed file.
"""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone

import requests
from github import Auth, Github

from prwatch_core.models import (
    ChangedFile,
    CommentEvent,
    PullRequest,
    Repository,
    ReviewEvent,
    ReviewState,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
_DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
_TIMEOUT_SECONDS = 30


def _aware(value: datetime | None) -> datetime | None:
    # Older PyGithub releases return naive datetimes that are actually UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _login(user) -> str:
    # Deleted accounts come back as None ("ghost").
    return user.login if user is not None else "ghost"


class GitHubHost:
    """Authenticated GitHub access shared read-only by all worker threads."""

    def __init__(self, token: str, base_url: str = DEFAULT_API_URL):
        self._base_url = base_url.rstrip("/")
        # The gateway owns retries; PyGithub's own urllib3 retry is switched off.
        self._gh = Github(auth=Auth.Token(token), base_url=self._base_url, retry=None, lazy=True)
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "User-Agent": "prwatch",
            }
        )

    def _repo(self, repo: Repository):
        return self._gh.get_repo(repo.full_name)

    def _pull(self, repo: Repository, number: int):
        return self._repo(repo).get_pull(number)

    # ------------------------------------------------------------------ #
    # Pull request listing and history                                     #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_pull_request(repo: Repository, pr) -> PullRequest:
        return PullRequest(
            repo=repo,
            number=pr.number,
            title=pr.title or "",
            author=_login(pr.user),
            created_at=_aware(pr.created_at),
            url=pr.html_url,
            is_draft=bool(pr.draft),
            description=pr.body,
        )

    def list_open_pulls(self, repo: Repository) -> list[PullRequest]:
        return [self._to_pull_request(repo, pr) for pr in self._repo(repo).get_pulls(state="open")]

    def get_pull(self, repo: Repository, number: int) -> PullRequest:
        return self._to_pull_request(repo, self._pull(repo, number))

    def list_reviews(self, repo: Repository, number: int) -> list[ReviewEvent]:
        return [
            ReviewEvent(
                reviewer=_login(review.user),
                submitted_at=_aware(review.submitted_at),
                state=ReviewState.from_api(review.state),
            )
            for review in self._pull(repo, number).get_reviews()
        ]

    def list_review_comments(self, repo: Repository, number: int) -> list[CommentEvent]:
        return [
            CommentEvent(author=_login(c.user), created_at=_aware(c.created_at))
            for c in self._pull(repo, number).get_review_comments()
        ]

    def list_issue_comments(self, repo: Repository, number: int) -> list[CommentEvent]:
        return [
            CommentEvent(author=_login(c.user), created_at=_aware(c.created_at))
            for c in self._repo(repo).get_issue(number).get_comments()
        ]

    # ------------------------------------------------------------------ #
    # Review inputs and output                                             #
    # ------------------------------------------------------------------ #

    def list_changed_files(self, repo: Repository, number: int) -> list[ChangedFile]:
        return [
            ChangedFile(
                filename=f.filename,
                status=f.status,
                additions=f.additions or 0,
                deletions=f.deletions or 0,
                contents_url=f.contents_url,
            )
            for f in self._pull(repo, number).get_files()
        ]

    def verify_access(self, repo: Repository) -> None:
        """Read one repository so a bad token or missing repo fails before any fan-out."""
        response = self._session.get(
            f"{self._base_url}/repos/{repo.full_name}",
            headers={"Accept": "application/vnd.github+json"},
            timeout=_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        logger.debug("Successfully authenticated and accessed %s", repo.full_name)

    def get_diff(self, repo: Repository, number: int) -> str:
        response = self._session.get(
            f"{self._base_url}/repos/{repo.full_name}/pulls/{number}",
            headers={"Accept": _DIFF_MEDIA_TYPE},
            timeout=_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response.text

    def get_file_content(self, contents_url: str) -> str:
        """Fetch a file through the contents API and return it decoded as text."""
        response = self._session.get(
            contents_url,
            headers={"Accept": "application/vnd.github+json"},
            timeout=_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        payload = response.json()
        raw = base64.b64decode(payload.get("content") or "")
        return raw.decode("utf-8", errors="replace")

    def create_review(self, repo: Repository, number: int, body: str, event: str = "COMMENT") -> None:
        self._pull(repo, number).create_review(body=body, event=event)
        logger.debug("Posted %s review on %s#%d", event, repo.full_name, number)

    def close(self) -> None:
        self._session.close()
        self._gh.close()
