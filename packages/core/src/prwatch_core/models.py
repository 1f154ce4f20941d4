"""Value types passed between the fetch, analysis and review layers.

Every type here is a frozen dataclass: a PullRequest is built once per fetch
cycle and enrichment produces a new value rather than mutating the old one,
so worker threads can hand results to the merge step without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from prwatch_core.errors import ConfigurationError


class ReviewState(str, Enum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"

    @classmethod
    def from_api(cls, value: str | None) -> ReviewState:
        # Unknown provider states count as a plain comment.
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.COMMENTED


class FeedbackStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"
    UNAVAILABLE = "unavailable"


class FeedbackSource(str, Enum):
    REVIEW = "review"
    COMMENT = "comment"
    NONE = "none"


class FileCategory(str, Enum):
    RUBY = "ruby"
    JAVASCRIPT = "javascript"
    DATABASE = "database"
    SECURITY_SENSITIVE = "security_sensitive"
    TEST = "test"


@dataclass(frozen=True)
class Repository:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> Repository:
        """Build a Repository from an ``owner/name`` string."""
        parts = value.strip().split("/") if value else []
        if len(parts) != 2 or not all(parts):
            raise ConfigurationError(f"Invalid repository {value!r}: expected 'owner/name'.")
        return cls(owner=parts[0], name=parts[1])

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class ReviewEvent:
    reviewer: str
    submitted_at: datetime | None
    state: ReviewState


@dataclass(frozen=True)
class CommentEvent:
    """A line comment or an issue-level comment; the two are not distinguished."""

    author: str
    created_at: datetime


@dataclass(frozen=True)
class ReviewHistory:
    """Reviews and comments on a pull request.

    ``loaded`` is False when the history could not be fetched; the empty
    tuples then mean "unknown", not "no activity".
    """

    reviews: tuple[ReviewEvent, ...] = ()
    comments: tuple[CommentEvent, ...] = ()
    loaded: bool = True


@dataclass(frozen=True)
class PullRequest:
    repo: Repository
    number: int
    title: str
    author: str
    created_at: datetime
    url: str
    is_draft: bool = False
    description: str | None = None
    history: ReviewHistory = field(default_factory=ReviewHistory)

    @property
    def key(self) -> str:
        return f"{self.repo.full_name}#{self.number}"

    @property
    def days_open(self) -> int:
        """Whole days since creation, recomputed on every read."""
        return (datetime.now(timezone.utc) - self.created_at).days


@dataclass(frozen=True)
class FeedbackResult:
    reviewer: str
    delay_days: float | None
    status: FeedbackStatus
    source_type: FeedbackSource


@dataclass(frozen=True)
class ChangedFile:
    filename: str
    status: str  # "added" | "modified" | "removed" | "renamed"
    additions: int = 0
    deletions: int = 0
    contents_url: str | None = None


@dataclass(frozen=True)
class AIReviewResult:
    template_name: str
    generated_text: str


@dataclass
class PostedReviewResult:
    """Outcome of one pull request's AI review, returned even on failure."""

    repo: str
    pr_number: int
    posted: bool = False
    templates: tuple[str, ...] = ()
    body: str | None = None
    error: str | None = None
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def succeeded(self) -> bool:
        return self.error is None
