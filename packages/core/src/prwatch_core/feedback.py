"""Per-reviewer feedback delay for a pull request.

A formal review is a verdict, so the most recent one reflects what the
reviewer currently thinks: the latest review wins. A comment only shows the
reviewer engaged, so for reviewers who never reviewed, the earliest comment
is what measures responsiveness.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from prwatch_core.models import (
    FeedbackResult,
    FeedbackSource,
    FeedbackStatus,
    PullRequest,
    ReviewState,
)

_SECONDS_PER_DAY = 60 * 60 * 24

_STATUS_BY_STATE = {
    ReviewState.APPROVED: FeedbackStatus.APPROVED,
    ReviewState.CHANGES_REQUESTED: FeedbackStatus.CHANGES_REQUESTED,
}


def delay_in_days(start: datetime, end: datetime) -> float:
    return round((end - start).total_seconds() / _SECONDS_PER_DAY, 2)


class FeedbackAnalyzer:
    """Pure analysis over an enriched PullRequest; performs no I/O."""

    def analyze(self, pr: PullRequest, developers: Iterable[str]) -> list[FeedbackResult]:
        return [self.analyze_reviewer(pr, reviewer) for reviewer in developers if reviewer != pr.author]

    def analyze_reviewer(self, pr: PullRequest, reviewer: str) -> FeedbackResult:
        if not pr.history.loaded:
            return FeedbackResult(
                reviewer=reviewer,
                delay_days=None,
                status=FeedbackStatus.UNAVAILABLE,
                source_type=FeedbackSource.NONE,
            )

        reviews = [r for r in pr.history.reviews if r.reviewer == reviewer and r.submitted_at is not None]
        if reviews:
            # max() keeps the first of equal timestamps, so ties resolve by input order.
            latest = max(reviews, key=lambda r: r.submitted_at)
            return FeedbackResult(
                reviewer=reviewer,
                delay_days=delay_in_days(pr.created_at, latest.submitted_at),
                status=_STATUS_BY_STATE.get(latest.state, FeedbackStatus.COMMENTED),
                source_type=FeedbackSource.REVIEW,
            )

        comments = [c for c in pr.history.comments if c.author == reviewer]
        if comments:
            first = min(comments, key=lambda c: c.created_at)
            return FeedbackResult(
                reviewer=reviewer,
                delay_days=delay_in_days(pr.created_at, first.created_at),
                status=FeedbackStatus.COMMENTED,
                source_type=FeedbackSource.COMMENT,
            )

        return FeedbackResult(
            reviewer=reviewer,
            delay_days=None,
            status=FeedbackStatus.PENDING,
            source_type=FeedbackSource.NONE,
        )
