"""Tests for the text report renderer."""

import dataclasses
import io
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from github import GithubException
from rich.console import Console

from prwatch_cli.report import Reporter, format_delay, format_feedback, format_time_ago
from prwatch_core.config import Configuration
from prwatch_core.gh.fetcher import RepoFetcher
from prwatch_core.gh.gateway import RetryingApiGateway
from prwatch_core.models import (
    CommentEvent,
    FeedbackResult,
    FeedbackSource,
    FeedbackStatus,
    PullRequest,
    Repository,
    ReviewEvent,
    ReviewHistory,
    ReviewState,
)


def _config(**changes):
    config = Configuration(token="t", repos=("org/svc", "org/web"), developers=("alice", "bob", "carol"))
    return dataclasses.replace(config, **changes)


def _pr(number, author="alice", days_old=2, repo="svc", reviews=(), comments=()):
    created = datetime.now(timezone.utc) - timedelta(days=days_old, hours=1)
    return PullRequest(
        repo=Repository("org", repo),
        number=number,
        title=f"Change {number}",
        author=author,
        created_at=created,
        url=f"https://github.com/org/{repo}/pull/{number}",
        history=ReviewHistory(reviews=tuple(reviews), comments=tuple(comments)),
    )


def _plain(lines):
    out = io.StringIO()
    console = Console(file=out, no_color=True, highlight=False, width=200)
    for line in lines:
        console.print(line)
    return out.getvalue()


class TestFormatting:
    def test_time_ago(self):
        assert format_time_ago(0) == "opened today"
        assert format_time_ago(1) == "opened yesterday"
        assert format_time_ago(12) == "open for 12 days"

    def test_delay(self):
        assert format_delay(None) == ""
        assert format_delay(0.4) == "within a day"
        assert format_delay(1.5) == "after 1.5 days"
        assert format_delay(3.26) == "after 3.3 days"

    def test_feedback_lines(self):
        def line(status, delay):
            return _plain([format_feedback(FeedbackResult("bob", delay, status, FeedbackSource.REVIEW))]).strip()

        assert line(FeedbackStatus.PENDING, None) == "• bob: pending review"
        assert line(FeedbackStatus.APPROVED, 1.5) == "• bob: approved after 1.5 days"
        assert line(FeedbackStatus.CHANGES_REQUESTED, 0.2) == "• bob: requested changes within a day"
        assert line(FeedbackStatus.COMMENTED, 2.0) == "• bob: commented after 2.0 days"

    def test_reviewer_names_are_escaped(self):
        feedback = FeedbackResult("[bot]", None, FeedbackStatus.PENDING, FeedbackSource.NONE)
        assert "[bot]: pending review" in _plain([format_feedback(feedback)])


class TestReporterRender:
    def test_oldest_pull_request_first(self):
        prs = [_pr(1, days_old=1), _pr(2, days_old=9), _pr(3, days_old=4)]
        text = _plain(Reporter(_config()).render(prs))
        assert text.index("org/svc#2:") < text.index("org/svc#3:") < text.index("org/svc#1:")

    def test_summary_counts(self):
        prs = [_pr(1), _pr(2, author="bob", repo="web"), _pr(3, author="bob")]
        text = _plain(Reporter(_config()).render(prs))
        assert "Found 3 open pull requests from monitored developers" in text
        assert "PRs by repository:\n  org/svc: 2\n  org/web: 1" in text
        assert "PRs by developer:\n  alice: 1\n  bob: 2" in text

    def test_single_pull_request_wording(self):
        assert "Found 1 open pull request from" in _plain(Reporter(_config()).render([_pr(1)]))

    def test_stale_pull_requests_listed(self):
        prs = [_pr(1, days_old=45), _pr(2, days_old=5)]
        text = _plain(Reporter(_config()).render(prs))
        assert "PRs older than 30 days:\n  org/svc#1 (45 days old)" in text
        assert "org/svc#2 (5 days old)" not in text

    def test_pull_request_block(self):
        pr = _pr(
            7,
            days_old=3,
            reviews=[ReviewEvent("bob", None, ReviewState.PENDING)],
            comments=[CommentEvent("carol", datetime.now(timezone.utc))],
        )
        text = _plain(Reporter(_config()).render([pr]))
        expected = "org/svc#7: Change 7 by alice (open for 3 days)\n  • bob: pending review\n  • carol: commented"
        assert expected in text
        assert "  URL: https://github.com/org/svc/pull/7" in text

    def test_author_not_listed_as_reviewer(self):
        text = _plain(Reporter(_config()).render([_pr(1, author="carol")]))
        assert "• carol:" not in text
        assert "• alice: pending review" in text

    def test_failures_listed_last(self):
        text = _plain(Reporter(_config()).render([_pr(1)], {"org/web": "404 Not Found"}))
        assert text.rstrip().endswith("Repositories that could not be fetched:\n  - org/web: 404 Not Found")

    def test_empty_report_has_summary_only(self):
        text = _plain(Reporter(_config()).render([]))
        assert "Found 0 open pull requests" in text
        assert "PRs by repository" not in text


class TestReporterGenerate:
    def test_prints_to_console(self):
        out = io.StringIO()
        console = Console(file=out, no_color=True, highlight=False, width=200)
        Reporter(_config(), console).generate([_pr(1)])
        assert "org/svc#1: Change 1 by alice" in out.getvalue()

    def test_saves_plain_text_file(self, tmp_path):
        path = tmp_path / "report.txt"
        out = io.StringIO()
        console = Console(file=out, no_color=True, highlight=False, width=200)
        Reporter(_config(output_file=str(path)), console).generate([_pr(1)], {"org/web": "boom"})

        text = path.read_text(encoding="utf-8")
        assert "org/svc#1: Change 1 by alice (open for 2 days)" in text
        assert "org/web: boom" in text
        assert "[bright_blue]" not in text
        assert "Report saved to" in out.getvalue()
        assert "org/svc#1" not in out.getvalue()


class TestUnavailableReviewData:
    def test_feedback_line(self):
        feedback = FeedbackResult("bob", None, FeedbackStatus.UNAVAILABLE, FeedbackSource.NONE)
        assert _plain([format_feedback(feedback)]).strip() == "• bob: review data unavailable"

    def test_enrichment_failure_not_reported_as_pending(self):
        host = MagicMock()
        host.list_open_pulls.return_value = [_pr(7)]
        host.list_reviews.side_effect = GithubException(403, {"message": "Resource not accessible"}, None)

        prs = RepoFetcher(host, RetryingApiGateway()).fetch(Repository("org", "svc"), ["alice", "bob"])
        text = _plain(Reporter(_config()).render(prs))

        assert "• bob: review data unavailable" in text
        assert "pending review" not in text
