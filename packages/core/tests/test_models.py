from datetime import datetime, timedelta, timezone

import pytest

from prwatch_core.errors import ConfigurationError
from prwatch_core.models import PostedReviewResult, PullRequest, Repository, ReviewState


class TestRepository:
    def test_parse(self):
        repo = Repository.parse("org/svc")
        assert repo == Repository("org", "svc")
        assert repo.full_name == "org/svc"
        assert str(repo) == "org/svc"

    def test_parse_strips_whitespace(self):
        assert Repository.parse(" org/svc ") == Repository("org", "svc")

    @pytest.mark.parametrize("value", ["", "svc", "org/", "/svc", "a/b/c"])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(ConfigurationError):
            Repository.parse(value)


class TestReviewState:
    def test_known_states(self):
        assert ReviewState.from_api("APPROVED") is ReviewState.APPROVED
        assert ReviewState.from_api("changes_requested") is ReviewState.CHANGES_REQUESTED

    def test_unknown_state_is_commented(self):
        assert ReviewState.from_api("SOMETHING_NEW") is ReviewState.COMMENTED
        assert ReviewState.from_api(None) is ReviewState.COMMENTED


class TestPullRequest:
    def _pr(self, created_at):
        return PullRequest(Repository("org", "svc"), 42, "t", "alice", created_at, "https://x")

    def test_key(self):
        assert self._pr(datetime.now(timezone.utc)).key == "org/svc#42"

    def test_days_open_counts_whole_days(self):
        pr = self._pr(datetime.now(timezone.utc) - timedelta(days=3, hours=5))
        assert pr.days_open == 3

    def test_days_open_zero_for_new_pr(self):
        assert self._pr(datetime.now(timezone.utc) - timedelta(hours=23)).days_open == 0


def test_posted_review_result_succeeded():
    assert PostedReviewResult("org/svc", 1).succeeded
    assert not PostedReviewResult("org/svc", 1, error="boom").succeeded
