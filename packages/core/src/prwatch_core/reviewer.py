"""AI review orchestration for pull requests."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Sequence

from rich.console import Console
from rich.markdown import Markdown

from prwatch_core.errors import AIReviewError
from prwatch_core.gh.gateway import RetryingApiGateway
from prwatch_core.models import AIReviewResult, ChangedFile, FileCategory, PostedReviewResult, PullRequest
from prwatch_core.providers import get_provider
from prwatch_core.templates import build_prompt, truncate
from prwatch_core.utils.files import categorize_files, determine_templates, has_readable_content

if TYPE_CHECKING:
    from prwatch_core.config import Configuration
    from prwatch_core.gh.client import GitHubHost

console = Console()
logger = logging.getLogger(__name__)

REVIEW_HEADING = "# 🤖 AI Code Review"
DISCLAIMER = "This is an automated review. Please verify all suggestions before implementing."


def compose_review(
    reviews: Sequence[AIReviewResult],
    sensitive_files: Sequence[ChangedFile],
    provider: str,
    model: str,
    generated_at: datetime | None = None,
) -> str:
    """Build the single comment body posted on the pull request."""
    generated_at = generated_at or datetime.now(timezone.utc)
    sections = [
        REVIEW_HEADING,
        f"_Generated at {generated_at.strftime('%Y-%m-%d %H:%M UTC')}_\n_Using {provider} ({model})_",
    ]

    if sensitive_files:
        sections.append(
            "⚠️ **Security-Sensitive Files Modified**\n"
            "Please pay extra attention to these changes:\n" + "\n".join(f"- {f.filename}" for f in sensitive_files)
        )

    for review in reviews:
        sections.append(f"## {review.template_name.capitalize()} Review\n\n{review.generated_text}")

    sections.append(f"---\n{DISCLAIMER}")
    return "\n\n".join(sections) + "\n"


def print_dry_run(pr: PullRequest, body: str) -> None:
    """Print a composed review to the terminal without posting it."""
    console.print(f"\n[bold]Dry run: review for [cyan]{pr.key}[/cyan] (not posted)[/bold]\n")
    console.print(Markdown(body))


class AIReviewOrchestrator:
    """Reviews one pull request end to end: files → prompts → provider → comment.

    The provider is resolved at construction so an unknown provider or a
    missing API key fails before any pull request is touched.
    """

    def __init__(self, config: Configuration, host: GitHubHost, gateway: RetryingApiGateway | None = None):
        self._ai = config.ai_review
        self._host = host
        self._gateway = gateway or RetryingApiGateway(config.retry_count, config.retry_delay)
        self.provider = None
        self.model = None
        if self._ai.enabled:
            self.provider, self.model = get_provider(self._ai)

    @property
    def enabled(self) -> bool:
        return self._ai.enabled

    def review(self, pr: PullRequest, selected_files: Iterable[str] | None = None) -> PostedReviewResult | None:
        """Review pr and post the combined comment.

        Returns None when AI review is disabled. Any failure is logged and
        reported on the returned result; it never propagates, so one pull
        request cannot abort a batch.
        """
        if not self.enabled:
            return None

        logger.info("Starting AI review for %s", pr.key)
        result = PostedReviewResult(repo=pr.repo.full_name, pr_number=pr.number)
        try:
            files = self._gateway.execute(
                lambda: self._host.list_changed_files(pr.repo, pr.number),
                f"listing changed files for {pr.key}",
            )
            if selected_files is not None:
                wanted = set(selected_files)
                files = [f for f in files if f.filename in wanted]
            if not files:
                raise AIReviewError(f"No changed files to review in {pr.key}.")

            categories = categorize_files(files)
            templates = determine_templates(files)
            result.templates = tuple(templates)

            diff = truncate(self._fetch_changes(pr, files), self._ai.max_diff_chars)

            reviews = []
            for name in templates:
                prompt = build_prompt(name, pr, diff, files, self._ai.templates)
                logger.debug("Generating %s review for %s (%d prompt chars)", name, pr.key, len(prompt))
                text = self.provider.generate(prompt, self.model)
                reviews.append(AIReviewResult(template_name=name, generated_text=text))

            result.body = compose_review(
                reviews,
                categories[FileCategory.SECURITY_SENSITIVE],
                self._ai.provider,
                self.model,
            )

            if self._ai.dry_run:
                print_dry_run(pr, result.body)
                return result

            # Posting is not retried: a timed-out POST may still have landed.
            self._host.create_review(pr.repo, pr.number, result.body, event="COMMENT")
            result.posted = True
            logger.info("AI review completed for %s", pr.key)
        except Exception as e:
            logger.error("Error during AI review of %s: %s", pr.key, e, exc_info=True)
            result.error = str(e)
        return result

    def _fetch_changes(self, pr: PullRequest, files: Sequence[ChangedFile]) -> str:
        if self._ai.diff_mode != "files":
            return self._gateway.execute(
                lambda: self._host.get_diff(pr.repo, pr.number),
                f"fetching diff for {pr.key}",
            )

        blocks = []
        for f in files:
            if not has_readable_content(f):
                logger.debug("Skipping content of %s (%s)", f.filename, f.status)
                continue
            content = self._gateway.execute(
                lambda url=f.contents_url: self._host.get_file_content(url),
                f"fetching {f.filename} for {pr.key}",
            )
            blocks.append(f"File: {f.filename}\n{content}")
        if not blocks:
            raise AIReviewError(f"No readable file contents to review in {pr.key}.")
        return "\n\n".join(blocks)


class ConcurrentReviewDispatcher:
    """Runs the orchestrator over many pull requests with a bounded pool."""

    def __init__(self, orchestrator: AIReviewOrchestrator, concurrency: int = 3):
        self._orchestrator = orchestrator
        self._concurrency = concurrency

    def review_all(
        self,
        prs: Sequence[PullRequest],
        selected_files: Iterable[str] | None = None,
    ) -> list[PostedReviewResult]:
        if not self._orchestrator.enabled or not prs:
            return []
        selected = list(selected_files) if selected_files is not None else None

        def review_one(pr: PullRequest) -> PostedReviewResult:
            try:
                return self._orchestrator.review(pr, selected)
            except Exception as e:
                logger.error("AI review worker for %s failed: %s", pr.key, e)
                return PostedReviewResult(repo=pr.repo.full_name, pr_number=pr.number, error=str(e))

        workers = min(self._concurrency, len(prs))
        if workers <= 1:
            return [review_one(pr) for pr in prs]

        logger.info("Reviewing %d PRs with %d concurrent reviews", len(prs), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="prwatch-review") as executor:
            return list(executor.map(review_one, prs))
