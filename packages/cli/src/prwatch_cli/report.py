"""Human-readable pull request report.

Renders rich markup so the same lines print with colour on a terminal and
as plain text when written to ``output_file``.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Mapping, Sequence

from rich.console import Console
from rich.markup import escape

from prwatch_core.config import Configuration
from prwatch_core.feedback import FeedbackAnalyzer
from prwatch_core.models import FeedbackResult, FeedbackStatus, PullRequest

logger = logging.getLogger(__name__)

STALE_AFTER_DAYS = 30
_RULE = "-" * 50


def format_time_ago(days: int) -> str:
    if days <= 0:
        return "opened today"
    if days == 1:
        return "opened yesterday"
    return f"open for {days} days"


def format_delay(days: float | None) -> str:
    if days is None:
        return ""
    if days < 1:
        return "within a day"
    return f"after {days:.1f} days"


def format_feedback(feedback: FeedbackResult) -> str:
    prefix = f"  • {escape(feedback.reviewer)}: "
    delay = format_delay(feedback.delay_days)
    if feedback.status is FeedbackStatus.UNAVAILABLE:
        return prefix + "[magenta]review data unavailable[/magenta]"
    if feedback.status is FeedbackStatus.PENDING:
        return prefix + "[red]pending review[/red]"
    if feedback.status is FeedbackStatus.APPROVED:
        return prefix + f"[green]approved[/green] [bright_green]{delay}[/bright_green]"
    if feedback.status is FeedbackStatus.CHANGES_REQUESTED:
        return prefix + f"[red]requested changes[/red] [bright_red]{delay}[/bright_red]"
    return prefix + f"[yellow]commented[/yellow] [bright_yellow]{delay}[/bright_yellow]"


class Reporter:
    def __init__(self, config: Configuration, console: Console | None = None):
        self._config = config
        self._console = console or Console(highlight=False)
        self._analyzer = FeedbackAnalyzer()

    def render(self, prs: Sequence[PullRequest], failures: Mapping[str, str] | None = None) -> list[str]:
        """Return the report as a list of rich-markup lines."""
        ordered = sorted(prs, key=lambda pr: pr.days_open, reverse=True)
        lines = self._summary(ordered)
        for pr in ordered:
            lines.extend(self._pull_request(pr))
            lines.append("")
        if failures:
            lines.append("[bold red]Repositories that could not be fetched:[/bold red]")
            lines.extend(f"  - {escape(repo)}: {escape(message)}" for repo, message in sorted(failures.items()))
        return lines

    def generate(self, prs: Sequence[PullRequest], failures: Mapping[str, str] | None = None) -> None:
        lines = self.render(prs, failures)
        if self._config.output_file:
            self._save_to_file(lines)
        else:
            for line in lines:
                self._console.print(line)

    def _summary(self, prs: Sequence[PullRequest]) -> list[str]:
        total = len(prs)
        lines = [
            "[bold]Summary[/bold]",
            f"[cyan]Found {total} open pull request{'s' if total != 1 else ''} from monitored developers[/cyan]",
        ]

        by_repo = Counter(pr.repo.full_name for pr in prs)
        if by_repo:
            lines.append("[bold]PRs by repository:[/bold]")
            lines.extend(f"  {escape(repo)}: {count}" for repo, count in sorted(by_repo.items()))

        by_author = Counter(pr.author for pr in prs)
        if by_author:
            lines.append("[bold]PRs by developer:[/bold]")
            lines.extend(
                f"  {escape(dev)}: {by_author[dev]}" for dev in self._config.developers if by_author.get(dev)
            )

        stale = [pr for pr in prs if pr.days_open > STALE_AFTER_DAYS]
        if stale:
            lines.append(f"[bold yellow]PRs older than {STALE_AFTER_DAYS} days:[/bold yellow]")
            lines.extend(f"[yellow]  {pr.key} ({pr.days_open} days old)[/yellow]" for pr in stale)

        lines.extend([_RULE, ""])
        return lines

    def _pull_request(self, pr: PullRequest) -> list[str]:
        header = (
            f"[bright_blue]{escape(pr.key)}: {escape(pr.title)}[/bright_blue]"
            f"[blue] by {escape(pr.author)}[/blue]"
            f"[yellow] ({format_time_ago(pr.days_open)})[/yellow]"
        )
        lines = [header]
        lines.extend(format_feedback(f) for f in self._analyzer.analyze(pr, self._config.developers))
        lines.append(f"[cyan]  URL: {escape(pr.url)}[/cyan]")
        lines.append(_RULE)
        return lines

    def _save_to_file(self, lines: list[str]) -> None:
        with open(self._config.output_file, "w", encoding="utf-8") as f:
            file_console = Console(file=f, no_color=True, highlight=False, width=200, soft_wrap=True)
            for line in lines:
                file_console.print(line)
        logger.info("Report saved to %s", self._config.output_file)
        self._console.print(f"[green]Report saved to {escape(self._config.output_file)}[/green]")
