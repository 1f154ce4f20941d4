"""report command: aggregate open PRs, analyze feedback, optionally AI-review."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from prwatch_core.aggregator import ConcurrentAggregator
from prwatch_core.errors import AIReviewError, ApiError
from prwatch_core.gh.client import GitHubHost
from prwatch_core.gh.fetcher import RepoFetcher
from prwatch_core.gh.gateway import RetryingApiGateway
from prwatch_core.reviewer import AIReviewOrchestrator, ConcurrentReviewDispatcher
from prwatch_cli.report import Reporter
from prwatch_cli.settings import load_settings

console = Console(highlight=False)


def _print_review_outcomes(results) -> None:
    posted = [r for r in results if r.posted]
    failed = [r for r in results if r.error]
    console.print(f"\n[green]AI review posted on {len(posted)} PR(s).[/green]")
    for r in failed:
        console.print(f"  [red]{escape(r.repo)}#{r.pr_number}: {escape(r.error)}[/red]")


@click.command("report")
@click.option("--ai-review/--no-ai-review", "ai_review", default=None, help="Run AI review on every listed PR.")
@click.option("--dry-run", is_flag=True, help="Generate AI reviews but print them instead of posting.")
@click.option("--output", "-o", "output_file", default=None, help="Write the report to this file.")
@click.option("--include-drafts", is_flag=True, help="Include draft pull requests.")
@click.option("--threads", type=int, default=None, help="Number of repositories fetched in parallel.")
@click.option("--sequential", is_flag=True, help="Fetch repositories one at a time.")
@click.pass_context
def report_cmd(
    ctx,
    ai_review: bool | None,
    dry_run: bool,
    output_file: str | None,
    include_drafts: bool,
    threads: int | None,
    sequential: bool,
):
    """List open pull requests from watched developers with reviewer feedback.

    \b
    Environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI / `token` in prwatch.yml)
      OPENAI_API_KEY       Required with ai_review.provider: openai
      ANTHROPIC_API_KEY    Required with ai_review.provider: claude
    """
    config = load_settings(
        ctx.obj["config_path"],
        overrides={
            "ai_review.enabled": ai_review,
            "ai_review.dry_run": True if dry_run else None,
            "output_file": output_file,
            "include_drafts": True if include_drafts else None,
            "parallel_threads": threads,
            "parallel": False if sequential else None,
        },
    )

    host = GitHubHost(config.token)
    ctx.call_on_close(host.close)
    gateway = RetryingApiGateway(config.retry_count, config.retry_delay)

    orchestrator = None
    if config.ai_review.enabled:
        try:
            orchestrator = AIReviewOrchestrator(config, host, gateway)
        except AIReviewError as e:
            raise click.ClickException(str(e))

    console.print("[cyan]Monitoring repositories:[/cyan]")
    for repo in config.repos:
        console.print(f"  - {escape(repo)}")
    console.print("[cyan]Monitoring developers:[/cyan]")
    for dev in config.developers:
        console.print(f"  - {escape(dev)}")

    repos = config.repositories
    try:
        gateway.execute(lambda: host.verify_access(repos[0]), f"verifying access to {repos[0]}")
    except ApiError as e:
        raise click.ClickException(f"Cannot access GitHub: {e}. Check the token and its permissions.")

    console.print("\n[cyan]Fetching pull requests...[/cyan]\n")

    result = ConcurrentAggregator(RepoFetcher(host, gateway)).fetch_all(repos, config)

    if not result.pull_requests and not result.failures:
        console.print("[yellow]No open pull requests found for the specified developers.[/yellow]")
        if not config.output_file:
            return

    if orchestrator is not None and result.pull_requests:
        dispatcher = ConcurrentReviewDispatcher(orchestrator, config.ai_review.concurrent_reviews)
        _print_review_outcomes(dispatcher.review_all(result.pull_requests))

    Reporter(config, console).generate(result.pull_requests, result.failures)

    if len(result.failures) == len(repos):
        raise click.ClickException(f"All {len(repos)} repositories failed to fetch.")
