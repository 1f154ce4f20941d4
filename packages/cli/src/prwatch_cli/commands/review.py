"""review command: run AI review on a single pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from prwatch_core.errors import AIReviewError, ApiError, ConfigurationError
from prwatch_core.gh.client import GitHubHost
from prwatch_core.gh.gateway import RetryingApiGateway
from prwatch_core.models import Repository
from prwatch_core.reviewer import AIReviewOrchestrator
from prwatch_cli.settings import load_settings

console = Console(highlight=False)


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option(
    "--pr",
    "pr_number",
    type=int,
    default=None,
    help="Pull request number. Omit to list open PRs interactively.",
)
@click.option(
    "--file",
    "selected_files",
    multiple=True,
    help="Only review this changed file. Repeat for several files.",
)
@click.option(
    "--provider",
    type=click.Choice(["openai", "claude"]),
    default=None,
    help="AI provider. Overrides config file.",
)
@click.option("--dry-run", is_flag=True, help="Print the review instead of posting it.")
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int | None,
    selected_files: tuple[str, ...],
    provider: str | None,
    dry_run: bool,
):
    """Generate an AI code review for one pull request and post it as a comment.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      OPENAI_API_KEY       Required when using --provider openai
      ANTHROPIC_API_KEY    Required when using --provider claude
    """
    config = load_settings(
        ctx.obj["config_path"],
        overrides={
            "ai_review.enabled": True,
            "ai_review.provider": provider,
            "ai_review.dry_run": True if dry_run else None,
        },
        require_targets=False,
    )
    try:
        target = Repository.parse(repo)
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    host = GitHubHost(config.token)
    ctx.call_on_close(host.close)
    gateway = RetryingApiGateway(config.retry_count, config.retry_delay)

    try:
        orchestrator = AIReviewOrchestrator(config, host, gateway)
    except AIReviewError as e:
        raise click.ClickException(str(e))

    try:
        if pr_number is None:
            prs = gateway.execute(lambda: host.list_open_pulls(target), f"listing open PRs for {target}")
            if not prs:
                console.print("[yellow]No open pull requests found.[/yellow]")
                return
            console.print("\nOpen pull requests:")
            for pr in prs:
                console.print(f"  [bold]#{pr.number}[/bold]  {escape(pr.title)}")
            pr_number = click.prompt("\nEnter the pull request number", type=int)

        pr = gateway.execute(lambda: host.get_pull(target, pr_number), f"fetching {target}#{pr_number}")
    except ApiError as e:
        raise click.ClickException(str(e))

    result = orchestrator.review(pr, list(selected_files) or None)

    if result.error:
        raise click.ClickException(f"AI review failed for {pr.key}: {result.error}")
    if result.posted:
        console.print(f"\n[green]AI review posted on {escape(pr.key)} ({', '.join(result.templates)}).[/green]")
