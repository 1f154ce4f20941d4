"""CLI entry point for prwatch.

Commands:
  report   list watched developers' open PRs with reviewer feedback delays,
           optionally running AI review on each of them
  review   run AI review on a single pull request
"""

from __future__ import annotations

import importlib.metadata

import click

from prwatch_cli.commands.report import report_cmd
from prwatch_cli.commands.review import review_cmd


@click.group()
@click.version_option(
    version=importlib.metadata.version("prwatch"),
    prog_name="prwatch",
)
@click.option(
    "--config",
    "config_path",
    default="prwatch.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRWATCH_CONFIG",
)
@click.pass_context
def main(ctx: click.Context, config_path: str):
    """Track open pull requests and reviewer response times across repositories."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(report_cmd)
main.add_command(review_cmd)
