"""Configuration and logging bootstrap shared by every command."""

from __future__ import annotations

import dataclasses
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prwatch_core.config import Configuration, load_config, validate_config
from prwatch_core.errors import ConfigurationError
from prwatch_cli.auth import resolve_github_token

_LOG_FORMAT = "%(message)s"


def configure_logging(level: int) -> None:
    """Route all prwatch logging through a single rich handler on stderr."""
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    # PyGithub and urllib3 are chatty at DEBUG; keep them at WARNING unless asked.
    for noisy in ("github", "urllib3"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))


def load_settings(config_path: str, overrides: dict | None = None, require_targets: bool = True) -> Configuration:
    """Load, resolve the token for, and validate configuration.

    Fatal configuration problems become click.ClickException so the process
    exits non-zero with a readable message before any network call.
    """
    try:
        config = load_config(config_path, cli_overrides=overrides)
        token = resolve_github_token(config.token)
        if token != config.token:
            config = dataclasses.replace(config, token=token)
        configure_logging(config.logging_level)
        return validate_config(config, require_targets=require_targets)
    except ConfigurationError as e:
        raise click.ClickException(f"Configuration error: {e}")
