from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from prwatch_core.errors import AIReviewError, ConfigurationError
from prwatch_core.models import Repository

DEFAULT_CONFIG: dict = {
    "token": None,
    "repos": [],
    "developers": [],
    "include_drafts": False,
    "retry_count": 3,
    "retry_delay": 2,
    "log_level": "info",
    "parallel": True,  # False = fetch repositories one at a time
    "parallel_threads": 4,
    "output_file": None,
    "ai_review": {
        "enabled": False,
        "provider": "openai",
        "concurrent_reviews": 3,
        "diff_mode": "diff",  # "diff" = unified diff, "files" = full content of each changed file
        "max_diff_chars": 12000,
        "dry_run": False,
        "templates": {},
        "openai": {"model": "gpt-4-turbo-preview", "api_key": None},
        "claude": {"model": "claude-sonnet-4-20250514", "api_key": None},
    },
}

LOG_LEVELS = ("debug", "info", "warning", "warn", "error", "critical")
DIFF_MODES = ("diff", "files")


@dataclass(frozen=True)
class ProviderSettings:
    model: str
    api_key: str | None = None


@dataclass(frozen=True)
class AIReviewConfig:
    enabled: bool = False
    provider: str = "openai"
    concurrent_reviews: int = 3
    diff_mode: str = "diff"
    max_diff_chars: int = 12000
    dry_run: bool = False
    templates: dict[str, str] = field(default_factory=dict)
    openai: ProviderSettings = field(default_factory=lambda: ProviderSettings(model="gpt-4-turbo-preview"))
    claude: ProviderSettings = field(default_factory=lambda: ProviderSettings(model="claude-sonnet-4-20250514"))

    def settings_for(self, provider: str) -> ProviderSettings | None:
        return {"openai": self.openai, "claude": self.claude}.get(provider)


@dataclass(frozen=True)
class Configuration:
    """Resolved, immutable settings shared read-only by every worker."""

    token: str | None
    repos: tuple[str, ...]
    developers: tuple[str, ...]
    include_drafts: bool = False
    retry_count: int = 3
    retry_delay: float = 2
    log_level: str = "info"
    parallel: bool = True
    parallel_threads: int = 4
    output_file: str | None = None
    ai_review: AIReviewConfig = field(default_factory=AIReviewConfig)

    @property
    def worker_count(self) -> int:
        """Thread count for repository fetching; 1 when parallelism is off."""
        return self.parallel_threads if self.parallel else 1

    @property
    def repositories(self) -> list[Repository]:
        return [Repository.parse(r) for r in self.repos]

    @property
    def logging_level(self) -> int:
        level = self.log_level.upper()
        return logging.WARNING if level == "WARN" else getattr(logging, level, logging.INFO)


def _deep_merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: str = "prwatch.yml", cli_overrides: Optional[dict] = None) -> Configuration:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. prwatch.yml in the current directory
      3. CLI argument overrides

    ``cli_overrides`` may use dotted keys (``"ai_review.enabled"``) to reach
    nested settings. Values of None are ignored. The result is not validated;
    call validate_config() once the token has been resolved.
    """
    raw = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping of settings.")
        raw = _deep_merge(raw, file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is None:
                continue
            target = raw
            *parents, leaf = key.split(".")
            for parent in parents:
                target = target.setdefault(parent, {})
            target[leaf] = value

    # Resolve credentials from environment variables
    raw["token"] = raw.get("token") or os.environ.get("GITHUB_TOKEN")
    ai = raw["ai_review"]
    ai["openai"]["api_key"] = ai["openai"].get("api_key") or os.environ.get("OPENAI_API_KEY")
    # The Claude key is only ever read from the environment.
    ai["claude"]["api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    return _from_dict(raw)


def _from_dict(raw: dict) -> Configuration:
    ai = raw.get("ai_review") or {}
    try:
        ai_review = AIReviewConfig(
            enabled=bool(ai.get("enabled", False)),
            provider=str(ai.get("provider", "openai")),
            concurrent_reviews=int(ai.get("concurrent_reviews", 3)),
            diff_mode=str(ai.get("diff_mode", "diff")),
            max_diff_chars=int(ai.get("max_diff_chars", 12000)),
            dry_run=bool(ai.get("dry_run", False)),
            templates=dict(ai.get("templates") or {}),
            openai=ProviderSettings(**(ai.get("openai") or {})),
            claude=ProviderSettings(**(ai.get("claude") or {})),
        )
        return Configuration(
            token=raw.get("token"),
            repos=tuple(raw.get("repos") or ()),
            developers=tuple(raw.get("developers") or ()),
            include_drafts=bool(raw.get("include_drafts", False)),
            retry_count=int(raw.get("retry_count", 3)),
            retry_delay=float(raw.get("retry_delay", 2)),
            log_level=str(raw.get("log_level", "info")).lower(),
            parallel=bool(raw.get("parallel", True)),
            parallel_threads=int(raw.get("parallel_threads", 4)),
            output_file=raw.get("output_file"),
            ai_review=ai_review,
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration value: {e}")


def validate_config(config: Configuration, require_targets: bool = True) -> Configuration:
    """Raise ConfigurationError for anything that would fail later at runtime.

    Runs before any network I/O so a bad setting never costs an API call.
    ``require_targets=False`` skips the repos/developers checks for commands
    that act on a single, explicitly named pull request.
    """
    if not config.token:
        raise ConfigurationError("GitHub token not found. Set 'token' in the config file or GITHUB_TOKEN.")
    if require_targets and not config.repos:
        raise ConfigurationError("No repositories specified.")
    if require_targets and not config.developers:
        raise ConfigurationError("No developers specified.")
    for repo in config.repos:
        Repository.parse(repo)
    if config.parallel_threads < 1:
        raise ConfigurationError("parallel_threads must be at least 1.")
    if config.retry_count < 0 or config.retry_delay < 0:
        raise ConfigurationError("retry_count and retry_delay must not be negative.")
    if config.log_level not in LOG_LEVELS:
        raise ConfigurationError(f"Unknown log_level {config.log_level!r}. Choose one of: {', '.join(LOG_LEVELS)}.")

    ai = config.ai_review
    if ai.enabled:
        from prwatch_core.providers import ProviderKind

        try:
            kind = ProviderKind.parse(ai.provider)
        except AIReviewError as e:
            raise ConfigurationError(str(e)) from e
        if not ai.settings_for(kind.value).api_key:
            raise ConfigurationError(f"{kind.credential_env} is not set; required for the {kind.value} provider.")
        if ai.concurrent_reviews < 1:
            raise ConfigurationError("ai_review.concurrent_reviews must be at least 1.")
        if ai.diff_mode not in DIFF_MODES:
            raise ConfigurationError(f"Unknown ai_review.diff_mode {ai.diff_mode!r}. Choose 'diff' or 'files'.")
        if ai.max_diff_chars < 1:
            raise ConfigurationError("ai_review.max_diff_chars must be positive.")
    return config
