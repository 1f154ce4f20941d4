"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. ``token`` in prwatch.yml or the GITHUB_TOKEN environment variable
     (already applied by load_config)
  2. `gh auth token` (GitHub CLI session, available after `gh auth login`)
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


def gh_cli_token() -> str | None:
    """Return the token stored by `gh auth login`, or None.

    Never raises. A missing or broken gh install simply yields None and
    config validation reports the missing token.
    """
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None

    if result.returncode != 0:
        return None
    token = result.stdout.strip()
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
        return token
    return None


def resolve_github_token(configured: str | None) -> str | None:
    return configured or gh_cli_token()
