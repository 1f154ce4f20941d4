"""Review prompt templates and prompt rendering.

Templates use ``{{name}}`` placeholders. Language templates embed
``{{standard_review_section}}``, which expands to the effective default
template before the per-PR values are substituted, so an override of
``default`` in configuration also changes every language template.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from prwatch_core.models import ChangedFile, PullRequest

MAX_DIFF_CHARS = 12_000
TRUNCATION_MARKER = "\n... (truncated for length)"
NO_DESCRIPTION = "No description provided"

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
_STANDARD_SECTION = "{{standard_review_section}}"

TEMPLATES: dict[str, str] = {
    "default": """\
You are an expert code reviewer. Please review this Pull Request focusing on:
1. Code correctness and potential bugs
2. Security implications
3. Performance considerations
4. Best practices and coding standards
5. Suggestions for improvement

Pull Request: {{pr_title}}

Description:
{{pr_description}}

Files changed:
{{files_changed}}

Code changes:
{{diff}}

Please structure your review as follows:
1. Summary (2-3 sentences)
2. Key Observations
3. Potential Issues
4. Recommendations
5. Code-specific comments (if any)
""",
    "ruby": """\
You are reviewing a Ruby codebase. Focus on:
1. Ruby idioms and best practices
2. Performance implications
3. Gem usage and compatibility
4. Security considerations
5. Test coverage

{{standard_review_section}}
""",
    "javascript": """\
You are reviewing JavaScript/TypeScript code. Focus on:
1. Type safety and null/undefined handling
2. Async control flow and error propagation
3. Dependency usage and bundle impact
4. XSS and injection risks in anything rendered or evaluated
5. Test coverage

{{standard_review_section}}
""",
    "database": """\
You are reviewing database-related changes. Focus on:
1. Migration safety (locking, reversibility, data backfills)
2. Index usage and query performance
3. Schema consistency and constraints
4. Data integrity and transactional boundaries
5. Compatibility with code deployed before the migration runs

{{standard_review_section}}
""",
}


def truncate(text: str | None, max_length: int = MAX_DIFF_CHARS) -> str:
    """Cap text at max_length characters, marking the cut."""
    if text is None:
        return ""
    if len(text) > max_length:
        return text[:max_length] + TRUNCATION_MARKER
    return text


def format_files_list(files: Iterable[ChangedFile]) -> str:
    return "\n".join(f"{f.filename} ({f.status}, +{f.additions}/-{f.deletions})" for f in files)


def resolve_template(name: str, overrides: Mapping[str, str] | None = None) -> str:
    """Return the template text for name, expanding the standard review section.

    Unknown names fall back to the default template.
    """
    templates = {**TEMPLATES, **(overrides or {})}
    template = templates.get(name) or templates["default"]
    return template.replace(_STANDARD_SECTION, templates["default"])


def render(template: str, values: Mapping[str, str]) -> str:
    """Substitute placeholders in one pass.

    Substituted values are never rescanned, so a diff that happens to contain
    ``{{pr_title}}`` is inserted verbatim. Unknown placeholders are left as-is.
    """
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def build_prompt(
    template_name: str,
    pr: PullRequest,
    diff: str,
    files: Iterable[ChangedFile],
    overrides: Mapping[str, str] | None = None,
) -> str:
    return render(
        resolve_template(template_name, overrides),
        {
            "files_changed": format_files_list(files),
            "diff": diff,
            "pr_title": pr.title,
            "pr_description": pr.description or NO_DESCRIPTION,
        },
    )
