"""Tests for prompt templates, truncation and rendering."""

from datetime import datetime, timezone

from prwatch_core.models import ChangedFile, PullRequest, Repository
from prwatch_core.templates import (
    MAX_DIFF_CHARS,
    NO_DESCRIPTION,
    TEMPLATES,
    TRUNCATION_MARKER,
    build_prompt,
    format_files_list,
    render,
    resolve_template,
    truncate,
)


def _pr(description="Adds a cache in front of the user lookup."):
    return PullRequest(
        repo=Repository("org", "svc"),
        number=7,
        title="Add caching",
        author="alice",
        created_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        url="https://github.com/org/svc/pull/7",
        description=description,
    )


FILES = [
    ChangedFile("app/models/user.rb", "modified", additions=10, deletions=2),
    ChangedFile("web/app.ts", "added", additions=40),
]


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("abc") == "abc"

    def test_exact_limit_unchanged(self):
        text = "x" * MAX_DIFF_CHARS
        assert truncate(text) == text

    def test_long_text_cut_and_marked(self):
        result = truncate("x" * 20000)
        assert result == "x" * MAX_DIFF_CHARS + TRUNCATION_MARKER
        assert len(result) <= MAX_DIFF_CHARS + len(TRUNCATION_MARKER)

    def test_custom_limit(self):
        assert truncate("abcdef", 3) == "abc" + TRUNCATION_MARKER

    def test_none_becomes_empty(self):
        assert truncate(None) == ""


def test_format_files_list():
    assert format_files_list(FILES) == "app/models/user.rb (modified, +10/-2)\nweb/app.ts (added, +40/-0)"


class TestResolveTemplate:
    def test_language_template_embeds_default(self):
        ruby = resolve_template("ruby")
        assert ruby.startswith("You are reviewing a Ruby codebase.")
        assert TEMPLATES["default"] in ruby
        assert "{{standard_review_section}}" not in ruby

    def test_unknown_name_falls_back_to_default(self):
        assert resolve_template("python") == TEMPLATES["default"]

    def test_override_replaces_template(self):
        assert resolve_template("ruby", {"ruby": "Ruby only: {{diff}}"}) == "Ruby only: {{diff}}"

    def test_default_override_flows_into_language_templates(self):
        resolved = resolve_template("database", {"default": "CUSTOM {{diff}}"})
        assert "CUSTOM {{diff}}" in resolved
        assert "You are an expert code reviewer" not in resolved


class TestRender:
    def test_replaces_known_placeholders(self):
        assert render("{{a}} and {{b}}", {"a": "1", "b": "2"}) == "1 and 2"

    def test_unknown_placeholders_left_alone(self):
        assert render("{{a}} {{missing}}", {"a": "1"}) == "1 {{missing}}"

    def test_substituted_values_not_rescanned(self):
        assert render("{{diff}} / {{pr_title}}", {"diff": "{{pr_title}}", "pr_title": "T"}) == "{{pr_title}} / T"


class TestBuildPrompt:
    def test_default_prompt_contains_pr_fields(self):
        prompt = build_prompt("default", _pr(), "+cache = {}", FILES)
        assert "Pull Request: Add caching" in prompt
        assert "Adds a cache in front of the user lookup." in prompt
        assert "app/models/user.rb (modified, +10/-2)" in prompt
        assert "+cache = {}" in prompt
        assert "{{" not in prompt

    def test_missing_description_placeholder(self):
        prompt = build_prompt("default", _pr(description=None), "diff", FILES)
        assert f"Description:\n{NO_DESCRIPTION}" in prompt

    def test_language_prompt_is_fully_rendered(self):
        prompt = build_prompt("javascript", _pr(), "diff", FILES)
        assert prompt.startswith("You are reviewing JavaScript/TypeScript code.")
        assert "Pull Request: Add caching" in prompt
        assert "{{" not in prompt

    def test_diff_with_placeholder_text_inserted_verbatim(self):
        prompt = build_prompt("default", _pr(), "+ s = '{{pr_description}}'", FILES)
        assert "+ s = '{{pr_description}}'" in prompt

    def test_overrides_applied(self):
        prompt = build_prompt("default", _pr(), "DIFF", FILES, {"default": "T={{pr_title}} D={{diff}}"})
        assert prompt == "T=Add caching D=DIFF"
