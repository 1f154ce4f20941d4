import re
from collections.abc import Iterable

from prwatch_core.models import ChangedFile, FileCategory

PATTERNS = {
    FileCategory.RUBY: re.compile(r"\.(rb|rake)$"),
    FileCategory.JAVASCRIPT: re.compile(r"\.(js|jsx|ts|tsx)$"),
    FileCategory.DATABASE: re.compile(r"db/migrate|schema\.rb|_spec\.rb|\.sql$"),
    FileCategory.SECURITY_SENSITIVE: re.compile(
        r"(^|/)(auth|login|password|token|secret|credential)",
        re.IGNORECASE,
    ),
    FileCategory.TEST: re.compile(
        r"(_spec\.rb|_test\.rb|\.(test|spec)\.(js|jsx|ts|tsx)|_test\.py)$|(^|/)test_[^/]*\.py$"
    ),
}

# Categories that get their own review template, in the order they are added.
TEMPLATE_CATEGORIES = (FileCategory.RUBY, FileCategory.JAVASCRIPT, FileCategory.DATABASE)


def categorize_filename(filename: str) -> set[FileCategory]:
    """Every category whose pattern matches; a file may land in several."""
    return {category for category, pattern in PATTERNS.items() if pattern.search(filename)}


def categorize_files(files: Iterable[ChangedFile]) -> dict[FileCategory, list[ChangedFile]]:
    categories: dict[FileCategory, list[ChangedFile]] = {category: [] for category in FileCategory}
    for f in files:
        for category in categorize_filename(f.filename):
            categories[category].append(f)
    return categories


def determine_templates(files: Iterable[ChangedFile]) -> list[str]:
    categories = categorize_files(files)
    templates = ["default"]
    templates.extend(category.value for category in TEMPLATE_CATEGORIES if categories[category])
    return templates


# Files whose raw content is useless in a prompt; skipped when reviewing full file contents.
BINARY_EXTENSIONS = (
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".zip",
    ".gz",
    ".jar",
)


def has_readable_content(f: ChangedFile) -> bool:
    """True when the file still exists at head and is not a binary asset."""
    if f.status == "removed" or not f.contents_url:
        return False
    return not f.filename.lower().endswith(BINARY_EXTENSIONS)
