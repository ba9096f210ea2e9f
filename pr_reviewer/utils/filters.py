"""File filtering utilities for determining which files to review."""

import re
from collections.abc import Iterable
from fnmatch import fnmatch
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pr_reviewer.models.diff import FileDiff

_SEPARATORS = re.compile(r"[,;\r\n]+")


def parse_exclude_patterns(raw: str | None) -> list[str]:
    """Split a raw exclude option into glob patterns.

    Args:
        raw: Patterns separated by commas, semicolons or newlines

    Returns:
        Non-empty, stripped patterns in their original order
    """
    if not raw:
        return []
    return [part.strip() for part in _SEPARATORS.split(raw) if part.strip()]


def _pattern_variants(pattern: str) -> list[str]:
    # "**/" may also match zero directories, so "**/*.lock" covers "yarn.lock"
    variants = [pattern]
    while "**/" in pattern:
        pattern = pattern.replace("**/", "", 1)
        variants.append(pattern)
    return variants


def is_excluded(file_path: str | None, patterns: Iterable[str]) -> bool:
    """Check whether a file path matches any exclude pattern.

    Args:
        file_path: Destination path of the file, None for deleted files
        patterns: Shell-style glob patterns

    Returns:
        True if the file should be left out of the review
    """
    if not file_path:
        return False
    return any(
        fnmatch(file_path, variant)
        for pattern in patterns
        for variant in _pattern_variants(pattern)
    )


def filter_excluded_files(
    files: list["FileDiff"], patterns: Iterable[str]
) -> list["FileDiff"]:
    """Drop files whose destination path matches an exclude pattern."""
    patterns = list(patterns)
    if not patterns:
        return list(files)
    return [f for f in files if not is_excluded(f.path, patterns)]
