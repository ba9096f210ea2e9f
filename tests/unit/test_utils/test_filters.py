"""Tests for exclude pattern filtering."""

import pytest

from pr_reviewer.models.diff import FileDiff
from pr_reviewer.utils.filters import (
    filter_excluded_files,
    is_excluded,
    parse_exclude_patterns,
)


class TestParseExcludePatterns:
    def test_empty(self):
        assert parse_exclude_patterns("") == []
        assert parse_exclude_patterns(None) == []

    def test_splits_on_commas_semicolons_and_newlines(self):
        raw = "**/*.json, dist/**;*.md\n\n  docs/* ,"
        assert parse_exclude_patterns(raw) == ["**/*.json", "dist/**", "*.md", "docs/*"]


class TestIsExcluded:
    @pytest.mark.parametrize(
        "path,patterns",
        [
            ("package-lock.json", ["*.json"]),
            ("src/config/app.json", ["**/*.json"]),
            ("app.json", ["**/*.json"]),
            ("dist/bundle.js", ["dist/**"]),
            ("docs/guide.md", ["*.md"]),
        ],
    )
    def test_matching_paths(self, path, patterns):
        assert is_excluded(path, patterns)

    @pytest.mark.parametrize(
        "path,patterns",
        [
            ("src/main.py", ["*.json"]),
            ("src/dist/file.py", ["dist/**"]),
            ("src/main.py", []),
        ],
    )
    def test_non_matching_paths(self, path, patterns):
        assert not is_excluded(path, patterns)

    def test_deleted_file_never_matches(self):
        assert not is_excluded(None, ["*"])


def test_filter_excluded_files_keeps_order_and_deleted_files():
    files = [
        FileDiff(path="a.py"),
        FileDiff(path="b.lock"),
        FileDiff(path=None, old_path="gone.lock"),
        FileDiff(path="c.py"),
    ]

    kept = filter_excluded_files(files, ["*.lock"])

    assert [f.path for f in kept] == ["a.py", None, "c.py"]
    assert filter_excluded_files(files, []) == files
