"""Pytest configuration and fixtures."""

import re
from collections.abc import Callable

import pytest

from pr_reviewer.config.settings import Settings
from pr_reviewer.models.review import OracleFinding, PRMetadata
from pr_reviewer.utils.rate_limiter import ConcurrencyLimiter

# One file, one hunk: context line 9, added lines 10, 11 and 12
SINGLE_HUNK_DIFF = """diff --git a/a.txt b/a.txt
index 1111111..2222222 100644
--- a/a.txt
+++ b/a.txt
@@ -9,1 +9,4 @@ def main():
 context
+line ten
+line eleven
+line twelve
"""

_FILE_IN_PROMPT_RE = re.compile(r'in the file "(?P<path>[^"]+)"')


def make_file_diff(path: str, hunks: int = 1) -> str:
    """Build a diff for ``path`` with ``hunks`` hunks of one context + one added line.

    Hunk ``i`` (0-based) covers lines ``10*i + 1`` (context) and ``10*i + 2`` (added).
    """
    parts = [
        f"diff --git a/{path} b/{path}",
        "index 1111111..2222222 100644",
        f"--- a/{path}",
        f"+++ b/{path}",
    ]
    for i in range(hunks):
        start = 10 * i + 1
        parts.append(f"@@ -{start},1 +{start},2 @@")
        parts.append(f" context {i}")
        parts.append(f"+added {i}")
    return "\n".join(parts) + "\n"


def file_in_prompt(prompt: str) -> str:
    """Return the file path a review prompt was built for."""
    match = _FILE_IN_PROMPT_RE.search(prompt)
    assert match, "prompt does not name a file"
    return match.group("path")


class StubOracle:
    """In-memory stand-in for ReviewOracleClient.

    ``responder`` maps a prompt to findings, None, or raises.
    """

    def __init__(self, responder: Callable[[str], list[OracleFinding] | None]) -> None:
        self.responder = responder
        self.prompts: list[str] = []
        self.limiter = ConcurrencyLimiter(5)

    async def submit(self, prompt: str) -> list[OracleFinding] | None:
        self.prompts.append(prompt)
        return self.responder(prompt)


@pytest.fixture
def pr_metadata() -> PRMetadata:
    """Return metadata for a sample pull request."""
    return PRMetadata(
        owner="owner",
        repo="repo",
        pull_number=42,
        title="Add greeting",
        description="Adds a friendlier greeting.",
    )


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Return a factory for Settings that ignores .env files."""

    def factory(**overrides) -> Settings:
        overrides.setdefault("github_token", "ghs_test_token")
        overrides.setdefault("openai_api_key", "sk-test")  # pragma: allowlist secret
        return Settings(_env_file=None, **overrides)

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    """Return default Settings."""
    return make_settings()
