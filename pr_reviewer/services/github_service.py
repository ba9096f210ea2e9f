"""GitHub access for pull request metadata, diffs and commits."""

import json
import logging
from pathlib import Path
from typing import Any

import httpx
from github import Auth, Github
from github.Commit import Commit
from github.PullRequest import PullRequest

from pr_reviewer.models.review import PRMetadata

logger = logging.getLogger(__name__)

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"


def load_event(event_path: str | Path) -> dict[str, Any]:
    """Read the GitHub Actions event payload.

    Args:
        event_path: Path from ``GITHUB_EVENT_PATH``

    Returns:
        Parsed event payload

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON object
    """
    with open(event_path, encoding="utf-8") as f:
        event = json.load(f)
    if not isinstance(event, dict):
        raise ValueError(f"Event payload in {event_path} is not a JSON object")
    return event


def pr_coordinates_from_event(event: dict[str, Any]) -> tuple[str, str, int]:
    """Extract (owner, repo, pull number) from a pull_request event payload."""
    repository = event.get("repository") or {}
    owner = (repository.get("owner") or {}).get("login")
    repo = repository.get("name")
    number = event.get("number") or (event.get("pull_request") or {}).get("number")
    if not owner or not repo or not number:
        raise ValueError("Event payload does not describe a pull request")
    return owner, repo, int(number)


class GitHubService:
    """
    Thin wrapper over PyGithub and the REST diff endpoints.

    PyGithub covers pull request objects, commits and review calls; the raw
    diff is fetched with httpx because it needs the diff media type.
    """

    def __init__(
        self,
        token: str,
        http_client: httpx.AsyncClient,
        api_url: str = "https://api.github.com",
        github_client: Github | None = None,
    ) -> None:
        self.token = token
        self.http_client = http_client
        self.api_url = api_url.rstrip("/")
        self.github_client = github_client or Github(
            auth=Auth.Token(token), base_url=self.api_url, per_page=100
        )
        self._pulls: dict[str, PullRequest] = {}

    def get_pull_request(self, metadata: PRMetadata) -> PullRequest:
        """Fetch the PullRequest object, cached per run."""
        key = f"{metadata.full_name}#{metadata.pull_number}"
        if key not in self._pulls:
            repo = self.github_client.get_repo(metadata.full_name)
            self._pulls[key] = repo.get_pull(metadata.pull_number)
            logger.debug(f"Cached PR object for {key}")
        return self._pulls[key]

    def get_pr_metadata(self, owner: str, repo: str, pull_number: int) -> PRMetadata:
        """Fetch title and description of a pull request.

        Raises:
            GithubException: If GitHub API request fails
        """
        gh_repo = self.github_client.get_repo(f"{owner}/{repo}")
        pr = gh_repo.get_pull(pull_number)

        metadata = PRMetadata(
            owner=owner,
            repo=repo,
            pull_number=pull_number,
            title=pr.title or "",
            description=pr.body or "",
        )
        self._pulls[f"{metadata.full_name}#{pull_number}"] = pr

        logger.info(f"Fetched PR context for #{pull_number} in {metadata.full_name}")
        return metadata

    async def _get_diff(self, url: str) -> str:
        headers = {
            "Authorization": f"token {self.token}",
            "Accept": DIFF_MEDIA_TYPE,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        response = await self.http_client.get(url, headers=headers)
        response.raise_for_status()
        return response.text

    async def get_pr_diff(self, metadata: PRMetadata) -> str:
        """Fetch the full diff of a pull request against its base.

        Raises:
            httpx.HTTPStatusError: If GitHub returns an error status
        """
        url = (
            f"{self.api_url}/repos/{metadata.owner}/{metadata.repo}"
            f"/pulls/{metadata.pull_number}"
        )
        diff = await self._get_diff(url)
        logger.info(f"Fetched diff for PR #{metadata.pull_number} ({len(diff)} bytes)")
        return diff

    async def compare_commits_diff(
        self, metadata: PRMetadata, base_sha: str, head_sha: str
    ) -> str:
        """Fetch the diff between two commits, used for pushes to an open PR.

        Raises:
            httpx.HTTPStatusError: If GitHub returns an error status
        """
        url = (
            f"{self.api_url}/repos/{metadata.owner}/{metadata.repo}"
            f"/compare/{base_sha}...{head_sha}"
        )
        diff = await self._get_diff(url)
        logger.info(
            f"Fetched diff {base_sha[:7]}..{head_sha[:7]} for PR "
            f"#{metadata.pull_number} ({len(diff)} bytes)"
        )
        return diff

    def get_latest_commit(self, pull_request: PullRequest) -> Commit:
        """Return the head commit of the pull request.

        The commit is looked up by ``head.sha`` so the PR's commit list is
        not paged through.
        """
        head_sha = pull_request.head.sha
        commit = pull_request.base.repo.get_commit(head_sha)
        logger.debug(f"Latest commit of PR #{pull_request.number}: {head_sha[:7]}")
        return commit
