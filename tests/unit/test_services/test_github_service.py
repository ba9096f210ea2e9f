"""Tests for the GitHub service wrapper."""

import json
from unittest.mock import MagicMock, Mock

import httpx
import pytest
from github import Github

from pr_reviewer.models.review import PRMetadata
from pr_reviewer.services.github_service import (
    DIFF_MEDIA_TYPE,
    GitHubService,
    load_event,
    pr_coordinates_from_event,
)


@pytest.fixture
def metadata():
    return PRMetadata(owner="octo", repo="hello", pull_number=7, title="t")


def _service(handler, github_client=None) -> GitHubService:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubService(
        token="ghs_test",
        http_client=http_client,
        github_client=github_client or Mock(spec=Github),
    )


class TestGetPrMetadata:
    def test_fetches_title_and_body(self):
        mock_pr = Mock()
        mock_pr.title = "Add feature"
        mock_pr.body = None
        github_client = Mock(spec=Github)
        github_client.get_repo.return_value.get_pull.return_value = mock_pr

        service = _service(lambda request: httpx.Response(200), github_client)
        metadata = service.get_pr_metadata("octo", "hello", 7)

        assert metadata == PRMetadata(
            owner="octo", repo="hello", pull_number=7, title="Add feature", description=""
        )
        github_client.get_repo.assert_called_once_with("octo/hello")
        # The fetched PR object is reused
        assert service.get_pull_request(metadata) is mock_pr
        assert github_client.get_repo.call_count == 1


class TestDiffs:
    @pytest.mark.asyncio
    async def test_pr_diff_requests_diff_media_type(self, metadata):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="diff --git a/x b/x\n")

        diff = await _service(handler).get_pr_diff(metadata)

        assert diff == "diff --git a/x b/x\n"
        assert seen[0].url.path == "/repos/octo/hello/pulls/7"
        assert seen[0].headers["Accept"] == DIFF_MEDIA_TYPE
        assert seen[0].headers["Authorization"] == "token ghs_test"

    @pytest.mark.asyncio
    async def test_compare_commits_diff(self, metadata):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="")

        await _service(handler).compare_commits_diff(metadata, "aaaaaaa111", "bbbbbbb222")

        assert seen[0].url.path == "/repos/octo/hello/compare/aaaaaaa111...bbbbbbb222"

    @pytest.mark.asyncio
    async def test_http_error_propagates(self, metadata):
        service = _service(lambda request: httpx.Response(404, json={"message": "Not Found"}))

        with pytest.raises(httpx.HTTPStatusError):
            await service.get_pr_diff(metadata)


class TestLatestCommit:
    def test_returns_head_commit(self):
        pr = MagicMock()
        pr.number = 7
        pr.head.sha = "abc1234def"
        head = Mock()
        pr.base.repo.get_commit.return_value = head

        assert _service(lambda r: httpx.Response(200)).get_latest_commit(pr) is head
        pr.base.repo.get_commit.assert_called_once_with("abc1234def")
        pr.get_commits.assert_not_called()


class TestEvents:
    def test_load_event(self, tmp_path):
        path = tmp_path / "event.json"
        path.write_text(json.dumps({"action": "opened", "number": 3}))

        assert load_event(path) == {"action": "opened", "number": 3}

    def test_load_event_rejects_non_object(self, tmp_path):
        path = tmp_path / "event.json"
        path.write_text("[]")

        with pytest.raises(ValueError):
            load_event(path)

    def test_pr_coordinates(self):
        event = {"number": 5, "repository": {"name": "hello", "owner": {"login": "octo"}}}

        assert pr_coordinates_from_event(event) == ("octo", "hello", 5)

    def test_pr_coordinates_from_pull_request_field(self):
        event = {
            "pull_request": {"number": 9},
            "repository": {"name": "hello", "owner": {"login": "octo"}},
        }

        assert pr_coordinates_from_event(event) == ("octo", "hello", 9)

    def test_pr_coordinates_missing(self):
        with pytest.raises(ValueError):
            pr_coordinates_from_event({"action": "opened"})
