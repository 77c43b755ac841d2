import base64
from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from smart_reviewer.core.exceptions import (
    GitHubAuthenticationError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from smart_reviewer.services.github.client import GitHubClient, build_review_comment_payload
from smart_reviewer.services.review.comment_parser import ReviewComment


class TestGitHubClient:
    """Tests for the GitHub client."""

    @pytest.fixture
    def client(self) -> GitHubClient:
        return GitHubClient(token="test-token")

    @pytest.mark.asyncio
    async def test_get_pull_request(
        self, client: GitHubClient, mock_github_response: dict[str, Any]
    ) -> None:
        """Test fetching a pull request."""
        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = mock_github_response
            pr = await client.get_pull_request("octo", "widgets", 42)

        assert pr.number == 42
        assert pr.title == "Add retry support"
        assert pr.head_sha == "head111"
        assert pr.base_sha == "base000"
        mock_request.assert_called_once_with("GET", "/repos/octo/widgets/pulls/42")

    @pytest.mark.asyncio
    async def test_get_pull_request_not_found(self, client: GitHubClient) -> None:
        """Test handling of non-existent PR."""
        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = GitHubNotFoundError("Not found")

            with pytest.raises(GitHubNotFoundError):
                await client.get_pull_request("octo", "widgets", 999)

    @pytest.mark.asyncio
    async def test_compare_commits(self, client: GitHubClient) -> None:
        """Test fetching changed files between two commits."""
        mock_response = {
            "files": [
                {
                    "sha": "abc123",
                    "filename": "src/main.py",
                    "status": "modified",
                    "additions": 10,
                    "deletions": 5,
                    "changes": 15,
                    "blob_url": "https://github.com/octo/widgets/blob/abc123/src/main.py",
                    "patch": "@@ -1,3 +1,4 @@\n old\n+new",
                },
                {
                    "sha": "def456",
                    "filename": "logo.png",
                    "status": "added",
                },
            ]
        }

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = mock_response
            files = await client.compare_commits("octo", "widgets", "base000", "head111")

        assert len(files) == 2
        assert files[0].filename == "src/main.py"
        assert files[0].status.value == "modified"
        assert files[0].patch is not None
        assert files[1].patch is None
        mock_request.assert_called_once_with(
            "GET", "/repos/octo/widgets/compare/base000...head111"
        )

    @pytest.mark.asyncio
    async def test_compare_commits_without_files(self, client: GitHubClient) -> None:
        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"files": None}
            files = await client.compare_commits("octo", "widgets", "a", "b")

        assert files == []

    @pytest.mark.asyncio
    async def test_get_file_content_decodes_base64(self, client: GitHubClient) -> None:
        encoded = base64.b64encode(b"print('hi')\n").decode()

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"content": encoded}
            content = await client.get_file_content("octo", "widgets", "main.py", "head111")

        assert content == "print('hi')\n"
        assert mock_request.call_args.kwargs["params"] == {"ref": "head111"}

    @pytest.mark.asyncio
    async def test_list_issue_comments_pages(self, client: GitHubClient) -> None:
        """Comments are fetched until a short page is returned."""
        first_page = [{"id": i, "body": f"comment {i}"} for i in range(100)]
        second_page = [{"id": 100, "body": "last"}]

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [first_page, second_page]
            comments = await client.list_issue_comments("octo", "widgets", 42)

        assert len(comments) == 101
        assert comments[-1].body == "last"
        assert mock_request.call_count == 2
        assert mock_request.call_args.kwargs["params"]["page"] == 2

    @pytest.mark.asyncio
    async def test_create_review_comment(self, client: GitHubClient) -> None:
        """Test posting an inline comment."""
        comment = ReviewComment("src/main.py", 10, 12, "Handle the timeout.")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"id": 7}
            result = await client.create_review_comment(
                "octo", "widgets", 42, comment, commit_id="head111"
            )

        assert result["id"] == 7
        args, kwargs = mock_request.call_args
        assert args == ("POST", "/repos/octo/widgets/pulls/42/comments")
        assert kwargs["json"] == {
            "commit_id": "head111",
            "path": "src/main.py",
            "body": "Handle the timeout.",
            "line": 12,
            "start_line": 10,
        }

    def test_single_line_payload_omits_start_line(self) -> None:
        comment = ReviewComment("src/main.py", 22, 22, "Missing await.")

        payload = build_review_comment_payload(comment, "head111", "body")

        assert payload["line"] == 22
        assert "start_line" not in payload

    @pytest.mark.asyncio
    async def test_authentication_error(self, client: GitHubClient) -> None:
        """Test handling of authentication errors."""
        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = GitHubAuthenticationError("Invalid token")

            with pytest.raises(GitHubAuthenticationError):
                await client.get_pull_request("octo", "widgets", 1)

    @pytest.mark.parametrize(
        "endpoint,expected",
        [
            ("/repos/octo/widgets/pulls/42", "pulls"),
            ("/repos/octo/widgets/issues/42/comments", "issues_comments"),
            ("/repos/octo/widgets/compare/abc...def", "compare"),
            ("/repos/octo/widgets/contents/src/main.py", "contents"),
        ],
    )
    def test_extract_endpoint_name(
        self, client: GitHubClient, endpoint: str, expected: str
    ) -> None:
        assert client._extract_endpoint_name(endpoint) == expected


class TestGitHubClientErrors:
    """Tests for HTTP status mapping."""

    def make_client(self, status_code: int, text: str = "{}") -> GitHubClient:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                status_code,
                text=text,
                headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"},
            )

        client = GitHubClient(token="test-token")
        client._client = httpx.AsyncClient(
            base_url="https://api.github.test", transport=httpx.MockTransport(handler)
        )
        return client

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,text,error",
        [
            (401, "Bad credentials", GitHubAuthenticationError),
            (403, "API rate limit exceeded", GitHubRateLimitError),
            (403, "Resource not accessible", GitHubAuthenticationError),
            (404, "Not Found", GitHubNotFoundError),
            (422, "Validation Failed", GitHubError),
        ],
    )
    async def test_status_mapping(
        self, status_code: int, text: str, error: type[Exception]
    ) -> None:
        client = self.make_client(status_code, text)

        with pytest.raises(error):
            await client._request("GET", "/repos/octo/widgets/pulls/1")

        await client.close()

    @pytest.mark.asyncio
    async def test_rate_limit_reset_is_reported(self) -> None:
        client = self.make_client(403, "API rate limit exceeded")

        with pytest.raises(GitHubRateLimitError) as exc_info:
            await client._request("GET", "/repos/octo/widgets/pulls/1")

        assert exc_info.value.reset_at == 1700000000
        await client.close()

    @pytest.mark.asyncio
    async def test_success_returns_json(self) -> None:
        client = self.make_client(200, '{"id": 1}')

        assert await client._request("GET", "/repos/octo/widgets/pulls/1") == {"id": 1}
        await client.close()
