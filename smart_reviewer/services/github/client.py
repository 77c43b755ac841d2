"""Async GitHub REST client covering the calls the reviewer makes."""

import base64
import time
from typing import Any

import httpx
import structlog

from smart_reviewer.core.config import Settings, get_settings
from smart_reviewer.core.exceptions import (
    GitHubAuthenticationError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from smart_reviewer.core.metrics import record_github_api_call
from smart_reviewer.services.github.models import ChangedFile, IssueComment, PullRequest
from smart_reviewer.services.review.comment_parser import ReviewComment

logger = structlog.get_logger()

PAGE_SIZE = 100
API_VERSION = "2022-11-28"


def build_review_comment_payload(
    comment: ReviewComment,
    commit_id: str,
    body: str,
) -> dict[str, Any]:
    """Payload for an inline comment; ``start_line`` only for multi-line ranges."""
    payload: dict[str, Any] = {
        "commit_id": commit_id,
        "path": comment.filename,
        "body": body,
        "line": comment.end_line,
    }
    if comment.start_line != comment.end_line:
        payload["start_line"] = comment.start_line
    return payload


def metrics_endpoint(path: str) -> str:
    """
    Collapse a request path into a low-cardinality metrics label.

    ``/repos/o/r/pulls/1/comments`` becomes ``pulls_comments``; ids, commit
    ranges and file paths are dropped.
    """
    segments = path.strip("/").split("/")
    if segments[:1] == ["repos"]:
        segments = segments[3:]
    if segments[:1] == ["contents"]:
        return "contents"

    kept = [s for s in segments if not s.isdigit() and "..." not in s]
    return "_".join(kept) or "unknown"


def read_rate_limit(headers: httpx.Headers) -> tuple[int | None, int | None]:
    remaining = headers.get("X-RateLimit-Remaining")
    reset = headers.get("X-RateLimit-Reset")
    return (
        int(remaining) if remaining is not None else None,
        int(reset) if reset is not None else None,
    )


def raise_for_github_status(response: httpx.Response, path: str) -> None:
    """Map an error response to the matching GitHubError subclass."""
    status = response.status_code
    if status < 400:
        return

    if status == 401:
        raise GitHubAuthenticationError("Invalid GitHub token")
    if status == 403:
        if "rate limit" in response.text.lower():
            _, reset = read_rate_limit(response.headers)
            raise GitHubRateLimitError(reset_at=reset or 0)
        raise GitHubAuthenticationError("Access forbidden", {"path": path})
    if status == 404:
        raise GitHubNotFoundError(f"Resource not found: {path}")

    raise GitHubError(f"GitHub API error: {status}", details={"response": response.text})


class GitHubClient:
    """Thin wrapper over the GitHub REST API with metrics on every call."""

    def __init__(self, token: str | None = None, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self.token = token or self._settings.github_token.get_secret_value()
        self.base_url = self._settings.github_api_url
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": API_VERSION,
                },
                timeout=30.0,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _extract_endpoint_name(self, endpoint: str) -> str:
        return metrics_endpoint(endpoint)

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any]:
        """
        Send one request and decode the JSON body.

        Raises:
            GitHubError: On transport failure or an error status; the
                subclass tells authentication, rate limiting and 404 apart.
        """
        client = await self._get_client()
        logger.debug("GitHub API request", method=method, endpoint=endpoint)

        started = time.perf_counter()
        status_code = 0
        remaining: int | None = None
        reset: int | None = None

        try:
            try:
                response = await client.request(method, endpoint, **kwargs)
            except httpx.HTTPError as e:
                raise GitHubError(f"GitHub request failed: {e}") from e

            status_code = response.status_code
            remaining, reset = read_rate_limit(response.headers)
            raise_for_github_status(response, endpoint)

            data: dict[str, Any] | list[Any] = response.json()
            return data
        finally:
            record_github_api_call(
                endpoint=self._extract_endpoint_name(endpoint),
                method=method,
                status_code=status_code,
                duration_seconds=time.perf_counter() - started,
                rate_limit_remaining=remaining,
                rate_limit_reset=reset,
            )

    async def _request_object(self, method: str, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        data = await self._request(method, endpoint, **kwargs)
        if not isinstance(data, dict):
            raise GitHubError("Unexpected response format", {"endpoint": endpoint})
        return data

    async def _request_list(self, method: str, endpoint: str, **kwargs: Any) -> list[Any]:
        data = await self._request(method, endpoint, **kwargs)
        if not isinstance(data, list):
            raise GitHubError("Unexpected response format", {"endpoint": endpoint})
        return data

    async def get_pull_request(self, owner: str, repo: str, pr_number: int) -> PullRequest:
        data = await self._request_object("GET", f"/repos/{owner}/{repo}/pulls/{pr_number}")
        return PullRequest.from_api(data)

    async def update_pull_request_body(
        self, owner: str, repo: str, pr_number: int, body: str
    ) -> dict[str, Any]:
        """Replace the pull request description."""
        return await self._request_object(
            "PATCH", f"/repos/{owner}/{repo}/pulls/{pr_number}", json={"body": body}
        )

    async def compare_commits(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
    ) -> list[ChangedFile]:
        """Files changed between ``base`` and ``head``, in API order."""
        data = await self._request_object("GET", f"/repos/{owner}/{repo}/compare/{base}...{head}")
        return [ChangedFile.from_api(item) for item in data.get("files") or []]

    async def get_file_content(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str,
    ) -> str | None:
        """Decoded text of ``path`` at ``ref``; None when the API returns no content."""
        data = await self._request_object(
            "GET", f"/repos/{owner}/{repo}/contents/{path}", params={"ref": ref}
        )
        content = data.get("content")
        if not content:
            return None
        return base64.b64decode(content).decode("utf-8", errors="replace")

    async def list_issue_comments(
        self,
        owner: str,
        repo: str,
        pr_number: int,
    ) -> list[IssueComment]:
        """All conversation comments of a pull request, oldest first."""
        comments: list[IssueComment] = []
        page = 1
        while True:
            batch = await self._request_list(
                "GET",
                f"/repos/{owner}/{repo}/issues/{pr_number}/comments",
                params={"per_page": PAGE_SIZE, "page": page},
            )
            comments.extend(IssueComment.from_api(item) for item in batch)
            if len(batch) < PAGE_SIZE:
                return comments
            page += 1

    async def create_issue_comment(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        body: str,
    ) -> IssueComment:
        data = await self._request_object(
            "POST", f"/repos/{owner}/{repo}/issues/{pr_number}/comments", json={"body": body}
        )
        return IssueComment.from_api(data)

    async def update_issue_comment(
        self,
        owner: str,
        repo: str,
        comment_id: int,
        body: str,
    ) -> IssueComment:
        data = await self._request_object(
            "PATCH", f"/repos/{owner}/{repo}/issues/comments/{comment_id}", json={"body": body}
        )
        return IssueComment.from_api(data)

    async def create_review_comment(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        comment: ReviewComment,
        commit_id: str,
        body: str | None = None,
    ) -> dict[str, Any]:
        """Create an inline comment anchored to the comment's line range."""
        payload = build_review_comment_payload(comment, commit_id, body or comment.comment)
        data = await self._request_object(
            "POST", f"/repos/{owner}/{repo}/pulls/{pr_number}/comments", json=payload
        )

        logger.info(
            "Review comment created",
            path=comment.filename,
            start_line=comment.start_line,
            end_line=comment.end_line,
        )
        return data
