"""Pytest configuration and fixtures."""

import os

import pytest

# =============================================================================
# Environment Setup (must happen before app imports)
# =============================================================================

os.environ.setdefault("GITHUB_TOKEN", "test-token-for-testing")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key-for-testing")
os.environ.setdefault("OPENAI_API_KEY", "test-key-for-testing")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

from smart_reviewer.core.config import Settings  # noqa: E402
from smart_reviewer.services.review.context import PullRequestContext  # noqa: E402

pytest_plugins = ("pytest_asyncio",)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        github_token="test-token",
        model=["openai/gpt-4o"],
        summary_model=["openai/gpt-4o-mini"],
        review_concurrency=2,
    )


@pytest.fixture
def pr_context() -> PullRequestContext:
    return PullRequestContext(
        owner="octo",
        repo="widgets",
        pull_request_number=42,
        title="Add retry support",
        description="Adds retries to the HTTP client.",
        base_commit_id="base000",
        head_commit_id="head111",
    )


@pytest.fixture
def mock_github_response() -> dict:
    """Mock GitHub API response for a PR."""
    return {
        "id": 12345,
        "number": 42,
        "title": "Add retry support",
        "body": "Adds retries to the HTTP client.",
        "state": "open",
        "html_url": "https://github.com/octo/widgets/pull/42",
        "user": {"login": "testuser", "id": 1},
        "head": {"sha": "head111", "ref": "feature-branch"},
        "base": {"sha": "base000", "ref": "main"},
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    }
