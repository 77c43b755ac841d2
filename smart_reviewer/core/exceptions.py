from typing import Any


class ReviewBotError(Exception):
    """Root of every error raised by smart_reviewer."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class GitHubError(ReviewBotError):
    """A GitHub REST call failed or returned something unusable."""


class GitHubAuthenticationError(GitHubError):
    """The token was rejected or lacks access (401, plain 403)."""


class GitHubRateLimitError(GitHubError):
    """403 caused by an exhausted rate limit window."""

    def __init__(self, reset_at: int, message: str = "Rate limit exceeded") -> None:
        self.reset_at = reset_at
        super().__init__(message, {"reset_at": reset_at})


class GitHubNotFoundError(GitHubError):
    """404 from the API."""


class LLMError(ReviewBotError):
    """A chat model call failed."""


class LLMProviderUnavailableError(LLMError):
    """No usable provider: unknown prefix, missing key, or every fallback failed."""


class LLMRateLimitError(LLMError):
    """The provider throttled the request."""


class ReviewError(ReviewBotError):
    """Invalid state while summarizing or commenting."""


class ConfigurationError(ReviewBotError):
    """Settings or the event payload are missing or invalid."""
