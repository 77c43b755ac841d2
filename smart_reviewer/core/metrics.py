"""
Prometheus metrics for the review bot.

Three groups are exported:
- model calls, labelled by provider and model
- GitHub REST calls and the remaining rate limit
- pipeline runs and the outcome of every reviewed chunk
"""

import time

from prometheus_client import Counter, Gauge, Histogram

# -----------------------------------------------------------------------------
# Model calls
# -----------------------------------------------------------------------------

LLM_REQUESTS_TOTAL = Counter(
    "smart_reviewer_llm_requests_total",
    "Chat model calls by outcome",
    ["provider", "model", "status"],
)

LLM_TOKENS_TOTAL = Counter(
    "smart_reviewer_llm_tokens_total",
    "Tokens reported by the provider",
    ["provider", "model", "direction"],
)

LLM_REQUEST_DURATION_SECONDS = Histogram(
    "smart_reviewer_llm_request_duration_seconds",
    "Wall time of a single chat model call",
    ["provider", "model"],
    buckets=(1.0, 2.0, 5.0, 10.0, 20.0, 40.0, 80.0, 160.0, 300.0),
)

# -----------------------------------------------------------------------------
# Pipeline runs
# -----------------------------------------------------------------------------

REVIEWS_TOTAL = Counter(
    "smart_reviewer_reviews_total",
    "Pipeline runs by repository and outcome",
    ["repository", "status"],
)

REVIEW_DURATION_SECONDS = Histogram(
    "smart_reviewer_review_duration_seconds",
    "Wall time of a pipeline run",
    ["repository"],
    buckets=(10.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1200.0),
)

REVIEW_FILES_ANALYZED = Histogram(
    "smart_reviewer_review_files_analyzed",
    "Changed files passed to the reviewer in one run",
    buckets=(0, 1, 3, 10, 30, 100),
)

REVIEW_COMMENTS_POSTED = Histogram(
    "smart_reviewer_review_comments_posted",
    "Inline comments posted in one run",
    buckets=(0, 1, 3, 10, 30, 100),
)

REVIEW_CHUNKS_TOTAL = Counter(
    "smart_reviewer_review_chunks_total",
    "Reviewed diff chunks by outcome (lgtm, commented, failed)",
    ["outcome"],
)

# -----------------------------------------------------------------------------
# GitHub REST API
# -----------------------------------------------------------------------------

GITHUB_API_REQUESTS_TOTAL = Counter(
    "smart_reviewer_github_api_requests_total",
    "GitHub REST calls by endpoint, method and status",
    ["endpoint", "method", "status_code"],
)

GITHUB_API_DURATION_SECONDS = Histogram(
    "smart_reviewer_github_api_duration_seconds",
    "Wall time of a GitHub REST call",
    ["endpoint", "method"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

GITHUB_RATE_LIMIT_REMAINING = Gauge(
    "smart_reviewer_github_rate_limit_remaining",
    "Requests left in the current GitHub rate limit window",
)

GITHUB_RATE_LIMIT_RESET_SECONDS = Gauge(
    "smart_reviewer_github_rate_limit_reset_seconds",
    "Seconds until the GitHub rate limit window resets",
)


def record_llm_request(
    provider: str,
    model: str,
    status: str,
    duration_seconds: float,
    tokens_input: int = 0,
    tokens_output: int = 0,
) -> None:
    """
    Record one chat model call.

    Args:
        provider: Provider prefix of the model name, e.g. ``openai``.
        model: Model name without the provider prefix.
        status: ``success`` or ``error``.
        duration_seconds: Wall time of the call.
        tokens_input: Prompt tokens, when the provider reports them.
        tokens_output: Completion tokens, when the provider reports them.
    """
    LLM_REQUESTS_TOTAL.labels(provider=provider, model=model, status=status).inc()
    LLM_REQUEST_DURATION_SECONDS.labels(provider=provider, model=model).observe(
        duration_seconds
    )

    for direction, count in (("input", tokens_input), ("output", tokens_output)):
        if count > 0:
            LLM_TOKENS_TOTAL.labels(provider=provider, model=model, direction=direction).inc(
                count
            )


def record_review_completed(
    repository: str,
    status: str,
    duration_seconds: float,
    files_analyzed: int,
    comments_posted: int,
) -> None:
    """Record a finished pipeline run."""
    REVIEWS_TOTAL.labels(repository=repository, status=status).inc()
    REVIEW_DURATION_SECONDS.labels(repository=repository).observe(duration_seconds)
    REVIEW_FILES_ANALYZED.observe(files_analyzed)
    REVIEW_COMMENTS_POSTED.observe(comments_posted)


def record_chunk_reviewed(outcome: str) -> None:
    REVIEW_CHUNKS_TOTAL.labels(outcome=outcome).inc()


def record_github_api_call(
    endpoint: str,
    method: str,
    status_code: int,
    duration_seconds: float,
    rate_limit_remaining: int | None = None,
    rate_limit_reset: int | None = None,
) -> None:
    """
    Record one GitHub REST call.

    ``status_code`` is 0 when no response was received. ``rate_limit_reset``
    is the epoch second from ``X-RateLimit-Reset``.
    """
    GITHUB_API_REQUESTS_TOTAL.labels(
        endpoint=endpoint, method=method, status_code=str(status_code)
    ).inc()
    GITHUB_API_DURATION_SECONDS.labels(endpoint=endpoint, method=method).observe(
        duration_seconds
    )

    if rate_limit_remaining is not None:
        GITHUB_RATE_LIMIT_REMAINING.set(rate_limit_remaining)
    if rate_limit_reset is not None:
        GITHUB_RATE_LIMIT_RESET_SECONDS.set(max(0, rate_limit_reset - int(time.time())))
