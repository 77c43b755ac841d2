"""Command line entry point."""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from smart_reviewer.core.config import Settings, get_settings
from smart_reviewer.core.exceptions import ConfigurationError, ReviewBotError
from smart_reviewer.core.logging import configure_logging
from smart_reviewer.services.github.client import GitHubClient
from smart_reviewer.services.review.comment_parser import parse_review_comment
from smart_reviewer.services.review.context import PullRequestContext
from smart_reviewer.services.review.patch_parser import parse_patch
from smart_reviewer.services.review.pipeline import ReviewPipeline

logger = structlog.get_logger()


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def context_from_event(event: dict[str, Any]) -> PullRequestContext:
    """Build a context from a GitHub Actions ``pull_request`` event payload."""
    pull_request = event.get("pull_request")
    if not pull_request:
        raise ConfigurationError("Event payload has no pull_request")

    base_sha = (pull_request.get("base") or {}).get("sha")
    if not base_sha:
        raise ConfigurationError("Base commit id not found in event payload")

    repository = event.get("repository") or {}
    return PullRequestContext(
        owner=repository["owner"]["login"],
        repo=repository["name"],
        pull_request_number=pull_request.get("number") or 0,
        title=pull_request.get("title") or "",
        description=pull_request.get("body") or "",
        base_commit_id=base_sha,
        head_commit_id=pull_request["head"]["sha"],
    )


async def _context_from_api(
    github: GitHubClient, owner: str, repo: str, pr_number: int
) -> PullRequestContext:
    pr = await github.get_pull_request(owner, repo, pr_number)
    return PullRequestContext(
        owner=owner,
        repo=repo,
        pull_request_number=pr.number,
        title=pr.title,
        description=pr.body or "",
        base_commit_id=pr.base_sha,
        head_commit_id=pr.head_sha,
    )


async def run_review(args: argparse.Namespace, settings: Settings) -> int:
    pipeline = ReviewPipeline(settings=settings)
    try:
        if args.owner and args.repo and args.pr:
            ctx = await _context_from_api(pipeline.github, args.owner, args.repo, args.pr)
        else:
            event_path = args.event_path or settings.github_event_path
            if not event_path:
                raise ConfigurationError("GITHUB_EVENT_PATH is not set")
            ctx = context_from_event(json.loads(_read_input(event_path)))

        result = await pipeline.execute(ctx)
    finally:
        await pipeline.close()

    logger.info(
        "Review finished",
        pr_number=result.pr_number,
        files_reviewed=result.files_reviewed,
        total_comments=result.total_comments,
        skipped=result.skipped,
    )
    return 0


def cmd_review(args: argparse.Namespace) -> int:
    try:
        settings = get_settings()
    except ValidationError as e:
        raise ConfigurationError("Invalid configuration", {"errors": e.errors()}) from e

    if args.dry_run:
        settings = settings.model_copy(update={"dry_run": True})
    if settings.debug and not args.debug:
        configure_logging(debug=True)

    return asyncio.run(run_review(args, settings))


def cmd_parse_patch(args: argparse.Namespace) -> int:
    results = parse_patch(args.filename, _read_input(args.file))
    print(json.dumps([asdict(result) for result in results], indent=2))
    return 0


def cmd_parse_review(args: argparse.Namespace) -> int:
    comments = parse_review_comment(args.filename, _read_input(args.file))
    print(json.dumps([asdict(comment) for comment in comments], indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smart-reviewer", description="AI pull request reviewer"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    review = subparsers.add_parser("review", help="Review a pull request")
    review.add_argument("--event-path", help="GitHub event payload (default: GITHUB_EVENT_PATH)")
    review.add_argument("--owner", help="Repository owner")
    review.add_argument("--repo", help="Repository name")
    review.add_argument("--pr", type=int, help="Pull request number")
    review.add_argument("--dry-run", action="store_true", help="Do not write to GitHub")
    review.set_defaults(func=cmd_review)

    patch = subparsers.add_parser("parse-patch", help="Parse a unified diff patch")
    patch.add_argument("file", help="Patch file, or - for stdin")
    patch.add_argument("--filename", default="", help="Path the patch belongs to")
    patch.set_defaults(func=cmd_parse_patch)

    review_text = subparsers.add_parser("parse-review", help="Parse a model review reply")
    review_text.add_argument("file", help="Reply file, or - for stdin")
    review_text.add_argument("--filename", default="", help="Path the reply belongs to")
    review_text.set_defaults(func=cmd_parse_review)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)

    try:
        return int(args.func(args))
    except ReviewBotError as e:
        logger.error("Command failed", error=e.message, details=e.details)
        return 1


if __name__ == "__main__":
    sys.exit(main())
