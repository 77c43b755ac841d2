"""Posting and updating the bot's comments on a pull request."""

from typing import Literal

import structlog

from smart_reviewer.core.exceptions import GitHubError, ReviewError
from smart_reviewer.services.github.client import GitHubClient
from smart_reviewer.services.github.models import IssueComment
from smart_reviewer.services.review.comment_parser import ReviewComment
from smart_reviewer.services.review.context import ChangeFile, PullRequestContext

logger = structlog.get_logger()

COMMENT_TAG = "<!-- This is an auto-generated comment -->"
SUMMARIZE_TAG = "<!-- This is an auto-generated comment: summarize -->"

DESCRIPTION_START_TAG = "<!-- This is an auto-generated comment: release notes -->"
DESCRIPTION_END_TAG = "<!-- end of auto-generated comment: release notes -->"

COMMIT_ID_START_TAG = "<!-- commit_ids_reviewed_start -->"
COMMIT_ID_END_TAG = "<!-- commit_ids_reviewed_end -->"

REVIEW_START_TAG = "<!-- This is an auto-generated comment: code review -->"
REVIEW_END_TAG = "<!-- end of auto-generated comment: code review -->"


def get_reviewed_commit_ids(comment_body: str) -> list[str]:
    """Commit ids recorded between the reviewed-commit tags, oldest first."""
    start = comment_body.find(COMMIT_ID_START_TAG)
    end = comment_body.find(COMMIT_ID_END_TAG)
    if start == -1 or end == -1:
        return []

    ids = comment_body[start + len(COMMIT_ID_START_TAG) : end]
    return [
        commit_id.replace("-->", "").strip()
        for commit_id in ids.split("<!--")
        if commit_id.replace("-->", "").strip()
    ]


def add_reviewed_commit_id(comment_body: str, commit_id: str) -> str:
    """Append a commit id to the reviewed-commit block, creating it if missing."""
    start = comment_body.find(COMMIT_ID_START_TAG)
    end = comment_body.find(COMMIT_ID_END_TAG)
    if start == -1 or end == -1:
        return f"{comment_body}\n{COMMIT_ID_START_TAG}\n<!-- {commit_id} -->\n{COMMIT_ID_END_TAG}"

    head = comment_body[: start + len(COMMIT_ID_START_TAG)]
    ids = comment_body[start + len(COMMIT_ID_START_TAG) : end]
    return f"{head}{ids}<!-- {commit_id} -->\n{comment_body[end:]}"


def remove_content_within_tags(content: str, start_tag: str, end_tag: str) -> str:
    """Drop everything from the first start tag through the last end tag."""
    start = content.find(start_tag)
    end = content.rfind(end_tag)
    if start >= 0 and end >= 0:
        return content[:start] + content[end + len(end_tag) :]
    return content


class Commenter:
    """Creates and updates the bot's comments on one pull request."""

    def __init__(
        self,
        github: GitHubClient,
        ctx: PullRequestContext,
        greeting: str = "",
        release_notes_title: str = "Key Changes",
    ) -> None:
        self.github = github
        self.ctx = ctx
        self.greeting = greeting
        self.release_notes_title = release_notes_title
        self._comments_cache: list[IssueComment] | None = None

    async def list_comments(self) -> list[IssueComment]:
        if self._comments_cache is None:
            self._comments_cache = await self.github.list_issue_comments(
                self.ctx.owner, self.ctx.repo, self.ctx.pull_request_number
            )
        return self._comments_cache

    async def find_comment(self, search: str) -> IssueComment | None:
        """First comment whose body contains ``search``; None on lookup failure."""
        try:
            comments = await self.list_comments()
        except GitHubError as e:
            logger.warning("Failed to list comments", error=e.message)
            return None

        for comment in comments:
            if search in comment.body:
                return comment
        return None

    async def comment(
        self,
        message: str,
        tag: str = COMMENT_TAG,
        mode: Literal["create", "update"] = "create",
        comment_id: int | None = None,
    ) -> IssueComment:
        """Create or update a tagged conversation comment."""
        body = f"{self.greeting}\n\n{message}\n\n{tag}"

        logger.debug("Writing comment", mode=mode, comment_id=comment_id)

        if mode == "create":
            created = await self.github.create_issue_comment(
                self.ctx.owner, self.ctx.repo, self.ctx.pull_request_number, body
            )
            if self._comments_cache is not None:
                self._comments_cache.append(created)
            return created

        if mode == "update" and comment_id is not None:
            return await self.github.update_issue_comment(
                self.ctx.owner, self.ctx.repo, comment_id, body
            )

        raise ReviewError(f"Invalid comment mode: {mode}", {"comment_id": comment_id})

    async def update_description(self, release_notes: str) -> None:
        """Replace the release-notes block of the PR description."""
        pr = await self.github.get_pull_request(
            self.ctx.owner, self.ctx.repo, self.ctx.pull_request_number
        )
        description = remove_content_within_tags(
            pr.body or "", DESCRIPTION_START_TAG, DESCRIPTION_END_TAG
        )
        cleaned = remove_content_within_tags(
            release_notes, DESCRIPTION_START_TAG, DESCRIPTION_END_TAG
        )

        new_description = (
            f"{description}\n{DESCRIPTION_START_TAG}\n"
            f"### {self.release_notes_title}:\n{cleaned}\n{DESCRIPTION_END_TAG}"
        )
        await self.github.update_pull_request_body(
            self.ctx.owner, self.ctx.repo, self.ctx.pull_request_number, new_description
        )

    async def create_review_comment(self, review: ReviewComment) -> None:
        """Post one parsed review comment inline on the head commit."""
        body = f"{REVIEW_START_TAG}\n\n{review.comment}\n\n{REVIEW_END_TAG}"
        await self.github.create_review_comment(
            self.ctx.owner,
            self.ctx.repo,
            self.ctx.pull_request_number,
            review,
            commit_id=self.ctx.head_commit_id,
            body=body,
        )

    def render_summary(self, changes: list[ChangeFile], reviews: list[ReviewComment]) -> str:
        commits = add_reviewed_commit_id(self.ctx.commit_summary(), self.ctx.head_commit_id)
        files = "\n".join(f"- {change.filename}" for change in changes)

        parts = [
            "Pull Request Summary",
            "",
            commits,
            "<details>",
            f"<summary>Review Files ({len(changes)})</summary>",
            "",
            files,
            "",
            "</details>",
        ]
        if reviews:
            parts.append("")
            parts.append(f"Review comments posted: {len(reviews)}")
        return "\n".join(parts)

    async def post_pull_request_summary(
        self,
        changes: list[ChangeFile],
        reviews: list[ReviewComment],
    ) -> IssueComment:
        """Create the summary comment, or update it on later runs."""
        mode: Literal["create", "update"] = (
            "update" if self.ctx.summary_comment_id else "create"
        )
        logger.debug(
            "Posting summary comment", mode=mode, comment_id=self.ctx.summary_comment_id
        )
        return await self.comment(
            self.render_summary(changes, reviews),
            tag=SUMMARIZE_TAG,
            mode=mode,
            comment_id=self.ctx.summary_comment_id,
        )
