"""Main review pipeline orchestration."""

import time
from dataclasses import dataclass

import structlog

from smart_reviewer.core.config import Settings, get_settings
from smart_reviewer.core.exceptions import GitHubError, ReviewBotError
from smart_reviewer.core.metrics import record_review_completed
from smart_reviewer.prompts.review import build_system_prompt
from smart_reviewer.services.github.client import GitHubClient
from smart_reviewer.services.github.commenter import (
    SUMMARIZE_TAG,
    Commenter,
    get_reviewed_commit_ids,
)
from smart_reviewer.services.llm.router import ChatBotRouter
from smart_reviewer.services.review.comment_parser import ReviewComment
from smart_reviewer.services.review.context import ChangeFile, FileDiff, PullRequestContext
from smart_reviewer.services.review.patch_parser import parse_patch
from smart_reviewer.services.review.path_filter import PathFilter
from smart_reviewer.services.review.reviewer import Reviewer, TextModel

logger = structlog.get_logger()


@dataclass
class PipelineResult:
    """Result of a review pipeline execution."""

    pr_number: int
    repository: str
    files_changed: int
    files_reviewed: int
    total_comments: int
    release_notes: str | None = None
    summary_posted: bool = False
    skipped: bool = False


class ReviewPipeline:
    """Orchestrates the code review process."""

    def __init__(
        self,
        github_client: GitHubClient | None = None,
        summary_bot: TextModel | None = None,
        review_bot: TextModel | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.github = github_client or GitHubClient(settings=self.settings)
        self.path_filter = PathFilter(self.settings.path_filters)

        system_prompt = build_system_prompt(self.settings.system_prompt, self.settings.language)
        self.summary_bot = summary_bot or ChatBotRouter(
            self.settings.summary_model, system_prompt, self.settings
        )
        self.review_bot = review_bot or ChatBotRouter(
            self.settings.model, system_prompt, self.settings
        )

    async def get_changed_files(
        self, ctx: PullRequestContext, base_commit_id: str
    ) -> list[ChangeFile]:
        """Fetch, filter and parse the files changed since ``base_commit_id``."""
        logger.debug(
            "Fetching changed files", base=base_commit_id, head=ctx.head_commit_id
        )
        files = await self.github.compare_commits(
            ctx.owner, ctx.repo, base_commit_id, ctx.head_commit_id
        )

        changes: list[ChangeFile] = []
        for file in files:
            # Binary files and pure renames carry no patch
            if not file.patch:
                continue
            if not self.path_filter.check(file.filename):
                logger.debug("Skipping filtered path", filename=file.filename)
                continue

            change = ChangeFile(
                filename=file.filename,
                sha=file.sha or "",
                status=file.status.value,
                patch=file.patch,
                additions=file.additions,
                deletions=file.deletions,
                changes=file.changes,
                url=file.blob_url,
            )

            if self.settings.use_file_content:
                change.content = await self._get_file_content(ctx, file.filename)

            for index, result in enumerate(parse_patch(file.filename, file.patch), start=1):
                change.diff.append(FileDiff.from_result(file.filename, index, result))

            logger.debug(
                "Changed file parsed",
                filename=file.filename,
                status=change.status,
                chunks=len(change.diff),
            )
            changes.append(change)

        return changes

    async def _get_file_content(self, ctx: PullRequestContext, path: str) -> str | None:
        try:
            return await self.github.get_file_content(
                ctx.owner, ctx.repo, path, ctx.head_commit_id
            )
        except GitHubError as e:
            logger.warning("Could not fetch file content", path=path, error=e.message)
            return None

    async def _restore_previous_run(self, ctx: PullRequestContext, commenter: Commenter) -> None:
        existing = await commenter.find_comment(SUMMARIZE_TAG)
        if existing is None:
            return

        ctx.summary_comment_id = existing.id
        reviewed = get_reviewed_commit_ids(existing.body)
        if reviewed:
            ctx.last_review_commit_id = reviewed[-1]
        logger.info(
            "Found previous summary comment",
            comment_id=existing.id,
            last_review_commit_id=ctx.last_review_commit_id,
        )

    async def execute(self, ctx: PullRequestContext) -> PipelineResult:
        """
        Execute the full review pipeline for a pull request.

        Args:
            ctx: Pull request to review.

        Returns:
            PipelineResult with review details.
        """
        logger.info(
            "Starting review pipeline",
            repository=ctx.repository,
            pr_number=ctx.pull_request_number,
            dry_run=self.settings.dry_run,
        )

        if self.settings.includes_ignore_keyword(ctx.description):
            logger.info("Ignore keyword found in PR description, skipping review")
            return PipelineResult(
                pr_number=ctx.pull_request_number,
                repository=ctx.repository,
                files_changed=0,
                files_reviewed=0,
                total_comments=0,
                skipped=True,
            )

        start_time = time.perf_counter()
        status = "failed"
        all_changes: list[ChangeFile] = []
        changes: list[ChangeFile] = []
        reviews: list[ReviewComment] = []

        try:
            commenter = Commenter(
                self.github,
                ctx,
                greeting=self.settings.comment_greeting,
                release_notes_title=self.settings.release_notes_title,
            )
            reviewer = Reviewer(self.summary_bot, self.review_bot, commenter, self.settings)

            await self._restore_previous_run(ctx, commenter)

            all_changes = await self.get_changed_files(ctx, ctx.base_commit_id)
            if ctx.last_review_commit_id == ctx.base_commit_id:
                changes = all_changes
            else:
                changes = await self.get_changed_files(ctx, ctx.last_review_commit_id)

            release_notes = None
            if changes:
                if not self.settings.disable_release_notes and not ctx.summary_comment_id:
                    logger.info("Generating release notes", files=len(all_changes))
                    release_notes = await reviewer.summarize_changes(ctx, all_changes)
                    logger.debug("Release notes generated", release_notes=release_notes)

                    if not self.settings.dry_run:
                        await commenter.update_description(release_notes)
                        logger.info("Updated PR description with release notes")

                if not self.settings.disable_review:
                    reviews = await reviewer.review_changes(ctx, changes)
            else:
                logger.info("No changes found in the PR, skipping review")

            summary_posted = False
            if not self.settings.dry_run:
                await commenter.post_pull_request_summary(all_changes, reviews)
                summary_posted = True
                logger.info("Posted pull request summary")

            status = "success"

        except ReviewBotError as e:
            logger.error("Review pipeline failed", error=e.message, details=e.details)
            raise

        finally:
            record_review_completed(
                repository=ctx.repository,
                status=status,
                duration_seconds=time.perf_counter() - start_time,
                files_analyzed=len(changes),
                comments_posted=len(reviews),
            )

        return PipelineResult(
            pr_number=ctx.pull_request_number,
            repository=ctx.repository,
            files_changed=len(all_changes),
            files_reviewed=len(changes),
            total_comments=len(reviews),
            release_notes=release_notes,
            summary_posted=summary_posted,
        )

    async def close(self) -> None:
        """Clean up resources."""
        await self.github.close()
