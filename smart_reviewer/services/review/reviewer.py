"""Summarizing and reviewing changed files with the configured models."""

import asyncio
from typing import Protocol

import structlog

from smart_reviewer.core.config import Settings
from smart_reviewer.core.exceptions import ReviewBotError
from smart_reviewer.core.metrics import record_chunk_reviewed
from smart_reviewer.prompts.review import (
    build_release_notes_prompt,
    build_review_prompt,
    build_summarize_file_prompt,
)
from smart_reviewer.services.github.commenter import Commenter
from smart_reviewer.services.llm.base import Message
from smart_reviewer.services.review.comment_parser import ReviewComment, parse_review_comment
from smart_reviewer.services.review.context import ChangeFile, FileDiff, PullRequestContext

logger = structlog.get_logger()


class TextModel(Protocol):
    async def create(self, messages: list[Message]) -> str: ...


class Reviewer:
    """Drives the summary and review models over a set of changed files."""

    def __init__(
        self,
        summary_bot: TextModel,
        review_bot: TextModel,
        commenter: Commenter,
        settings: Settings,
    ) -> None:
        self.summary_bot = summary_bot
        self.review_bot = review_bot
        self.commenter = commenter
        self._settings = settings

    async def summarize_changes(self, ctx: PullRequestContext, changes: list[ChangeFile]) -> str:
        """
        Summarize each file, then condense the summaries into release notes.

        Args:
            ctx: Pull request context; receives the per-file summaries.
            changes: Files to summarize, in order.

        Returns:
            The release notes text produced by the summary model.
        """
        for change in changes:
            messages = build_summarize_file_prompt(
                ctx,
                change,
                language=self._settings.language,
                use_file_content=self._settings.use_file_content,
            )
            summary = await self.summary_bot.create(messages)

            change.summary = summary
            logger.debug("File summarized", filename=change.filename, summary=summary)
            ctx.append_change_summary(change.filename, summary)

        messages = build_release_notes_prompt(ctx.change_summary, self._settings.language)
        return await self.summary_bot.create(messages)

    async def review_changes(
        self, ctx: PullRequestContext, changes: list[ChangeFile]
    ) -> list[ReviewComment]:
        """
        Review every chunk and post the comments that need attention.

        Chunks are reviewed concurrently up to ``review_concurrency``. A failed
        model call or a failed post is logged and skipped.

        Returns:
            The non-LGTM comments that were posted (or would be, in dry-run
            mode), in file and chunk order.
        """
        semaphore = asyncio.Semaphore(max(1, self._settings.review_concurrency))

        async def review_one(change: ChangeFile, diff: FileDiff) -> list[ReviewComment]:
            async with semaphore:
                return await self._review_diff(ctx, change, diff)

        tasks = [review_one(change, diff) for change in changes for diff in change.diff]
        results = await asyncio.gather(*tasks)

        return [comment for comments in results for comment in comments]

    async def _review_diff(
        self, ctx: PullRequestContext, change: ChangeFile, diff: FileDiff
    ) -> list[ReviewComment]:
        messages = build_review_prompt(
            ctx,
            change,
            diff,
            language=self._settings.language,
            review_policy=self._settings.review_policy,
            use_file_content=self._settings.use_file_content,
        )

        logger.debug("Start review", filename=diff.filename, index=diff.index)

        try:
            reply = await self.review_bot.create(messages)
        except ReviewBotError as e:
            logger.warning(
                "Failed to generate review comment",
                filename=change.filename,
                error=e.message,
            )
            record_chunk_reviewed("failed")
            return []

        logger.debug("Review reply", filename=diff.filename, reply=reply)

        posted: list[ReviewComment] = []
        for review in parse_review_comment(change.filename, reply):
            if review.is_lgtm:
                continue

            if not self._settings.dry_run:
                try:
                    await self.commenter.create_review_comment(review)
                except ReviewBotError as e:
                    logger.warning(
                        "Failed to post review comment",
                        filename=change.filename,
                        start_line=review.start_line,
                        end_line=review.end_line,
                        error=e.message,
                    )
                    continue
            posted.append(review)

        record_chunk_reviewed("commented" if posted else "lgtm")
        return posted
