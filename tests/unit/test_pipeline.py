from unittest.mock import AsyncMock, MagicMock

import pytest

from smart_reviewer.core.config import Settings
from smart_reviewer.core.exceptions import GitHubError
from smart_reviewer.services.github.commenter import (
    COMMIT_ID_END_TAG,
    COMMIT_ID_START_TAG,
    SUMMARIZE_TAG,
)
from smart_reviewer.services.github.models import ChangedFile, FileStatus, IssueComment
from smart_reviewer.services.review.context import PullRequestContext
from smart_reviewer.services.review.pipeline import ReviewPipeline
from tests.fixtures.sample_patches import PYTHON_PATCH, SIMPLE_PATCH


class TestReviewPipeline:
    """Tests for the review pipeline."""

    @pytest.fixture
    def changed_files(self) -> list[ChangedFile]:
        return [
            ChangedFile(
                sha="a1",
                filename="hello.py",
                status=FileStatus.MODIFIED,
                additions=2,
                deletions=1,
                changes=3,
                patch=PYTHON_PATCH,
            ),
            ChangedFile(
                sha="b2",
                filename="src/main.ts",
                status=FileStatus.MODIFIED,
                patch=SIMPLE_PATCH,
            ),
            ChangedFile(
                sha="c3",
                filename="package-lock.json",
                status=FileStatus.MODIFIED,
                patch="@@ -1,1 +1,1 @@\n-a\n+b",
            ),
            ChangedFile(sha="d4", filename="logo.bin", status=FileStatus.ADDED),
        ]

    @pytest.fixture
    def mock_github_client(self, changed_files: list[ChangedFile]) -> MagicMock:
        client = MagicMock()
        client.compare_commits = AsyncMock(return_value=changed_files)
        client.get_file_content = AsyncMock(return_value="print('hi')\n")
        client.list_issue_comments = AsyncMock(return_value=[])
        client.create_issue_comment = AsyncMock(return_value=IssueComment(id=11))
        client.update_issue_comment = AsyncMock(return_value=IssueComment(id=11))
        client.get_pull_request = AsyncMock()
        client.update_pull_request_body = AsyncMock(return_value={})
        client.create_review_comment = AsyncMock(return_value={"id": 1})
        client.close = AsyncMock()
        return client

    @pytest.fixture
    def summary_bot(self) -> MagicMock:
        bot = MagicMock()
        bot.create = AsyncMock(return_value="* summary")
        return bot

    @pytest.fixture
    def review_bot(self) -> MagicMock:
        bot = MagicMock()
        bot.create = AsyncMock(return_value="2-3:\nCheck this.\n---\n4-4:\nLGTM!")
        return bot

    @pytest.fixture
    def pipeline(
        self,
        mock_github_client: MagicMock,
        summary_bot: MagicMock,
        review_bot: MagicMock,
        settings: Settings,
    ) -> ReviewPipeline:
        return ReviewPipeline(
            github_client=mock_github_client,
            summary_bot=summary_bot,
            review_bot=review_bot,
            settings=settings,
        )

    @pytest.fixture
    def mock_update_description(self, monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
        update = AsyncMock()
        monkeypatch.setattr(
            "smart_reviewer.services.github.commenter.Commenter.update_description", update
        )
        return update

    @pytest.mark.asyncio
    async def test_execute_success(
        self,
        pipeline: ReviewPipeline,
        mock_github_client: MagicMock,
        summary_bot: MagicMock,
        mock_update_description: AsyncMock,
        pr_context: PullRequestContext,
    ) -> None:
        """Test full pipeline for a first review."""
        result = await pipeline.execute(pr_context)

        assert result.skipped is False
        assert result.files_changed == 2
        assert result.files_reviewed == 2
        # one non-LGTM comment per chunk: one chunk in hello.py, two in main.ts
        assert result.total_comments == 3
        assert result.summary_posted is True
        assert result.release_notes == "* summary"

        mock_github_client.compare_commits.assert_called_once_with(
            "octo", "widgets", "base000", "head111"
        )
        # two file summaries plus the release notes
        assert summary_bot.create.call_count == 3
        mock_update_description.assert_awaited_once()
        assert mock_github_client.create_review_comment.await_count == 3
        mock_github_client.create_issue_comment.assert_awaited_once()
        summary_body = mock_github_client.create_issue_comment.call_args.args[3]
        assert SUMMARIZE_TAG in summary_body
        assert "package-lock.json" not in summary_body

    @pytest.mark.asyncio
    async def test_get_changed_files_filters_and_parses(
        self, pipeline: ReviewPipeline, pr_context: PullRequestContext
    ) -> None:
        changes = await pipeline.get_changed_files(pr_context, "base000")

        assert [c.filename for c in changes] == ["hello.py", "src/main.ts"]
        assert [d.index for d in changes[1].diff] == [1, 2]
        assert changes[0].diff[0].to_hunk.start_line == 1
        assert changes[0].content is None

    @pytest.mark.asyncio
    async def test_file_content_fetched_when_enabled(
        self,
        pipeline: ReviewPipeline,
        mock_github_client: MagicMock,
        pr_context: PullRequestContext,
    ) -> None:
        pipeline.settings.use_file_content = True
        mock_github_client.get_file_content.side_effect = [GitHubError("too big"), "x = 1\n"]

        changes = await pipeline.get_changed_files(pr_context, "base000")

        assert changes[0].content is None
        assert changes[1].content == "x = 1\n"
        assert mock_github_client.get_file_content.call_args.args[3] == "head111"

    @pytest.mark.asyncio
    async def test_ignore_keyword_skips_review(
        self,
        pipeline: ReviewPipeline,
        mock_github_client: MagicMock,
        pr_context: PullRequestContext,
    ) -> None:
        pr_context.description = "WIP @review-bot: ignore"

        result = await pipeline.execute(pr_context)

        assert result.skipped is True
        mock_github_client.compare_commits.assert_not_called()

    @pytest.mark.asyncio
    async def test_incremental_review(
        self,
        pipeline: ReviewPipeline,
        mock_github_client: MagicMock,
        summary_bot: MagicMock,
        pr_context: PullRequestContext,
    ) -> None:
        """A previous summary comment limits the review to new commits."""
        previous = IssueComment(
            id=11,
            body=(
                f"summary\n{COMMIT_ID_START_TAG}\n<!-- base000 -->\n<!-- mid555 -->\n"
                f"{COMMIT_ID_END_TAG}\n{SUMMARIZE_TAG}"
            ),
        )
        mock_github_client.list_issue_comments.return_value = [previous]

        result = await pipeline.execute(pr_context)

        assert pr_context.summary_comment_id == 11
        assert pr_context.last_review_commit_id == "mid555"
        bases = [call.args[2] for call in mock_github_client.compare_commits.call_args_list]
        assert bases == ["base000", "mid555"]
        # release notes are only generated once per PR
        summary_bot.create.assert_not_called()
        assert result.release_notes is None
        mock_github_client.update_issue_comment.assert_awaited_once()
        mock_github_client.create_issue_comment.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_changes_still_posts_summary(
        self,
        pipeline: ReviewPipeline,
        mock_github_client: MagicMock,
        review_bot: MagicMock,
        pr_context: PullRequestContext,
    ) -> None:
        mock_github_client.compare_commits.return_value = []

        result = await pipeline.execute(pr_context)

        assert result.files_reviewed == 0
        review_bot.create.assert_not_called()
        mock_github_client.create_issue_comment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disable_review_and_release_notes(
        self,
        pipeline: ReviewPipeline,
        summary_bot: MagicMock,
        review_bot: MagicMock,
        pr_context: PullRequestContext,
    ) -> None:
        pipeline.settings.disable_review = True
        pipeline.settings.disable_release_notes = True

        result = await pipeline.execute(pr_context)

        assert result.total_comments == 0
        summary_bot.create.assert_not_called()
        review_bot.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_dry_run_makes_no_writes(
        self,
        pipeline: ReviewPipeline,
        mock_github_client: MagicMock,
        pr_context: PullRequestContext,
    ) -> None:
        pipeline.settings.dry_run = True

        result = await pipeline.execute(pr_context)

        assert result.total_comments == 3
        assert result.summary_posted is False
        mock_github_client.update_pull_request_body.assert_not_called()
        mock_github_client.create_review_comment.assert_not_called()
        mock_github_client.create_issue_comment.assert_not_called()
        mock_github_client.update_issue_comment.assert_not_called()

    @pytest.mark.asyncio
    async def test_github_failure_propagates(
        self,
        pipeline: ReviewPipeline,
        mock_github_client: MagicMock,
        pr_context: PullRequestContext,
    ) -> None:
        mock_github_client.compare_commits.side_effect = GitHubError("GitHub API error: 500")

        with pytest.raises(GitHubError):
            await pipeline.execute(pr_context)

    @pytest.mark.asyncio
    async def test_close(self, pipeline: ReviewPipeline, mock_github_client: MagicMock) -> None:
        await pipeline.close()

        mock_github_client.close.assert_awaited_once()
