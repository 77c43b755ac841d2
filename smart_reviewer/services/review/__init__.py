"""Review service package."""

from smart_reviewer.services.review.comment_parser import ReviewComment, parse_review_comment
from smart_reviewer.services.review.context import ChangeFile, FileDiff, PullRequestContext
from smart_reviewer.services.review.patch_parser import DiffResult, Hunk, parse_patch
from smart_reviewer.services.review.path_filter import PathFilter

__all__ = [
    "ChangeFile",
    "DiffResult",
    "FileDiff",
    "Hunk",
    "PathFilter",
    "PullRequestContext",
    "ReviewComment",
    "parse_patch",
    "parse_review_comment",
]
