"""Parser for the model's ``start-end:`` review reply."""

import re
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

SECTION_SEPARATOR = "---"
LGTM_MARKER = "lgtm!"

SECTION_PATTERN = re.compile(r"^(\d+)-(\d+):?\s*(.*\S)$", re.DOTALL)


@dataclass(frozen=True)
class ReviewComment:
    """A review comment anchored to an inclusive line range of the new file."""

    filename: str
    start_line: int
    end_line: int
    comment: str
    is_lgtm: bool = False


def parse_review_comment(filename: str, raw_text: str | None) -> list[ReviewComment]:
    """
    Extract review comments from a model reply.

    The reply is a sequence of ``start-end:\\n<comment>`` sections separated
    by ``---``. Sections that do not match, or whose range is inverted, are
    dropped silently.

    Args:
        filename: File the comments belong to.
        raw_text: The model's reply.

    Returns:
        Comments in the order they appear in the reply.
    """
    if not raw_text or not raw_text.strip():
        return []

    comments: list[ReviewComment] = []
    for section in raw_text.split(SECTION_SEPARATOR):
        section = section.strip()
        if not section:
            continue

        match = SECTION_PATTERN.match(section)
        if not match:
            continue

        start_line = int(match.group(1))
        end_line = int(match.group(2))
        if start_line > end_line:
            logger.debug(
                "Skipping comment with inverted range",
                filename=filename,
                start_line=start_line,
                end_line=end_line,
            )
            continue

        comment = match.group(3).strip()
        # a bare ``10-15:`` leaves only the range colon behind
        if comment == ":":
            continue

        comments.append(
            ReviewComment(
                filename=filename,
                start_line=start_line,
                end_line=end_line,
                comment=comment,
                is_lgtm=LGTM_MARKER in comment.lower(),
            )
        )

    return comments
