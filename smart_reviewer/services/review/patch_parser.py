"""Parser turning a per-file unified-diff patch into line-addressable hunks.

Each ``@@`` chunk becomes a :class:`DiffResult` holding the before side
(``from_hunk``) and the after side (``to_hunk``). Lines of the after side are
prefixed with their absolute line number in the resulting file so the model
can quote exact ranges back to us.

Unresolved merge-conflict markers inside a chunk are folded into the two
sides: lines before ``=======`` belong to the original branch, lines after it
to the incoming branch.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple

import structlog

logger = structlog.get_logger()

CHUNK_HEADER_PATTERN = re.compile(r"^@@ -(\d+),(\d+) \+(\d+),(\d+) @@(?: (.*))?$")
CONFLICT_START_PATTERN = re.compile(r"<<<<<<<[ \t]*(\S+)?")
CONFLICT_END_PATTERN = re.compile(r">>>>>>> (\w+)\s+\(([^)]+)\)")

CONFLICT_START = "<<<<<<<"
CONFLICT_SEPARATOR = "======="
CONFLICT_END = ">>>>>>>"


@dataclass(frozen=True)
class Hunk:
    """One side (before or after) of a diff chunk."""

    filename: str
    start_line: int
    line_count: int
    content: tuple[str, ...] = ()
    branch: str | None = None
    commit_id: str | None = None


@dataclass(frozen=True)
class DiffResult:
    """The two sides of a single ``@@`` chunk."""

    from_hunk: Hunk
    to_hunk: Hunk


class ChunkHeader(NamedTuple):
    from_start: int
    from_count: int
    to_start: int
    to_count: int
    context: str


class ScanState(str, Enum):
    NORMAL = "normal"
    IN_CONFLICT = "in_conflict"


@dataclass(frozen=True)
class ChunkAccumulator:
    """Content collected so far for the chunk being scanned.

    ``line_no`` is the last line number handed out on the after side.
    """

    line_no: int
    from_content: tuple[str, ...] = ()
    to_content: tuple[str, ...] = ()
    orig_branch: str | None = None
    mod_branch: str | None = None
    mod_commit_id: str | None = None


def parse_chunk_header(line: str) -> ChunkHeader | None:
    """Parse ``@@ -a,b +c,d @@ context``; None when the line is not a valid header."""
    match = CHUNK_HEADER_PATTERN.match(line)
    if not match:
        return None

    return ChunkHeader(
        from_start=int(match.group(1)),
        from_count=int(match.group(2)),
        to_start=int(match.group(3)),
        to_count=int(match.group(4)),
        context=match.group(5) or "",
    )


def _strip_diff_marker(line: str) -> str:
    return line.lstrip("+")


def _at_chunk_end(lines: list[str], index: int) -> bool:
    return index >= len(lines) or lines[index].startswith("@@")


def scan_normal(
    lines: list[str], index: int, acc: ChunkAccumulator
) -> tuple[ChunkAccumulator, int]:
    """Consume plain diff lines up to a conflict marker or the end of the chunk."""
    from_lines: list[str] = []
    to_lines: list[str] = []
    line_no = acc.line_no

    while not _at_chunk_end(lines, index):
        line = lines[index]
        if CONFLICT_START in line:
            break

        if line.startswith("+"):
            line_no += 1
            to_lines.append(f"{line_no} {line}")
        elif line.startswith("-"):
            # Deleted lines have no position in the resulting file.
            from_lines.append(line)
        else:
            line_no += 1
            from_lines.append(line)
            to_lines.append(f"{line_no} {line}")
        index += 1

    return (
        replace(
            acc,
            line_no=line_no,
            from_content=acc.from_content + tuple(from_lines),
            to_content=acc.to_content + tuple(to_lines),
        ),
        index,
    )


def scan_conflict(
    lines: list[str], index: int, acc: ChunkAccumulator
) -> tuple[ChunkAccumulator, int]:
    """Consume a ``<<<<<<< / ======= / >>>>>>>`` block starting at ``index``.

    The whole block occupies a single output position, so every incoming line
    is labelled with the same line number.
    """
    line_no = acc.line_no + 1
    start_match = CONFLICT_START_PATTERN.search(lines[index])
    orig_branch = start_match.group(1) if start_match else None
    index += 1

    from_lines: list[str] = []
    while index < len(lines) and not _strip_diff_marker(lines[index]).startswith(
        CONFLICT_SEPARATOR
    ):
        from_lines.append(lines[index])
        index += 1

    # separator
    index += 1

    to_lines: list[str] = []
    while index < len(lines) and not _strip_diff_marker(lines[index]).startswith(
        CONFLICT_END
    ):
        to_lines.append(f"{line_no} {lines[index]}")
        index += 1

    mod_branch: str | None = None
    mod_commit_id: str | None = None
    if index < len(lines):
        end_match = CONFLICT_END_PATTERN.search(lines[index])
        if end_match:
            mod_commit_id = end_match.group(1)
            mod_branch = end_match.group(2)
        index += 1

    return (
        ChunkAccumulator(
            line_no=line_no,
            from_content=acc.from_content + tuple(from_lines),
            to_content=acc.to_content + tuple(to_lines),
            orig_branch=orig_branch,
            mod_branch=mod_branch,
            mod_commit_id=mod_commit_id,
        ),
        index,
    )


STATE_HANDLERS: dict[
    ScanState,
    Callable[[list[str], int, ChunkAccumulator], tuple[ChunkAccumulator, int]],
] = {
    ScanState.NORMAL: scan_normal,
    ScanState.IN_CONFLICT: scan_conflict,
}


def _next_state(line: str) -> ScanState:
    return ScanState.IN_CONFLICT if CONFLICT_START in line else ScanState.NORMAL


def parse_chunk(
    filename: str, header: ChunkHeader, lines: list[str], index: int
) -> tuple[DiffResult, int]:
    """Parse the chunk body starting at ``index`` (the line after the header)."""
    acc = ChunkAccumulator(line_no=header.to_start - 1)

    while not _at_chunk_end(lines, index):
        state = _next_state(lines[index])
        acc, index = STATE_HANDLERS[state](lines, index, acc)

    result = DiffResult(
        from_hunk=Hunk(
            filename=filename,
            start_line=header.from_start,
            line_count=header.from_count,
            content=acc.from_content,
            branch=acc.orig_branch,
        ),
        to_hunk=Hunk(
            filename=filename,
            start_line=header.to_start,
            line_count=header.to_count,
            content=acc.to_content,
            branch=acc.mod_branch,
            commit_id=acc.mod_commit_id,
        ),
    )
    return result, index


def parse_patch(filename: str, patch: str | None) -> list[DiffResult]:
    """
    Parse a file's patch into one DiffResult per chunk.

    Lines outside a chunk and chunks with a malformed header are skipped;
    this function never raises.

    Args:
        filename: Path of the file the patch belongs to.
        patch: Patch text as returned by the GitHub compare API.

    Returns:
        DiffResults in the order their chunks appear in the patch.
    """
    results: list[DiffResult] = []
    if not patch:
        return results

    lines = patch.split("\n")
    i = 0

    while i < len(lines):
        line = lines[i]
        if not line.startswith("@@"):
            i += 1
            continue

        header = parse_chunk_header(line)
        if header is None:
            logger.debug("Skipping malformed chunk header", filename=filename, header=line)
            i += 1
            continue

        result, i = parse_chunk(filename, header, lines, i + 1)
        logger.debug(
            "Parsed chunk",
            filename=filename,
            from_start=header.from_start,
            to_start=header.to_start,
            from_lines=len(result.from_hunk.content),
            to_lines=len(result.to_hunk.content),
        )
        results.append(result)

    return results
