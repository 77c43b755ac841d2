from dataclasses import dataclass, field

from smart_reviewer.services.review.patch_parser import DiffResult, Hunk


@dataclass(frozen=True)
class FileDiff:
    """A single chunk of a changed file, ready to be rendered into a prompt."""

    filename: str
    index: int
    from_hunk: Hunk
    to_hunk: Hunk

    @classmethod
    def from_result(cls, filename: str, index: int, result: DiffResult) -> "FileDiff":
        return cls(
            filename=filename,
            index=index,
            from_hunk=result.from_hunk,
            to_hunk=result.to_hunk,
        )


@dataclass
class ChangeFile:
    """A changed file together with its parsed chunks."""

    filename: str
    sha: str
    status: str
    patch: str
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    url: str | None = None
    content: str | None = None
    summary: str = ""
    diff: list[FileDiff] = field(default_factory=list)


@dataclass
class PullRequestContext:
    """Pull request metadata shared by the reviewer, prompts and commenter."""

    owner: str
    repo: str
    pull_request_number: int
    title: str
    base_commit_id: str
    head_commit_id: str
    description: str = ""
    last_review_commit_id: str = ""
    summary_comment_id: int | None = None
    file_summaries: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.last_review_commit_id:
            self.last_review_commit_id = self.base_commit_id

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    def append_change_summary(self, filename: str, summary: str) -> None:
        self.file_summaries.append(f"### {filename}\n\n{summary}")

    @property
    def change_summary(self) -> str:
        return "\n".join(self.file_summaries)

    def commit_summary(self) -> str:
        """Collapsible markdown block describing the reviewed commit range."""
        return (
            "\n<details>\n<summary>Commits</summary>\n"
            "Files that changed from the base of the PR and between "
            f"{self.base_commit_id} and {self.head_commit_id} commits.\n"
            "</details>\n"
        )
