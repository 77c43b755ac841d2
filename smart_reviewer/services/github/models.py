from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"
    COPIED = "copied"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class User(BaseModel):
    """GitHub user information."""

    login: str
    id: int


class ChangedFile(BaseModel):
    """A file entry of the compare-commits response."""

    sha: str | None = None
    filename: str
    status: FileStatus
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    blob_url: str | None = None
    patch: str | None = None
    previous_filename: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ChangedFile":
        return cls.model_validate(data)


class PullRequest(BaseModel):
    """Pull request information from GitHub."""

    id: int
    number: int
    title: str
    body: str | None = None
    state: Literal["open", "closed"]
    html_url: str
    user: User
    head_sha: str
    base_sha: str
    head_ref: str
    base_ref: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        """Flatten the nested head/base objects of the pulls endpoint."""
        head, base = data["head"], data["base"]
        return cls.model_validate(
            {
                **data,
                "head_sha": head["sha"],
                "head_ref": head["ref"],
                "base_sha": base["sha"],
                "base_ref": base["ref"],
            }
        )


class IssueComment(BaseModel):
    """A conversation comment on a pull request."""

    id: int
    html_url: str = ""
    body: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "IssueComment":
        return cls(
            id=data["id"],
            html_url=data.get("html_url", ""),
            body=data.get("body") or "",
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )
