from smart_reviewer.services.github.client import GitHubClient
from smart_reviewer.services.github.commenter import Commenter
from smart_reviewer.services.github.models import ChangedFile, IssueComment, PullRequest

__all__ = ["ChangedFile", "Commenter", "GitHubClient", "IssueComment", "PullRequest"]
