from datetime import datetime
from typing import Protocol

from relman.git.models import Commit


class CommitStore(Protocol):
    def local_branches(self) -> list[str]:
        """List local branch names as printed by ``git branch``."""

    def tags(self) -> list[str]:
        """List every tag name."""

    def version_tagged_commits(self) -> list[Commit]:
        """Commits whose tag parses as a version, ascending by date."""

    def first_commit(self) -> Commit:
        """Root commit of the current branch."""

    def latest_commit(self) -> Commit:
        """Commit at HEAD."""

    def commits_between(self, start: datetime, end: datetime) -> list[Commit]:
        """Commits dated within ``[start, end]``, oldest first."""

    def commits_from(self, start_commit: Commit | None) -> list[Commit]:
        """Commits dated at or after ``start_commit``, oldest first."""

    def current_branch(self) -> str:
        """Name of the checked out branch."""

    def checkout_branch(self, name: str) -> None:
        """Switch the working tree to ``name``."""

    def has_uncommitted_changes(self) -> bool:
        """True when the working tree or index is dirty."""

    def changed_files(self) -> list[str]:
        """Paths reported by ``git status``."""

    def stage_files(self, paths: list[str]) -> None:
        """Add paths to the index."""

    def commit(self, message: str) -> None:
        """Record the index as a new commit."""

    def merge_branch(self, source: str, message: str) -> None:
        """Merge ``source`` into the current branch with a merge commit."""

    def tag(self, name: str) -> None:
        """Create a lightweight tag at HEAD."""
