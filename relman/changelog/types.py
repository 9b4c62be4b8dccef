from dataclasses import dataclass, field
from datetime import datetime

from relman.git.models import Commit


@dataclass(frozen=True)
class ChangelogSection:
    # None marks the start of the repository history
    start_tagged_commit: Commit | None
    end_tagged_commit: Commit
    commits: tuple[Commit, ...] = ()


@dataclass(frozen=True)
class ChangelogDocument:
    version: str
    current_date: datetime
    sections: tuple[ChangelogSection, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PersistedChangelog:
    header: str
    content: str
    footer: str
