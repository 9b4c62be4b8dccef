"""Split a commit history into per-release changelog sections.

Section boundaries are the version tagged commits. A commit belongs to the
section whose start boundary is strictly older and whose end boundary is
strictly newer than the commit itself, so a commit dated exactly on a tag
boundary (normally the tagged commit) is listed in neither neighbour.

Boundary sections:

* before the first tag: start is ``None`` (repository start); emitted only
  when it holds commits, so appending the newest release never repeats an
  empty "initial" heading.
* after the last tag: the end is a synthetic commit carrying the target
  version and the current time.

Ordering happens in exactly one place per list: sections are built oldest
first and reversed once; commits are filtered in input (ascending) order
and reversed once. Both lists come out newest first.
"""

from collections.abc import Sequence
from datetime import datetime

from relman.changelog.types import ChangelogDocument, ChangelogSection
from relman.git.models import Commit


def release_commit(target_version: str, now: datetime) -> Commit:
    """Synthetic end boundary for the version about to be released."""
    return Commit(hash="", message="", date=now, tag=target_version)


def commits_between(
    commits: Sequence[Commit],
    start: datetime | None,
    end: datetime | None,
) -> tuple[Commit, ...]:
    selected = [
        commit
        for commit in commits
        if (start is None or start < commit.date) and (end is None or commit.date < end)
    ]
    selected.reverse()
    return tuple(selected)


def partition(
    commits: Sequence[Commit],
    tagged_commits: Sequence[Commit],
    target_version: str,
    now: datetime,
) -> list[ChangelogSection]:
    current = release_commit(target_version, now)
    if not tagged_commits:
        return [
            ChangelogSection(
                start_tagged_commit=None,
                end_tagged_commit=current,
                commits=commits_between(commits, None, None),
            )
        ]

    tags = sorted(tagged_commits, key=lambda commit: commit.date)
    sections: list[ChangelogSection] = []

    leading = commits_between(commits, None, tags[0].date)
    if leading:
        sections.append(
            ChangelogSection(start_tagged_commit=None, end_tagged_commit=tags[0], commits=leading)
        )

    for start, end in zip(tags, tags[1:]):
        sections.append(
            ChangelogSection(
                start_tagged_commit=start,
                end_tagged_commit=end,
                commits=commits_between(commits, start.date, end.date),
            )
        )

    sections.append(
        ChangelogSection(
            start_tagged_commit=tags[-1],
            end_tagged_commit=current,
            commits=commits_between(commits, tags[-1].date, None),
        )
    )

    sections.reverse()
    return sections


def build_changelog_document(
    commits: Sequence[Commit],
    tagged_commits: Sequence[Commit],
    target_version: str,
    now: datetime,
) -> ChangelogDocument:
    return ChangelogDocument(
        version=target_version,
        current_date=now,
        sections=tuple(partition(commits, tagged_commits, target_version, now)),
    )
