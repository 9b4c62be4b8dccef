from dataclasses import dataclass, replace
from datetime import UTC, datetime

from relman.core.errors import CommitParseError

FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\x1e"
# hash, committer unix time, author name, raw body
LOG_FORMAT = "%H%x1f%ct%x1f%an%x1f%B%x1e"


@dataclass(frozen=True)
class Commit:
    hash: str
    message: str
    date: datetime
    author: str = ""
    tag: str = ""

    @property
    def subject(self) -> str:
        return self.message.strip().splitlines()[0] if self.message.strip() else ""

    @property
    def is_tagged(self) -> bool:
        return self.tag != ""

    def with_tag(self, tag: str) -> "Commit":
        return replace(self, tag=tag)


def parse_date(unix_timestamp: str) -> datetime:
    raw = unix_timestamp.strip()
    try:
        seconds = int(raw)
    except ValueError as exc:
        raise CommitParseError(f"Invalid time stamp ({unix_timestamp!r})") from exc
    if seconds < 0:
        raise CommitParseError(f"Invalid time stamp ({unix_timestamp!r})")
    return datetime.fromtimestamp(seconds, tz=UTC)


def parse_commit(record: str) -> Commit:
    parts = record.strip("\n").split(FIELD_SEPARATOR)
    if len(parts) != 4:
        raise CommitParseError(f"Failed to parse commit: {record!r}")

    commit_hash, timestamp, author, message = parts
    commit_hash = commit_hash.strip()
    message = message.strip()
    if not commit_hash or not message:
        raise CommitParseError(f"Failed to parse commit: {record!r}")

    return Commit(
        hash=commit_hash,
        message=message,
        date=parse_date(timestamp),
        author=author.strip(),
    )


def parse_log(output: str) -> list[Commit]:
    """Parse ``git log --format=LOG_FORMAT`` output, keeping the log order."""
    commits: list[Commit] = []
    for chunk in output.split(RECORD_SEPARATOR):
        if not chunk.strip():
            continue
        commits.append(parse_commit(chunk))
    return commits
