from datetime import UTC, datetime

import pytest

from relman.core.errors import CommitParseError
from relman.git.models import (
    FIELD_SEPARATOR,
    RECORD_SEPARATOR,
    Commit,
    parse_commit,
    parse_date,
    parse_log,
)


def _record(*fields: str) -> str:
    return FIELD_SEPARATOR.join(fields) + RECORD_SEPARATOR


def test_parse_date_reads_unix_seconds_as_utc() -> None:
    assert parse_date("1700000000\n") == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)


@pytest.mark.parametrize("raw", ["", "yesterday", "-5"])
def test_parse_date_rejects_invalid_timestamps(raw: str) -> None:
    with pytest.raises(CommitParseError):
        parse_date(raw)


def test_parse_commit_keeps_full_message_and_author() -> None:
    commit = parse_commit("abc123\x1f100\x1fJane Doe\x1fSubject line\n\nBody text\n")

    assert commit.hash == "abc123"
    assert commit.author == "Jane Doe"
    assert commit.message == "Subject line\n\nBody text"
    assert commit.subject == "Subject line"
    assert commit.date == datetime.fromtimestamp(100, tz=UTC)
    assert not commit.is_tagged


def test_parse_commit_requires_hash_and_message() -> None:
    with pytest.raises(CommitParseError):
        parse_commit("abc\x1f100\x1fJane\x1f   ")
    with pytest.raises(CommitParseError):
        parse_commit("abc\x1f100")


def test_parse_log_splits_records_in_order() -> None:
    output = _record("a1", "100", "Ann", "first") + "\n" + _record("b2", "200", "Bob", "second")

    commits = parse_log(output)

    assert [commit.hash for commit in commits] == ["a1", "b2"]
    assert [commit.subject for commit in commits] == ["first", "second"]


def test_parse_log_of_empty_output_is_empty() -> None:
    assert parse_log("") == []
    assert parse_log("\n") == []


def test_with_tag_returns_tagged_copy() -> None:
    commit = Commit(hash="a", message="m", date=datetime.fromtimestamp(1, tz=UTC))

    tagged = commit.with_tag("1.0.0")

    assert tagged.is_tagged
    assert tagged.tag == "1.0.0"
    assert commit.tag == ""
