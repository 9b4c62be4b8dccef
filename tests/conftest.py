import logging
from collections.abc import Callable, Iterator, Sequence
from datetime import UTC, datetime

import pytest

from relman.config.settings import clear_settings_cache
from relman.core.logging import ConsoleFormatter, JsonFormatter
from relman.git.models import Commit


def commit_at(
    timestamp: int,
    commit_hash: str,
    message: str | None = None,
    tag: str = "",
    author: str = "Jane Doe",
) -> Commit:
    return Commit(
        hash=commit_hash,
        message=message or f"commit {commit_hash}",
        date=datetime.fromtimestamp(timestamp, tz=UTC),
        author=author,
        tag=tag,
    )


class FakeCommitStore:
    def __init__(
        self,
        commits: Sequence[Commit] = (),
        tagged_commits: Sequence[Commit] = (),
        branches: Sequence[str] = ("* develop", "master"),
        current_branch: str = "develop",
        dirty: bool = False,
        changed_files: Sequence[str] = (),
    ):
        self.commits = list(commits)
        self.tagged_commits = list(tagged_commits)
        self.branches = list(branches)
        self.current = current_branch
        self.dirty = dirty
        self.changed = list(changed_files)
        self.calls: list[tuple[str, ...]] = []

    def local_branches(self) -> list[str]:
        return list(self.branches)

    def tags(self) -> list[str]:
        return [commit.tag for commit in self.tagged_commits]

    def version_tagged_commits(self) -> list[Commit]:
        return sorted(self.tagged_commits, key=lambda commit: commit.date)

    def first_commit(self) -> Commit:
        return self.commits[0]

    def latest_commit(self) -> Commit:
        return self.commits[-1]

    def commits_between(self, start: datetime, end: datetime) -> list[Commit]:
        return [commit for commit in self.commits if start <= commit.date <= end]

    def commits_from(self, start_commit: Commit | None) -> list[Commit]:
        if start_commit is None:
            return list(self.commits)
        return [commit for commit in self.commits if commit.date >= start_commit.date]

    def current_branch(self) -> str:
        return self.current

    def checkout_branch(self, name: str) -> None:
        self.calls.append(("checkout", name))
        self.current = name

    def has_uncommitted_changes(self) -> bool:
        return self.dirty

    def changed_files(self) -> list[str]:
        return list(self.changed)

    def stage_files(self, paths: list[str]) -> None:
        self.calls.append(("add", *paths))

    def commit(self, message: str) -> None:
        self.calls.append(("commit", message))

    def merge_branch(self, source: str, message: str) -> None:
        self.calls.append(("merge", source, message))

    def tag(self, name: str) -> None:
        self.calls.append(("tag", name))


class FakePrompter:
    """Scripted answers; unscripted questions take the offered default."""

    def __init__(
        self,
        strings: Sequence[str] = (),
        bools: Sequence[bool] = (),
        selections: Sequence[str] = (),
    ):
        self.strings = list(strings)
        self.bools = list(bools)
        self.selections = list(selections)
        self.questions: list[str] = []

    def ask_string(self, question: str, default: str = "") -> str:
        self.questions.append(question)
        answer = self.strings.pop(0) if self.strings else ""
        return answer or default

    def ask_bool(self, question: str, default: bool = True) -> bool:
        self.questions.append(question)
        return self.bools.pop(0) if self.bools else default

    def select(
        self, question: str, options: Sequence[str], default_index: int | None = None
    ) -> str:
        self.questions.append(question)
        if self.selections:
            return self.selections.pop(0)
        if default_index is None:
            raise AssertionError(f"no answer scripted for: {question}")
        return options[default_index]


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in (
        "CI",
        "RELMAN_CI",
        "RELMAN_LOG_LEVEL",
        "RELMAN_LOG_FORMAT",
        "RELMAN_CONFIG_PATH",
        "RELMAN_GIT_BINARY",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    # drop handlers installed by configure_logging during the test
    for handler in list(root_logger.handlers):
        if isinstance(handler.formatter, (ConsoleFormatter, JsonFormatter)):
            root_logger.removeHandler(handler)
    root_logger.setLevel(level)


@pytest.fixture
def make_commit() -> Callable[..., Commit]:
    return commit_at


@pytest.fixture
def make_store() -> Callable[..., FakeCommitStore]:
    return FakeCommitStore


@pytest.fixture
def make_prompter() -> Callable[..., FakePrompter]:
    return FakePrompter
