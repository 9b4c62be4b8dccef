import logging
import subprocess
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from relman.core.errors import GitCommandError, GitError
from relman.git.models import LOG_FORMAT, Commit, parse_log
from relman.versioning import is_version

logger = logging.getLogger("relman.git")

Runner = Callable[..., subprocess.CompletedProcess[str]]


def _lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def _by_date(commits: list[Commit]) -> list[Commit]:
    # stable: commits sharing a timestamp keep the order git printed them in
    return sorted(commits, key=lambda commit: commit.date)


class GitClient:
    """Commit store backed by the ``git`` executable."""

    def __init__(
        self,
        repo_dir: Path | None = None,
        git_binary: str = "git",
        runner: Runner = subprocess.run,
    ):
        self._repo_dir = repo_dir
        self._git_binary = git_binary
        self._runner = runner

    def _run(self, *args: str) -> str:
        command = [self._git_binary, *args]
        logger.debug("=> %s", " ".join(command))
        kwargs: dict[str, Any] = {"check": False, "capture_output": True, "text": True}
        if self._repo_dir is not None:
            kwargs["cwd"] = str(self._repo_dir)
        try:
            result = self._runner(command, **kwargs)
        except FileNotFoundError as exc:
            raise GitError(
                f"git executable not found: {self._git_binary}", code="git_missing"
            ) from exc

        if result.returncode != 0:
            raise GitCommandError(command, result.returncode, result.stderr or result.stdout)
        logger.debug("output:\n%s", result.stdout)
        return result.stdout

    def _log(self, *args: str) -> list[Commit]:
        return parse_log(self._run("log", f"--format={LOG_FORMAT}", *args))

    def _single_commit(self, revision: str) -> Commit:
        commits = self._log("-1", revision, "--")
        if not commits:
            raise GitError(f"No commit found for {revision}", code="commit_missing")
        return commits[0]

    def _all_commits(self) -> list[Commit]:
        return _by_date(self._log("--reverse"))

    def local_branches(self) -> list[str]:
        return _lines(self._run("branch", "--list"))

    def tags(self) -> list[str]:
        return _lines(self._run("tag", "--list"))

    def version_tagged_commits(self) -> list[Commit]:
        tagged: list[Commit] = []
        for tag in self.tags():
            if not is_version(tag):
                logger.debug("skipping non-version tag %s", tag)
                continue
            tagged.append(self._single_commit(tag).with_tag(tag))
        return _by_date(tagged)

    def first_commit(self) -> Commit:
        roots = _lines(self._run("rev-list", "--max-parents=0", "HEAD"))
        if not roots:
            raise GitError("Repository has no root commit", code="commit_missing")
        # rev-list prints newest first; the oldest root is the start of history
        return self._single_commit(roots[-1])

    def latest_commit(self) -> Commit:
        return self._single_commit("HEAD")

    def commits_between(self, start: datetime, end: datetime) -> list[Commit]:
        return [commit for commit in self._all_commits() if start <= commit.date <= end]

    def commits_from(self, start_commit: Commit | None) -> list[Commit]:
        commits = self._all_commits()
        if start_commit is None:
            return commits
        return [commit for commit in commits if commit.date >= start_commit.date]

    def current_branch(self) -> str:
        return self._run("symbolic-ref", "--short", "HEAD").strip()

    def checkout_branch(self, name: str) -> None:
        self._run("checkout", name)

    def has_uncommitted_changes(self) -> bool:
        return self._run("status", "--porcelain").strip() != ""

    def changed_files(self) -> list[str]:
        paths: list[str] = []
        for line in self._run("status", "--porcelain").splitlines():
            if len(line) < 4:
                continue
            path = line[3:]
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            paths.append(path.strip().strip('"'))
        return paths

    def stage_files(self, paths: list[str]) -> None:
        if not paths:
            return
        self._run("add", "--", *paths)

    def commit(self, message: str) -> None:
        self._run("commit", "-m", message)

    def merge_branch(self, source: str, message: str) -> None:
        self._run("merge", source, "--no-ff", "-m", message)

    def tag(self, name: str) -> None:
        self._run("tag", name)
