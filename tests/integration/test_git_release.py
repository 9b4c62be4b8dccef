import os
import shutil
import subprocess
from datetime import UTC, datetime
from pathlib import Path

import pytest

from relman.config.release_config import ReleaseConfig
from relman.config.settings import RunMode
from relman.git.client import GitClient
from relman.release.workflow import ReleaseOptions, ReleaseWorkflow

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

BASE = 1_700_000_000
NOW = datetime.fromtimestamp(BASE + 1_000, tz=UTC)


def _git(repo: Path, *args: str, timestamp: int | None = None) -> str:
    env = dict(os.environ)
    if timestamp is not None:
        env["GIT_AUTHOR_DATE"] = f"@{timestamp} +0000"
        env["GIT_COMMITTER_DATE"] = f"@{timestamp} +0000"
    result = subprocess.run(
        ["git", *args], cwd=repo, env=env, check=True, capture_output=True, text=True
    )
    return result.stdout


def _commit(repo: Path, name: str, timestamp: int) -> None:
    (repo / f"{name}.txt").write_text(name, encoding="utf-8")
    _git(repo, "add", f"{name}.txt")
    _git(repo, "commit", "-m", f"Add {name}", timestamp=timestamp)


@pytest.fixture
def repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("GIT_MERGE_AUTOEDIT", "no")
    root = tmp_path / "repo"
    root.mkdir()
    _git(root, "init")
    _git(root, "config", "user.name", "Jane Doe")
    _git(root, "config", "user.email", "jane@example.com")
    _git(root, "config", "commit.gpgsign", "false")
    _git(root, "config", "tag.gpgsign", "false")
    _git(root, "checkout", "-b", "develop")

    _commit(root, "first", BASE + 100)
    _git(root, "branch", "master")
    _commit(root, "second", BASE + 200)
    _git(root, "tag", "1.0.0")
    _git(root, "tag", "nightly")
    _commit(root, "third", BASE + 300)
    _commit(root, "fourth", BASE + 400)
    return root


def test_client_reads_history_and_tags(repo: Path) -> None:
    client = GitClient(repo_dir=repo)

    tagged = client.version_tagged_commits()
    commits = client.commits_from(None)

    assert [commit.tag for commit in tagged] == ["1.0.0"]
    assert tagged[0].subject == "Add second"
    assert [commit.subject for commit in commits] == [
        "Add first",
        "Add second",
        "Add third",
        "Add fourth",
    ]
    assert commits[0].author == "Jane Doe"
    assert client.first_commit().subject == "Add first"
    assert client.latest_commit().subject == "Add fourth"
    assert client.current_branch() == "develop"
    assert "* develop" in client.local_branches()
    assert "master" in client.local_branches()
    assert not client.has_uncommitted_changes()


def test_create_writes_changelog_merges_and_tags(repo: Path) -> None:
    client = GitClient(repo_dir=repo)
    workflow = ReleaseWorkflow(client, RunMode.CI, clock=lambda: NOW)
    config = (
        ReleaseConfig()
        .with_release(development_branch="develop", release_branch="master")
        .with_changelog(path=str(repo / "CHANGELOG.md"))
    )

    result = workflow.create(config, ReleaseOptions())

    assert result.release.version == "1.0.1"
    changelog = (repo / "CHANGELOG.md").read_text(encoding="utf-8")
    assert changelog.index("Add fourth") < changelog.index("Add third")
    assert changelog.index("Add third") < changelog.index("Add first")
    assert "Add second" not in changelog
    assert "1.0.1" in client.tags()
    assert client.current_branch() == "develop"
    assert not client.has_uncommitted_changes()
    assert _git(repo, "log", "-1", "--format=%s", "master").strip() == (
        "Merge develop into master, release: v1.0.1"
    )
    assert _git(repo, "log", "-1", "--format=%s", "develop").strip() == "v1.0.1"


def test_existing_changelog_gets_only_the_new_release(repo: Path) -> None:
    path = repo / "CHANGELOG.md"
    path.write_text("previous notes\n", encoding="utf-8")
    workflow = ReleaseWorkflow(GitClient(repo_dir=repo), RunMode.CI, clock=lambda: NOW)
    config = ReleaseConfig().with_release(version="1.1.0").with_changelog(path=str(path))

    composed = workflow.generate_changelog(config)

    text = path.read_text(encoding="utf-8")
    assert composed.appended
    assert text.startswith("### 1.0.0 - 1.1.0 (")
    assert "Add first" not in text
    assert text.endswith("\n\nprevious notes\n")
