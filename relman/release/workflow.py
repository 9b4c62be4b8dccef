"""Release bookkeeping: resolve inputs, write the changelog, cut the release.

Every input (branches, version, changelog path) is resolved in the same
order: explicit option, then the release config file, then an interactive
prompt. In CI mode the prompt step is replaced by ``MissingInputError``.

The release itself is a fixed git sequence on the development branch::

    commit "v<version>"          (``create`` only, after the changelog)
    checkout <release branch>
    merge --no-ff <development branch>
    tag <version>
    checkout <development branch>
"""

import logging
import os
import shlex
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from relman.changelog.partition import build_changelog_document
from relman.changelog.render import (
    DEFAULT_CONTENT_TEMPLATE,
    DEFAULT_FOOTER_TEMPLATE,
    DEFAULT_HEADER_TEMPLATE,
    INITIAL_COMMIT_LABEL,
)
from relman.changelog.writer import ChangelogWriter, ComposedChangelog, load_templates
from relman.config.release_config import DescribeMode, ReleaseConfig, write_config
from relman.config.settings import DEFAULT_CONFIG_PATH, RunMode
from relman.core.errors import (
    ConfigError,
    GitError,
    MissingInputError,
    ReleaseAborted,
    ReleaseError,
)
from relman.git.base import CommitStore
from relman.git.models import Commit
from relman.prompts import ConsolePrompter, Prompter
from relman.versioning import PATCH, bump_version, latest_version_tag, validate_version

logger = logging.getLogger("relman.release")

DEFAULT_CHANGELOG_PATH = "CHANGELOG.md"
DEFAULT_FIRST_RELEASE_VERSION = "0.0.1"

ROLLBACK_INSTRUCTIONS = (
    "How to roll-back?",
    "* if you want to undo the last commit you can call:",
    "    $ git reset --hard HEAD~1",
    "* to delete tag:",
    "    $ git tag -d [TAG]",
    "    $ git push origin :refs/tags/[TAG]",
    "* to roll back to the remote state:",
    "    $ git reset --hard origin/[branch-name]",
)

ScriptRunner = Callable[..., subprocess.CompletedProcess[str]]


@dataclass(frozen=True)
class ReleaseOptions:
    development_branch: str | None = None
    release_branch: str | None = None
    version: str | None = None
    bump_version: str | None = None
    changelog_path: str | None = None
    set_version_script: str | None = None
    get_version_script: str | None = None


def utc_now() -> datetime:
    return datetime.now(UTC).replace(microsecond=0)


def display_version(version: str) -> str:
    return version if version[:1] in {"v", "V"} else f"v{version}"


class ReleaseWorkflow:
    def __init__(
        self,
        store: CommitStore,
        mode: RunMode = RunMode.INTERACTIVE,
        prompter: Prompter | None = None,
        clock: Callable[[], datetime] = utc_now,
        script_runner: ScriptRunner = subprocess.run,
        config_path: Path = DEFAULT_CONFIG_PATH,
    ):
        self._store = store
        self._mode = mode
        self._prompter = prompter or ConsolePrompter()
        self._clock = clock
        self._script_runner = script_runner
        self._config_path = config_path

    # -- input resolution -------------------------------------------------

    def _ask_branch(self, question: str, is_default: Callable[[str], bool]) -> str:
        branches = self._store.local_branches()
        default_index: int | None = None
        for index, branch in enumerate(branches):
            if is_default(branch):
                default_index = index
        answer = self._prompter.select(question, branches, default_index)
        # 'git branch --list' marks the current branch with '* '
        return answer.removeprefix("* ").strip()

    def fill_development_branch(
        self, config: ReleaseConfig, options: ReleaseOptions
    ) -> ReleaseConfig:
        branch = options.development_branch or config.release.development_branch
        if not branch:
            if self._mode.is_ci:
                raise MissingInputError("development branch")
            branch = self._ask_branch(
                "Select your development branch!", lambda name: name.startswith("* ")
            )
        if not branch:
            raise MissingInputError("development branch")
        return config.with_release(development_branch=branch)

    def fill_release_branch(self, config: ReleaseConfig, options: ReleaseOptions) -> ReleaseConfig:
        branch = options.release_branch or config.release.release_branch
        if not branch:
            if self._mode.is_ci:
                raise MissingInputError("release branch")
            branch = self._ask_branch("Select your release branch!", lambda name: "master" in name)
        if not branch:
            raise MissingInputError("release branch")
        return config.with_release(release_branch=branch)

    def fill_version(self, config: ReleaseConfig, options: ReleaseOptions) -> ReleaseConfig:
        tagged_commits = self._store.version_tagged_commits()

        current_version = ""
        if options.get_version_script:
            logger.info("Get version script provided")
            current_version = self.run_get_version_script(options.get_version_script)
        elif tagged_commits:
            current_version = latest_version_tag(commit.tag for commit in tagged_commits) or ""
        if current_version:
            logger.info("Current version: %s", current_version)

        version = ""
        if options.bump_version:
            if not current_version:
                raise ConfigError(
                    "Current version not found, nothing to bump", code="version_missing"
                )
            logger.info("Bumping version %s part", options.bump_version)
            version = bump_version(current_version, options.bump_version)
        elif options.version:
            version = options.version
        elif current_version:
            version = bump_version(current_version, PATCH)
        elif config.release.version:
            version = config.release.version

        if not version:
            if self._mode.is_ci:
                raise MissingInputError("release version")
            version = self._prompter.ask_string(
                "Type in the new release version!", DEFAULT_FIRST_RELEASE_VERSION
            )
        if not version:
            raise MissingInputError("release version")

        validate_version(version)
        if any(commit.tag == version for commit in tagged_commits):
            raise ConfigError(f"Tag ({version}) already exist", code="tag_exists")
        return config.with_release(version=version)

    def fill_changelog_path(self, config: ReleaseConfig, options: ReleaseOptions) -> ReleaseConfig:
        path = options.changelog_path or config.changelog.path
        if not path:
            if self._mode.is_ci:
                raise MissingInputError("changelog path")
            path = self._prompter.ask_string("Type in changelog path!", DEFAULT_CHANGELOG_PATH)
        if not path:
            raise MissingInputError("changelog path")
        return config.with_changelog(path=path)

    # -- preconditions ----------------------------------------------------

    def ensure_clean_git(self) -> None:
        if self._store.has_uncommitted_changes():
            raise GitError(
                "There are uncommitted changes in your git, "
                "please commit your changes before continue release",
                code="dirty_worktree",
            )

    def ensure_current_branch(self, config: ReleaseConfig) -> None:
        development_branch = config.release.development_branch
        current_branch = self._store.current_branch()
        if current_branch == development_branch:
            return

        message = (
            f"Your current branch ({current_branch}), "
            f"should be the development branch ({development_branch})"
        )
        if self._mode.is_ci:
            raise GitError(message, code="wrong_branch")

        logger.warning(message, extra={"branch": current_branch})
        checkout = self._prompter.ask_bool(
            f"Would you like to checkout development branch ({development_branch})?", True
        )
        if not checkout:
            raise ReleaseAborted(
                f"Current branch should be the development branch ({development_branch})"
            )
        self._store.checkout_branch(development_branch)

    def confirm(self, question: str, abort_message: str) -> None:
        if self._mode.is_ci:
            return
        if not self._prompter.ask_bool(question, True):
            raise ReleaseAborted(abort_message)

    # -- version scripts --------------------------------------------------

    def _run_script(self, script: str, env: dict[str, str] | None = None) -> str:
        command = shlex.split(script)
        if not command:
            raise ConfigError("Empty version script", code="script_invalid")
        try:
            result = self._script_runner(
                command, env=env, check=False, capture_output=True, text=True
            )
        except OSError as exc:
            raise ReleaseError("script_failed", "script", f"{script}: {exc}") from exc
        if result.returncode != 0:
            output = (result.stdout + result.stderr).strip()
            raise ReleaseError(
                "script_failed", "script", f"{script} exited with {result.returncode}: {output}"
            )
        return result.stdout

    def run_set_version_script(self, script: str, next_version: str) -> None:
        env = dict(os.environ)
        env["next_version"] = next_version
        self._run_script(script, env=env)

    def run_get_version_script(self, script: str) -> str:
        version = self._run_script(script).strip()
        if not version:
            raise ConfigError(f"Get version script printed no version: {script}")
        return version

    # -- config collection per command ------------------------------------

    def collect_changelog_config(
        self, config: ReleaseConfig, options: ReleaseOptions
    ) -> ReleaseConfig:
        config = self.fill_development_branch(config, options)
        self.ensure_current_branch(config)
        config = self.fill_version(config, options)
        return self.fill_changelog_path(config, options)

    def collect_release_config(
        self, config: ReleaseConfig, options: ReleaseOptions
    ) -> ReleaseConfig:
        config = self.fill_development_branch(config, options)
        self.ensure_current_branch(config)
        config = self.fill_release_branch(config, options)
        return self.fill_version(config, options)

    def collect_full_config(self, config: ReleaseConfig, options: ReleaseOptions) -> ReleaseConfig:
        config = self.collect_release_config(config, options)
        return self.fill_changelog_path(config, options)

    def collect_init_config(self, config: ReleaseConfig, options: ReleaseOptions) -> ReleaseConfig:
        config = self.fill_development_branch(config, options)
        self.ensure_current_branch(config)
        config = self.fill_release_branch(config, options)
        return self.fill_changelog_path(config, options)

    # -- steps ------------------------------------------------------------

    def _log_config(self, config: ReleaseConfig, mode: DescribeMode) -> None:
        for line in config.describe(mode):
            logger.info(line)

    @staticmethod
    def print_rollback_message() -> None:
        for line in ROLLBACK_INSTRUCTIONS:
            logger.info(line)

    def generate_changelog(self, config: ReleaseConfig) -> ComposedChangelog:
        version = config.release.version
        path = Path(config.changelog.path)
        tagged_commits = self._store.version_tagged_commits()

        start_commit: Commit | None = None
        relevant_tags = tagged_commits
        append = False
        if path.is_file() and tagged_commits:
            # the previous file already covers every released section
            start_commit = tagged_commits[-1]
            relevant_tags = [start_commit]
            append = True

        start_label = start_commit.tag if start_commit else INITIAL_COMMIT_LABEL
        logger.info(
            "Collecting commits between (%s - %s)",
            start_label,
            version,
            extra={"version": version},
        )

        commits = self._store.commits_from(start_commit)
        document = build_changelog_document(commits, relevant_tags, version, self._clock())
        writer = ChangelogWriter(load_templates(config.changelog))
        logger.info("=> Generating changelog...")
        return writer.write(document, path, append=append)

    def _merge_and_tag(self, config: ReleaseConfig) -> None:
        development_branch = config.release.development_branch
        release_branch = config.release.release_branch
        version = config.release.version

        logger.info("=> Merging changes into release branch...", extra={"branch": release_branch})
        self._store.checkout_branch(release_branch)
        self._store.merge_branch(
            development_branch,
            f"Merge {development_branch} into {release_branch}, "
            f"release: {display_version(version)}",
        )

        logger.info("=> Tagging release branch...", extra={"tag": version})
        self._store.tag(version)
        self._store.checkout_branch(development_branch)

    # -- commands ---------------------------------------------------------

    def create_changelog(self, config: ReleaseConfig, options: ReleaseOptions) -> ReleaseConfig:
        config = self.collect_changelog_config(config, options)
        self._log_config(config, DescribeMode.CHANGELOG)
        self.confirm("Are you ready for creating Changelog?", "Aborted create Changelog")

        if options.set_version_script:
            self.run_set_version_script(options.set_version_script, config.release.version)

        self.generate_changelog(config)
        logger.info(
            "%s Changelog created (%s)",
            display_version(config.release.version),
            config.changelog.path,
            extra={"version": config.release.version, "path": config.changelog.path},
        )
        return config

    def create_release(self, config: ReleaseConfig, options: ReleaseOptions) -> ReleaseConfig:
        self.ensure_clean_git()
        config = self.collect_release_config(config, options)
        self.print_rollback_message()
        self._log_config(config, DescribeMode.RELEASE)
        self.confirm("Are you ready for release?", "Aborted release")

        self._merge_and_tag(config)
        self._log_released(config)
        return config

    def create(self, config: ReleaseConfig, options: ReleaseOptions) -> ReleaseConfig:
        self.ensure_clean_git()
        config = self.collect_full_config(config, options)
        self.print_rollback_message()
        self._log_config(config, DescribeMode.FULL)
        self.confirm("Are you ready for release?", "Aborted release")

        if options.set_version_script:
            self.run_set_version_script(options.set_version_script, config.release.version)

        self.generate_changelog(config)

        logger.info("=> Adding changes to git...")
        self._store.stage_files(self._store.changed_files())
        self._store.commit(display_version(config.release.version))

        self._merge_and_tag(config)
        self._log_released(config)
        return config

    def init(self, options: ReleaseOptions) -> ReleaseConfig:
        path = self._config_path
        if path.exists():
            if self._mode.is_ci:
                raise ConfigError(f"Release config already exist at ({path})", code="config_exists")
            overwrite = self._prompter.ask_bool(
                f"Release config already exist at ({path}), would you like to overwrite it?", True
            )
            if not overwrite:
                raise ReleaseAborted("Create release config aborted")

        config = self.collect_init_config(ReleaseConfig(), options)
        config = config.with_changelog(
            content_template=DEFAULT_CONTENT_TEMPLATE,
            header_template=DEFAULT_HEADER_TEMPLATE,
            footer_template=DEFAULT_FOOTER_TEMPLATE,
        )
        self._log_config(config, DescribeMode.FULL)
        write_config(config, path)
        logger.info("Release config written to %s", path, extra={"path": str(path)})
        return config

    def _log_released(self, config: ReleaseConfig) -> None:
        logger.info(
            "%s released",
            display_version(config.release.version),
            extra={"version": config.release.version},
        )
        logger.info(
            "Take a look at your git, and if you are happy with the release, push the changes."
        )
