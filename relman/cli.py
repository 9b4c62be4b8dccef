import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from relman.config.release_config import ReleaseConfig, load_config
from relman.config.settings import RunMode, Settings, get_settings
from relman.core.errors import ReleaseError
from relman.core.logging import configure_logging
from relman.git.client import GitClient
from relman.release.workflow import ReleaseOptions, ReleaseWorkflow
from relman.versioning import SEGMENTS

logger = logging.getLogger("relman.cli")

_OPTION_NAMES = (
    "development_branch",
    "release_branch",
    "version",
    "bump_version",
    "changelog_path",
    "set_version_script",
    "get_version_script",
)


def _add_option(parser: argparse.ArgumentParser, name: str) -> None:
    flag = "--" + name.replace("_", "-")
    if name == "development_branch":
        parser.add_argument(flag, "-d", default=None, help="development branch name")
    elif name == "release_branch":
        parser.add_argument(flag, "-r", default=None, help="release branch name")
    elif name == "version":
        parser.add_argument(flag, "-v", default=None, help="release version")
    elif name == "bump_version":
        parser.add_argument(
            flag,
            choices=SEGMENTS,
            default=None,
            help="bump the current version instead of passing --version",
        )
    elif name == "changelog_path":
        parser.add_argument(flag, "-c", default=None, help="changelog file path")
    elif name == "set_version_script":
        parser.add_argument(
            flag,
            default=None,
            help="command run before the changelog; next_version is in its environment",
        )
    elif name == "get_version_script":
        parser.add_argument(flag, default=None, help="command printing the current version")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relman", description="Create changelogs and git releases from your history"
    )
    parser.add_argument("--log-level", default=None, help="logging level (default: INFO)")
    parser.add_argument(
        "--log-format", choices=("text", "json"), default=None, help="log output format"
    )
    parser.add_argument(
        "--ci",
        action="store_true",
        default=False,
        help="never prompt; fail on missing inputs and skip confirmations",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="release config path (release_config.yml)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    commands = {
        "create": ("Create changelog and release", _OPTION_NAMES),
        "create-changelog": (
            "Create changelog only",
            (
                "development_branch",
                "version",
                "bump_version",
                "changelog_path",
                "set_version_script",
                "get_version_script",
            ),
        ),
        "create-release": (
            "Create release only",
            (
                "development_branch",
                "release_branch",
                "version",
                "bump_version",
                "get_version_script",
            ),
        ),
        "init": (
            "Create a release config",
            ("development_branch", "release_branch", "changelog_path"),
        ),
    }
    for command, (help_text, option_names) in commands.items():
        subparser = subparsers.add_parser(command, help=help_text)
        for name in option_names:
            _add_option(subparser, name)
    return parser


def options_from_args(args: argparse.Namespace) -> ReleaseOptions:
    return ReleaseOptions(**{name: getattr(args, name, None) for name in _OPTION_NAMES})


def load_release_config(path: Path) -> ReleaseConfig:
    if not path.is_file():
        logger.debug("No release config at %s", path, extra={"path": str(path)})
        return ReleaseConfig()
    return load_config(path)


def run_command(
    args: argparse.Namespace, settings: Settings, mode: RunMode
) -> ReleaseConfig:
    config_path: Path = args.config or settings.config_path
    store = GitClient(git_binary=settings.git_binary)
    workflow = ReleaseWorkflow(store, mode, config_path=config_path)
    options = options_from_args(args)

    if args.command == "init":
        return workflow.init(options)

    config = load_release_config(config_path)
    if args.command == "create-changelog":
        return workflow.create_changelog(config, options)
    if args.command == "create-release":
        return workflow.create_release(config, options)
    return workflow.create(config, options)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(
        args.log_level or settings.log_level,
        args.log_format or settings.log_format_normalized,
    )
    mode = RunMode.CI if args.ci or settings.ci else RunMode.INTERACTIVE
    if mode.is_ci:
        logger.info("Running in CI mode", extra={"command": args.command})

    try:
        run_command(args, settings, mode)
    except ReleaseError as exc:
        logger.error(exc.message, extra={"command": args.command, "error_code": exc.code})
        if mode.is_ci:
            print(json.dumps(exc.envelope(args.command).as_dict()), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted", extra={"command": args.command})
        return 130
    return 0
