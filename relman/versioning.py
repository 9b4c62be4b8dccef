"""Semantic version helpers built on ``packaging``.

Versions follow PEP 440 parsing, which accepts the usual ``1.2.3`` and
``v1.2.3`` tag spellings as well as shorter ``1.2`` / ``1`` forms. Bumping
works on the release segments only: the chosen segment is incremented,
lower segments are reset to zero and the result always has at least three
segments. A leading ``v`` on the input is kept on the output.
"""

from collections.abc import Iterable

from packaging.version import InvalidVersion, Version

from relman.core.errors import ConfigError

PATCH = "patch"
MINOR = "minor"
MAJOR = "major"
SEGMENTS = (PATCH, MINOR, MAJOR)

_SEGMENT_INDEX = {MAJOR: 0, MINOR: 1, PATCH: 2}


def parse_version(version: str) -> Version:
    try:
        return Version(version.strip())
    except InvalidVersion as exc:
        raise ConfigError(f"Invalid version ({version})", code="version_invalid") from exc


def is_version(value: str) -> bool:
    try:
        Version(value.strip())
    except InvalidVersion:
        return False
    return True


def validate_version(version: str) -> None:
    parse_version(version)


def segment_index(segment: str) -> int:
    try:
        return _SEGMENT_INDEX[segment.strip().lower()]
    except KeyError as exc:
        raise ConfigError(
            f"Invalid segment name ({segment}), expected one of: {', '.join(SEGMENTS)}",
            code="segment_invalid",
        ) from exc


def bump_version(version: str, segment: str) -> str:
    index = segment_index(segment)
    release = list(parse_version(version).release)
    while len(release) < 3:
        release.append(0)

    # lower segments restart at zero: 1.1.1 major -> 2.0.0, not 2.1.1
    release[index] += 1
    for position in range(index + 1, len(release)):
        release[position] = 0

    prefix = "v" if version.strip()[:1] in {"v", "V"} else ""
    return prefix + ".".join(str(part) for part in release)


def latest_version_tag(tags: Iterable[str]) -> str | None:
    """Highest tag by version precedence; non-version tags are ignored."""
    versions = [(parse_version(tag), tag) for tag in tags if is_version(tag)]
    if not versions:
        return None
    return max(versions, key=lambda item: item[0])[1]
