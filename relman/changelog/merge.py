"""Splice freshly rendered changelog content into a previous changelog file.

A changelog written with header/footer templates has the shape::

    header
    -----------------
    content
    -----------------
    footer

The header ends at the first separator line and the footer starts at the
last one. Only the content region is carried over on append; header and
footer are rendered again on every run.
"""

import logging
from dataclasses import dataclass

from relman.changelog.types import PersistedChangelog
from relman.core.errors import ChangelogParseError

logger = logging.getLogger("relman.changelog")

SEPARATOR = "-----------------"


@dataclass(frozen=True)
class MergeResult:
    content: str
    degraded: bool = False
    warning: str | None = None


def _is_separator(line: str) -> bool:
    return line.rstrip("\r") == SEPARATOR


def parse_changelog(text: str) -> PersistedChangelog:
    lines = text.split("\n")
    separator_indexes = [index for index, line in enumerate(lines) if _is_separator(line)]
    if len(separator_indexes) < 2:
        raise ChangelogParseError(
            f"expected two separator lines ({SEPARATOR}), found {len(separator_indexes)}"
        )

    first, last = separator_indexes[0], separator_indexes[-1]
    return PersistedChangelog(
        header="\n".join(lines[:first]),
        content="\n".join(lines[first + 1 : last]),
        footer="\n".join(lines[last + 1 :]),
    )


def previous_content(previous_text: str, header_configured: bool) -> MergeResult:
    """Extract the content region, falling back to the whole file."""
    if not header_configured:
        return MergeResult(content=previous_text)

    try:
        return MergeResult(content=parse_changelog(previous_text).content)
    except ChangelogParseError as exc:
        warning = f"previous changelog is not in header/content/footer form ({exc.message}); "
        warning += "appending to the whole file"
        logger.warning(warning)
        return MergeResult(content=previous_text, degraded=True, warning=warning)


def merge(new_content: str, previous_text: str, header_configured: bool) -> MergeResult:
    previous = previous_content(previous_text, header_configured)
    return MergeResult(
        content=new_content + "\n" + previous.content,
        degraded=previous.degraded,
        warning=previous.warning,
    )


def assemble(header: str, content: str, footer: str) -> str:
    if not header and not footer:
        return content
    return "\n".join([header, SEPARATOR, content, SEPARATOR, footer])
