"""Changelog partitioning, rendering and merging."""

from relman.changelog.merge import SEPARATOR, MergeResult, merge, parse_changelog
from relman.changelog.partition import build_changelog_document, partition
from relman.changelog.render import JinjaTemplateRenderer, truncate
from relman.changelog.types import ChangelogDocument, ChangelogSection
from relman.changelog.writer import ChangelogWriter

__all__ = [
    "SEPARATOR",
    "ChangelogDocument",
    "ChangelogSection",
    "ChangelogWriter",
    "JinjaTemplateRenderer",
    "MergeResult",
    "build_changelog_document",
    "merge",
    "parse_changelog",
    "partition",
    "truncate",
]
