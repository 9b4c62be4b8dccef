import json
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate
from pydantic import BaseModel, Field, field_validator

from relman.config.settings import CONTRACTS_DIR
from relman.core.errors import ConfigError

SCHEMA_PATH = CONTRACTS_DIR / "release-config.schema.json"


class DescribeMode(Enum):
    CHANGELOG = "changelog"
    RELEASE = "release"
    FULL = "full"


def _as_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class ReleaseSettings(BaseModel):
    development_branch: str = ""
    release_branch: str = ""
    version: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class ChangelogConfig(BaseModel):
    path: str = ""
    content_template: str = ""
    header_template: str = ""
    footer_template: str = ""
    template_path: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class ReleaseConfig(BaseModel):
    release: ReleaseSettings = Field(default_factory=ReleaseSettings)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)

    def with_release(self, **changes: str) -> "ReleaseConfig":
        return self.model_copy(update={"release": self.release.model_copy(update=changes)})

    def with_changelog(self, **changes: str) -> "ReleaseConfig":
        return self.model_copy(update={"changelog": self.changelog.model_copy(update=changes)})

    def describe(self, mode: DescribeMode = DescribeMode.FULL) -> list[str]:
        lines = ["Your config:", f" * Development branch: {self.release.development_branch}"]
        if mode in (DescribeMode.RELEASE, DescribeMode.FULL):
            lines.append(f" * Release branch: {self.release.release_branch}")
        lines.append(f" * Release version: {self.release.version}")
        if mode in (DescribeMode.CHANGELOG, DescribeMode.FULL):
            lines.append(f" * Changelog path: {self.changelog.path}")
            if self.changelog.template_path:
                lines.append(f" * Changelog template path: {self.changelog.template_path}")
        return lines


class _LiteralDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.Node:
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_LiteralDumper.add_representer(str, _represent_str)


def _load_schema(schema_path: Path) -> dict[str, Any]:
    return json.loads(schema_path.read_text(encoding="utf-8"))


def parse_config(raw: str, schema_path: Path = SCHEMA_PATH) -> ReleaseConfig:
    try:
        payload = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed release configuration: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigError("Invalid configuration: expected a mapping at the top level")
    if payload.get("release") is None:
        raise ConfigError("Invalid configuration: no release configuration defined")

    try:
        validate(instance=payload, schema=_load_schema(schema_path))
    except ValidationError as exc:
        location = ".".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ConfigError(f"Invalid configuration at {location}: {exc.message}") from exc

    return ReleaseConfig.model_validate(
        {"release": payload["release"], "changelog": payload.get("changelog") or {}}
    )


def load_config(path: Path, schema_path: Path = SCHEMA_PATH) -> ReleaseConfig:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read release config at ({path}): {exc}") from exc
    return parse_config(raw, schema_path=schema_path)


def dump_config(config: ReleaseConfig) -> str:
    payload: dict[str, Any] = {"release": config.release.model_dump()}
    changelog = {key: value for key, value in config.changelog.model_dump().items() if value}
    if changelog:
        payload["changelog"] = changelog
    return yaml.dump(payload, Dumper=_LiteralDumper, sort_keys=False, allow_unicode=True)


def write_config(config: ReleaseConfig, path: Path) -> None:
    try:
        path.write_text(dump_config(config), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write release config to ({path}): {exc}") from exc
