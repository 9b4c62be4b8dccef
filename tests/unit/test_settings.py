from pathlib import Path

import pytest

from relman.config.settings import (
    DEFAULT_CONFIG_PATH,
    RunMode,
    Settings,
    clear_settings_cache,
    get_settings,
)


def test_settings_defaults() -> None:
    settings = Settings()
    assert settings.log_level == "INFO"
    assert settings.log_format_normalized == "text"
    assert settings.config_path == DEFAULT_CONFIG_PATH
    assert settings.git_binary == "git"
    assert settings.run_mode is RunMode.INTERACTIVE


def test_log_format_normalized() -> None:
    settings = Settings(log_format=" JSON ")
    assert settings.log_format_normalized == "json"


def test_prefixed_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELMAN_LOG_LEVEL", "debug")
    monkeypatch.setenv("RELMAN_CONFIG_PATH", "ops/release.yml")
    monkeypatch.setenv("RELMAN_GIT_BINARY", "/usr/local/bin/git")
    settings = Settings()
    assert settings.log_level == "debug"
    assert settings.config_path == Path("ops/release.yml")
    assert settings.git_binary == "/usr/local/bin/git"


@pytest.mark.parametrize("variable", ["CI", "RELMAN_CI"])
def test_ci_mode_from_environment(monkeypatch: pytest.MonkeyPatch, variable: str) -> None:
    monkeypatch.setenv(variable, "true")
    settings = Settings()
    assert settings.ci
    assert settings.run_mode is RunMode.CI
    assert settings.run_mode.is_ci


def test_ci_mode_by_keyword() -> None:
    assert Settings(ci=True).run_mode is RunMode.CI


def test_get_settings_is_cached_until_cleared(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    assert get_settings() is first

    monkeypatch.setenv("RELMAN_LOG_FORMAT", "json")
    assert get_settings().log_format == "text"

    clear_settings_cache()
    assert get_settings().log_format == "json"


def test_settings_fields() -> None:
    assert set(Settings.model_fields) == {
        "log_level",
        "log_format",
        "ci",
        "config_path",
        "git_binary",
    }
