from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path("release_config.yml")
CONTRACTS_DIR = Path(__file__).resolve().parents[1] / "contracts"


class RunMode(Enum):
    INTERACTIVE = "interactive"
    CI = "ci"

    @property
    def is_ci(self) -> bool:
        return self is RunMode.CI


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RELMAN_", case_sensitive=False, populate_by_name=True
    )

    log_level: str = "INFO"
    log_format: str = "text"
    ci: bool = Field(default=False, validation_alias=AliasChoices("RELMAN_CI", "CI", "ci"))
    config_path: Path = DEFAULT_CONFIG_PATH
    git_binary: str = "git"

    @property
    def log_format_normalized(self) -> str:
        return self.log_format.strip().lower()

    @property
    def run_mode(self) -> RunMode:
        return RunMode.CI if self.ci else RunMode.INTERACTIVE


@lru_cache
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
