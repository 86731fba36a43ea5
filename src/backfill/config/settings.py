"""Application settings loaded from environment variables and config files."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, PositiveFloat, PositiveInt, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from backfill.config import CONFIG_ROOT


class ConfigurationError(RuntimeError):
    """Raised when required runner configuration is missing or invalid."""


class RunnerDefaults(BaseModel):
    """Tuning defaults for the batch runner read from ``runner.yaml``."""

    batch_size: PositiveInt = 10
    batch_delay_seconds: float = Field(default=2.0, ge=0.0)
    request_timeout_seconds: PositiveFloat = 60.0

    model_config = ConfigDict(extra="forbid")


def _load_runner_defaults(defaults_path: Path) -> RunnerDefaults:
    if not defaults_path.exists():
        return RunnerDefaults()

    raw_data = yaml.safe_load(defaults_path.read_text(encoding="utf-8")) or {}
    return RunnerDefaults(**(raw_data.get("runner") or {}))


class Settings(BaseSettings):
    """Primary application settings for the backfill CLI."""

    endpoint_url: Optional[HttpUrl] = Field(default=None, alias="BACKFILL_ENDPOINT_URL")
    auth_token: Optional[SecretStr] = Field(default=None, alias="BACKFILL_AUTH_TOKEN")
    video_ids_file: Path = Field(default=Path("all-video-ids.json"), alias="BACKFILL_VIDEO_IDS_FILE")
    progress_file: Path = Field(default=Path("backfill-progress.json"), alias="BACKFILL_PROGRESS_FILE")
    channel: Optional[str] = Field(default=None, alias="BACKFILL_CHANNEL")
    item_key: str = Field(default="videoId", min_length=1, alias="BACKFILL_ITEM_KEY")
    retry_failed: bool = Field(default=False, alias="BACKFILL_RETRY_FAILED")

    batch_size: Optional[PositiveInt] = Field(default=None, alias="BACKFILL_BATCH_SIZE")
    batch_delay_seconds: Optional[float] = Field(default=None, ge=0.0, alias="BACKFILL_BATCH_DELAY_SECONDS")
    request_timeout_seconds: Optional[PositiveFloat] = Field(default=None, alias="BACKFILL_REQUEST_TIMEOUT_SECONDS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    runner: RunnerDefaults = Field(default_factory=lambda: _load_runner_defaults(CONFIG_ROOT / "runner.yaml"))

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def debug(self) -> bool:
        """Whether per-request debug output is enabled."""

        return self.log_level.upper() == "DEBUG"


@dataclass(frozen=True, slots=True)
class RunnerConfig:
    """Explicit configuration handed to the batch runner and dispatcher."""

    endpoint_url: str
    auth_token: SecretStr
    video_ids_file: Path
    progress_file: Path
    channel: Optional[str] = None
    item_key: str = "videoId"
    batch_size: int = 10
    batch_delay_seconds: float = 2.0
    request_timeout_seconds: float = 60.0
    retry_failed: bool = False
    debug: bool = False

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ConfigurationError(f"Batch size must be positive, got {self.batch_size}.")
        if self.batch_delay_seconds < 0:
            raise ConfigurationError(f"Batch delay cannot be negative, got {self.batch_delay_seconds}.")


def build_runner_config(
    settings: Settings,
    *,
    channel: Optional[str] = None,
    video_ids_file: Optional[Path] = None,
    progress_file: Optional[Path] = None,
    batch_size: Optional[int] = None,
    batch_delay_seconds: Optional[float] = None,
    retry_failed: Optional[bool] = None,
    require_channel: bool = True,
) -> RunnerConfig:
    """Merge settings, ``runner.yaml`` defaults and CLI overrides into a :class:`RunnerConfig`.

    Raises
    ------
    ConfigurationError
        If the endpoint URL, the auth token or (when ``require_channel``) the channel is missing.
    """

    if settings.endpoint_url is None:
        raise ConfigurationError("BACKFILL_ENDPOINT_URL is not set.")
    if settings.auth_token is None or not settings.auth_token.get_secret_value():
        raise ConfigurationError("BACKFILL_AUTH_TOKEN is not set.")

    resolved_channel = channel or settings.channel
    if require_channel and not resolved_channel:
        raise ConfigurationError("No channel selected. Pass --channel or set BACKFILL_CHANNEL.")

    defaults = settings.runner
    return RunnerConfig(
        endpoint_url=str(settings.endpoint_url),
        auth_token=settings.auth_token,
        video_ids_file=video_ids_file or settings.video_ids_file,
        progress_file=progress_file or settings.progress_file,
        channel=resolved_channel,
        item_key=settings.item_key,
        batch_size=batch_size or settings.batch_size or defaults.batch_size,
        batch_delay_seconds=_first_set(batch_delay_seconds, settings.batch_delay_seconds, defaults.batch_delay_seconds),
        request_timeout_seconds=settings.request_timeout_seconds or defaults.request_timeout_seconds,
        retry_failed=settings.retry_failed if retry_failed is None else retry_failed,
        debug=settings.debug,
    )


def _first_set(*values: Optional[float]) -> float:
    for value in values:
        if value is not None:
            return value
    return 0.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()


__all__ = [
    "ConfigurationError",
    "RunnerConfig",
    "RunnerDefaults",
    "Settings",
    "build_runner_config",
    "get_settings",
]
