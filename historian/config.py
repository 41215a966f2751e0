"""Configuration management for the historian.

Settings are resolved once at startup and handed to each component
explicitly. Values come from (lowest to highest precedence) field defaults,
the shell-style config file, ``HISTORIAN_<KEY>`` environment variables and
explicit overrides supplied by the CLI.
"""

from __future__ import annotations

import os
import shlex
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


APP_NAME = "terminal-historian"
APP_VERSION = "0.4.0"
ENV_PREFIX = "HISTORIAN_"


class HistorianError(Exception):
    """Base class for historian failures."""


class ConfigError(HistorianError):
    """Raised when configuration cannot be loaded or is invalid."""


class NoSourcesError(ConfigError):
    """Raised when no capture sources resolve at startup."""


def _xdg_dir(env_name: str, fallback: str) -> Path:
    value = os.getenv(env_name)
    if value:
        return Path(value)
    return Path.home() / fallback


def default_config_dir() -> Path:
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / APP_NAME


def default_data_dir() -> Path:
    return _xdg_dir("XDG_DATA_HOME", ".local/share") / APP_NAME


def default_state_dir() -> Path:
    return _xdg_dir("XDG_STATE_HOME", ".local/state") / APP_NAME


def default_config_path() -> Path:
    override = os.getenv("HISTORIAN_CONFIG")
    if override:
        return Path(override).expanduser()
    return default_config_dir() / "config"


def _expand(value: str) -> str:
    return os.path.expanduser(os.path.expandvars(value))


def parse_config_file(path: Path) -> Dict[str, str]:
    """Parse a ``KEY=VALUE`` file as written by the installer.

    Blank lines and ``#`` comments are skipped, an ``export`` prefix is
    tolerated and values may be quoted.
    """

    values: Dict[str, str] = {}
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return values
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc

    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export "):].strip()
        if "=" not in stripped:
            raise ConfigError(f"{path}:{lineno}: expected KEY=VALUE, got {line!r}")
        key, raw_value = stripped.split("=", 1)
        key = key.strip()
        try:
            tokens = shlex.split(raw_value, comments=True)
        except ValueError as exc:
            raise ConfigError(f"{path}:{lineno}: {exc}") from exc
        values[key] = _expand(" ".join(tokens))
    return values


class Settings(BaseModel):
    """Historian settings. Field aliases are the keys used in the config file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    # Storage locations
    config_path: Path = Field(default_factory=default_config_path, alias="CONFIG_PATH")
    raw_history_path: Path = Field(
        default_factory=lambda: default_data_dir() / "raw_history.txt", alias="RAW_HISTORY_PATH"
    )
    summary_path: Path = Field(
        default_factory=lambda: default_data_dir() / "context_summary.md", alias="SUMMARY_PATH"
    )
    rolling_summary_path: Optional[Path] = Field(default=None, alias="ROLLING_SUMMARY_PATH")
    session_log_dir: Optional[Path] = Field(
        default_factory=lambda: default_data_dir() / "sessions", alias="SESSION_LOG_DIR"
    )
    state_dir: Path = Field(default_factory=default_state_dir, alias="STATE_DIR")

    # Sources
    shell_activity_source: Optional[Path] = Field(default=None, alias="SHELL_ACTIVITY_SOURCE")
    additional_log_dirs: List[Path] = Field(default_factory=list, alias="ADDITIONAL_LOG_DIRS")
    directory_patterns: List[str] = Field(
        default_factory=lambda: ["*.log", "*.jsonl", "*history*"], alias="DIRECTORY_PATTERNS"
    )
    recent_window_minutes: int = Field(default=60, ge=0, alias="RECENT_WINDOW_MINUTES")

    # Loop cadence
    check_interval: float = Field(default=60.0, gt=0, alias="CHECK_INTERVAL")
    rotation_check_every: int = Field(default=10, ge=1, alias="ROTATION_CHECK_EVERY")
    summary_check_every: int = Field(default=100, ge=1, alias="SUMMARY_CHECK_EVERY")
    summary_interval_days: int = Field(default=7, ge=0, alias="SUMMARY_INTERVAL")

    # Retention
    max_raw_history_bytes: int = Field(default=100 * 1024 * 1024, ge=0, alias="MAX_RAW_HISTORY_BYTES")
    max_session_age_days: int = Field(default=30, ge=0, alias="MAX_SESSION_AGE")

    # Static overview
    max_summary_lines: int = Field(default=500, ge=1, alias="MAX_SUMMARY_LINES")
    include_directories: bool = Field(default=True, alias="INCLUDE_DIRECTORIES")
    include_files: bool = Field(default=True, alias="INCLUDE_FILES")
    include_commands: bool = Field(default=True, alias="INCLUDE_COMMANDS")

    # Incremental summarization
    llm_summarization: bool = Field(default=False, alias="LLM_SUMMARIZATION")
    llm_backend: Literal["anthropic", "command"] = Field(default="anthropic", alias="LLM_BACKEND")
    llm_command: str = Field(default="", alias="LLM_COMMAND")
    llm_model: str = Field(default="claude-3-haiku-20240307", alias="CLAUDE_MODEL")
    llm_base_url: str = Field(default="https://api.anthropic.com", alias="LLM_BASE_URL")
    llm_max_tokens: int = Field(default=1024, ge=1, alias="LLM_MAX_TOKENS")
    llm_timeout: float = Field(default=120.0, gt=0, alias="LLM_TIMEOUT")
    api_key_file: Path = Field(default_factory=lambda: default_config_dir() / "api_key", alias="API_KEY_FILE")
    min_pending_lines: int = Field(default=10, ge=0, alias="MIN_PENDING_LINES")
    max_transmit_bytes: int = Field(default=50_000, ge=1, alias="MAX_TRANSMIT_BYTES")
    max_batches_per_cycle: int = Field(default=5, ge=1, alias="MAX_BATCHES_PER_CYCLE")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARN", "WARNING", "ERROR"] = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(
        default_factory=lambda: default_data_dir() / "historian.log", alias="LOG_FILE"
    )
    timezone: str = Field(default="", alias="TIMEZONE")

    # Status server
    server_host: str = Field(default="127.0.0.1", alias="SERVER_HOST")
    server_port: int = Field(default=8765, ge=1, le=65535, alias="SERVER_PORT")

    @field_validator("additional_log_dirs", mode="before")
    @classmethod
    def _split_dirs(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [Path(_expand(part)) for part in value.split()]
        return value

    @field_validator("directory_patterns", mode="before")
    @classmethod
    def _split_patterns(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.split()
        return value

    @field_validator(
        "rolling_summary_path",
        "session_log_dir",
        "shell_activity_source",
        "log_file",
        mode="before",
    )
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return Path(_expand(value)) if value else None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_backend(self) -> "Settings":
        if self.llm_summarization and self.llm_backend == "command" and not self.llm_command.strip():
            raise ValueError("LLM_BACKEND=command requires LLM_COMMAND")
        return self

    @property
    def resolved_rolling_summary_path(self) -> Path:
        """Rolling summary location, derived from SUMMARY_PATH when unset."""
        if self.rolling_summary_path is not None:
            return self.rolling_summary_path
        summary = self.summary_path
        stem = summary.name[: -len(".md")] if summary.name.endswith(".md") else summary.name
        return summary.with_name(f"{stem}_rolling.md")

    @property
    def cursor_path(self) -> Path:
        return self.state_dir / "last_summarized_position"

    @property
    def offsets_path(self) -> Path:
        return self.state_dir / "source_offsets.json"

    @property
    def rotation_enabled(self) -> bool:
        return self.max_raw_history_bytes > 0

    @property
    def session_logging_enabled(self) -> bool:
        return self.session_log_dir is not None


def _env_values() -> Dict[str, str]:
    values: Dict[str, str] = {}
    for key, value in os.environ.items():
        if key.startswith(ENV_PREFIX) and key != "HISTORIAN_CONFIG":
            values[key[len(ENV_PREFIX):]] = value
    return values


def load_settings(config_path: Optional[Path] = None, **overrides: Any) -> Settings:
    """Build settings from the config file, environment and ``overrides``."""

    path = Path(config_path).expanduser() if config_path else default_config_path()
    merged: Dict[str, Any] = {}
    merged.update(parse_config_file(path))
    merged.update(_env_values())
    merged["CONFIG_PATH"] = path
    for name, value in overrides.items():
        if value is None:
            continue
        field = Settings.model_fields.get(name)
        merged[field.alias if field is not None and field.alias else name] = value
    try:
        return Settings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration ({path}): {exc}") from exc


def resolve_api_key(settings: Settings) -> Optional[str]:
    """Return the API key from ``API_KEY_FILE`` or ``ANTHROPIC_API_KEY``."""

    try:
        key = settings.api_key_file.read_text(encoding="utf-8").strip()
    except OSError:
        key = ""
    if key:
        return key
    return (os.getenv("ANTHROPIC_API_KEY") or "").strip() or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()


__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "ConfigError",
    "HistorianError",
    "NoSourcesError",
    "Settings",
    "default_config_path",
    "get_settings",
    "load_settings",
    "parse_config_file",
    "resolve_api_key",
]
