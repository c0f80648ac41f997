"""Centralized configuration — Pydantic BaseSettings with TOML + dotenv sources.

Settings live in config.toml. Environment variables override it using ``__``
as the nested delimiter (e.g. ``IPC__POLL_INTERVAL_MS=250``).

Priority (highest wins): init args > env vars > .env > config.toml

The container runtime override is the exception: the plain
``CONTAINER_RUNTIME`` variable is honoured first (see
:func:`nestbox.runtime.resolve_runtime`) because build scripts and the
agent image tooling already export it.

Usage::

    from nestbox.config import get_settings

    s = get_settings()
    print(s.ipc.poll_interval_ms)
    print(s.ipc_dir)
"""

from __future__ import annotations

import os
from functools import cached_property
from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# ---------------------------------------------------------------------------
# Sub-models (each maps to a [section] in config.toml)
# ---------------------------------------------------------------------------


class _StrictModel(BaseModel):
    """Base for all config sub-models — reject unknown keys so typos fail loudly."""

    model_config = {"extra": "forbid"}


class AgentConfig(_StrictModel):
    name: str = "Andy"  # prefix for agent-originated text messages


class ContainerConfig(_StrictModel):
    runtime: str | None = None  # "apple-container" | "docker" | plugin runtime | None
    name_prefix: str = "nestbox-"
    detect_timeout_s: float = 5.0
    status_timeout_s: float = 10.0
    start_timeout_s: float = 30.0
    stop_timeout_s: float = 15.0

    @field_validator("runtime")
    @classmethod
    def normalize_runtime(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip().lower() or None


class IpcConfig(_StrictModel):
    poll_interval_ms: int = 1000
    container_root: str = "/workspace/ipc"  # where the mailbox is mounted in the agent

    @field_validator("poll_interval_ms")
    @classmethod
    def clamp_poll_interval(cls, v: int) -> int:
        return max(10, v)

    @field_validator("container_root")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") or "/"


class SchedulerConfig(_StrictModel):
    timezone: str | None = None  # None → $TZ or /etc/localtime, else UTC


class PluginConfig(_StrictModel):
    enabled: bool = True


# ---------------------------------------------------------------------------
# Root Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        toml_file="config.toml",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    agent: AgentConfig = AgentConfig()
    container: ContainerConfig = ContainerConfig()
    ipc: IpcConfig = IpcConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    plugins: dict[str, PluginConfig] = {}  # [plugins.<key>]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init > env vars > .env > config.toml > file secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    # --- Computed properties ---

    @cached_property
    def poll_interval(self) -> float:
        return self.ipc.poll_interval_ms / 1000

    @cached_property
    def timezone(self) -> str:
        if self.scheduler.timezone:
            return self.scheduler.timezone
        return _detect_timezone()

    @cached_property
    def project_root(self) -> Path:
        return Path.cwd()

    @cached_property
    def data_dir(self) -> Path:
        return (self.project_root / "data").resolve()

    @cached_property
    def ipc_dir(self) -> Path:
        """Root of every tenant mailbox: data/ipc/<folder>/."""
        return self.data_dir / "ipc"


def _detect_timezone() -> str:
    if tz := os.environ.get("TZ"):
        return tz
    try:
        link = os.readlink("/etc/localtime")
        parts = link.split("zoneinfo/")
        if len(parts) > 1:
            return parts[1]
    except OSError:
        pass  # /etc/localtime missing or not a symlink
    return "UTC"


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_settings: Settings | None = None


def get_settings() -> Settings:
    """Lazy cached singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached singleton (for tests)."""
    global _settings
    _settings = None
