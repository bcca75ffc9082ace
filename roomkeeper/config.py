"""roomkeeper configuration management.

Configuration sources (in priority order):
1. Environment variables (ROOMKEEPER_ prefix, ``__`` for nesting)
2. Config file (config.yaml)
3. Defaults
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from roomkeeper.labels.keys import check_label_key


class LabelsConfig(BaseModel):
    """Label namespaces.

    Every room label key is ``{namespace}.<field>`` or
    ``{orchestrator_namespace}.<field>``.
    """

    namespace: str = "m1k1o.neko_rooms"
    orchestrator_namespace: str = "cotester.vb-orchestrator"

    # Written to {namespace}.instance; the driver only sees rooms of this instance
    instance_name: str = "neko-rooms"

    @field_validator("orchestrator_namespace", "instance_name")
    @classmethod
    def _check_key(cls, value: str) -> str:
        if not check_label_key(value):
            raise ValueError(f"{value!r} must match ^[a-z0-9.-]+$")
        return value

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        # the default namespace carries an underscore, so only forbid what
        # would break key splitting
        if not value or value != value.strip() or value.endswith("."):
            raise ValueError(f"invalid label namespace {value!r}")
        return value


class DockerConfig(BaseModel):
    """Docker driver configuration."""

    socket: str = "unix:///var/run/docker.sock"

    # Delay before re-subscribing after the daemon event stream ends or fails
    events_reconnect_seconds: float = 5.0


class DriverConfig(BaseModel):
    """Driver layer configuration."""

    type: Literal["docker"] = "docker"
    docker: DockerConfig = Field(default_factory=DockerConfig)


class WorkerConfig(BaseModel):
    """Lifecycle worker configuration."""

    deadline_interval_seconds: float = 60.0
    run_on_startup: bool = False

    reaper_enabled: bool = True
    relay_enabled: bool = True

    # stop() awaits both loops unless told otherwise
    wait_on_shutdown: bool = True

    # Dump the tail of the container log when a room stops
    dump_logs_on_stop: bool = True
    stopped_logs_tail: int = 100


class TrackerConfig(BaseModel):
    """Session tracker client configuration."""

    timeout_seconds: float = 10.0

    # 0 = single attempt, notifications are best-effort
    max_retries: int = Field(default=0, ge=0)


class HTTPConfig(BaseModel):
    """Shared httpx client pool."""

    max_connections: int = 50
    max_keepalive_connections: int = 20
    keepalive_expiry: float = 30.0
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    pool_timeout: float = 10.0


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json"] = "console"


class Settings(BaseSettings):
    """roomkeeper settings."""

    model_config = SettingsConfigDict(
        env_prefix="ROOMKEEPER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    labels: LabelsConfig = Field(default_factory=LabelsConfig)
    driver: DriverConfig = Field(default_factory=DriverConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # File values arrive as init kwargs; the environment must win over them.
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def _load_config_file() -> dict:
    """Load configuration from YAML file if exists.

    Looks for config file in order:
    1. ROOMKEEPER_CONFIG_FILE environment variable
    2. ./config.yaml
    3. /etc/roomkeeper/config.yaml
    """
    config_paths = [
        os.environ.get("ROOMKEEPER_CONFIG_FILE"),
        Path("config.yaml"),
        Path("/etc/roomkeeper/config.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Configuration is loaded from:
    1. YAML config file (if exists)
    2. Environment variables (override)
    3. Defaults
    """
    file_config = _load_config_file()
    return Settings(**file_config)
