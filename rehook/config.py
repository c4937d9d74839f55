"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rehook import __version__
from rehook.utils.platform import get_config_dir, get_data_dir, normalize_path


class ServerConfig(BaseModel):
    bind: str = "0.0.0.0"
    port: int = 9000
    # Admin API is private; keep it off public interfaces by default
    admin_bind: str = "127.0.0.1"
    admin_port: int = 9001


class StorageConfig(BaseModel):
    db_path: str = ""
    timeout: float = 1.0


class GitHubConfig(BaseModel):
    api_url: str = "https://api.github.com"
    timeout: float = 30.0
    user_agent: str = f"rehook/v{__version__} (https://github.com/jstemmer/rehook)"
    per_page: int = 100


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REHOOK_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    data_dir: str = ""
    log_level: str = "INFO"
    log_json: bool = False

    def get_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir)
        return get_data_dir()

    def get_db_path(self) -> Path:
        if self.storage.db_path:
            return normalize_path(self.storage.db_path)
        return self.get_data_dir() / "data.db"


def _parse_listen_addr(addr: str, default_host: str) -> tuple[str, int]:
    """Split a ``host:port`` or ``:port`` listen address."""
    host, _, port = addr.rpartition(":")
    if not port.isdigit():
        raise ValueError(f"invalid listen address: {addr!r}")
    return host or default_host, int(port)


def apply_overrides(
    settings: Settings,
    http: str | None = None,
    admin: str | None = None,
    db: str | None = None,
    log_level: str | None = None,
) -> Settings:
    """Apply command line overrides on top of loaded settings."""
    if http:
        settings.server.bind, settings.server.port = _parse_listen_addr(http, "0.0.0.0")
    if admin:
        settings.server.admin_bind, settings.server.admin_port = _parse_listen_addr(
            admin, "127.0.0.1"
        )
    if db:
        settings.storage.db_path = db
    if log_level:
        settings.log_level = log_level
    return settings


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("REHOOK_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    # Load YAML if found
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # Build settings from YAML values; env vars fill anything YAML leaves unset
    return Settings(**yaml_data)
