"""Configuration loading from YAML and environment.

Secrets (tokens) are taken from environment variables or from files
(Docker secrets). Never put real tokens in config files committed to the
repo.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so properties can read env/file
_current_env: dict[str, str] = {}


class GitHubConfig(BaseSettings):
    """GitHub REST API settings used by the issue source and user directory."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT; anonymous access when empty (60 req/h)")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")
    per_page: int = Field(default=100, ge=1, le=100, description="Comments per page")
    max_retries: int = Field(default=3, ge=0, le=10, description="Retries for 408/429/5xx responses")
    retry_delay: float = Field(default=1.0, ge=0, description="Base backoff delay, doubled on each retry")
    max_rate_limit_wait: float = Field(
        default=60.0,
        ge=0,
        description="Longest rate-limit reset (seconds) worth waiting for before giving up",
    )


class StoreConfig(BaseSettings):
    """Where the tracked-issue list is persisted between sessions."""

    model_config = SettingsConfigDict(env_prefix="STORE_", extra="ignore")

    path: Path = Field(default=Path(".quotegraph/tracked.yaml"), description="Tracked issues YAML file")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or Docker secret file."""
        t = self.github.token
        if t and not t.startswith("${"):
            return t
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: GITHUB_TOKEN or GITHUB_TOKEN_FILE. Missing file means
    defaults (plus env overrides picked up by pydantic-settings).
    """
    global _current_env

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    github = GitHubConfig(**(raw.get("github") or {}))
    store = StoreConfig(**(raw.get("store") or {}))
    logging = LoggingConfig(**(raw.get("logging") or {}))

    return AppConfig(github=github, store=store, logging=logging)
