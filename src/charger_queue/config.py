"""Configuration models and loading utilities."""

import os
from pathlib import Path
from typing import Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .state.models import DEFAULT_SPOTS, SpotType


def _resolve_env_var(v):
    """Resolve environment variable references like ${VAR_NAME}."""
    if isinstance(v, str) and v.startswith("${") and v.endswith("}"):
        env_var = v[2:-1]
        return os.environ.get(env_var, "")
    return v


class StoreConfig(BaseModel):
    """Where the state document lives."""

    backend: Literal["github", "memory"] = "github"
    owner: str = ""
    repo: str = ""
    path: str = "state.json"
    token: str = ""
    branch: Optional[str] = None
    api_url: str = "https://api.github.com"
    commit_message: str = "EV state update"
    timeout_seconds: float = 10.0

    @field_validator("owner", "repo", "token", "branch", mode="before")
    @classmethod
    def resolve_env_var(cls, v):
        return _resolve_env_var(v)


class AuthConfig(BaseModel):
    """Shared secret required on mutating requests. Empty disables the check."""

    internal_key: str = ""

    @field_validator("internal_key", mode="before")
    @classmethod
    def resolve_env_var(cls, v):
        return _resolve_env_var(v) or ""


class APIConfig(BaseModel):
    """API server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class SpotConfig(BaseModel):
    """A spot in the default document."""

    id: str
    type: SpotType
    label: str = ""


class AllocationConfig(BaseModel):
    """Allocation behaviour."""

    max_write_retries: int = Field(default=0, ge=0)  # 0 = surface conflicts to the caller
    strict_write_all: bool = False
    spots: list[SpotConfig] = Field(
        default_factory=lambda: [SpotConfig(**s) for s in DEFAULT_SPOTS]
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    store: StoreConfig = StoreConfig()
    auth: AuthConfig = AuthConfig()
    api: APIConfig = APIConfig()
    allocation: AllocationConfig = AllocationConfig()


def load_config(path: str | Path) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(**data)


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build configuration from the GH_* / INTERNAL_KEY environment variables.

    Used when no config file is present, e.g. on serverless deployments.
    """
    env = os.environ if environ is None else environ
    return AppConfig(
        store=StoreConfig(
            token=env.get("GH_TOKEN", ""),
            owner=env.get("GH_OWNER", ""),
            repo=env.get("GH_REPO", ""),
            path=env.get("GH_PATH") or "state.json",
            branch=env.get("GH_BRANCH") or None,
        ),
        auth=AuthConfig(internal_key=env.get("INTERNAL_KEY", "")),
    )


def get_config_path() -> Path:
    """Get the default configuration file path."""
    env_path = os.environ.get("CHARGER_QUEUE_CONFIG")
    if env_path:
        return Path(env_path)

    # Check for config in current directory first
    local_config = Path("config/config.yaml")
    if local_config.exists():
        return local_config

    # Check for config in parent directory (for Docker)
    parent_config = Path("/app/config/config.yaml")
    if parent_config.exists():
        return parent_config

    return local_config  # Return default even if doesn't exist


def load_app_config() -> AppConfig:
    """Load the config file if there is one, else fall back to the environment."""
    config_path = get_config_path()
    if config_path.exists():
        return load_config(config_path)
    return config_from_env()
