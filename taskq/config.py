"""Settings for taskq.

Settings come from an optional YAML file and from environment variables,
with the environment taking precedence. Limits are plain values handed to
each handler; nothing below reads configuration implicitly.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from taskq.exceptions import ConfigError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.todoist.com/api/v1"
DEFAULT_CONFIG_PATH = Path.home() / ".taskq" / "config.yaml"

_TRUTHY = ("1", "true", "yes", "on")


class EndpointLimit(BaseModel):
    """Default and maximum page size for one list endpoint."""

    default: int
    max: int

    def check(self, value: int | None, name: str = "limit") -> int:
        """Return ``value`` (or the default) after a bounds check.

        Raises:
            ValidationError: If the value is outside 1..max.
        """
        if value is None:
            return self.default
        if not 1 <= value <= self.max:
            raise ValidationError(f"{name} must be between 1 and {self.max}, got {value}")
        return value


class Limits(BaseModel):
    """Page-size limits for every endpoint."""

    tasks: EndpointLimit = Field(default_factory=lambda: EndpointLimit(default=10, max=200))
    completed_tasks: EndpointLimit = Field(
        default_factory=lambda: EndpointLimit(default=50, max=200), alias="completedTasks"
    )
    projects: EndpointLimit = Field(default_factory=lambda: EndpointLimit(default=50, max=200))
    sections: EndpointLimit = Field(default_factory=lambda: EndpointLimit(default=50, max=200))
    comments: EndpointLimit = Field(default_factory=lambda: EndpointLimit(default=10, max=200))
    collaborators_page_size: int = Field(default=200, alias="collaboratorsPageSize")
    preview_limit: int = Field(default=10, alias="previewLimit")

    model_config = ConfigDict(populate_by_name=True)


class Features(BaseModel):
    """Optional behaviours."""

    strip_emails: bool = Field(default=False, alias="stripEmails")

    model_config = ConfigDict(populate_by_name=True)


class Settings(BaseModel):
    """Effective configuration for the client, handlers and server."""

    api_token: str | None = Field(default=None, alias="apiToken")
    base_url: str = Field(default=DEFAULT_BASE_URL, alias="baseUrl")
    timeout: float = 30.0
    limits: Limits = Field(default_factory=Limits)
    features: Features = Field(default_factory=Features)
    structured_content: bool = Field(default=False, alias="structuredContent")

    model_config = ConfigDict(populate_by_name=True)

    def require_token(self) -> str:
        """Return the API token.

        Raises:
            ConfigError: If no token is configured.
        """
        if not self.api_token:
            raise ConfigError("No API token configured. Set TODOIST_API_KEY or apiToken in the config file")
        return self.api_token

    def masked(self) -> dict[str, Any]:
        """Dump for display with the token hidden."""
        data = self.model_dump(by_alias=True)
        if data.get("apiToken"):
            data["apiToken"] = data["apiToken"][:4] + "…"
        return data


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None:
        return None
    return value.strip().lower() in _TRUTHY


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from a YAML file and the environment.

    Search order for the file: ``path``, then ``TASKQ_CONFIG``, then
    ``~/.taskq/config.yaml``. A missing default file is not an error.

    Args:
        path: Explicit config file path.

    Returns:
        The effective settings.

    Raises:
        ConfigError: If a config file cannot be read or is invalid.
    """
    explicit = path or os.environ.get("TASKQ_CONFIG")
    config_path = Path(explicit).expanduser() if explicit else DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        logger.debug("Reading config from %s", config_path)
        data = _read_config_file(config_path)
    elif explicit:
        raise ConfigError(f"Config file not found: {config_path}")

    token = os.environ.get("TODOIST_API_KEY") or os.environ.get("TODOIST_API_TOKEN")
    if token:
        data["apiToken"] = token
    base_url = os.environ.get("TODOIST_BASE_URL")
    if base_url:
        data["baseUrl"] = base_url
    strip_emails = _env_flag("TASKQ_STRIP_EMAILS")
    if strip_emails is not None:
        data.setdefault("features", {})["stripEmails"] = strip_emails
    structured = _env_flag("USE_STRUCTURED_CONTENT")
    if structured is not None:
        data["structuredContent"] = structured

    try:
        return Settings.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
