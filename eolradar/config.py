"""Configuration models using Pydantic.

The cache location and feed URLs are explicit configuration values handed
to the cache at construction time, so tests (and embedding applications)
can point EOLRadar at any directory.
"""

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .downloaders import FETCH_TIMEOUT, MAX_ATTEMPTS, RETRY_BASE_DELAY, SCHEDULE_URL, SECURITY_URL
from .exceptions import ConfigurationError

SCHEDULE = "schedule"
SECURITY = "security"


def default_cache_dir() -> Path:
    """Return the default cache directory.

    ``EOLRADAR_CACHE_DIR`` wins, then ``$XDG_CACHE_HOME/eolradar``, then
    ``~/.cache/eolradar``.
    """
    override = os.environ.get("EOLRADAR_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".cache"
    return base / "eolradar"


class ResourceConfig(BaseModel):
    """One cached remote resource and its two local storage slots.

    Attributes:
        name: Resource identity (``schedule`` or ``security``).
        url: Remote location of the JSON document.
        payload_file: Where the raw payload is stored.
        token_file: Where the ETag of that payload is stored.
    """

    name: str
    url: str
    payload_file: Path
    token_file: Path

    @classmethod
    def in_dir(cls, cache_dir: Path, name: str, url: str) -> "ResourceConfig":
        """Bind a resource to ``<cache_dir>/<name>.json`` and ``<name>.etag``."""
        return cls(
            name=name,
            url=url,
            payload_file=cache_dir / f"{name}.json",
            token_file=cache_dir / f"{name}.etag",
        )


class CheckerConfig(BaseModel):
    """Validated EOLRadar configuration.

    Example YAML::

        cache_dir: ~/.cache/eolradar
        schedule_url: https://raw.githubusercontent.com/nodejs/Release/main/schedule.json
        timeout: 10
        max_attempts: 3
        retry_delay: 1.0
    """

    cache_dir: Path = Field(default_factory=default_cache_dir)
    schedule_url: str = SCHEDULE_URL
    security_url: str = SECURITY_URL
    timeout: float = Field(default=FETCH_TIMEOUT, gt=0.0, le=300.0)
    max_attempts: int = Field(default=MAX_ATTEMPTS, ge=1, le=10)
    retry_delay: float = Field(default=RETRY_BASE_DELAY, ge=0.0, le=60.0)

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _expand_cache_dir(cls, v: Any) -> Any:
        if v is None:
            return default_cache_dir()
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        return v

    @property
    def schedule(self) -> ResourceConfig:
        return ResourceConfig.in_dir(self.cache_dir, SCHEDULE, self.schedule_url)

    @property
    def security(self) -> ResourceConfig:
        return ResourceConfig.in_dir(self.cache_dir, SECURITY, self.security_url)

    def resources(self) -> list[ResourceConfig]:
        """Both cached resources, schedule first."""
        return [self.schedule, self.security]


def load_config(path: Path) -> CheckerConfig:
    """Load configuration from a YAML or JSON file.

    Args:
        path: Path to the configuration file.

    Returns:
        Validated ``CheckerConfig`` instance.

    Raises:
        ConfigurationError: if the file is missing, unparseable, or
            fails validation.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    try:
        if path.suffix.lower() == ".json":
            raw = json.loads(content)
        else:
            raw = yaml.safe_load(content) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    try:
        return CheckerConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e
