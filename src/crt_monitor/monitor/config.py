"""Monitor configuration loaded from YAML."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import ConfigError
from ..core.models import SearchConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yml")


class NotifierConfig(BaseModel):
    """One notification channel; extra keys are passed to the notifier."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(..., description="Notifier type, e.g. 'console'")


class MonitorConfig(BaseModel):
    """Top-level configuration of the polling monitor."""

    watch: list[SearchConfig] = Field(default_factory=list)
    notifications: list[NotifierConfig] = Field(default_factory=list)
    interval: float = Field(15, gt=0, description="Minutes between polling cycles")
    delay: float = Field(5, ge=0, description="Seconds between watch entries")
    request_interval: float = Field(
        0.5, ge=0, description="Minimum seconds between upstream requests"
    )
    timeout: int = Field(30, gt=0, description="Request timeout in seconds")


def parse_config(data: Any) -> MonitorConfig:
    """Validate an already parsed configuration mapping.

    Raises:
        ConfigError: If the data is not a valid configuration
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")
    if "watch" in data and not isinstance(data["watch"], list):
        raise ConfigError("Configuration 'watch' must be a list")
    try:
        return MonitorConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> MonitorConfig:
    """Load and validate a YAML configuration file.

    Args:
        path: Configuration file path

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read configuration {path}: {e}") from e

    config = parse_config(data)
    logger.info(
        f"Loaded {len(config.watch)} watch entries and "
        f"{len(config.notifications)} notifiers from {path}"
    )
    return config
