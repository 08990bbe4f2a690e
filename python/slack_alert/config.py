"""
Configuration management for the slack alert bridge.

The alert configuration is a YAML file holding the Slack webhook URL.
Broker address and logging settings come from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from slack_alert.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

DEFAULT_AMQP_ADDR = "amqp://127.0.0.1:5672/%2f"
WINDOWS_CONFIG_PATH = "./2steps-slack-alert.conf"
POSIX_CONFIG_PATH = "/etc/opt/remasys/2steps/2steps-slack-alert.conf"


class SlackConfig(BaseModel):
    """Slack incoming webhook settings."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = Field(min_length=1, description="Incoming webhook URL")


class Config(BaseModel):
    """Alert configuration loaded from the YAML file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    slack: SlackConfig

    @property
    def webhook_url(self) -> str:
        return self.slack.url


class BrokerSettings(BaseSettings):
    """Broker connection settings."""

    model_config = SettingsConfigDict(extra="ignore")

    amqp_addr: str = Field(
        default=DEFAULT_AMQP_ADDR,
        validation_alias="AMQP_ADDR",
        description="AMQP connection URI",
    )


class LoggingConfig(BaseSettings):
    """Configuration for logging."""

    model_config = SettingsConfigDict(
        env_prefix="SLACK_ALERT_LOG_",
        extra="ignore",
    )

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="plain", description="Log format (json, plain)")
    file: str | None = Field(default=None, description="JSONL log file path (None for console only)")


def default_config_path() -> str:
    """Platform-specific location of the configuration file."""
    if os.name == "nt":
        return WINDOWS_CONFIG_PATH
    return POSIX_CONFIG_PATH


def _extract_webhook_url(document: Any) -> str | None:
    if not isinstance(document, dict):
        return None
    slack = document.get("slack")
    if not isinstance(slack, dict):
        return None
    url = slack.get("url")
    if not isinstance(url, str) or not url:
        return None
    return url


def load_config(path: str | Path) -> Config:
    """
    Load the alert configuration from a YAML file.

    Only the first YAML document is used.

    Args:
        path: Path to the configuration file.

    Returns:
        Immutable configuration.

    Raises:
        ConfigurationError: If the file cannot be read (CONFIG_UNREADABLE),
            is not valid YAML (CONFIG_MALFORMED), or lacks a string
            ``slack.url`` (CONFIG_MISSING_FIELD).
    """
    path = Path(path)
    logger.info("reading_configuration", path=str(path))

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError.unreadable(str(path), str(e), cause=e) from e

    try:
        documents = list(yaml.safe_load_all(raw))
    except yaml.YAMLError as e:
        raise ConfigurationError.malformed(str(path), str(e), cause=e) from e

    document = documents[0] if documents else None
    if _extract_webhook_url(document) is None:
        raise ConfigurationError.missing_field(str(path), "slack.url")

    return Config.model_validate(document)
