"""
Configuration management for the support bot.

Settings come from an optional JSON file and are then overridden by
environment variables, which is how deployments normally supply the
role, category and channel identifiers.
"""

import json
import os
from dataclasses import dataclass, fields
from typing import Dict, List, Optional, Any, Mapping
from pathlib import Path
import logging

from errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Settings holding Discord snowflakes; None means "not configured"
ID_FIELDS = (
    'log_channel_id',
    'staff_role_id',
    'owner_id',
    'ticket_category_id',
    'archive_category_id',
    'welcome_role_id',
    'resolved_role_id'
)

DURATION_FIELDS = (
    'ticket_cooldown_seconds',
    'transcript_message_limit',
    'member_option_limit',
    'media_retention_seconds',
    'media_sweep_interval_seconds',
    'download_timeout_seconds'
)

ENV_VARS = {
    'log_channel_id': 'LOG_CHANNEL_ID',
    'staff_role_id': 'STAFF_ROLE_ID',
    'owner_id': 'OWNER_ID',
    'ticket_category_id': 'TICKET_CATEGORY_ID',
    'archive_category_id': 'TICKET_ARCHIVE_CATEGORY_ID',
    'welcome_role_id': 'WELCOME_ROLE_ID',
    'resolved_role_id': 'RESOLVED_ROLE_ID',
    'ticket_cooldown_seconds': 'TICKET_COOLDOWN_SECONDS',
    'delete_delay_seconds': 'TICKET_DELETE_DELAY_SECONDS',
    'media_cache_dir': 'MEDIA_CACHE_DIR',
    'media_retention_seconds': 'MEDIA_RETENTION_SECONDS',
    'media_sweep_interval_seconds': 'MEDIA_SWEEP_INTERVAL_SECONDS',
    'download_timeout_seconds': 'MEDIA_DOWNLOAD_TIMEOUT_SECONDS'
}


@dataclass
class BotConfig:
    """Validated settings for the ticket system and the media cache."""

    log_channel_id: Optional[int] = None
    staff_role_id: Optional[int] = None
    owner_id: Optional[int] = None
    ticket_category_id: Optional[int] = None
    archive_category_id: Optional[int] = None
    welcome_role_id: Optional[int] = None
    resolved_role_id: Optional[int] = None
    ticket_cooldown_seconds: int = 300
    transcript_message_limit: int = 100
    delete_delay_seconds: int = 3
    member_option_limit: int = 25
    media_cache_dir: str = "media_cache"
    media_retention_seconds: int = 30 * 60
    media_sweep_interval_seconds: int = 60
    download_timeout_seconds: int = 30

    def __post_init__(self):
        """Validate configuration after initialization."""
        for name in ID_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"Invalid {name}: {value}")

        for name in DURATION_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"Invalid {name}: {value}")

        if isinstance(self.delete_delay_seconds, bool) or not isinstance(self.delete_delay_seconds, int) \
                or self.delete_delay_seconds < 0:
            raise ValueError(f"Invalid delete_delay_seconds: {self.delete_delay_seconds}")

        if self.media_sweep_interval_seconds >= self.media_retention_seconds:
            raise ValueError("media_sweep_interval_seconds must be shorter than media_retention_seconds")

        if self.member_option_limit > 25:
            raise ValueError("member_option_limit cannot exceed 25 select options")

        if not self.media_cache_dir:
            raise ValueError("media_cache_dir must not be empty")

    @property
    def archiving_enabled(self) -> bool:
        return self.archive_category_id is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'BotConfig':
        """Create BotConfig from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


def _coerce(name: str, raw: str) -> Any:
    if name == 'media_cache_dir':
        return raw
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable {ENV_VARS[name]} must be an integer, got {raw!r}",
                                 config_key=name)


class ConfigManager:
    """Loads, validates and exposes the bot configuration."""

    def __init__(self, config_file: str = "config.json", environ: Optional[Mapping[str, str]] = None):
        """
        Initialize ConfigManager.

        Args:
            config_file: Path to the optional JSON configuration file
            environ: Environment mapping (defaults to ``os.environ``)
        """
        self.config_file = Path(config_file)
        self.environ = os.environ if environ is None else environ
        self.config: BotConfig = self._load_configuration()

    def _read_file(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            logger.info(f"Configuration file {self.config_file} not found, using environment and defaults")
            return {}

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in configuration file: {e}")
            raise ConfigurationError(f"Invalid JSON in configuration file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a JSON object")

        logger.info(f"Configuration loaded from {self.config_file}")
        return data

    def _load_configuration(self) -> BotConfig:
        """Merge file settings with environment overrides and validate."""
        data = self._read_file()

        for name, env_var in ENV_VARS.items():
            raw = self.environ.get(env_var)
            if raw is not None and raw.strip():
                data[name] = _coerce(name, raw.strip())

        try:
            return BotConfig.from_dict(data)
        except (ValueError, TypeError) as e:
            logger.error(f"Invalid configuration: {e}")
            raise ConfigurationError(f"Invalid configuration: {e}")

    def validate_configuration(self) -> List[str]:
        """
        Validate the current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.config.log_channel_id is None:
            errors.append("Missing required configuration: log_channel_id (LOG_CHANNEL_ID)")

        if self.config.staff_role_id is None and self.config.owner_id is None:
            errors.append("Neither staff_role_id nor owner_id is configured; nobody could manage tickets")

        return errors
