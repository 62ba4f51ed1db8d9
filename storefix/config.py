"""
StoreFix Configuration Module

Configuration management using INI-style config.conf file.

Configuration precedence (highest to lowest):
1. Explicit overrides (CLI flags passed to load_config)
2. Environment variables (STOREFIX_*)
3. config.conf file (INI format)
4. Default values

Config file search locations (first found wins):
1. Path given as config_file / STOREFIX_CONFIG_FILE environment variable
2. /etc/storefix/config.conf (system-wide)
3. ~/.config/storefix/config.conf (user-specific)
4. ./config.conf (current directory)
5. Built-in defaults (if no config file found)

There is no global configuration instance: every load_config() call
returns a fresh value that is passed explicitly into the workflow.

Author: StoreFix Project
License: GNU GPL v3
"""

from pydantic_settings import BaseSettings
from pydantic import Field, model_validator
from typing import Optional
from pathlib import Path
import configparser
import logging
import os
import warnings

from .engine.base import EngineOptions
from .errors import ConfigError
from .models import RecoveryOptions
from .recovery import build_probe_options


CONFIG_SECTIONS = ['store', 'backup', 'engine', 'logging']

BOOL_FIELDS = ['force_not_empty', 'verify_backup_content', 'verbose']
INT_FIELDS = ['num_versions', 'log_max_bytes', 'log_backup_count']
STR_FIELDS = ['dir', 'value_dir', 'backup_dir', 'engine', 'log_file']


def find_config_file(explicit: Optional[str] = None) -> Optional[Path]:
    """
    Search for config.conf in standard locations.

    Args:
        explicit: Path requested by the caller (checked first)

    Returns:
        Path to config file if found, None otherwise
    """
    requested = explicit or os.environ.get('STOREFIX_CONFIG_FILE')
    if requested:
        path = Path(requested).expanduser()
        if path.exists():
            return path
        warnings.warn(f"Config file {requested} does not exist")

    search_paths = [
        Path('/etc/storefix/config.conf'),
        Path.home() / '.config' / 'storefix' / 'config.conf',
        Path('config.conf'),
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def load_config_file(explicit: Optional[str] = None) -> dict:
    """
    Load config.conf into a flat {field_name: value} dictionary.

    Section names only group options in the file; keys are field names.
    """
    logger = logging.getLogger(__name__)
    config_file = find_config_file(explicit)

    if not config_file:
        logger.debug("No config.conf file found. Using environment variables and defaults.")
        return {}

    parser = configparser.ConfigParser(
        interpolation=configparser.ExtendedInterpolation()
    )

    try:
        parser.read(config_file)
        logger.debug(f"Loaded configuration from: {config_file}")
    except configparser.Error as e:
        logger.warning(f"Failed to parse {config_file}: {e}. Using defaults.")
        return {}

    config = {}
    for section in CONFIG_SECTIONS:
        if parser.has_section(section):
            for key, value in parser.items(section):
                # Strip inline comments (anything after #)
                value = value.split('#')[0].strip()
                config[key.lower()] = os.path.expanduser(value)

    return config


def _parse_bool(value: str, field_name: str = "field") -> bool:
    """
    Parse boolean value from string with validation.

    Raises:
        ConfigError: If value is not a valid boolean string
    """
    value_lower = value.lower().strip()
    if value_lower in ('true', '1', 'yes', 'on'):
        return True
    elif value_lower in ('false', '0', 'no', 'off', ''):
        return False
    else:
        raise ConfigError(
            f"Invalid boolean value for {field_name}: '{value}'. "
            f"Use: true/false, 1/0, yes/no, on/off"
        )


def _parse_int(value: str, field_name: str = "field") -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Invalid integer value for {field_name}: '{value}'")


class FixerConfig(BaseSettings):
    """
    StoreFix configuration with validation.

    Configuration is loaded from:
    1. Constructor arguments / environment variables (highest priority)
    2. config.conf file
    3. Default values (lowest priority)
    """

    config_file: Optional[str] = Field(
        default=None,
        description="Explicit config.conf location"
    )

    # === Store ===
    dir: str = Field(
        default="",
        description="Directory holding tables and manifest"
    )
    value_dir: Optional[str] = Field(
        default=None,
        description="Value log directory (defaults to dir)"
    )
    num_versions: int = 0  # >0 caps versions and opens read-only
    engine: Optional[str] = Field(
        default=None,
        description="Storage engine adapter as 'package.module:ClassName'"
    )

    # === Backup / Repair ===
    backup_dir: Optional[str] = None  # None = <dir>_corrupted_backup_<unix_ts>
    force_not_empty: bool = False
    verify_backup_content: bool = True

    # === Logging ===
    log_file: Optional[str] = None
    log_max_bytes: int = 10485760  # 10MB default
    log_backup_count: int = 5
    verbose: bool = False

    model_config = {
        'env_prefix': 'STOREFIX_',
        'case_sensitive': False
    }

    @model_validator(mode='after')
    def apply_config_file(self):
        """Fill fields not set explicitly or via environment from config.conf"""
        logger = logging.getLogger(__name__)
        config_dict = load_config_file(self.config_file)
        explicit = self.model_fields_set

        for field, raw in config_dict.items():
            if field in explicit or field == 'config_file':
                continue

            if field in BOOL_FIELDS:
                setattr(self, field, _parse_bool(raw, field))
            elif field in INT_FIELDS:
                setattr(self, field, _parse_int(raw, field))
            elif field == 'dir':
                self.dir = raw
            elif field in STR_FIELDS:
                setattr(self, field, raw or None)
            else:
                logger.warning(f"Unknown option in config.conf ignored: {field}")
                continue

            logger.debug(f"CONFIG: {field} = {raw}")

        return self

    def engine_options(self) -> EngineOptions:
        """
        Build probe options for the storage engine.

        Raises:
            ConfigError: If no store directory is configured
        """
        if not self.dir:
            raise ConfigError("No store directory configured (use --dir or STOREFIX_DIR)")

        return build_probe_options(self.dir, self.value_dir, self.num_versions)

    def recovery_options(self) -> RecoveryOptions:
        """Build the immutable per-run recovery options."""
        return RecoveryOptions(
            backup_dir=self.backup_dir or None,
            force_delete_non_empty=self.force_not_empty,
        )


def load_config(config_file: Optional[str] = None, **overrides) -> FixerConfig:
    """
    Load a fresh configuration.

    Args:
        config_file: Explicit config.conf path
        **overrides: Field values taking precedence over every other
            source. None values are ignored so unset CLI flags fall through.

    Raises:
        ConfigError: On invalid values in config.conf
        pydantic.ValidationError: On invalid explicit or environment values
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    if config_file:
        values['config_file'] = config_file
    return FixerConfig(**values)
