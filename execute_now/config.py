"""
Execute Now - Configuration.

============================================================
PURPOSE
============================================================
Configuration for eligibility evaluation and request logging.

Pollability itself is a fixed capability of ObjectType.
Configuration can only narrow it (disabled_types), never
enable a type the server cannot poll.

============================================================
SOURCES
============================================================
1. Preset factories (default / chain following / testing)
2. Dictionary (load_config_from_dict)
3. YAML file (load_config_from_yaml)
4. Environment / .env file (load_config_from_env)

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

import yaml
from dotenv import load_dotenv

from .types import ObjectType, ConfigError


logger = logging.getLogger(__name__)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ============================================================
# ELIGIBILITY
# ============================================================

@dataclass
class EligibilityConfig:
    """
    Eligibility rule settings.
    """

    disabled_types: List[ObjectType] = field(default_factory=list)
    """
    Pollable types that must nevertheless be filtered out.
    Has no effect on types that are not pollable.
    """

    follow_master_chain: bool = False
    """
    Resolve a dependent master through its own master chain.
    If False, only the immediate master counts and a master that
    is itself dependent is not pollable.
    """

    max_dependency_depth: int = 3
    """
    Maximum number of dependency levels accepted by the catalog.
    The server allows three.
    """

    def is_type_allowed(self, object_type: ObjectType) -> bool:
        """Check if a type may be executed now."""
        return object_type.is_pollable() and object_type not in self.disabled_types


# ============================================================
# PERSISTENCE
# ============================================================

@dataclass
class PersistenceConfig:
    """Request log persistence."""

    enabled: bool = False
    """Whether outcomes are written to the database."""

    database_url: str = "sqlite:///execute_now.db"
    """SQLAlchemy database URL."""

    echo: bool = False
    """Echo SQL statements."""


# ============================================================
# MAIN CONFIG
# ============================================================

@dataclass
class ExecuteNowConfig:
    """Complete configuration."""

    eligibility: EligibilityConfig = field(default_factory=EligibilityConfig)
    """Eligibility rules."""

    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    """Request log persistence."""

    log_level: str = "INFO"
    """Logging level."""

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: If a value is out of range
        """
        if self.eligibility.max_dependency_depth < 1:
            raise ConfigError("max_dependency_depth must be at least 1")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.log_level}")
        if self.persistence.enabled and not self.persistence.database_url:
            raise ConfigError("database_url is required when persistence is enabled")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "eligibility": {
                "disabled_types": [t.value for t in self.eligibility.disabled_types],
                "follow_master_chain": self.eligibility.follow_master_chain,
                "max_dependency_depth": self.eligibility.max_dependency_depth,
            },
            "persistence": {
                "enabled": self.persistence.enabled,
                "database_url": self.persistence.database_url,
                "echo": self.persistence.echo,
            },
            "log_level": self.log_level,
        }


# ============================================================
# PRESET FACTORIES
# ============================================================

def get_default_config() -> ExecuteNowConfig:
    """
    Get default configuration.

    Only the immediate master of a dependent object is looked at.
    No disabled types, no persistence.
    """
    return ExecuteNowConfig()


def get_chain_following_config() -> ExecuteNowConfig:
    """
    Get chain following configuration.

    A dependent master is resolved through its chain to the root
    master, which must be pollable.
    """
    config = ExecuteNowConfig()
    config.eligibility.follow_master_chain = True
    return config


def get_testing_config() -> ExecuteNowConfig:
    """
    Get testing configuration.

    In-memory database with persistence enabled.
    NOT FOR PRODUCTION.
    """
    config = ExecuteNowConfig()
    config.persistence.enabled = True
    config.persistence.database_url = "sqlite:///:memory:"
    config.log_level = "DEBUG"
    return config


def _parse_types(values: List[Union[str, int]]) -> List[ObjectType]:
    types = []
    for value in values:
        try:
            if isinstance(value, int):
                types.append(ObjectType.from_code(value))
            else:
                types.append(ObjectType(str(value).strip().upper()))
        except ValueError as e:
            raise ConfigError(f"Invalid object type in configuration: {value!r}") from e
    return types


def _parse_bool(value: Union[str, bool], name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def _parse_int(value: Union[str, int], name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Invalid integer for {name}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid integer for {name}: {value!r}") from e


def load_config_from_dict(data: Dict[str, Any]) -> ExecuteNowConfig:
    """
    Load configuration from dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        ExecuteNowConfig instance
    """
    config = get_default_config()

    if "eligibility" in data:
        el = data["eligibility"] or {}
        if "disabled_types" in el:
            config.eligibility.disabled_types = _parse_types(el["disabled_types"] or [])
        if "follow_master_chain" in el:
            config.eligibility.follow_master_chain = _parse_bool(
                el["follow_master_chain"],
                "follow_master_chain",
            )
        if "max_dependency_depth" in el:
            config.eligibility.max_dependency_depth = _parse_int(
                el["max_dependency_depth"],
                "max_dependency_depth",
            )

    if "persistence" in data:
        ps = data["persistence"] or {}
        if "enabled" in ps:
            config.persistence.enabled = _parse_bool(ps["enabled"], "enabled")
        config.persistence.database_url = ps.get(
            "database_url",
            config.persistence.database_url,
        )
        if "echo" in ps:
            config.persistence.echo = _parse_bool(ps["echo"], "echo")

    config.log_level = str(data.get("log_level", config.log_level)).upper()

    config.validate()
    return config


def load_config_from_yaml(path: Union[str, Path]) -> ExecuteNowConfig:
    """
    Load configuration from a YAML file.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return load_config_from_dict(data)


def load_config_from_env(env_file: Optional[str] = None) -> ExecuteNowConfig:
    """
    Load configuration from environment variables.

    Variables:
        EXECUTE_NOW_DATABASE_URL: enables persistence
        EXECUTE_NOW_LOG_LEVEL
        EXECUTE_NOW_DISABLED_TYPES: comma separated type names
        EXECUTE_NOW_FOLLOW_MASTER_CHAIN
    """
    load_dotenv(env_file)

    config = get_default_config()

    if os.getenv("EXECUTE_NOW_DATABASE_URL"):
        config.persistence.enabled = True
        config.persistence.database_url = os.getenv("EXECUTE_NOW_DATABASE_URL")
    if os.getenv("EXECUTE_NOW_LOG_LEVEL"):
        config.log_level = os.getenv("EXECUTE_NOW_LOG_LEVEL").upper()
    if os.getenv("EXECUTE_NOW_DISABLED_TYPES"):
        names = [n for n in os.getenv("EXECUTE_NOW_DISABLED_TYPES").split(",") if n.strip()]
        config.eligibility.disabled_types = _parse_types(names)
    if os.getenv("EXECUTE_NOW_FOLLOW_MASTER_CHAIN"):
        config.eligibility.follow_master_chain = _parse_bool(
            os.getenv("EXECUTE_NOW_FOLLOW_MASTER_CHAIN"),
            "EXECUTE_NOW_FOLLOW_MASTER_CHAIN",
        )

    config.validate()
    logger.debug(f"Loaded config from environment: {config.to_dict()}")
    return config
