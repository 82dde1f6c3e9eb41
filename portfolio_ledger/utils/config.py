"""Configuration management for Portfolio Ledger.

This module provides YAML configuration loading and access, plus the typed
ledger settings derived from it. Environment variables (optionally loaded
from a .env file) override the YAML values for deployment-specific settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from portfolio_ledger.utils.exceptions import ConfigurationError

ROOT_DIR = Path(__file__).parent.parent.parent

ENV_DB_PATH = "LEDGER_DB_PATH"
ENV_PROTOCOL_OWNER = "LEDGER_PROTOCOL_OWNER"
ENV_PROTOCOL_FEE = "LEDGER_PROTOCOL_FEE_BPS"


class Config:
    """Configuration loader and accessor.

    Loads YAML configuration files and provides dict-like access to settings.

    Example:
        >>> config = Config.from_file("config/default.yaml")
        >>> fee = config.get("ledger.protocol_fee_bps", 25)
    """

    def __init__(self, config_dict: dict[str, Any]) -> None:
        self._config = config_dict

    @classmethod
    def from_file(cls, filepath: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            filepath: Path to YAML configuration file

        Returns:
            Config instance with loaded configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the file is not a YAML mapping
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                config_dict = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {filepath}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping, got {type(config_dict).__name__}"
            )

        return cls(config_dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g. "database.path").

        Args:
            key: Configuration key (supports dot notation for nested keys)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def __getitem__(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise KeyError(f"Configuration key not found: {key}")
        return value

    def to_dict(self) -> dict[str, Any]:
        return self._config.copy()


@dataclass
class LedgerSettings:
    """Typed settings for a ledger deployment.

    Attributes:
        db_path: SQLite database file backing the record store
        protocol_owner: Identity seeded as protocol owner on first start
        protocol_fee_bps: Static protocol fee in basis points
        rebalance_cooldown: Heights that must elapse before a rebalance is due
        log_level: Root logging level
        event_log_dir: Directory for the JSON ledger event log, or None
        logger_levels: Per-logger level overrides {name: level}
    """

    db_path: str = "data/ledger.db"
    protocol_owner: str = "deployer"
    protocol_fee_bps: int = 25
    rebalance_cooldown: int = 144
    log_level: str = "INFO"
    event_log_dir: str | None = None
    logger_levels: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.protocol_owner or not str(self.protocol_owner).strip():
            raise ConfigurationError("protocol_owner must be a non-empty identity")
        if not 0 <= self.protocol_fee_bps <= 10000:
            raise ConfigurationError(
                f"protocol_fee_bps must be in [0, 10000], got {self.protocol_fee_bps}"
            )
        if self.rebalance_cooldown < 0:
            raise ConfigurationError(
                f"rebalance_cooldown must be >= 0, got {self.rebalance_cooldown}"
            )


def load_config(filepath: str | Path = None) -> Config:
    """Load configuration, defaulting to config/default.yaml in the project root."""
    if filepath is None:
        filepath = ROOT_DIR / "config" / "default.yaml"
    return Config.from_file(filepath)


def _int_setting(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def load_ledger_settings(
    config: Config | None = None,
    env_file: str | Path | None = None,
) -> LedgerSettings:
    """Build LedgerSettings from YAML configuration and environment variables.

    Environment variables take precedence over YAML values:
        - LEDGER_DB_PATH: database file path
        - LEDGER_PROTOCOL_OWNER: initial protocol owner identity
        - LEDGER_PROTOCOL_FEE_BPS: protocol fee in basis points

    Args:
        config: Loaded Config. If None, an empty configuration is used.
        env_file: Optional .env file to load before reading the environment.
            If None, ROOT_DIR/.env is loaded when it exists.

    Returns:
        Validated LedgerSettings

    Raises:
        ConfigurationError: If any setting is invalid

    Example:
        >>> settings = load_ledger_settings(load_config())
        >>> settings.rebalance_cooldown
        144
    """
    if env_file is None:
        default_env = ROOT_DIR / ".env"
        if default_env.exists():
            load_dotenv(default_env)
    else:
        load_dotenv(env_file)

    config = config or Config({})
    defaults = LedgerSettings()

    db_path = os.getenv(ENV_DB_PATH) or config.get("database.path", defaults.db_path)
    protocol_owner = os.getenv(ENV_PROTOCOL_OWNER) or config.get(
        "ledger.protocol_owner", defaults.protocol_owner
    )
    fee = os.getenv(ENV_PROTOCOL_FEE) or config.get(
        "ledger.protocol_fee_bps", defaults.protocol_fee_bps
    )
    cooldown = config.get("ledger.rebalance_cooldown", defaults.rebalance_cooldown)

    return LedgerSettings(
        db_path=str(db_path),
        protocol_owner=str(protocol_owner),
        protocol_fee_bps=_int_setting("protocol_fee_bps", fee),
        rebalance_cooldown=_int_setting("rebalance_cooldown", cooldown),
        log_level=config.get("logging.level", defaults.log_level),
        event_log_dir=config.get("logging.event_log_dir", defaults.event_log_dir),
        logger_levels=dict(config.get("logging.loggers", {})),
    )
