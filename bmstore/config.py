"""
Configuration management for bmstore.

Settings come from a small dataclass with sensible defaults, optionally
overridden by a user config (~/.config/bmstore/config.toml), a local
config (./bmstore.toml), an explicit file, and BMSTORE_* environment
variables.
"""
import logging
import os
import tomli
import tomli_w
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict


@dataclass
class StoreConfig:
    """
    bmstore configuration with sensible defaults.

    Configuration hierarchy (highest to lowest priority):
    1. Overrides passed to init_config()
    2. Environment variables (BMSTORE_*)
    3. Config file passed explicitly to load()
    4. Local config file (./bmstore.toml)
    5. User config file (~/.config/bmstore/config.toml)
    6. Defaults
    """

    # Database settings
    database: str = field(default="bookmarks.db")
    database_echo: bool = field(default=False)  # SQLAlchemy echo for debugging

    # Read policy: False drops rows that cannot be mapped, True fails the call
    strict_reads: bool = field(default=False)

    log_level: str = field(default="INFO")

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "StoreConfig":
        """
        Load configuration from files and environment.

        Args:
            config_file: Specific config file to load (applied after the
                user and local files)

        Returns:
            Merged configuration object
        """
        config = cls()

        user_config_path = Path.home() / ".config" / "bmstore" / "config.toml"
        if user_config_path.exists():
            config._merge(cls._load_toml(user_config_path))

        local_config_path = Path.cwd() / "bmstore.toml"
        if local_config_path.exists():
            config._merge(cls._load_toml(local_config_path))

        if config_file and Path(config_file).exists():
            config._merge(cls._load_toml(Path(config_file)))

        config._apply_env_vars()
        config._expand_paths()

        return config

    @staticmethod
    def _load_toml(path: Path) -> Dict[str, Any]:
        """Load TOML configuration file."""
        with open(path, "rb") as f:
            return tomli.load(f)

    def _merge(self, data: Dict[str, Any]):
        """Merge configuration data into this instance, ignoring unknown keys."""
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def _apply_env_vars(self):
        """Apply environment variables with BMSTORE_ prefix."""
        prefix = "BMSTORE_"
        for key, value in os.environ.items():
            if key.startswith(prefix):
                config_key = key[len(prefix):].lower()
                if hasattr(self, config_key):
                    current_value = getattr(self, config_key)
                    if isinstance(current_value, bool):
                        setattr(self, config_key, value.lower() in ("true", "1", "yes"))
                    else:
                        setattr(self, config_key, value)

    def _expand_paths(self):
        """Expand ~ and environment variables in the database path."""
        if isinstance(self.database, str):
            self.database = os.path.expanduser(os.path.expandvars(self.database))

    def save(self, path: Optional[Path] = None):
        """
        Save current configuration to TOML file.

        Args:
            path: Path to save to (defaults to user config)
        """
        if path is None:
            path = Path.home() / ".config" / "bmstore" / "config.toml"

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "wb") as f:
            tomli_w.dump(asdict(self), f)

    def get_database_path(self) -> Path:
        """Get the resolved database path (relative paths resolve against cwd)."""
        path = Path(self.database)
        if not path.is_absolute():
            path = Path.cwd() / path
        return path


# Global configuration instance
_config: Optional[StoreConfig] = None


def get_config(reload: bool = False, config_file: Optional[Path] = None) -> StoreConfig:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload configuration from files
        config_file: Specific config file to load

    Returns:
        Global configuration instance
    """
    global _config
    if _config is None or reload:
        _config = StoreConfig.load(config_file)
    return _config


def init_config(database: Optional[str] = None, **kwargs) -> StoreConfig:
    """
    Apply overrides on top of the global configuration.

    Args:
        database: Database path override
        **kwargs: Other configuration overrides (None values are ignored)

    Returns:
        Configured instance
    """
    config = get_config()

    if database:
        config.database = database

    for key, value in kwargs.items():
        if hasattr(config, key) and value is not None:
            setattr(config, key, value)

    return config


def configure_logging(config: Optional[StoreConfig] = None) -> None:
    """Configure root logging at the configured level."""
    config = config or get_config()
    level = getattr(logging, str(config.log_level).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s: %(name)s: %(message)s")
