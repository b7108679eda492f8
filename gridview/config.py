"""
Configuration management for gridview.

Provides a hierarchical configuration system with sensible defaults.
Supports both global (~/.config/gridview/config.toml) and local
(gridview.toml) configurations.
"""
import os
import tomli
import tomli_w
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field, asdict

from gridview.constants import (
    DEFAULT_MAX_COLUMN_WIDTH,
    DEFAULT_PAGE_SIZE,
    NULL_GROUP_LABEL,
    PAGE_SIZE_OPTIONS,
)
from gridview.views.core import ConfigurationError, GroupOrder

USER_CONFIG_PATH = Path("~/.config/gridview/config.toml")
LOCAL_CONFIG_NAMES = ("gridview.toml", ".gridviewrc")
ENV_PREFIX = "GRIDVIEW_"


@dataclass
class GridviewConfig:
    """
    Gridview configuration with sensible defaults.

    Configuration hierarchy (highest to lowest priority):
    1. Command-line arguments
    2. Environment variables (GRIDVIEW_*)
    3. Explicit config file
    4. Local config file (./gridview.toml or ./.gridviewrc)
    5. User config file (~/.config/gridview/config.toml)
    6. Defaults
    """

    # View defaults
    page_size: int = field(default=DEFAULT_PAGE_SIZE)
    page_size_options: List[int] = field(default_factory=lambda: list(PAGE_SIZE_OPTIONS))
    group_order: str = field(default=GroupOrder.CALLER.value)  # caller, warn, strict, auto
    null_group_label: str = field(default=NULL_GROUP_LABEL)

    # Export defaults
    export_format: str = field(default="csv")
    export_pretty: bool = field(default=True)

    # Display settings
    output_format: str = field(default="table")  # table, json, csv, plain
    color_output: bool = field(default=True)
    max_column_width: int = field(default=DEFAULT_MAX_COLUMN_WIDTH)

    log_level: str = field(default="WARNING")

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "GridviewConfig":
        """
        Load configuration from files and environment.

        Args:
            config_file: Specific config file to load (overrides search)

        Returns:
            Merged configuration object
        """
        config = cls()

        user_config_path = USER_CONFIG_PATH.expanduser()
        if user_config_path.exists():
            config._merge(cls._load_toml(user_config_path))

        for name in LOCAL_CONFIG_NAMES:
            path = Path.cwd() / name
            if path.exists():
                config._merge(cls._load_toml(path))
                break

        if config_file and Path(config_file).exists():
            config._merge(cls._load_toml(Path(config_file)))

        config._apply_env_vars()
        config.validate()

        return config

    @staticmethod
    def _load_toml(path: Path) -> Dict[str, Any]:
        """Load TOML configuration file."""
        try:
            with open(path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e

    def _merge(self, data: Dict[str, Any]):
        """Merge configuration data into this instance."""
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def _apply_env_vars(self):
        """Apply environment variables with GRIDVIEW_ prefix."""
        for key, value in os.environ.items():
            if key.startswith(ENV_PREFIX):
                config_key = key[len(ENV_PREFIX):].lower()
                if hasattr(self, config_key):
                    self.set(config_key, value)

    def set(self, key: str, value: Any):
        """
        Set a key, converting text to the key's type.

        Raises:
            ConfigurationError: unknown key or unconvertible value
        """
        if not hasattr(self, key):
            raise ConfigurationError(f"Unknown config key: {key}", field=key)

        current_value = getattr(self, key)
        if isinstance(value, str):
            try:
                if isinstance(current_value, bool):
                    value = value.lower() in ("true", "1", "yes")
                elif isinstance(current_value, int):
                    value = int(value)
                elif isinstance(current_value, list):
                    value = [int(v) for v in value.split(",") if v.strip()]
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {key}: {value!r}", field=key) from e
        setattr(self, key, value)

    def validate(self):
        """Check values that the view engine would reject later."""
        if int(self.page_size) < 1:
            raise ConfigurationError(f"page_size must be at least 1, got {self.page_size}", field="page_size")
        try:
            GroupOrder.from_string(self.group_order)
        except ValueError as e:
            raise ConfigurationError(str(e), field="group_order") from e

    def save(self, path: Optional[Path] = None):
        """
        Save current configuration to TOML file.

        Args:
            path: Path to save to (defaults to user config)
        """
        if path is None:
            path = USER_CONFIG_PATH.expanduser()

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "wb") as f:
            tomli_w.dump(asdict(self), f)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Global configuration instance
_config: Optional[GridviewConfig] = None


def get_config(reload: bool = False, config_file: Optional[Path] = None) -> GridviewConfig:
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
        _config = GridviewConfig.load(config_file)
    return _config


def init_config(config_file: Optional[Path] = None, **kwargs) -> GridviewConfig:
    """
    Initialize configuration with command-line overrides.

    Args:
        config_file: Specific config file to load
        **kwargs: Configuration overrides; None values are ignored

    Returns:
        Configured instance
    """
    config = get_config(reload=config_file is not None, config_file=config_file)

    for key, value in kwargs.items():
        if hasattr(config, key) and value is not None:
            setattr(config, key, value)

    config.validate()
    return config
