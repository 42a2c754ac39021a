"""
wblocks Configuration Management.

Handles loading, saving, and validating configuration from various sources:
- Default values
- Configuration file (TOML)
- Environment variables
- Command-line arguments
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

# Try to import tomllib (Python 3.11+) or tomli as fallback
try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

import tomli_w
import yaml

logger = logging.getLogger(__name__)

# Default configuration location
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "wblocks"
DEFAULT_CONFIG_FILE = "config.toml"
DEFAULT_SCRIPTS_DIR = Path("blocks")

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigLoadError(Exception):
    """Raised when a configuration file exists but cannot be parsed."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


@dataclass
class ValidationError:
    """Validation error for configuration."""
    field: str
    message: str
    severity: str  # "error" or "warning"

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.field}: {self.message}"


@dataclass
class ScriptsConfig:
    """Configuration for script discovery and loading."""

    directory: Path = DEFAULT_SCRIPTS_DIR
    hidden_marker: str = "."
    pattern: str = "*"

    # Exit the process when the directory cannot be listed. When false
    # the failure is logged and the runtime keeps running without scripts.
    fatal_missing_dir: bool = True

    # Free-form table exposed to scripts as ``config``
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class TimerConfig:
    """Configuration for runtime timers."""

    heartbeat_enabled: bool = True
    heartbeat_interval: float = 0.01  # seconds


@dataclass
class ShellConfig:
    """Configuration for the shell delegate."""

    program: str = "powershell"
    args: list[str] = field(default_factory=lambda: ["-Command"])
    timeout: Optional[float] = None  # seconds, None waits forever
    encoding: str = "utf-8"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[Path] = None


@dataclass
class WBlocksConfig:
    """Main configuration container for wblocks."""

    config_dir: Path = DEFAULT_CONFIG_DIR

    scripts: ScriptsConfig = field(default_factory=ScriptsConfig)
    timers: TimerConfig = field(default_factory=TimerConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _to_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def get_config_path(env_prefix: str = "WBLOCKS_") -> Path:
    """Get the config file path, honouring the ``<prefix>CONFIG_DIR`` override."""
    env_config_dir = os.environ.get(f"{env_prefix}CONFIG_DIR")
    config_dir = Path(env_config_dir) if env_config_dir else DEFAULT_CONFIG_DIR
    return config_dir / DEFAULT_CONFIG_FILE


def load_config(
    config_path: Optional[Path] = None,
    env_prefix: str = "WBLOCKS_",
    strict: bool = False,
) -> WBlocksConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file
    3. Default values

    Args:
        config_path: Path to config file (default: ~/.config/wblocks/config.toml)
        env_prefix: Prefix for environment variables
        strict: Raise ConfigLoadError instead of warning on a broken file

    Returns:
        Loaded configuration
    """
    config = WBlocksConfig()

    # Determine config file path
    if config_path is None:
        config_path = get_config_path(env_prefix)

    if config_path.exists():
        config = _load_from_file(config_path, config, strict=strict)

    # Override with environment variables
    config = _load_from_env(config, env_prefix)

    return config


def _apply_section(target: Any, data: dict[str, Any]) -> None:
    """Copy known keys from a TOML table onto a config section."""
    for key, value in data.items():
        if not hasattr(target, key):
            logger.warning(f"Ignoring unknown configuration key: {key}")
            continue
        if isinstance(getattr(target, key), Path) or key in ("directory", "file"):
            value = Path(value) if value else None
        setattr(target, key, value)


def _load_from_file(path: Path, config: WBlocksConfig, strict: bool = False) -> WBlocksConfig:
    """Load configuration from a TOML file."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise ConfigLoadError(f"Failed to load config from {path}: {e}", path) from e
        logger.warning(f"Failed to load config from {path}: {e}")
        return config

    if "scripts" in data:
        scripts = dict(data["scripts"])
        settings = scripts.pop("settings", None)
        if isinstance(settings, dict):
            config.scripts.settings.update(settings)
        _apply_section(config.scripts, scripts)
        if config.scripts.directory is None:
            config.scripts.directory = DEFAULT_SCRIPTS_DIR

    if "timers" in data:
        _apply_section(config.timers, data["timers"])

    if "shell" in data:
        _apply_section(config.shell, data["shell"])

    if "logging" in data:
        _apply_section(config.logging, data["logging"])

    if "config_dir" in data:
        config.config_dir = Path(data["config_dir"])

    return config


def _load_from_env(config: WBlocksConfig, prefix: str) -> WBlocksConfig:
    """Load configuration from environment variables."""

    # Scripts
    if env_val := os.environ.get(f"{prefix}SCRIPTS_DIR"):
        config.scripts.directory = Path(env_val)
    if env_val := os.environ.get(f"{prefix}SCRIPTS_PATTERN"):
        config.scripts.pattern = env_val
    if env_val := os.environ.get(f"{prefix}FATAL_MISSING_DIR"):
        config.scripts.fatal_missing_dir = _to_bool(env_val)

    # Timers
    if env_val := os.environ.get(f"{prefix}HEARTBEAT_ENABLED"):
        config.timers.heartbeat_enabled = _to_bool(env_val)
    if env_val := os.environ.get(f"{prefix}HEARTBEAT_INTERVAL"):
        try:
            config.timers.heartbeat_interval = float(env_val)
        except ValueError:
            logger.warning(f"Ignoring invalid {prefix}HEARTBEAT_INTERVAL: {env_val}")

    # Shell
    if env_val := os.environ.get(f"{prefix}SHELL"):
        config.shell.program = env_val
    if env_val := os.environ.get(f"{prefix}SHELL_TIMEOUT"):
        try:
            config.shell.timeout = float(env_val)
        except ValueError:
            logger.warning(f"Ignoring invalid {prefix}SHELL_TIMEOUT: {env_val}")

    # Logging
    if env_val := os.environ.get(f"{prefix}LOG_LEVEL"):
        config.logging.level = env_val.upper()
    if env_val := os.environ.get(f"{prefix}LOG_FILE"):
        config.logging.file = Path(env_val)

    # Paths
    if env_val := os.environ.get(f"{prefix}CONFIG_DIR"):
        config.config_dir = Path(env_val)

    return config


def save_config(config: WBlocksConfig, path: Optional[Path] = None) -> None:
    """
    Save configuration to a TOML file.

    Args:
        config: Configuration to save
        path: Path to save to (default: config.config_dir / config.toml)
    """
    if path is None:
        path = config.config_dir / DEFAULT_CONFIG_FILE

    path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)
    header = "# wblocks configuration\n# Generated automatically - edit with care\n\n"

    with open(path, "w", encoding="utf-8") as f:
        f.write(header + tomli_w.dumps(_strip_none(data)))


def _strip_none(data: dict[str, Any]) -> dict[str, Any]:
    """Drop None values, which TOML cannot represent."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            value = _strip_none(value)
        result[key] = value
    return result


def get_default_config() -> WBlocksConfig:
    """Get the default configuration."""
    return WBlocksConfig()


# Global configuration instance (lazy-loaded)
_global_config: Optional[WBlocksConfig] = None


def get_config() -> WBlocksConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def set_config(config: WBlocksConfig) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def clear_config_cache() -> None:
    """Clear the global configuration cache."""
    global _global_config
    _global_config = None


def set_config_value(section: str, key: str, value: str, config_path: Optional[Path] = None) -> None:
    """
    Set a single configuration value and persist to file.

    Args:
        section: Configuration section (e.g., 'scripts', 'timers', 'shell')
        key: Configuration key within the section
        value: Value to set (converted to the type of the current value)
        config_path: Path to config file (default: get_config_path())
    """
    if config_path is None:
        config_path = get_config_path()

    config = load_config(config_path)

    section_obj = getattr(config, section, None)
    if section_obj is None or section == "config_dir":
        raise ValueError(f"Unknown configuration section: {section}")

    if not hasattr(section_obj, key):
        raise ValueError(f"Unknown configuration key: {section}.{key}")

    current_value = getattr(section_obj, key)
    current_type = type(current_value)

    # Convert value to appropriate type
    if current_type == bool:
        converted_value: Any = _to_bool(value)
    elif current_type == int:
        converted_value = int(value)
    elif current_type == float or key == "timeout":
        converted_value = float(value)
    elif isinstance(current_value, Path) or key in ("directory", "file"):
        converted_value = Path(value)
    elif current_type == list:
        converted_value = [v.strip() for v in value.split(",") if v.strip()]
    else:
        converted_value = value

    setattr(section_obj, key, converted_value)

    save_config(config, config_path)


def validate_config(config: Optional[WBlocksConfig] = None) -> List[ValidationError]:
    """
    Validate configuration and return list of errors.

    Args:
        config: Configuration to validate (default: loaded from file)

    Returns:
        List of validation errors (empty if valid)
    """
    if config is None:
        config = load_config()

    errors: List[ValidationError] = []

    # Scripts directory
    if not config.scripts.directory.exists():
        errors.append(ValidationError(
            field="scripts.directory",
            message=f"Scripts directory does not exist: {config.scripts.directory}",
            severity="error" if config.scripts.fatal_missing_dir else "warning",
        ))
    elif not config.scripts.directory.is_dir():
        errors.append(ValidationError(
            field="scripts.directory",
            message=f"Scripts path is not a directory: {config.scripts.directory}",
            severity="error",
        ))

    # Timers
    if config.timers.heartbeat_interval < 0:
        errors.append(ValidationError(
            field="timers.heartbeat_interval",
            message=f"Heartbeat interval must be non-negative: {config.timers.heartbeat_interval}",
            severity="error",
        ))

    # Shell
    if not config.shell.program:
        errors.append(ValidationError(
            field="shell.program",
            message="Shell program is empty",
            severity="error",
        ))
    elif shutil.which(config.shell.program) is None:
        errors.append(ValidationError(
            field="shell.program",
            message=f"Shell program not found on PATH: {config.shell.program}",
            severity="warning",
        ))

    if config.shell.timeout is not None and config.shell.timeout <= 0:
        errors.append(ValidationError(
            field="shell.timeout",
            message=f"Shell timeout must be positive: {config.shell.timeout}",
            severity="error",
        ))

    # Logging
    if config.logging.level.upper() not in VALID_LOG_LEVELS:
        errors.append(ValidationError(
            field="logging.level",
            message=f"Invalid log level: {config.logging.level}",
            severity="error",
        ))

    return errors


def _config_to_dict(config: WBlocksConfig) -> dict[str, Any]:
    """
    Convert configuration to dictionary.

    Args:
        config: Configuration to convert

    Returns:
        Dictionary representation of config
    """
    return {
        "config_dir": str(config.config_dir),
        "scripts": {
            "directory": str(config.scripts.directory),
            "hidden_marker": config.scripts.hidden_marker,
            "pattern": config.scripts.pattern,
            "fatal_missing_dir": config.scripts.fatal_missing_dir,
            "settings": dict(config.scripts.settings),
        },
        "timers": {
            "heartbeat_enabled": config.timers.heartbeat_enabled,
            "heartbeat_interval": config.timers.heartbeat_interval,
        },
        "shell": {
            "program": config.shell.program,
            "args": list(config.shell.args),
            "timeout": config.shell.timeout,
            "encoding": config.shell.encoding,
        },
        "logging": {
            "level": config.logging.level,
            "format": config.logging.format,
            "file": str(config.logging.file) if config.logging.file else None,
        },
    }


def export_config_yaml(config: WBlocksConfig) -> str:
    """
    Export configuration as YAML string.

    Args:
        config: Configuration to export

    Returns:
        YAML string representation of config
    """
    config_dict = _config_to_dict(config)
    return yaml.dump(config_dict, default_flow_style=False, sort_keys=False, allow_unicode=True)


def export_config_json(config: WBlocksConfig) -> str:
    """
    Export configuration as JSON string.

    Args:
        config: Configuration to export

    Returns:
        JSON string representation of config
    """
    config_dict = _config_to_dict(config)
    return json.dumps(config_dict, indent=2)
