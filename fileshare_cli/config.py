"""Configuration management for fileshare-cli.

Settings resolve with the following precedence (highest to lowest):
1. CLI argument
2. Environment variable (FILESHARE_<KEY>)
3. Config file
4. Built-in default (None)

The config file is `.fileshare/config.yaml` inside a config directory, which
defaults to the user's home directory.

Usage:
    from fileshare_cli.config import get_setting, set_setting

    # Get a setting with full precedence resolution
    account_url = get_setting("account_url", cli_value=cli_account_url)

    # Persist a setting
    set_setting("account_url", "az://myaccount")
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

# Known settings for documentation/validation (but unknown keys are still allowed)
KNOWN_SETTINGS: frozenset[str] = frozenset(
    {"account_url", "s3_endpoint", "s3_region", "chunk_size"}
)

CONFIG_DIRNAME = ".fileshare"
CONFIG_FILENAME = "config.yaml"


def default_config_dir() -> Path:
    """Directory holding `.fileshare/` (FILESHARE_CONFIG_DIR or the home directory)."""
    override = os.environ.get("FILESHARE_CONFIG_DIR")
    return Path(override) if override else Path.home()


def get_config_path(config_dir: Path | None = None) -> Path:
    """Get the path to the config file.

    Args:
        config_dir: Directory holding `.fileshare/` (default: default_config_dir()).

    Returns:
        Path to .fileshare/config.yaml
    """
    base = config_dir if config_dir is not None else default_config_dir()
    return base / CONFIG_DIRNAME / CONFIG_FILENAME


def load_config(config_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from .fileshare/config.yaml.

    Returns:
        Config dictionary. Returns empty dict if file doesn't exist.
    """
    config_file = get_config_path(config_dir)

    if not config_file.exists():
        return {}

    content = config_file.read_text()
    if not content.strip():
        return {}

    data = yaml.safe_load(content)
    return data if data is not None else {}


def save_config(config: dict[str, Any], config_dir: Path | None = None) -> None:
    """Save configuration to .fileshare/config.yaml, creating the directory if needed."""
    config_file = get_config_path(config_dir)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    # Use default_flow_style=False for readable multi-line YAML
    content = yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
    config_file.write_text(content)


def _get_env_var_name(key: str) -> str:
    """Convert a setting key to environment variable name.

    Args:
        key: Setting key (e.g., "account_url")

    Returns:
        Environment variable name (e.g., "FILESHARE_ACCOUNT_URL")
    """
    return f"FILESHARE_{key.upper()}"


def get_setting(
    key: str,
    cli_value: Any | None = None,
    config_dir: Path | None = None,
) -> Any | None:
    """Resolve a setting with full precedence.

    Args:
        key: Setting key (e.g., "account_url", "s3_region")
        cli_value: Value passed via CLI argument (highest precedence)
        config_dir: Directory holding `.fileshare/`

    Returns:
        Resolved value, or None if not found at any level.
    """
    if cli_value is not None:
        return cli_value

    env_value = os.environ.get(_get_env_var_name(key))
    if env_value is not None:
        return env_value

    config = load_config(config_dir)
    return config.get(key)


def set_setting(key: str, value: Any, config_dir: Path | None = None) -> None:
    """Set a configuration value in the config file."""
    config = load_config(config_dir)
    config[key] = value
    save_config(config, config_dir)


def unset_setting(key: str, config_dir: Path | None = None) -> bool:
    """Remove a configuration value.

    Returns:
        True if the key existed and was removed, False if key didn't exist.
    """
    config = load_config(config_dir)
    if key not in config:
        return False
    del config[key]
    save_config(config, config_dir)
    return True


def list_settings(config_dir: Path | None = None) -> dict[str, dict[str, Any]]:
    """List all settings with their sources.

    Returns:
        Dict mapping setting keys to {"value": ..., "source": ...} where source
        is "env", "config" or "default".
    """
    config = load_config(config_dir)
    all_keys = set(config.keys()) | KNOWN_SETTINGS

    result: dict[str, dict[str, Any]] = {}
    for key in sorted(all_keys):
        if _get_env_var_name(key) in os.environ:
            source = "env"
        elif key in config:
            source = "config"
        else:
            source = "default"
        value = get_setting(key, config_dir=config_dir)
        if value is not None or source != "default":
            result[key] = {"value": value, "source": source}
    return result
