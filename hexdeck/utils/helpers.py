"""
Helper utilities for hexdeck.

Provides common functions used across the grid core:
- Default preference sections stored in the settings file
- User config loading (TOML)
- Dictionary deep merge
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml
from loguru import logger

APP_NAME = "hexdeck"

# Preference sections persisted next to cells and groups, in file order
PREFERENCE_SECTIONS = ("appearance", "general", "grid", "security", "advanced", "keyBindings")

DEFAULT_PREFERENCES: Dict[str, Any] = {
    "appearance": {
        "opacity": 0.9,
        "themeColor": "cyan",
        "style": "default",
        "searchScope": "global",
        "searchMode": "fuzzy",
        "enableIconSilhouette": False,
    },
    "general": {
        "startWithSystem": False,
        "minimizeToTray": True,
        "showInTaskbar": False,
    },
    "grid": {
        "hexSize": 60,
        "gapSize": 4,
        "animationSpeed": 200,
        "showLabels": True,
        "hoverEffect": True,
        "enableAnimations": True,
    },
    "security": {
        "requireAdminConfirmation": True,
        "showLaunchConfirmation": False,
        "trustedPaths": [],
    },
    "advanced": {
        "debugMode": False,
        "showPerformanceMetrics": False,
        "customCSS": "",
        "disableAnimations": False,
    },
    "keyBindings": {
        "globalToggle": "Alt+Space",
        "hexNav": {
            "northEast": "W",
            "east": "S",
            "southEast": "X",
            "southWest": "Z",
            "west": "A",
            "northWest": "Q",
        },
        "actions": {
            "createShortcutFile": "Ctrl+N",
            "createShortcutFolder": "Ctrl+Shift+N",
            "createGroup": "Ctrl+G",
            "renameCell": "F2",
            "deleteCell": "Delete",
        },
        "directionalCreateModifier": "Shift",
        "search": "Ctrl+F",
    },
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "grid": {
        "hex_size": 60,
        "drag_threshold": 5,
    },
    "search": {
        "mode": "fuzzy",
        "scope": "global",
        "fuzzy_threshold": 0.4,
        "history_size": 10,
    },
    "persistence": {
        "settings_path": "",
        "save_delay_ms": 50,
    },
    "logging": {
        "level": "INFO",
    },
}


def config_dir() -> Path:
    """$XDG_CONFIG_HOME/hexdeck, falling back to ~/.config/hexdeck."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / APP_NAME


def default_config_path() -> Path:
    return config_dir() / "config.toml"


def default_settings_path() -> Path:
    return config_dir() / "settings.json"


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load user configuration from a TOML file.

    Args:
        path: Config file, defaults to $XDG_CONFIG_HOME/hexdeck/config.toml

    Returns:
        Dictionary containing config with defaults applied

    Example config.toml:
        [grid]
        hex_size = 48

        [search]
        mode = "partial"
        scope = "current"

        [logging]
        level = "DEBUG"
    """
    config_path = Path(path) if path else default_config_path()

    if not config_path.exists():
        logger.info(f"Config file not found at {config_path}, using defaults")
        return _deep_merge(DEFAULT_CONFIG, {})

    try:
        loaded = toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        logger.warning(f"Could not load config from {config_path}: {e}")
        logger.warning("Using default config")
        return _deep_merge(DEFAULT_CONFIG, {})

    return _deep_merge(DEFAULT_CONFIG, loaded)


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary with defaults
        override: Dictionary with overrides

    Returns:
        Merged dictionary (override takes precedence). Neither input is
        modified; nested dicts from `base` are copied.
    """
    result = {}
    for key, value in base.items():
        if isinstance(value, dict):
            value = _deep_merge(value, {})
        elif isinstance(value, list):
            value = list(value)
        result[key] = value

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
