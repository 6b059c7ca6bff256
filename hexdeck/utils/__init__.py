# hexdeck Utilities Package
"""
Shared configuration helpers for hexdeck.
"""

from .helpers import DEFAULT_CONFIG, DEFAULT_PREFERENCES, load_config

__all__ = ["DEFAULT_CONFIG", "DEFAULT_PREFERENCES", "load_config"]
