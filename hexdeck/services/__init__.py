# hexdeck Services Package
"""
Backend services for hexdeck.

Services handle persistence, search history and the interfaces to the
host platform (process launching, icons, file picking).
"""

from .persistence import JsonSettingsBackend, SaveQueue, SettingsBackend
from .search_history import SearchHistory

__all__ = ["JsonSettingsBackend", "SaveQueue", "SettingsBackend", "SearchHistory"]
