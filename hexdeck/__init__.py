# hexdeck Package
"""
Hexagonal grid app launcher core.

Modules:
  - grid: cells on hex planes, nested groups, drag-and-drop, clicks, keys
  - search: fuzzy, partial and regex search over cells
  - services: settings persistence, search history, platform interfaces
  - config: composition root (create_launcher)
"""

__version__ = "0.1.0-dev"
