"""
Search package - Mode-based search over grid cells.

Provides a pluggable search system where queries are dispatched to the
handler for the selected mode (fuzzy, partial, regex).
"""

from .router import SearchEngine, SearchHandler, SearchItem

__all__ = ["SearchEngine", "SearchHandler", "SearchItem"]
