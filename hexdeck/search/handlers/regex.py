"""
Regex Search Handler - Case-insensitive regular expression search.

The query is compiled as-is (not trimmed) and searched anywhere in the
title or target:
  ^Note       -> titles starting with "Note"
  \\.exe$     -> targets ending in .exe
  chrome|edge -> either browser

An invalid pattern yields no results instead of an error.
"""

import re

from loguru import logger

from ..router import SearchHandler, SearchItem


class RegexSearchHandler(SearchHandler):
    """re.search over title or target with re.IGNORECASE."""

    mode = "regex"

    def search(self, items: list[SearchItem], query: str) -> list[str]:
        if not query.strip():
            return []

        try:
            pattern = re.compile(query, re.IGNORECASE)
        except re.error as e:
            logger.debug(f"Invalid regex '{query}': {e}")
            return []

        return [
            item.id for item in items
            if pattern.search(item.title) or (item.target and pattern.search(item.target))
        ]
