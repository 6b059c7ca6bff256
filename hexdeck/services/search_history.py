"""
Search History - Most recent search queries, newest first.
"""

from typing import Iterable, Optional

DEFAULT_MAX_ITEMS = 10


class SearchHistory:
    """
    Bounded list of past queries.

    Re-running a query moves it to the front instead of duplicating it.
    """

    def __init__(self, max_items: int = DEFAULT_MAX_ITEMS, items: Optional[Iterable[str]] = None):
        self.max_items = max_items
        self._items: list[str] = []
        if items:
            self.from_list(items)

    @property
    def items(self) -> list[str]:
        return list(self._items)

    def add(self, query: str) -> bool:
        """
        Record a query.

        Returns:
            False for a blank query (not recorded)
        """
        query = query.strip()
        if not query:
            return False

        if query in self._items:
            self._items.remove(query)
        self._items.insert(0, query)
        del self._items[self.max_items:]
        return True

    def clear(self) -> None:
        self._items = []

    def to_list(self) -> list[str]:
        return list(self._items)

    def from_list(self, items: Iterable[str]) -> None:
        """Replace the history with saved entries (newest first)."""
        self._items = []
        for query in items:
            if isinstance(query, str) and query.strip() and query.strip() not in self._items:
                self._items.append(query.strip())
        del self._items[self.max_items:]

    def __len__(self) -> int:
        return len(self._items)
