"""
Search Engine - Dispatches queries to one handler per search mode.

Each handler declares a mode name and a search() method that filters and
ranks SearchItems, returning their ids. The engine picks the handler for
the requested mode; unknown modes fall back to fuzzy search.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from loguru import logger

if TYPE_CHECKING:
    from ..grid.registry import GridRegistry

DEFAULT_MODE = "fuzzy"


@dataclass(frozen=True)
class SearchItem:
    """A searchable entry, usually a flattened shortcut cell."""
    id: str
    title: str
    target: Optional[str] = None


class SearchHandler(ABC):
    """Base class for all search handlers."""

    @property
    @abstractmethod
    def mode(self) -> str:
        """Mode identifier ("fuzzy", "partial", "regex")."""
        ...

    @abstractmethod
    def search(self, items: list[SearchItem], query: str) -> list[str]:
        """Return ids of matching items, best match first."""
        ...


class SearchEngine:
    """Routes queries to the handler registered for the search mode."""

    def __init__(self, handlers: Optional[Iterable[SearchHandler]] = None, default_mode: str = DEFAULT_MODE):
        self._handlers: dict[str, SearchHandler] = {}
        self.default_mode = default_mode

        if handlers is None:
            from .handlers import FuzzySearchHandler, PartialSearchHandler, RegexSearchHandler
            handlers = [FuzzySearchHandler(), PartialSearchHandler(), RegexSearchHandler()]
        for handler in handlers:
            self.register(handler)

    def register(self, handler: SearchHandler) -> None:
        """Register a handler, replacing any handler for the same mode."""
        self._handlers[handler.mode] = handler

    @property
    def modes(self) -> list[str]:
        return list(self._handlers)

    def _handler_for(self, mode: Optional[str]) -> SearchHandler:
        mode = mode or self.default_mode
        handler = self._handlers.get(mode)
        if handler is None:
            logger.debug(f"Unknown search mode '{mode}', using {DEFAULT_MODE}")
            handler = self._handlers[DEFAULT_MODE]
        return handler

    def search(self, items: list[SearchItem], query: str, mode: Optional[str] = None) -> list[str]:
        """
        Run a query against a list of items.

        Args:
            items: Candidates, in display order
            query: The search query string
            mode: "fuzzy", "partial" or "regex" (engine default when None)

        Returns:
            Matching item ids. Empty for a blank query.
        """
        if not query or not query.strip():
            return []
        return self._handler_for(mode).search(items, query)

    def search_registry(
        self,
        registry: "GridRegistry",
        query: str,
        mode: Optional[str] = None,
        scope: Optional[str] = None,
    ) -> list[str]:
        """
        Search the non-system cells of a registry.

        Args:
            registry: Grid to search
            query: The search query string
            mode: Search mode, see search()
            scope: "current" (active plane) or "global" (every plane)
        """
        cells = registry.flatten(scope) if scope else registry.flatten()
        items = [SearchItem(id=cell.id, title=cell.title, target=cell.launch_target) for cell in cells]
        return self.search(items, query, mode)
