"""
Partial Search Handler - Plain case-insensitive substring match.

Matches items whose title or target contains the trimmed query. Results
keep input order.
"""

from ..router import SearchHandler, SearchItem


class PartialSearchHandler(SearchHandler):
    """Substring search on title or target."""

    mode = "partial"

    def search(self, items: list[SearchItem], query: str) -> list[str]:
        q = query.strip().lower()
        if not q:
            return []

        return [
            item.id for item in items
            if q in item.title.lower() or (item.target and q in item.target.lower())
        ]
