"""
Fuzzy Search Handler - Typo-tolerant search over titles and targets.

Scores each item with rapidfuzz's weighted ratio. The title counts for 70%
and the target path for 30% of the distance (the title alone when there is
no target). Items whose distance is within the threshold are returned,
closest first.
"""

from rapidfuzz import fuzz, utils

from ..router import SearchHandler, SearchItem

TITLE_WEIGHT = 0.7
TARGET_WEIGHT = 0.3
DEFAULT_THRESHOLD = 0.4  # 0 = exact, 1 = anything


class FuzzySearchHandler(SearchHandler):
    """Approximate matching with a distance cutoff."""

    mode = "fuzzy"

    def __init__(self, threshold: float = DEFAULT_THRESHOLD):
        self.threshold = threshold

    def distance(self, item: SearchItem, query: str) -> float:
        """Weighted distance in [0, 1] between a query and an item."""
        title_distance = 1 - fuzz.WRatio(query, item.title, processor=utils.default_process) / 100
        if not item.target:
            return title_distance

        target_distance = 1 - fuzz.WRatio(query, item.target, processor=utils.default_process) / 100
        return (
            title_distance * TITLE_WEIGHT + target_distance * TARGET_WEIGHT
        ) / (TITLE_WEIGHT + TARGET_WEIGHT)

    def search(self, items: list[SearchItem], query: str) -> list[str]:
        if not query.strip():
            return []

        scored = [(self.distance(item, query), item.id) for item in items]
        # sorted() is stable, so equal distances keep input order
        matches = sorted(
            (entry for entry in scored if entry[0] <= self.threshold),
            key=lambda entry: entry[0],
        )
        return [item_id for _distance, item_id in matches]
