"""
Tests for SearchHistory ordering, de-duplication and bounds.
"""

from hexdeck.services.search_history import SearchHistory


class TestSearchHistory:
    def test_newest_first(self):
        history = SearchHistory()
        history.add("one")
        history.add("two")
        assert history.items == ["two", "one"]

    def test_duplicate_moves_to_front(self):
        history = SearchHistory()
        for query in ("a", "b", "c", "a"):
            history.add(query)
        assert history.items == ["a", "c", "b"]

    def test_bounded(self):
        history = SearchHistory(max_items=3)
        for n in range(5):
            history.add(f"q{n}")
        assert history.items == ["q4", "q3", "q2"]

    def test_default_limit_is_ten(self):
        history = SearchHistory()
        for n in range(15):
            history.add(str(n))
        assert len(history) == 10

    def test_blank_ignored(self):
        history = SearchHistory()
        assert not history.add("   ")
        assert history.items == []

    def test_query_trimmed(self):
        history = SearchHistory()
        history.add("  fire ")
        history.add("fire")
        assert history.items == ["fire"]

    def test_clear(self):
        history = SearchHistory(items=["a"])
        history.clear()
        assert history.to_list() == []

    def test_from_list_cleans_entries(self):
        history = SearchHistory(max_items=2)
        history.from_list(["a", "", "a", None, "b", "c"])
        assert history.items == ["a", "b"]
