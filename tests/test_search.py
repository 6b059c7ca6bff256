"""
Tests for the search engine and its fuzzy, partial and regex handlers.

Uses real rapidfuzz scoring against a small set of launcher cells.
"""

import pytest

from conftest import make_cell
from hexdeck.grid.registry import SEARCH_SCOPE_CURRENT, SEARCH_SCOPE_GLOBAL
from hexdeck.search import SearchEngine, SearchHandler, SearchItem
from hexdeck.search.handlers import FuzzySearchHandler, PartialSearchHandler, RegexSearchHandler


@pytest.fixture
def items(app_cells):
    return [SearchItem(id=c.id, title=c.title, target=c.launch_target) for c in app_cells]


@pytest.fixture
def engine():
    return SearchEngine()


class TestFuzzy:
    """Typo-tolerant matching."""

    def test_typo_finds_firefox(self, items):
        results = FuzzySearchHandler().search(items, "firfox")
        assert results[0] == "1"

    def test_prefix_ranks_chrome_first(self, items):
        results = FuzzySearchHandler().search(items, "chrom")
        assert results[0] == "2"

    def test_unrelated_query_excluded(self, items):
        assert FuzzySearchHandler().search(items, "zzzzqqq") == []

    def test_blank_query(self, items):
        assert FuzzySearchHandler().search(items, "   ") == []

    def test_exact_title_distance_zero(self):
        item = SearchItem(id="x", title="Notepad")
        assert FuzzySearchHandler().distance(item, "notepad") == pytest.approx(0)

    def test_target_counts_for_thirty_percent(self):
        # Title identical, target completely different: distance is 0.3 * target distance
        handler = FuzzySearchHandler()
        with_target = SearchItem(id="x", title="abc", target="zzzzzz")
        assert handler.distance(with_target, "abc") == pytest.approx(0.3)

    def test_ties_keep_input_order(self):
        items = [SearchItem(id="first", title="Notes"), SearchItem(id="second", title="Notes")]
        assert FuzzySearchHandler().search(items, "notes") == ["first", "second"]

    def test_threshold_zero_requires_exact(self, items):
        results = FuzzySearchHandler(threshold=0.0).search(items, "firfox")
        assert results == []


class TestPartial:
    def test_substring_in_target(self, items):
        assert PartialSearchHandler().search(items, "mozilla") == ["1"]

    def test_case_insensitive_title(self, items):
        assert PartialSearchHandler().search(items, "NOTE") == ["4", "5"]

    def test_query_trimmed(self, items):
        assert PartialSearchHandler().search(items, "  chrome  ") == ["2"]

    def test_blank_query(self, items):
        assert PartialSearchHandler().search(items, "  ") == []

    def test_shortcut_target_path(self, items):
        assert PartialSearchHandler().search(items, "vs code") == ["3"]


class TestRegex:
    def test_anchor(self, items):
        assert RegexSearchHandler().search(items, "^Note") == ["4", "5"]

    def test_invalid_pattern_returns_empty(self, items):
        assert RegexSearchHandler().search(items, "[") == []

    def test_ignore_case(self, items):
        assert RegexSearchHandler().search(items, "FIREFOX") == ["1"]

    def test_matches_target(self, items):
        assert RegexSearchHandler().search(items, r"\.txt$") == ["5"]

    def test_alternation(self, items):
        assert RegexSearchHandler().search(items, "chrome|notepad") == ["2", "4"]


class TestEngine:
    def test_default_modes(self, engine):
        assert set(engine.modes) == {"fuzzy", "partial", "regex"}

    def test_default_mode_is_fuzzy(self, engine, items):
        assert engine.search(items, "firfox")[0] == "1"

    def test_mode_selection(self, engine, items):
        assert engine.search(items, "^Note", mode="regex") == ["4", "5"]
        assert engine.search(items, "^Note", mode="partial") == []

    def test_unknown_mode_falls_back_to_fuzzy(self, engine, items):
        assert engine.search(items, "firfox", mode="soundex")[0] == "1"

    def test_blank_query(self, engine, items):
        assert engine.search(items, "", mode="regex") == []

    def test_register_custom_handler(self, engine, items):
        class FirstOnly(SearchHandler):
            mode = "first"

            def search(self, items, query):
                return [items[0].id]

        engine.register(FirstOnly())
        assert engine.search(items, "anything", mode="first") == ["1"]

    def test_search_registry_scopes(self, engine, registry):
        registry.add_cell(make_cell("fx", (1, -1, 0), "Firefox", target="/usr/bin/firefox"))
        gid = registry.create_group_folder("Browsers")
        registry.enter_group(gid)
        registry.add_cell(make_cell("ch", (2, -2, 0), "Chromium", target="/usr/bin/chromium"))

        everywhere = engine.search_registry(registry, "/usr/bin", mode="partial", scope=SEARCH_SCOPE_GLOBAL)
        here = engine.search_registry(registry, "/usr/bin", mode="partial", scope=SEARCH_SCOPE_CURRENT)

        assert set(everywhere) == {"fx", "ch"}
        assert here == ["ch"]

    def test_search_registry_skips_system_cells(self, engine, registry):
        assert engine.search_registry(registry, "Settings", mode="partial") == []
