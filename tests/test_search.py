"""End-to-end search over a filtered catalog."""

import asyncio
import logging

from portal_search.messages import DEFAULT_MESSAGES
from portal_search.models import MatchType, SearchFilters
from portal_search.ranking import rank
from portal_search.search import apply_filters, search, search_async


def test_empty_catalog():
    assert search("shell", []).noResultsMessage == DEFAULT_MESSAGES.no_products


def test_filters_leave_nothing(lubricant_catalog):
    result = search("shell", lubricant_catalog, SearchFilters(brands=frozenset({"Nope"})))

    assert result.results == []
    assert result.noResultsMessage == DEFAULT_MESSAGES.no_products_for_filters


def test_unpriced_products_are_never_listed(lubricant_catalog):
    result = search("", lubricant_catalog)

    codes = [item.product.itemCode for item in result.results]
    assert "BP-9001" not in codes
    assert len(codes) == 5


def test_filters_are_case_insensitive(lubricant_catalog):
    result = search("", lubricant_catalog, SearchFilters(brands=frozenset({"shell"})))

    assert [item.product.itemCode for item in result.results] == ["SH-100"]


def test_category_and_brand_filters_combine(lubricant_catalog):
    filters = SearchFilters(categories=frozenset({"Lubricants"}), brands=frozenset({"Mann", "Mobil"}))

    assert [p.itemCode for p in apply_filters(lubricant_catalog, filters)] == ["MO-400"]


def test_unparseable_price_is_not_orderable(make_product):
    catalog = [make_product("Shell Helix", "SH-1", price="n/a"), make_product("Total", "TQ-1")]

    assert [p.itemCode for p in apply_filters(catalog)] == ["TQ-1"]


def test_item_code_search(lubricant_catalog):
    result = search("ABC12345", lubricant_catalog)

    assert result.results[0].product.itemCode == "ABC12345"
    assert result.results[0].matchType == MatchType.OEM_EXACT


def test_cross_reference_in_description(lubricant_catalog):
    result = search("04152-YZZA1", lubricant_catalog)

    assert result.results[0].product.itemCode == "ABC12345"
    assert result.results[0].matchType == MatchType.OEM_EXACT


def test_typo_in_brand(lubricant_catalog):
    result = search("castrole", lubricant_catalog)

    assert result.results[0].product.itemCode == "CA-300"
    assert result.results[0].matchType == MatchType.FUZZY


def test_logs_timing(lubricant_catalog, caplog):
    caplog.set_level(logging.INFO, logger="portal_search.search")

    search("shell", lubricant_catalog)

    assert "timing:" in caplog.text


def test_async_search_matches_sync(lubricant_catalog):
    expected = search("5w40", lubricant_catalog)

    assert asyncio.run(search_async("5w40", lubricant_catalog)) == expected


def test_unpriced_match_is_never_suggested(lubricant_catalog):
    assert "BP-9001" in [item.product.itemCode for item in rank("brake pads front", lubricant_catalog).results]

    result = search("brake pads front", lubricant_catalog)

    listed = [item.product.itemCode for item in result.results + result.suggestions]
    assert "BP-9001" not in listed


def test_pack_size_query_matches_by_name(make_product):
    catalog = [
        make_product("Shell Helix 5W30 208L", "SH-1"),
        make_product("Total Quartz 5W30 208L", "TQ-1"),
    ]

    result = search("208L", catalog)

    assert [item.product.itemCode for item in result.results] == ["SH-1", "TQ-1"]
    assert all(item.matchType == MatchType.EXACT for item in result.results)
