"""Ranking, suggestions and compatible alternatives."""

from dataclasses import replace
from types import SimpleNamespace

from portal_search.config import settings
from portal_search.extractors import ProductFeatures
from portal_search.messages import DEFAULT_MESSAGES, MessageCatalog
from portal_search.models import MatchType
from portal_search.ranking import is_compatible, rank


def test_no_products_message():
    result = rank("shell", [])

    assert result.results == []
    assert result.noResultsMessage == DEFAULT_MESSAGES.no_products


def test_empty_query_lists_everything_in_order(lubricant_catalog):
    result = rank("", lubricant_catalog)

    assert [item.product.id for item in result.results] == [p.id for p in lubricant_catalog]
    assert all(item.score == 1.0 and item.matchType == MatchType.EXACT for item in result.results)
    assert result.suggestions == []
    assert result.noResultsMessage is None


def test_results_sorted_by_score(lubricant_catalog):
    result = rank("ABC12345", lubricant_catalog)

    scores = [item.score for item in result.results]
    assert scores == sorted(scores, reverse=True)
    assert result.results[0].product.itemCode == "ABC12345"
    assert all(item.score >= settings.confident_threshold for item in result.results)


def test_equal_scores_keep_catalog_order(make_product):
    catalog = [make_product("Helix Ultra", "HX-2"), make_product("Helix HX7", "HX-1")]

    result = rank("helix", catalog)

    assert [item.product.itemCode for item in result.results] == ["HX-2", "HX-1"]


def test_ranking_is_idempotent(lubricant_catalog):
    assert rank("shell 5w30", lubricant_catalog) == rank("shell 5w30", lubricant_catalog)


def test_compatible_product_from_other_brand_is_suggested(make_product):
    catalog = [
        make_product("Shell Helix HX7 5W30 1L", "SH-1", brand="Shell"),
        make_product("Total Quartz 5W30 1L", "TQ-1", brand="Total"),
    ]

    result = rank("Shell Helix", catalog)

    assert [item.product.itemCode for item in result.results] == ["SH-1"]
    assert result.suggestions[0].product.itemCode == "TQ-1"
    assert result.suggestions[0].matchType == MatchType.ALTERNATIVE
    assert result.suggestions[0].reason == "Compatible 5W30 alternative to Shell Helix HX7 5W30 1L"
    assert result.noResultsMessage is None


def test_no_match_without_suggestions(make_product):
    strict = replace(settings, suggestion_floor=0.99)

    result = rank("windshield wiper", [make_product("Brake Pads Front", "BP-9001")], settings=strict)

    assert result.results == []
    assert result.suggestions == []
    assert result.noResultsMessage == (
        'No products found for "windshield wiper". '
        "Try searching with different keywords or check the filters."
    )


def test_unknown_part_code_message(lubricant_catalog):
    result = rank(" ZZZ98765 ", lubricant_catalog)

    assert result.results == []
    assert result.noResultsMessage.startswith('No direct match found for OEM code "ZZZ98765"')


def test_custom_message_catalog(make_product):
    messages = MessageCatalog(no_results="Aucun produit pour « {query} »")
    strict = replace(settings, suggestion_floor=0.99)

    result = rank("xyz", [make_product("Brake Pads", "BP-1")], settings=strict, messages=messages)

    assert result.noResultsMessage == "Aucun produit pour « xyz »"


def test_corrupt_product_is_excluded(make_product, caplog):
    good = make_product("Shell Helix", "SH-1")

    result = rank("shell", [SimpleNamespace(id="broken"), good])

    assert [item.product.id for item in result.results] == ["SH-1"]
    assert "scoring failed" in caplog.text


def test_compatibility_rules():
    shell = ProductFeatures(brand="shell", viscosity="5w30", volume="1l")

    assert is_compatible(shell, ProductFeatures(brand="total", viscosity="5w30", volume="1l"))
    assert not is_compatible(shell, ProductFeatures(brand="shell", viscosity="5w30", volume="1l"))
    assert not is_compatible(shell, ProductFeatures(brand="total", viscosity="5w30", volume="5l"))
    assert not is_compatible(shell, ProductFeatures(brand="total", viscosity="10w40", volume="1l"))


def test_shared_application_relaxes_volume():
    anchor = ProductFeatures(brand="mobil", volume="5l", application="engine")

    assert is_compatible(anchor, ProductFeatures(brand="elf", volume="1l", application="engine"))


def test_unbranded_products_are_not_alternatives():
    anchor = ProductFeatures(viscosity="5w30", volume="1l")

    assert not is_compatible(anchor, ProductFeatures(viscosity="5w30", volume="1l"))
    assert is_compatible(anchor, ProductFeatures(brand="elf", viscosity="5w30", volume="1l"))


def test_unknown_code_inside_free_text(make_product):
    catalog = [make_product("Brake Pads Front", "BP-9001", price="49.90")]

    result = rank("windshield wiper XYZ999", catalog)

    assert result.results == []
    assert result.noResultsMessage == (
        'No direct match found for OEM code "XYZ999". '
        "Check suggestions below for possible alternatives."
    )


def test_pack_size_miss_uses_plain_wording(make_product):
    strict = replace(settings, suggestion_floor=0.99)

    result = rank("208L", [make_product("Brake Pads", "BP-1")], settings=strict)

    assert result.noResultsMessage.startswith('No products found for "208L"')
