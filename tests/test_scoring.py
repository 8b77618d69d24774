"""Tiered relevance scoring of a single product."""

import pytest

from portal_search.models import MatchType
from portal_search.scoring import code_similarity, match_priority, score


def test_empty_query_scores_zero(make_product):
    assert score("   ", make_product("Shell Helix", "SH-1")).score == 0.0


def test_item_code_match_is_oem_exact(make_product):
    match = score("ABC12345", make_product("Oil Filter", "ABC12345"))

    assert match.score == 1.0
    assert match.match_type == MatchType.OEM_EXACT


def test_item_code_match_ignores_separators(make_product):
    match = score("hu 719/7x", make_product("Oil Filter", "HU-719/7X"))

    assert match.match_type == MatchType.OEM_EXACT


def test_cross_reference_close_to_query_is_oem_similar(make_product):
    product = make_product("Oil Filter", "FLT-1", description="Replaces OEM ABC123456")

    match = score("ABC123457", product)

    assert match.match_type == MatchType.OEM_SIMILAR
    assert match.score == pytest.approx(1 - 1 / 9)


def test_code_spread_over_text_is_oem_partial(make_product):
    match = score("XY12345", make_product("Joint XY12 345", "J-1"))

    assert match.match_type == MatchType.OEM_PARTIAL
    assert match.score == pytest.approx(0.7)


def test_name_term_beats_description_term(make_product):
    product = make_product("Shell Helix", "SH-1", description="Synthetic engine oil")

    assert score("shell", product).score == pytest.approx(0.85)
    assert score("synthetic", product).score == pytest.approx(0.7)
    assert score("synthetic", product).field == "description"


def test_partial_item_code_term(make_product):
    match = score("qz-9", make_product("Quartz Ineo", "QZ-9000"))

    assert match.match_type == MatchType.EXACT
    assert match.field == "code"
    assert match.score == pytest.approx(0.8)


def test_brand_and_category_terms_count_as_details(make_product):
    product = make_product("Helix HX7", "HX-7", brand="Shell", category="Lubricants")

    assert score("lubricants", product).score == pytest.approx(0.7)


def test_misspelled_name_matches_phonetically(make_product):
    match = score("helx", make_product("Shell Helix", "SH-1"))

    assert match.match_type == MatchType.FUZZY
    assert match.field == "name"
    assert match.score == pytest.approx(0.56)


def test_shared_viscosity_is_a_specification_match(make_product):
    match = score("5w30", make_product("Total Quartz 5W-30 1L", "TQ-1"))

    assert match.match_type == MatchType.SPECIFICATION
    assert match.field == "viscosity"
    assert match.score == pytest.approx(0.6)


def test_shared_volume_is_a_specification_match(make_product):
    match = score("1 litre", make_product("Huile 1L", "HU-1"))

    assert match.match_type == MatchType.SPECIFICATION
    assert match.field == "volume"
    assert match.score == pytest.approx(0.5)


def test_intent_entities_give_a_capped_bonus(make_product):
    match = score("10w40", make_product("Huile 10W-30", "HU-10"))

    assert match.match_type == MatchType.SPECIFICATION
    assert match.field == "intent"
    assert match.score == pytest.approx(2 / 6 * 0.9)


def test_scores_stay_in_range(lubricant_catalog):
    for query in ("shell", "5w40", "ABC12345", "zzzz", "huile moteur"):
        for product in lubricant_catalog:
            assert 0.0 <= score(query, product).score <= 1.0


def test_code_similarity_tiers():
    assert code_similarity("HU-719/7X", "hu7197x") == 1.0
    assert code_similarity("ABC123", "XABC1234") == pytest.approx(0.9)
    assert code_similarity("ABC999XYZ", "ABC111XYZ") == pytest.approx(0.8)
    assert code_similarity("ABC999XYZ", "ABC111QRS") == pytest.approx(0.6)
    assert code_similarity("ABCDEF", "UVWXYZ") == 0.0
    assert code_similarity("", "ABC") == 0.0


def test_match_priority_order():
    ordered = [
        match_priority(MatchType.OEM_EXACT),
        match_priority(MatchType.OEM_SIMILAR),
        match_priority(MatchType.EXACT, "name"),
        match_priority(MatchType.EXACT, "code"),
        match_priority(MatchType.OEM_PARTIAL),
        match_priority(MatchType.EXACT, "description"),
        match_priority(MatchType.SPECIFICATION, "viscosity"),
        match_priority(MatchType.FUZZY, "name"),
    ]

    assert ordered == sorted(ordered)
    assert len(set(ordered)) == len(ordered)


def test_any_shared_viscosity_counts(make_product):
    match = score("10w40 5w30", make_product("Total Quartz 5W-30", "TQ-1"))

    assert match.field == "viscosity"
    assert match.score == pytest.approx(0.6)


def test_any_listed_pack_size_counts(make_product):
    product = make_product("Huile Moteur", "HM-1", description="Bidon 1L / bidon 5 L")

    match = score("5 L", product)

    assert match.field == "volume"
    assert match.score == pytest.approx(0.5)


def test_pack_size_query_is_not_a_part_code(make_product):
    match = score("208L", make_product("Shell Helix 5W30 208L", "SH-1"))

    assert match.match_type == MatchType.EXACT
    assert match.field == "name"


def test_adding_terms_never_lowers_a_score(lubricant_catalog):
    pairs = [
        ("5w40", "quartz 5w40"),
        ("5w30", "shell 5w30"),
        ("api ci-4", "delvac api ci-4"),
        ("5l", "MO-400 5l"),
    ]
    for base, extended in pairs:
        for product in lubricant_catalog:
            assert score(extended, product).score >= score(base, product).score, (base, product.itemCode)
