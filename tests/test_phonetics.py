"""Regression tests for text folding and phonetic helpers."""

from portal_search.phonetics import fold_text, phonetic_codes, sounds_like_any, tokenize


def test_fold_text_strips_accents_and_whitespace():
    assert fold_text("  Huile   Synthétique 5W-30 ") == "huile synthetique 5w-30"
    assert fold_text("Boîte de vitesse") == "boite de vitesse"
    assert fold_text(None) == ""


def test_tokenize_trims_punctuation_and_short_tokens():
    assert tokenize("Shell, Helix (5W30) 1L", min_length=2) == ["shell", "helix", "5w30", "1l"]
    assert tokenize("a 5w30", min_length=3) == ["5w30"]


def test_misspelled_brand_sounds_like_catalog_spelling():
    assert sounds_like_any("castrole", "Castrol GTX 20W50")
    assert sounds_like_any("helx", "Shell Helix Ultra")


def test_short_or_unrelated_words_do_not_match():
    assert phonetic_codes("oil") == frozenset()
    assert not sounds_like_any("wiper", "Brake Pads Front")
