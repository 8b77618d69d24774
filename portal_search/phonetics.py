"""Text folding and phonetic keys shared by the matchers.

Catalog records come from a French/Arabic-market ERP, so names carry accents
("Huile Synthétique", "Boîte de vitesse") while users type plain ASCII. Every
comparison in the search core goes through :func:`fold_text` first:

    1) transliterate to ASCII with ``unidecode`` (accents, ligatures, Arabic
       digits collapse to their Latin forms);
    2) lowercase;
    3) collapse runs of whitespace and trim.

:func:`phonetic_codes` derives double metaphone keys so misspelled brand and
range names ("castrole", "helics") still land on the catalog spelling.
"""
from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Iterable

from metaphone import doublemetaphone
from unidecode import unidecode

logger = logging.getLogger(__name__)

# Word characters kept when splitting text into phonetic words.
_WORD_RE = re.compile(r"[a-z]+")
# Shorter words produce metaphone keys that collide far too often.
MIN_PHONETIC_LENGTH = 4


@lru_cache(maxsize=16384)
def fold_text(text: str | None) -> str:
    """Lowercase, ASCII-fold and whitespace-collapse ``text``."""

    if not text:
        return ""
    folded = unidecode(text).lower()
    return " ".join(folded.split())


def tokenize(text: str | None, min_length: int = 1) -> list[str]:
    """Split folded text on whitespace, trimming punctuation around tokens."""

    tokens: list[str] = []
    for raw in fold_text(text).split():
        token = raw.strip(".,;:!?()[]{}\"'")
        if len(token) >= min_length:
            tokens.append(token)
    return tokens


@lru_cache(maxsize=16384)
def phonetic_codes(word: str) -> frozenset[str]:
    """Return the double metaphone codes of a single word.

    Words shorter than :data:`MIN_PHONETIC_LENGTH` or without letters yield an
    empty set.
    """

    letters = "".join(_WORD_RE.findall(fold_text(word)))
    if len(letters) < MIN_PHONETIC_LENGTH:
        return frozenset()
    primary, secondary = doublemetaphone(letters)
    return frozenset(code for code in (primary, secondary) if code)


def _words(text: str) -> Iterable[str]:
    return _WORD_RE.findall(fold_text(text))


def sounds_like_any(token: str, text: str) -> bool:
    """True when ``token`` shares a metaphone code with any word of ``text``."""

    token_codes = phonetic_codes(token)
    if not token_codes:
        return False
    for word in _words(text):
        if token_codes & phonetic_codes(word):
            logger.debug("phonetic match token=%r word=%r codes=%s", token, word, token_codes)
            return True
    return False
