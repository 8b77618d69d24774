"""Structured signal extraction from product and query text.

Each extractor takes free text (a query, or a product's fields joined
together) and returns either the first match or ``None``. Part codes are the
exception: a description can list several cross-references, so
:func:`extract_part_codes` returns every candidate. Extractors never raise on
odd input; an empty or ``None`` text simply yields no match.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Optional, Sequence

from .config import settings
from .models import Product
from .phonetics import fold_text

logger = logging.getLogger(__name__)

# Alphanumeric runs: the raw material for part-code candidates.
_ALNUM_RE = re.compile(r"[0-9A-Za-z]+")
_NON_ALNUM_RE = re.compile(r"[^0-9A-Za-z]")
_OEM_MARKER = "OEM"
MIN_CODE_LENGTH = 4
PART_CODE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[A-Z]{2,4}[A-Z0-9]{4,}"),
    re.compile(r"\d{5,}[A-Z]*"),
    re.compile(r"[A-Z]{2,}\d{3,}"),
    re.compile(r"\d{3,}[A-Z]\d*"),
)
# Pack sizes ("208L", "20LTR") and viscosity grades ("5W30", "SAE10W40")
# share the shape of short part codes but are specifications.
_PACK_SIZE_TOKEN_RE = re.compile(r"\d+(?:L|LT|LTR|LITERS?|LITRES?)")
_VISCOSITY_TOKEN_RE = re.compile(r"(?:SAE)?\d{1,2}W\d{2,3}")

# "5W30", "5w-30", "10 W 40", "0W20"; not preceded by another digit so that
# "9000 5W40" reads as 5W40.
_VISCOSITY_RE = re.compile(r"(?<![\d.])(\d{1,2})\s*-?\s*w\s*-?\s*(\d{2,3})(?!\d)")
_VOLUME_RE = re.compile(
    r"(?<![\w.,])(\d+(?:[.,]\d+)?)\s*(?:l|lt|ltr|liters?|litres?)(?![a-z])"
)
_API_GRADE_RE = re.compile(r"\bapi\s*[:\-]?\s*([sc][a-z](?:\s*-?\s*\d)?)\b")
_ACEA_GRADE_RE = re.compile(r"\bacea\s*[:\-]?\s*([abce]\d{1,2}(?:\s*/\s*[abce]\d{1,2})?)\b")
_SAE_MONOGRADE_RE = re.compile(r"\bsae\s*(\d{2})\b")

BRAND_ALIASES: dict[str, str] = {
    "totalenergies": "total",
    "total energies": "total",
    "mobil1": "mobil",
    "castrol edge": "castrol",
    "elf lubricants": "elf",
}

# Canonical application -> spellings seen in catalog descriptions and queries.
APPLICATION_TERMS: dict[str, tuple[str, ...]] = {
    "engine": ("engine", "motor", "moteur"),
    "gasoline": ("gasoline", "petrol", "essence"),
    "diesel": ("diesel",),
    "gear": ("gear", "gearbox", "boite", "pont"),
    "transmission": ("transmission", "atf"),
    "hydraulic": ("hydraulic", "hydraulique"),
}


def normalize_code(code: Optional[str]) -> str:
    """Remove non-alphanumeric characters and uppercase the code."""
    if not code:
        return ""
    return _NON_ALNUM_RE.sub("", code).upper()


def _strip_oem_marker(token: str) -> str:
    if token.startswith(_OEM_MARKER) and len(token) > len(_OEM_MARKER):
        return token[len(_OEM_MARKER):]
    return token


def looks_like_part_code(token: str) -> bool:
    if len(token) < MIN_CODE_LENGTH:
        return False
    if not any(ch.isdigit() for ch in token):
        return False
    if _PACK_SIZE_TOKEN_RE.fullmatch(token) or _VISCOSITY_TOKEN_RE.fullmatch(token):
        return False
    return any(pattern.fullmatch(token) for pattern in PART_CODE_PATTERNS)


@lru_cache(maxsize=8192)
def extract_part_codes(text: str | None) -> frozenset[str]:
    """Return every part/OEM code candidate in ``text``, uppercased.

    Candidates are alphanumeric runs plus whitespace-separated chunks with
    their separators removed, so ``HU-719/7X`` is seen as ``HU7197X``.
    """

    if not text:
        return frozenset()
    candidates: list[str] = [run.upper() for run in _ALNUM_RE.findall(text)]
    for chunk in text.split():
        compact = normalize_code(chunk)
        if compact and compact not in candidates:
            candidates.append(compact)
    codes = set()
    for candidate in candidates:
        token = _strip_oem_marker(candidate)
        if looks_like_part_code(token):
            codes.add(token)
    return frozenset(codes)


def extract_viscosity(text: str | None) -> Optional[str]:
    """Return the first SAE viscosity grade, normalized like ``5w30``."""

    match = _VISCOSITY_RE.search(fold_text(text))
    if not match:
        return None
    winter, hot = match.groups()
    return f"{int(winter)}w{int(hot)}"


def extract_viscosities(text: str | None) -> frozenset[str]:
    """Every viscosity grade in ``text``; multigrade ranges list several."""

    return frozenset(
        f"{int(winter)}w{int(hot)}" for winter, hot in _VISCOSITY_RE.findall(fold_text(text))
    )


def extract_volume(text: str | None) -> Optional[str]:
    """Return the first liter capacity, normalized like ``1l`` or ``1.5l``."""

    match = _VOLUME_RE.search(fold_text(text))
    if not match:
        return None
    return _normalize_volume(match.group(1))


def extract_volumes(text: str | None) -> frozenset[str]:
    """Every liter capacity in ``text``; a listing can offer several packs."""

    volumes = (_normalize_volume(raw) for raw in _VOLUME_RE.findall(fold_text(text)))
    return frozenset(volume for volume in volumes if volume)


def _normalize_volume(raw: str) -> Optional[str]:
    try:
        amount = Decimal(raw.replace(",", ".")).normalize()
    except InvalidOperation:
        return None
    return f"{amount:f}l"


def _iter_grades(folded: str):
    for match in _API_GRADE_RE.finditer(folded):
        yield "api " + re.sub(r"[\s\-]+", "", match.group(1))
    for match in _ACEA_GRADE_RE.finditer(folded):
        yield "acea " + re.sub(r"\s+", "", match.group(1))
    for match in _SAE_MONOGRADE_RE.finditer(folded):
        yield "sae " + match.group(1)


def extract_grade(text: str | None) -> Optional[str]:
    """Return the first API, ACEA or SAE monograde designation.

    API classes are preferred over ACEA sequences, and both over SAE
    monogrades.
    """

    return next(_iter_grades(fold_text(text)), None)


def extract_grades(text: str | None) -> frozenset[str]:
    return frozenset(_iter_grades(fold_text(text)))


@lru_cache(maxsize=512)
def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}s?\b")


def contains_word(folded_text: str, word: str) -> bool:
    return bool(_word_pattern(word).search(folded_text))


def extract_brand(text: str | None, vocabulary: Sequence[str] | None = None) -> Optional[str]:
    """Return the first known brand mentioned in ``text``."""

    folded = fold_text(text)
    if not folded:
        return None
    brands = tuple(vocabulary) if vocabulary is not None else settings.known_brands
    for alias, brand in BRAND_ALIASES.items():
        if brand in brands and contains_word(folded, alias):
            return brand
    for brand in brands:
        if contains_word(folded, brand):
            return brand
    return None


def extract_application(text: str | None) -> Optional[str]:
    """Return the first usage domain (engine, gear, hydraulic...) in ``text``."""

    folded = fold_text(text)
    if not folded:
        return None
    for application, spellings in APPLICATION_TERMS.items():
        if any(contains_word(folded, spelling) for spelling in spellings):
            return application
    return None


@dataclass(frozen=True)
class ProductFeatures:
    """Every extracted signal of one product, computed once per search."""

    brand: Optional[str] = None
    viscosity: Optional[str] = None
    volume: Optional[str] = None
    grade: Optional[str] = None
    application: Optional[str] = None
    codes: frozenset[str] = frozenset()

    @classmethod
    def from_product(
        cls, product: Product, vocabulary: Sequence[str] | None = None
    ) -> "ProductFeatures":
        text = product.searchable_text()
        # The brand field is authoritative; text is only a fallback for
        # catalogs that leave it empty.
        brand = extract_brand(product.brand, vocabulary) or fold_text(product.brand) or None
        if brand is None:
            brand = extract_brand(text, vocabulary)
        return cls(
            brand=brand,
            viscosity=extract_viscosity(text),
            volume=extract_volume(text),
            grade=extract_grade(text),
            application=extract_application(text),
            codes=extract_part_codes(text),
        )
