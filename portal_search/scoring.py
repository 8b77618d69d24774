"""Relevance scoring of one product against one query.

Scoring runs through ordered tiers and keeps a running maximum, so a strong
signal found early (an exact part code) can never be undone by a noisier one
found later:

1. part/OEM codes, only when the query contains something code-shaped;
2. exact query terms found inside the name, item code or description;
3. fuzzy similarity of query terms, skipped once the score reaches 0.7;
4. shared specifications (viscosity, grade, volume) and the query intent,
   skipped once the score reaches 0.6.

On equal scores the earlier tier keeps the match, which is what gives part
codes priority over names and names over descriptions.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .extractors import (
    ProductFeatures,
    extract_grades,
    extract_part_codes,
    extract_viscosities,
    extract_volumes,
    normalize_code,
)
from .intent import recognize_intent
from .models import Intent, IntentType, MatchType, Product, ScoredMatch
from .phonetics import fold_text, sounds_like_any, tokenize
from .similarity import CONTAINMENT_SCORE, similarity

logger = logging.getLogger(__name__)

OEM_EXACT_SCORE = 1.0
OEM_SIMILAR_THRESHOLD = 0.8
OEM_PARTIAL_SCORE = 0.7
CODE_AFFIX_BOTH_SCORE = 0.8
CODE_AFFIX_ONE_SCORE = 0.6
CODE_FALLBACK_MIN = 0.7
CODE_AFFIX_LENGTH = 3

NAME_TERM_SCORE = 0.85
CODE_TERM_SCORE = 0.8
DESCRIPTION_TERM_SCORE = 0.7
MIN_TERM_LENGTH = 2

FUZZY_CEILING = 0.7
MIN_FUZZY_LENGTH = 3
FUZZY_NAME_WEIGHT = 0.8
FUZZY_CODE_WEIGHT = 0.9
FUZZY_DESCRIPTION_WEIGHT = 0.6
PHONETIC_NAME_SIMILARITY = 0.7

SPECIFICATION_CEILING = 0.6
VISCOSITY_SCORE = 0.6
GRADE_SCORE = 0.55
VOLUME_SCORE = 0.5

# Tie-break order for equal scores in the ranker; lower sorts first.
MATCH_PRIORITY: tuple[tuple[MatchType, Optional[str]], ...] = (
    (MatchType.OEM_EXACT, None),
    (MatchType.OEM_SIMILAR, None),
    (MatchType.EXACT, "name"),
    (MatchType.EXACT, "code"),
    (MatchType.OEM_PARTIAL, None),
    (MatchType.EXACT, "description"),
    (MatchType.SPECIFICATION, "viscosity"),
    (MatchType.SPECIFICATION, "grade"),
    (MatchType.SPECIFICATION, "volume"),
    (MatchType.SPECIFICATION, "intent"),
    (MatchType.FUZZY, None),
    (MatchType.EXACT, None),
    (MatchType.ALTERNATIVE, None),
)


def match_priority(match_type: MatchType, field: Optional[str] = None) -> int:
    for index, (candidate_type, candidate_field) in enumerate(MATCH_PRIORITY):
        if candidate_type != match_type:
            continue
        if candidate_field is None or candidate_field == field:
            return index
    return len(MATCH_PRIORITY)


@dataclass(frozen=True)
class ProductText:
    """Folded views of a product's fields, built once per scoring call."""

    name: str
    code: str
    description: str
    category: str
    brand: str
    code_key: str
    compact: str

    @classmethod
    def from_product(cls, product: Product) -> "ProductText":
        return cls(
            name=fold_text(product.name),
            code=fold_text(product.itemCode),
            description=fold_text(product.description),
            category=fold_text(product.category),
            brand=fold_text(product.brand),
            code_key=normalize_code(product.itemCode),
            compact=normalize_code(product.searchable_text()),
        )

    @property
    def full(self) -> str:
        return " ".join(
            part for part in (self.name, self.code, self.brand, self.description, self.category) if part
        )


def code_similarity(a: str, b: str) -> float:
    """Similarity of two normalized part codes.

    Identical codes score 1.0 and containment 0.9. Manufacturers usually keep
    the family prefix and the revision suffix stable, so matching both 3-char
    ends scores 0.8 and matching one scores 0.6. Plain edit-distance
    similarity is taken when it is higher, but only above 0.7.
    """

    left = normalize_code(a)
    right = normalize_code(b)
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0
    if left in right or right in left:
        return CONTAINMENT_SCORE
    fallback = similarity(left, right)
    if fallback <= CODE_FALLBACK_MIN:
        fallback = 0.0
    same_prefix = left[:CODE_AFFIX_LENGTH] == right[:CODE_AFFIX_LENGTH]
    same_suffix = left[-CODE_AFFIX_LENGTH:] == right[-CODE_AFFIX_LENGTH:]
    if same_prefix and same_suffix:
        return max(CODE_AFFIX_BOTH_SCORE, fallback)
    if same_prefix or same_suffix:
        return max(CODE_AFFIX_ONE_SCORE, fallback)
    return fallback


def _score_part_codes(
    query_codes: frozenset[str], text: ProductText, features: ProductFeatures
) -> ScoredMatch:
    ordered = sorted(query_codes)
    for code in ordered:
        if code in text.code_key:
            return ScoredMatch(OEM_EXACT_SCORE, MatchType.OEM_EXACT, "code", f"Item code matches {code}")

    best_value = 0.0
    best_pair: tuple[str, str] | None = None
    for code in ordered:
        for candidate in sorted(features.codes):
            value = code_similarity(code, candidate)
            if value > best_value:
                best_value = value
                best_pair = (code, candidate)
    if best_pair and best_value >= OEM_SIMILAR_THRESHOLD:
        match_type = MatchType.OEM_EXACT if best_value >= OEM_EXACT_SCORE else MatchType.OEM_SIMILAR
        query_code, product_code = best_pair
        return ScoredMatch(
            best_value, match_type, "code", f"OEM reference {product_code} matches {query_code}"
        )

    for code in ordered:
        if code in text.compact:
            return ScoredMatch(OEM_PARTIAL_SCORE, MatchType.OEM_PARTIAL, "code", f"Mentions {code}")
    return ScoredMatch.none()


def _score_exact_terms(tokens: Sequence[str], text: ProductText) -> ScoredMatch:
    best = ScoredMatch.none()
    for token in tokens:
        if token in text.name:
            candidate = ScoredMatch(NAME_TERM_SCORE, MatchType.EXACT, "name", f"Name contains '{token}'")
        elif token in text.code:
            candidate = ScoredMatch(CODE_TERM_SCORE, MatchType.EXACT, "code", f"Item code contains '{token}'")
        elif token in text.description or token in text.category or token in text.brand:
            candidate = ScoredMatch(
                DESCRIPTION_TERM_SCORE, MatchType.EXACT, "description", f"Details mention '{token}'"
            )
        else:
            continue
        if candidate.score > best.score:
            best = candidate
    return best


def _bounded(token: str, value: str, weight: float, floor: float) -> bool:
    """True when ``value`` could still beat ``floor`` for this token.

    Edit distance is at least the length difference, which caps the
    similarity at ``min(len) / max(len)`` unless one contains the other.
    """

    if not value:
        return False
    if token == value:
        return weight > floor
    if token in value or value in token:
        return CONTAINMENT_SCORE * weight > floor
    shorter, longer = sorted((len(token), len(value)))
    return shorter / longer * weight > floor


def _score_fuzzy(tokens: Sequence[str], text: ProductText) -> ScoredMatch:
    best = ScoredMatch.none()
    for token in tokens:
        fields = (
            ("name", text.name, FUZZY_NAME_WEIGHT),
            ("code", text.code, FUZZY_CODE_WEIGHT),
            ("description", text.description, FUZZY_DESCRIPTION_WEIGHT),
        )
        for field, value, weight in fields:
            raw = 0.0
            if _bounded(token, value, weight, best.score):
                raw = similarity(token, value)
            if field == "name" and raw < PHONETIC_NAME_SIMILARITY and sounds_like_any(token, value):
                raw = PHONETIC_NAME_SIMILARITY
            weighted = raw * weight
            if weighted > best.score:
                best = ScoredMatch(weighted, MatchType.FUZZY, field, f"Similar to '{token}'")
    return best


def _intent_matches(intent: Intent, text: ProductText, features: ProductFeatures) -> bool:
    if intent.type == IntentType.GENERAL or not intent.matched_entities:
        return False
    if intent.type == IntentType.BRAND:
        brand_text = text.brand or (features.brand or "")
        return any(entity in brand_text for entity in intent.matched_entities)
    full = text.full
    return any(entity in full for entity in intent.matched_entities)


def _score_specification(
    query: str, intent: Intent, text: ProductText, features: ProductFeatures
) -> ScoredMatch:
    shared = extract_viscosities(query) & extract_viscosities(text.full)
    if shared:
        viscosity = min(shared)
        return ScoredMatch(VISCOSITY_SCORE, MatchType.SPECIFICATION, "viscosity", f"Same {viscosity.upper()} grade")
    shared = extract_grades(query) & extract_grades(text.full)
    if shared:
        grade = min(shared)
        return ScoredMatch(GRADE_SCORE, MatchType.SPECIFICATION, "grade", f"Meets {grade.upper()}")
    shared = extract_volumes(query) & extract_volumes(text.full)
    if shared:
        volume = min(shared)
        return ScoredMatch(VOLUME_SCORE, MatchType.SPECIFICATION, "volume", f"Same {volume.upper()} pack")
    if _intent_matches(intent, text, features):
        value = min(intent.confidence, VISCOSITY_SCORE)
        return ScoredMatch(value, MatchType.SPECIFICATION, "intent", f"Matches {intent.type.value} search")
    return ScoredMatch.none()


def score(
    query: str,
    product: Product,
    intent: Intent | None = None,
    *,
    features: ProductFeatures | None = None,
    brands: Sequence[str] | None = None,
) -> ScoredMatch:
    """Score ``product`` against ``query`` on a 0..1 scale."""

    if not fold_text(query):
        return ScoredMatch.none()
    if intent is None:
        intent = recognize_intent(query, brands)
    if features is None:
        features = ProductFeatures.from_product(product, brands)
    text = ProductText.from_product(product)
    best = ScoredMatch.none()

    query_codes = extract_part_codes(query)
    if query_codes:
        candidate = _score_part_codes(query_codes, text, features)
        if candidate.score > best.score:
            best = candidate

    candidate = _score_exact_terms(tokenize(query, MIN_TERM_LENGTH), text)
    if candidate.score > best.score:
        best = candidate

    if best.score < FUZZY_CEILING:
        candidate = _score_fuzzy(tokenize(query, MIN_FUZZY_LENGTH), text)
        if candidate.score > best.score:
            best = candidate

    if best.score < SPECIFICATION_CEILING:
        candidate = _score_specification(query, intent, text, features)
        if candidate.score > best.score:
            best = candidate

    logger.debug(
        "score q=%r product=%s score=%.3f type=%s field=%s",
        query,
        product.id,
        best.score,
        best.match_type.value,
        best.field,
    )
    return best
