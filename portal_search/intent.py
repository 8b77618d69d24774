"""Query intent recognition.

Classifies what a query is mostly about (a viscosity grade, a brand, a kind
of product, a pack size or an application) so the scorer can reward products
that carry the same signal. Confidence for a category is the share of its
vocabulary present in the query scaled by a fixed category weight; the
strongest category wins and earlier categories win ties.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .config import settings
from .models import Intent, IntentType
from .phonetics import fold_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentCategory:
    type: IntentType
    vocabulary: tuple[str, ...]
    weight: float


VISCOSITY_TOKENS = ("0w", "5w", "10w", "15w", "20w", "sae")
PRODUCT_TYPE_TOKENS = ("oil", "lubricant", "grease", "fluid", "filter")
CAPACITY_TOKENS = ("1l", "5l", "20l", "208l", "liter", "litre")
APPLICATION_TOKENS = ("engine", "motor", "transmission", "hydraulic", "gear")


def intent_categories(brands: Sequence[str] | None = None) -> tuple[IntentCategory, ...]:
    """Return the categories in tie-break order."""

    brand_vocabulary = tuple(brands) if brands is not None else settings.known_brands
    return (
        IntentCategory(IntentType.VISCOSITY, VISCOSITY_TOKENS, 0.9),
        IntentCategory(IntentType.BRAND, brand_vocabulary, 0.8),
        IntentCategory(IntentType.PRODUCT_TYPE, PRODUCT_TYPE_TOKENS, 0.7),
        IntentCategory(IntentType.CAPACITY, CAPACITY_TOKENS, 0.6),
        IntentCategory(IntentType.APPLICATION, APPLICATION_TOKENS, 0.7),
    )


def recognize_intent(query: str, brands: Sequence[str] | None = None) -> Intent:
    folded = fold_text(query)
    if not folded:
        return Intent.general()
    best = Intent.general()
    for category in intent_categories(brands):
        if not category.vocabulary:
            continue
        matched = frozenset(token for token in category.vocabulary if token in folded)
        if not matched:
            continue
        confidence = len(matched) / len(category.vocabulary) * category.weight
        if confidence > best.confidence:
            best = Intent(type=category.type, confidence=confidence, matched_entities=matched)
    logger.debug(
        "intent q=%r type=%s confidence=%.3f entities=%s",
        query,
        best.type.value,
        best.confidence,
        sorted(best.matched_entities),
    )
    return best
