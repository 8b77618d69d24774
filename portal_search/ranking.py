"""Ranking of a scored catalog and compatible-alternative discovery."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .config import Settings, settings as default_settings
from .extractors import ProductFeatures, extract_part_codes
from .intent import recognize_intent
from .messages import DEFAULT_MESSAGES, MessageCatalog
from .models import (
    Intent,
    IntentType,
    MatchType,
    Product,
    ScoredMatch,
    SearchResult,
    SmartSearchResult,
)
from .phonetics import fold_text
from .scoring import match_priority, score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedProduct:
    product: Product
    match: ScoredMatch
    features: ProductFeatures
    position: int

    def sort_key(self) -> tuple[float, int, int]:
        return (-self.match.score, match_priority(self.match.match_type, self.match.field), self.position)

    def to_result(self) -> SearchResult:
        return SearchResult(
            product=self.product,
            score=min(max(self.match.score, 0.0), 1.0),
            matchType=self.match.match_type,
            reason=self.match.reason,
        )


def is_compatible(anchor: ProductFeatures, candidate: ProductFeatures) -> bool:
    """Whether ``candidate`` can stand in for ``anchor``.

    Both must share a viscosity or an application, must also share a pack
    volume unless the application already matches, and must come from
    different brands.
    """

    shares_viscosity = anchor.viscosity is not None and anchor.viscosity == candidate.viscosity
    shares_application = anchor.application is not None and anchor.application == candidate.application
    shares_volume = anchor.volume is not None and anchor.volume == candidate.volume
    if not (shares_viscosity or shares_application):
        return False
    if not (shares_volume or shares_application):
        return False
    if anchor.brand is None and candidate.brand is None:
        return False
    return anchor.brand != candidate.brand


def _alternative_reason(
    anchor: RankedProduct, candidate: RankedProduct, intent: Intent, messages: MessageCatalog
) -> str:
    brand = (candidate.features.brand or candidate.product.brand or "another brand").title()
    if anchor.features.viscosity and anchor.features.viscosity == candidate.features.viscosity:
        return messages.render(
            messages.compatible_viscosity,
            viscosity=candidate.features.viscosity.upper(),
            anchor=anchor.product.name,
            brand=brand,
        )
    if intent.type == IntentType.BRAND:
        return messages.render(messages.alternative_brand, brand=brand, anchor=anchor.product.name)
    return messages.render(
        messages.compatible_application,
        brand=brand,
        application=candidate.features.application or "",
        anchor=anchor.product.name,
    )


def find_alternatives(
    anchors: Sequence[RankedProduct],
    candidates: Iterable[RankedProduct],
    intent: Intent,
    *,
    limit: int,
    messages: MessageCatalog = DEFAULT_MESSAGES,
) -> List[SearchResult]:
    """Compatible, different-brand substitutes for the top results."""

    alternatives: List[SearchResult] = []
    if limit <= 0:
        return alternatives
    for candidate in candidates:
        for anchor in anchors:
            if not is_compatible(anchor.features, candidate.features):
                continue
            alternatives.append(
                SearchResult(
                    product=candidate.product,
                    score=min(max(candidate.match.score, 0.0), 1.0),
                    matchType=MatchType.ALTERNATIVE,
                    reason=_alternative_reason(anchor, candidate, intent, messages),
                )
            )
            break
        if len(alternatives) >= limit:
            break
    return alternatives


def _no_results_message(query: str, has_suggestions: bool, messages: MessageCatalog) -> str:
    codes = extract_part_codes(query)
    if codes:
        return messages.render(
            messages.no_oem_match, code=", ".join(sorted(codes)), query=query.strip()
        )
    if has_suggestions:
        return messages.render(messages.no_exact_matches, query=query.strip())
    return messages.render(messages.no_results, query=query.strip())


def _score_catalog(
    query: str, products: Sequence[Product], intent: Intent, brands: Sequence[str]
) -> List[RankedProduct]:
    ranked: List[RankedProduct] = []
    for position, product in enumerate(products):
        try:
            features = ProductFeatures.from_product(product, brands)
            match = score(query, product, intent, features=features, brands=brands)
        except Exception:  # a corrupt record scores zero and drops out
            logger.warning(
                "scoring failed for product %r, excluding it",
                getattr(product, "id", None),
                exc_info=True,
            )
            continue
        ranked.append(RankedProduct(product=product, match=match, features=features, position=position))
    ranked.sort(key=RankedProduct.sort_key)
    return ranked


def rank(
    query: str,
    products: Sequence[Product],
    intent: Intent | None = None,
    *,
    settings: Settings = default_settings,
    messages: MessageCatalog = DEFAULT_MESSAGES,
) -> SmartSearchResult:
    """Rank ``products`` for ``query`` and pick suggestions.

    An empty query lists every product as an exact match. Otherwise products
    at or above ``settings.confident_threshold`` are results; when there are
    none, the best low-confidence products become suggestions and
    ``noResultsMessage`` explains why. When there are results, compatible
    products from other brands are offered as alternatives to the top few.
    """

    products = list(products)
    if not products:
        return SmartSearchResult(noResultsMessage=messages.no_products)
    if not fold_text(query):
        return SmartSearchResult(
            results=[
                SearchResult(product=product, score=1.0, matchType=MatchType.EXACT)
                for product in products
            ]
        )

    if intent is None:
        intent = recognize_intent(query, settings.known_brands)
    ranked = _score_catalog(query, products, intent, settings.known_brands)

    confident = [item for item in ranked if item.match.score >= settings.confident_threshold]
    below = [item for item in ranked if item.match.score < settings.confident_threshold]
    low_confidence = [item for item in below if item.match.score >= settings.suggestion_floor]

    if not confident:
        suggestions = [item.to_result() for item in low_confidence[: settings.max_suggestions]]
        return SmartSearchResult(
            suggestions=suggestions,
            noResultsMessage=_no_results_message(query, bool(suggestions), messages),
        )

    anchors = confident[: settings.anchor_count]
    suggestions = find_alternatives(
        anchors, below, intent, limit=settings.max_alternatives, messages=messages
    )
    if len(suggestions) < settings.min_suggestions:
        taken = {result.product.id for result in suggestions}
        for item in low_confidence:
            if len(suggestions) >= settings.min_suggestions:
                break
            if item.product.id in taken:
                continue
            suggestions.append(item.to_result())
            taken.add(item.product.id)

    logger.debug(
        "rank q=%r intent=%s results=%s suggestions=%s",
        query,
        intent.type.value,
        len(confident),
        len(suggestions),
    )
    return SmartSearchResult(results=[item.to_result() for item in confident], suggestions=suggestions)
