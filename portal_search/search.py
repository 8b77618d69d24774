"""Search entry point used by the catalog page, the HTTP API and the CLI.

Callers re-run :func:`search` on every query or filter change. Scoring a full
catalog is too slow to run on every keystroke, so callers are expected to
debounce: wait ``settings.debounce_ms`` (500 ms) after the last keystroke of a
non-empty query and search immediately when the query is cleared.
:class:`portal_search.live.LiveSearch` implements that convention.
"""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Iterable, List, Optional

from .config import Settings, settings as default_settings
from .intent import recognize_intent
from .messages import DEFAULT_MESSAGES, MessageCatalog
from .models import Intent, Product, SearchFilters, SmartSearchResult
from .ranking import rank

logger = logging.getLogger(__name__)


def apply_filters(catalog: Iterable[Product], filters: Optional[SearchFilters] = None) -> List[Product]:
    """Keep orderable products (positive price) that pass the facet filters."""

    active = filters or SearchFilters()
    kept: List[Product] = []
    for product in catalog:
        try:
            if product.is_orderable() and active.allows(product):
                kept.append(product)
        except Exception:  # a corrupt record is treated as not orderable
            logger.warning("filtering failed for product %r, excluding it", getattr(product, "id", None))
    return kept


def _recognize(query: str, settings: Settings) -> Intent:
    try:
        return recognize_intent(query, settings.known_brands)
    except Exception:
        logger.warning("intent recognition failed for q=%r, using general intent", query, exc_info=True)
        return Intent.general()


def search(
    query: str,
    catalog: Iterable[Product],
    filters: Optional[SearchFilters] = None,
    *,
    settings: Settings = default_settings,
    messages: MessageCatalog = DEFAULT_MESSAGES,
) -> SmartSearchResult:
    raw_catalog = list(catalog)
    t0 = perf_counter()
    if not raw_catalog:
        logger.info("search q=%r skipped: catalog is empty", query)
        return SmartSearchResult(noResultsMessage=messages.no_products)

    products = apply_filters(raw_catalog, filters)
    t1 = perf_counter()
    if not products:
        logger.info("search q=%r skipped: filters left no products of %s", query, len(raw_catalog))
        return SmartSearchResult(noResultsMessage=messages.no_products_for_filters)

    query = query or ""
    intent = _recognize(query, settings)
    t2 = perf_counter()
    response = rank(query, products, intent, settings=settings, messages=messages)
    t3 = perf_counter()

    logger.info(
        "timing: total=%.2fms filter=%.2fms intent=%.2fms rank=%.2fms q=%r intent=%s catalog=%s kept=%s results=%s suggestions=%s",
        (t3 - t0) * 1000,
        (t1 - t0) * 1000,
        (t2 - t1) * 1000,
        (t3 - t2) * 1000,
        query,
        intent.type.value,
        len(raw_catalog),
        len(products),
        len(response.results),
        len(response.suggestions),
    )
    return response


async def search_async(
    query: str,
    catalog: Iterable[Product],
    filters: Optional[SearchFilters] = None,
    *,
    settings: Settings = default_settings,
    messages: MessageCatalog = DEFAULT_MESSAGES,
) -> SmartSearchResult:
    """Run :func:`search` in a worker thread.

    Cancelling the awaiting task abandons the whole search; nothing partial is
    ever returned.
    """

    snapshot = tuple(catalog)
    return await asyncio.to_thread(
        search, query, snapshot, filters, settings=settings, messages=messages
    )
