"""FastAPI application exposing catalog search to the portal front-end."""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query

from .cache import CacheBackend, get_cache, search_cache_key
from .catalog import CatalogStore, get_catalog_store
from .config import settings
from .intent import recognize_intent
from .models import Product, SearchFilters, SearchResponse, SmartSearchResult
from .search import apply_filters, search_async

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# ``force=True`` replaces uvicorn's default handlers so the search timing
# lines use the same format.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Portal Product Search")


@app.on_event("startup")
async def startup_event() -> None:
    if not settings.load_on_startup:
        return
    store = get_catalog_store()
    try:
        loaded = await asyncio.to_thread(store.reload)
    except FileNotFoundError as exc:
        logger.warning("Catalog not loaded on startup: %s", exc)
        return
    logger.info("Loaded %s products on startup", loaded)


@app.get("/health")
async def health(store: CatalogStore = Depends(get_catalog_store)) -> dict:
    return {
        "products": len(store),
        "catalog": settings.catalog_path,
        "version": store.version,
    }


@app.get("/products", response_model=List[Product])
async def products(
    category: List[str] = Query(default=[]),
    brand: List[str] = Query(default=[]),
    store: CatalogStore = Depends(get_catalog_store),
) -> List[Product]:
    filters = SearchFilters(categories=frozenset(category), brands=frozenset(brand))
    return apply_filters(store.snapshot(), filters)


@app.get("/brands")
async def brands(store: CatalogStore = Depends(get_catalog_store)) -> List[str]:
    return store.brands()


@app.get("/categories")
async def categories(store: CatalogStore = Depends(get_catalog_store)) -> List[str]:
    return store.categories()


@app.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query("", description="Search query; empty lists the whole catalog"),
    category: List[str] = Query(default=[]),
    brand: List[str] = Query(default=[]),
    store: CatalogStore = Depends(get_catalog_store),
    cache: CacheBackend = Depends(get_cache),
) -> SearchResponse:
    t0 = perf_counter()
    key = search_cache_key(q, category, brand, store.version)
    cached = cache.get(key)
    if cached is not None:
        result = SmartSearchResult.model_validate(cached)
        logger.info("cache_hit q=%r", q)
    else:
        filters = SearchFilters(categories=frozenset(category), brands=frozenset(brand))
        result = await search_async(q, store.snapshot(), filters)
        cache.set(key, result.model_dump(mode="json"), settings.cache_ttl_seconds)
        logger.debug("cache_store q=%r ttl=%s", q, settings.cache_ttl_seconds)
    intent = recognize_intent(q, settings.known_brands)
    return SearchResponse(
        query=q,
        intent=intent.to_payload(),
        results=result.results,
        suggestions=result.suggestions,
        noResultsMessage=result.noResultsMessage,
        took_ms=(perf_counter() - t0) * 1000,
    )


@app.post("/reload")
async def reload(store: CatalogStore = Depends(get_catalog_store)) -> dict:
    try:
        count = await asyncio.to_thread(store.reload)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"loaded": count, "version": store.version}
