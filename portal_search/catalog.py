"""Catalog loading from JSON exports of the portal or of the ERP item list."""
from __future__ import annotations

import hashlib
import json
import logging
import shutil
import threading
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, List, Optional
from urllib.error import URLError
from urllib.request import urlopen

from pydantic import ValidationError

from .config import settings
from .models import Product

logger = logging.getLogger(__name__)

ERP_DEFAULT_DESCRIPTION = "No description available"
ERP_DEFAULT_CATEGORY = "General"


def ensure_data_file(path: str | Path, source_url: str | None = None) -> Path:
    """Ensure a data file exists locally, downloading it when a URL is provided."""
    file_path = Path(path)
    if file_path.exists():
        return file_path
    if not source_url:
        raise FileNotFoundError(
            f"Required data file missing and no download URL provided: {file_path}"
        )
    logger.info("Downloading %s from %s", file_path, source_url)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with urlopen(source_url) as response, file_path.open("wb") as handle:
            shutil.copyfileobj(response, handle)
    except (OSError, URLError) as exc:
        raise RuntimeError(f"Failed to download {source_url} -> {file_path}") from exc
    return file_path


def _image_url(image: Optional[str], base_url: str) -> Optional[str]:
    if not image:
        return None
    if image.startswith("http") or not base_url:
        return image
    return f"{base_url.rstrip('/')}/{image.lstrip('/')}"


def _is_erp_record(raw: dict) -> bool:
    return "item_code" in raw or "item_name" in raw or "standard_rate" in raw


def _prepare_product(raw: dict, *, base_url: str = "", currency: str = "MAD") -> dict:
    """Map one raw row to :class:`Product` fields.

    ERP item rows (``item_code``, ``item_name``, ``standard_rate``...) are
    translated the way the portal backend exposes them; portal-shaped rows pass
    through with light coercion.
    """
    if _is_erp_record(raw):
        rate = raw.get("standard_rate")
        return {
            "id": str(raw.get("name") or raw.get("item_code") or ""),
            "name": raw.get("item_name") or raw.get("name") or "",
            "itemCode": raw.get("item_code") or "",
            "description": raw.get("description") or ERP_DEFAULT_DESCRIPTION,
            "price": str(rate) if rate is not None else "0",
            "currency": currency,
            "category": raw.get("item_group") or ERP_DEFAULT_CATEGORY,
            "brand": raw.get("brand") or None,
            "image": _image_url(raw.get("image"), base_url),
        }
    product = dict(raw)
    product.setdefault("id", raw.get("itemCode") or raw.get("name") or "")
    product["id"] = str(product["id"])
    if "price" in product and product["price"] is not None:
        product["price"] = str(product["price"])
    product.setdefault("currency", currency)
    return product


def parse_catalog(
    rows: Iterable[Any], *, base_url: str = "", currency: str = "MAD"
) -> List[Product]:
    """Validate rows into products, skipping the ones that do not fit."""
    products: List[Product] = []
    for index, raw in enumerate(rows):
        if not isinstance(raw, dict):
            logger.warning("Skipping catalog row %s: expected an object, got %s", index, type(raw).__name__)
            continue
        try:
            products.append(Product(**_prepare_product(raw, base_url=base_url, currency=currency)))
        except ValidationError as exc:
            logger.warning("Skipping catalog row %s: %s", index, exc.errors()[0].get("msg"))
    return products


def load_catalog(path: str | Path | None = None, source_url: str | None = None) -> List[Product]:
    file_path = ensure_data_file(path or settings.catalog_path, source_url)
    with file_path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    # ERP REST responses wrap the rows in {"data": [...]}.
    if isinstance(payload, dict):
        payload = payload.get("data", [])
    products = parse_catalog(
        payload, base_url=settings.erp_base_url, currency=settings.default_currency
    )
    logger.info("Loaded %s products from %s", len(products), file_path)
    return products


def catalog_fingerprint(products: Iterable[Product]) -> str:
    digest = hashlib.sha1()
    for product in products:
        digest.update(product.model_dump_json().encode("utf-8"))
    return digest.hexdigest()[:16]


class CatalogStore:
    """Holds the current catalog snapshot handed to each search."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._lock = threading.Lock()
        self._products: tuple[Product, ...] = ()
        self._version = ""
        self.replace(products)

    def replace(self, products: Iterable[Product]) -> int:
        snapshot = tuple(products)
        version = catalog_fingerprint(snapshot)
        with self._lock:
            self._products = snapshot
            self._version = version
        return len(snapshot)

    def reload(self, path: str | Path | None = None) -> int:
        products = load_catalog(path, settings.catalog_source_url or None)
        return self.replace(products)

    def snapshot(self) -> tuple[Product, ...]:
        with self._lock:
            return self._products

    @property
    def version(self) -> str:
        with self._lock:
            return self._version

    def __len__(self) -> int:
        return len(self.snapshot())

    def brands(self) -> List[str]:
        return sorted({product.brand for product in self.snapshot() if product.brand})

    def categories(self) -> List[str]:
        return sorted({product.category for product in self.snapshot() if product.category})


@lru_cache(maxsize=1)
def get_catalog_store() -> CatalogStore:
    return CatalogStore()
