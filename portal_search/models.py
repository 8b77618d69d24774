"""Pydantic models for catalog records and search payloads.

Payload models keep the camelCase field names the portal front-end consumes.
Per-query working structures (intent, scored matches) are plain frozen
dataclasses.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MatchType(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    OEM_EXACT = "oem_exact"
    OEM_SIMILAR = "oem_similar"
    OEM_PARTIAL = "oem_partial"
    SPECIFICATION = "specification"
    ALTERNATIVE = "alternative"


class IntentType(str, Enum):
    VISCOSITY = "viscosity"
    BRAND = "brand"
    PRODUCT_TYPE = "product_type"
    CAPACITY = "capacity"
    APPLICATION = "application"
    GENERAL = "general"


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(..., min_length=1)
    itemCode: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    price: str = "0"
    currency: str = "MAD"
    stockQuantity: Optional[int] = None
    image: Optional[str] = None

    def price_value(self) -> Decimal | None:
        """Return the price as a decimal, or ``None`` when it cannot be parsed."""
        try:
            value = Decimal(str(self.price).strip())
        except (InvalidOperation, ValueError):
            return None
        if not value.is_finite():
            return None
        return value

    def is_orderable(self) -> bool:
        value = self.price_value()
        return value is not None and value > 0

    def searchable_text(self) -> str:
        parts = (self.name, self.itemCode, self.description, self.category, self.brand)
        return " ".join(part for part in parts if part)


class SearchResult(BaseModel):
    product: Product
    score: float = Field(..., ge=0.0, le=1.0)
    matchType: MatchType
    reason: str = ""


class SearchFilters(BaseModel):
    categories: frozenset[str] = frozenset()
    brands: frozenset[str] = frozenset()

    def allows(self, product: Product) -> bool:
        if self.categories and not _in_selection(product.category, self.categories):
            return False
        if self.brands and not _in_selection(product.brand, self.brands):
            return False
        return True


def _in_selection(value: str | None, selection: frozenset[str]) -> bool:
    if not value:
        return False
    wanted = value.strip().casefold()
    return any(item.strip().casefold() == wanted for item in selection)


class SmartSearchResult(BaseModel):
    results: list[SearchResult] = Field(default_factory=list)
    suggestions: list[SearchResult] = Field(default_factory=list)
    noResultsMessage: Optional[str] = None


class IntentPayload(BaseModel):
    type: IntentType
    confidence: float
    matchedEntities: list[str]


class SearchResponse(SmartSearchResult):
    query: str
    intent: IntentPayload
    took_ms: float


@dataclass(frozen=True)
class Intent:
    type: IntentType
    confidence: float = 0.0
    matched_entities: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def general(cls) -> "Intent":
        return cls(type=IntentType.GENERAL)

    def to_payload(self) -> IntentPayload:
        return IntentPayload(
            type=self.type,
            confidence=self.confidence,
            matchedEntities=sorted(self.matched_entities),
        )


@dataclass(frozen=True)
class ScoredMatch:
    score: float
    match_type: MatchType
    field: str | None = None
    reason: str = ""

    @classmethod
    def none(cls) -> "ScoredMatch":
        return cls(score=0.0, match_type=MatchType.FUZZY)
