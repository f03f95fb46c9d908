"""Pydantic models for catalog records, parsed queries and response payloads."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def derive_discount(price: float | None, mrp: float | None) -> float:
    """Discount percentage implied by ``price`` against ``mrp``."""
    if not mrp or not price:
        return 0.0
    return (mrp - price) / mrp * 100


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    title: str
    description: str
    rating: float = Field(0, ge=0, le=5)
    reviewCount: int = Field(0, ge=0)
    stock: int = Field(0, ge=0)
    price: float = Field(..., ge=0)
    mrp: float = Field(0, ge=0)
    currency: str = "Rupee"
    discountPercentage: float = 0
    unitsSold: int = 0
    salesVelocity: float = 0
    returnRate: float = Field(0, ge=0, le=100)
    complaintCount: int = 0
    metadata: dict[str, str] = Field(default_factory=dict)
    searchKeywords: list[str] = Field(default_factory=list)
    isActive: bool = True

    @property
    def brand(self) -> str:
        return self.metadata.get("brand") or ""

    @property
    def model_name(self) -> str:
        return self.metadata.get("model") or ""

    @property
    def availability_status(self) -> str:
        if self.stock == 0:
            return "OUT_OF_STOCK"
        if self.stock < 10:
            return "LOW_STOCK"
        return "IN_STOCK"

    def searchable_text(self) -> str:
        """Lowercased title, description, brand and model joined by spaces."""
        return f"{self.title} {self.description} {self.brand} {self.model_name}".lower()

    def with_derived_fields(self) -> "Product":
        """Copy with ``discountPercentage`` recomputed from price and mrp.

        Every store write path calls this so the stored discount always
        matches the stored prices.
        """
        return self.model_copy(update={"discountPercentage": derive_discount(self.price, self.mrp)})


class PriceIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    targetValue: int
    matchType: Literal["exact"] = "exact"


class ParsedQuery(BaseModel):
    """Structured reading of a raw search query."""

    model_config = ConfigDict(frozen=True)

    originalQuery: str
    cleanedText: str = ""
    priceIntent: PriceIntent | None = None
    cheapIntent: bool = False
    expensiveIntent: bool = False
    color: str | None = None
    storage: str | None = None
    tokens: list[str] = Field(default_factory=list)


class ScoredProduct(Product):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    score: float = Field(0, alias="_score")


class SearchMetadata(BaseModel):
    totalResults: int
    page: int
    limit: int
    processingTimeMs: float
    query: ParsedQuery


class SearchResponse(BaseModel):
    data: list[ScoredProduct]
    metadata: SearchMetadata


class MetadataUpdate(BaseModel):
    productId: str
    metadata: dict[str, str] = Field(default_factory=dict)
