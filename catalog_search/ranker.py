"""Weighted multi-factor ranking of candidate products."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, TypeVar

from rapidfuzz.distance import Levenshtein

from .config import settings
from .models import ParsedQuery, Product, ScoredProduct

logger = logging.getLogger(__name__)

T = TypeVar("T")

TITLE_HIT = 1.0
BRAND_MODEL_HIT = 0.8
DESCRIPTION_HIT = 0.5
NEAR_WORD_BONUS = 0.3
FAR_WORD_BONUS = 0.1

RETURN_RATE_LIMIT = 10
RETURN_RATE_PENALTY = 0.9
COMPLAINT_LIMIT = 50
COMPLAINT_PENALTY = 0.85
OUT_OF_STOCK_PENALTY = 0.5


@dataclass(frozen=True)
class ScoringWeights:
    relevance: float = 30
    rating: float = 20
    sales: float = 15
    stock: float = 10
    price: float = 15
    discount: float = 10


def relevance_score(product: Product, tokens: Sequence[str]) -> float:
    """Average per-token match strength against the product text, capped at 1.

    Each token earns points for substring hits in the title, brand/model and
    description, plus a small bonus for every word of the product text within
    edit distance 2.
    """
    title = product.title.lower()
    brand = product.brand.lower()
    model = product.model_name.lower()
    description = product.description.lower()
    words = product.searchable_text().split()

    score = 0.0
    for token in tokens:
        token = token.lower()
        if token in title:
            score += TITLE_HIT
        if token in brand or token in model:
            score += BRAND_MODEL_HIT
        if token in description:
            score += DESCRIPTION_HIT
        for word in words:
            distance = Levenshtein.distance(token, word, score_cutoff=2)
            if distance <= 1:
                score += NEAR_WORD_BONUS
            elif distance == 2:
                score += FAR_WORD_BONUS
    return min(score / max(len(tokens), 1), 1.0)


def rating_score(product: Product) -> float:
    return product.rating / 5 + min(product.reviewCount / 1000, 1) * 0.2


def sales_score(product: Product) -> float:
    return min(product.unitsSold / 10000, 1)


def stock_score(product: Product) -> float:
    if product.stock > 100:
        return 1.0
    if product.stock > 10:
        return 0.7
    if product.stock > 0:
        return 0.3
    return 0.0


def price_score(product: Product, parsed: ParsedQuery, price_cap: float) -> float:
    # Not clamped: anything above the cap scores negative under a cheap intent.
    if parsed.cheapIntent:
        return 1 - product.price / price_cap
    if parsed.expensiveIntent:
        return product.price / price_cap
    if parsed.priceIntent is not None:
        target = parsed.priceIntent.targetValue
        if target <= 0:
            return 0.0
        return 1 - min(abs(product.price - target) / target, 1)
    return 0.5


def discount_score(product: Product) -> float:
    return product.discountPercentage / 100


class Ranker:
    def __init__(self, weights: ScoringWeights | None = None, price_cap: float | None = None) -> None:
        self.weights = weights or ScoringWeights()
        self.price_cap = settings.price_cap if price_cap is None else price_cap

    def score(self, product: Product, parsed: ParsedQuery) -> float:
        weights = self.weights
        total = (
            relevance_score(product, parsed.tokens) * weights.relevance
            + rating_score(product) * weights.rating
            + sales_score(product) * weights.sales
            + stock_score(product) * weights.stock
            + price_score(product, parsed, self.price_cap) * weights.price
            + discount_score(product) * weights.discount
        )
        if product.returnRate > RETURN_RATE_LIMIT:
            total *= RETURN_RATE_PENALTY
        if product.complaintCount > COMPLAINT_LIMIT:
            total *= COMPLAINT_PENALTY
        if product.stock == 0:
            total *= OUT_OF_STOCK_PENALTY
        return round(total, 2)

    def rank(self, products: Sequence[Product], parsed: ParsedQuery) -> List[ScoredProduct]:
        """Score every product and sort by score, highest first.

        ``sorted`` is stable, so equal scores keep the store's order.
        """
        scored = [
            ScoredProduct(**product.model_dump(), score=self.score(product, parsed))
            for product in products
        ]
        ranked = sorted(scored, key=lambda item: item.score, reverse=True)
        if ranked:
            logger.debug(
                "rank candidates=%s top=%r score=%s",
                len(ranked),
                ranked[0].title,
                ranked[0].score,
            )
        return ranked


def paginate(items: Sequence[T], page: int = 1, limit: int = 20) -> List[T]:
    """Return the ``page``-th slice of ``limit`` items; past the end gives ``[]``."""
    page = max(page, 1)
    limit = max(limit, 0)
    start = (page - 1) * limit
    return list(items[start : start + limit])
