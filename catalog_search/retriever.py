"""Candidate retrieval: parsed query -> store filter -> products.

A strict filtered lookup runs first. When it returns nothing, a bounded
sample of active products is scanned with an edit-distance check so that
typos the lexicon does not know about still find something.
"""
from __future__ import annotations

import logging
from typing import Iterable, List

from rapidfuzz.distance import Levenshtein

from .config import settings
from .models import ParsedQuery, Product
from .store import ProductFilter, ProductStore

logger = logging.getLogger(__name__)

FUZZY_MAX_DISTANCE = 2


def build_filter(parsed: ParsedQuery, price_tolerance: float | None = None) -> ProductFilter:
    tolerance = settings.price_tolerance if price_tolerance is None else price_tolerance
    price_min = price_max = None
    if parsed.priceIntent is not None:
        target = parsed.priceIntent.targetValue
        price_min = target * (1 - tolerance)
        price_max = target * (1 + tolerance)
    return ProductFilter(
        active_only=True,
        text=parsed.cleanedText or None,
        price_min=price_min,
        price_max=price_max,
        color=parsed.color,
        storage=parsed.storage,
    )


def fuzzy_matches(product: Product, tokens: Iterable[str], max_distance: int = FUZZY_MAX_DISTANCE) -> bool:
    """True when any word of the product text is within ``max_distance`` of a token."""
    words = product.searchable_text().split()
    return any(
        Levenshtein.distance(token, word, score_cutoff=max_distance) <= max_distance
        for token in tokens
        for word in words
    )


class CandidateRetriever:
    def __init__(
        self,
        store: ProductStore,
        *,
        price_tolerance: float | None = None,
        sample_size: int | None = None,
    ) -> None:
        self.store = store
        self.price_tolerance = settings.price_tolerance if price_tolerance is None else price_tolerance
        self.sample_size = settings.fuzzy_sample_size if sample_size is None else sample_size

    def retrieve(self, parsed: ParsedQuery) -> List[Product]:
        product_filter = build_filter(parsed, self.price_tolerance)
        products = self.store.find_active_matching(product_filter)
        logger.debug("retrieve strict filter=%s hits=%s", product_filter, len(products))
        if products:
            return products
        return self.fuzzy_fallback(parsed)

    def fuzzy_fallback(self, parsed: ParsedQuery) -> List[Product]:
        tokens = [token.lower() for token in parsed.tokens]
        if not tokens:
            logger.debug("fuzzy fallback skipped: no query tokens")
            return []
        sample = self.store.find_active_sample(self.sample_size)
        matched = [product for product in sample if product.isActive and fuzzy_matches(product, tokens)]
        logger.info(
            "fuzzy fallback tokens=%s sample=%s matched=%s",
            tokens,
            len(sample),
            len(matched),
        )
        return matched
