"""Turn free-form shopping queries into a :class:`ParsedQuery`.

The parser runs a fixed sequence over the lowercased query:

    1) pull out intents (price target, cheap/expensive sentiment, colour,
       storage size) from the raw text;
    2) rewrite colloquial words and common misspellings with the lexicon
       tables (plain substring replacement, so ``"sastaphone"`` still turns
       into ``"cheapphone"``);
    3) strip the recognised intent phrases and split what is left into
       tokens.

Intents are read *before* the lexicon rewrite, the cleaned text *after* it.
Parsing never raises: any string, including an empty one, produces a
``ParsedQuery``.
"""
from __future__ import annotations

import logging
import re
import string

from .lexicon import DEFAULT_LEXICON, Lexicon
from .models import ParsedQuery, PriceIntent

logger = logging.getLogger(__name__)

# Digits, an optional "k" multiplier and an optional currency word. The first
# run of digits wins, so "256gb" also reads as a price of 256.
PRICE_PATTERN = re.compile(r"(\d+)(k)?\s*(rupees?|rs\.?|inr)?", re.IGNORECASE)
STORAGE_PATTERN = re.compile(r"(\d+)\s*(gb|tb)", re.IGNORECASE)
_TOKEN_EDGE_CHARS = string.punctuation


def _alternation(words) -> str:
    if not words:
        return r"(?!)"
    return "|".join(re.escape(word) for word in sorted(words, key=len, reverse=True))


class QueryParser:
    """Stateless query parser bound to one :class:`Lexicon`."""

    def __init__(self, lexicon: Lexicon = DEFAULT_LEXICON) -> None:
        self.lexicon = lexicon
        self._cheap_re = re.compile(_alternation(lexicon.cheap_words), re.IGNORECASE)
        self._expensive_re = re.compile(_alternation(lexicon.expensive_words), re.IGNORECASE)
        english_sentiment = [
            word
            for word in (*lexicon.cheap_words, *lexicon.expensive_words)
            if word not in lexicon.colloquial
        ]
        self._sentiment_strip_re = re.compile(_alternation(english_sentiment), re.IGNORECASE)
        colloquial_sentiment = lexicon.colloquial_sentiment_words()
        self._colloquial_strip_re = (
            re.compile(rf"\b(?:{_alternation(colloquial_sentiment)})\b", re.IGNORECASE)
            if colloquial_sentiment
            else None
        )

    def parse(self, raw_query: str) -> ParsedQuery:
        text = (raw_query or "").lower().strip()

        price_intent = self._extract_price(text)
        cheap_intent = bool(self._cheap_re.search(text))
        expensive_intent = bool(self._expensive_re.search(text))
        color = next((name for name in self.lexicon.colors if name in text), None)
        storage = self._extract_storage(text)

        rewritten = self._apply_table(text, self.lexicon.colloquial)
        rewritten = self._apply_table(rewritten, self.lexicon.misspellings)
        cleaned = self._strip_intents(rewritten)
        tokens = self._tokenize(cleaned)

        logger.debug(
            "parse raw=%r lowered=%r rewritten=%r cleaned=%r price=%s cheap=%s expensive=%s color=%s storage=%s",
            raw_query,
            text,
            rewritten,
            cleaned,
            price_intent,
            cheap_intent,
            expensive_intent,
            color,
            storage,
        )
        return ParsedQuery(
            originalQuery=raw_query or "",
            cleanedText=cleaned,
            priceIntent=price_intent,
            cheapIntent=cheap_intent,
            expensiveIntent=expensive_intent,
            color=color,
            storage=storage,
            tokens=tokens,
        )

    @staticmethod
    def _extract_price(text: str) -> PriceIntent | None:
        match = PRICE_PATTERN.search(text)
        if not match:
            return None
        value = int(match.group(1))
        if match.group(2):
            value *= 1000
        return PriceIntent(targetValue=value)

    @staticmethod
    def _extract_storage(text: str) -> str | None:
        match = STORAGE_PATTERN.search(text)
        if not match:
            return None
        return f"{match.group(1)}{match.group(2).upper()}"

    @staticmethod
    def _apply_table(text: str, table) -> str:
        # Table order; an earlier key may rewrite part of a later one.
        for source in table:
            if source in text:
                text = text.replace(source, table[source])
        return text

    def _strip_intents(self, text: str) -> str:
        text = PRICE_PATTERN.sub(" ", text)
        text = self._sentiment_strip_re.sub(" ", text)
        if self._colloquial_strip_re is not None:
            text = self._colloquial_strip_re.sub(" ", text)
        return " ".join(text.split())

    @staticmethod
    def _tokenize(cleaned: str) -> list[str]:
        tokens = (word.strip(_TOKEN_EDGE_CHARS) for word in cleaned.split())
        return [token for token in tokens if token]


_default_parser = QueryParser()


def parse_query(raw_query: str) -> ParsedQuery:
    """Parse with the process-wide default lexicon."""
    return _default_parser.parse(raw_query)
