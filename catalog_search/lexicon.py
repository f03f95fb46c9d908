"""Static vocabulary tables used while normalizing search queries.

The tables are plain read-only mappings wrapped in a frozen :class:`Lexicon`.
A single :data:`DEFAULT_LEXICON` is built at import time and handed to the
query parser; callers that need a different vocabulary (tests, regional
deployments) construct their own instance instead of mutating globals.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

# Hinglish / colloquial words mapped to the English term the catalog uses.
COLLOQUIAL_TERMS: dict[str, str] = {
    "sasta": "cheap",
    "sastha": "cheap",
    "mehenga": "expensive",
    "accha": "good",
    "acha": "good",
    "best": "best",
    "latest": "latest",
    "naya": "new",
    "purana": "old",
    "bada": "big",
    "chota": "small",
}

COMMON_MISSPELLINGS: dict[str, str] = {
    "ifone": "iphone",
    "ifonn": "iphone",
    "aifone": "iphone",
    "sumsung": "samsung",
    "samsang": "samsung",
    "smasung": "samsung",
    "leptop": "laptop",
    "hedphone": "headphone",
}

# Order matters: the parser picks the first entry found in the query.
KNOWN_COLORS: tuple[str, ...] = (
    "red",
    "blue",
    "black",
    "white",
    "green",
    "yellow",
    "pink",
    "purple",
    "gold",
    "silver",
    "grey",
    "gray",
)

CHEAP_WORDS: tuple[str, ...] = ("sasta", "sastha", "cheap", "budget", "affordable")
EXPENSIVE_WORDS: tuple[str, ...] = ("mehenga", "expensive", "premium", "luxury")


def _frozen(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Lexicon:
    """Immutable bundle of the vocabulary tables."""

    colloquial: Mapping[str, str] = field(default_factory=lambda: _frozen(COLLOQUIAL_TERMS))
    misspellings: Mapping[str, str] = field(default_factory=lambda: _frozen(COMMON_MISSPELLINGS))
    colors: Tuple[str, ...] = KNOWN_COLORS
    cheap_words: Tuple[str, ...] = CHEAP_WORDS
    expensive_words: Tuple[str, ...] = EXPENSIVE_WORDS

    @classmethod
    def build(
        cls,
        colloquial: Mapping[str, str] | None = None,
        misspellings: Mapping[str, str] | None = None,
        **kwargs,
    ) -> "Lexicon":
        """Create a lexicon from plain dicts, freezing them on the way in."""

        return cls(
            colloquial=_frozen(colloquial if colloquial is not None else COLLOQUIAL_TERMS),
            misspellings=_frozen(misspellings if misspellings is not None else COMMON_MISSPELLINGS),
            **{key: tuple(value) for key, value in kwargs.items()},
        )

    def colloquial_sentiment_words(self) -> tuple[str, ...]:
        """Colloquial spellings that map onto a cheap/expensive sentiment."""

        english = set(self.cheap_words) | set(self.expensive_words)
        return tuple(
            word
            for word, canonical in self.colloquial.items()
            if canonical in english and word not in english
        )


DEFAULT_LEXICON = Lexicon()
