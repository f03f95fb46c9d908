"""Tests for query normalization and intent extraction."""

import pytest

from catalog_search.lexicon import Lexicon
from catalog_search.parser import QueryParser, parse_query


@pytest.mark.parametrize(
    "query, expected",
    [
        ("50k rupees", 50000),
        ("1200 rs", 1200),
        ("phone under 30000 inr", 30000),
        ("headphone 2k", 2000),
        ("phone", None),
    ],
)
def test_price_intent(query, expected):
    parsed = parse_query(query)
    if expected is None:
        assert parsed.priceIntent is None
    else:
        assert parsed.priceIntent.targetValue == expected
        assert parsed.priceIntent.matchType == "exact"


def test_price_phrase_is_removed_from_cleaned_text():
    parsed = parse_query("Laptop 50k Rupees")

    assert parsed.cleanedText == "laptop"
    assert parsed.tokens == ["laptop"]


def test_storage_digits_also_read_as_price():
    parsed = parse_query("256gb variant")

    assert parsed.storage == "256GB"
    assert parsed.priceIntent.targetValue == 256
    assert parsed.cleanedText == "gb variant"


def test_digits_inside_a_model_name_read_as_price():
    parsed = parse_query("galaxy s24")

    assert parsed.priceIntent.targetValue == 24
    assert parsed.tokens == ["galaxy", "s"]


def test_colloquial_and_misspelling_rewrite():
    """Hinglish sentiment is detected, rewritten, then stripped."""

    parsed = parse_query("sasta ifone")

    assert parsed.cheapIntent is True
    assert parsed.expensiveIntent is False
    assert parsed.cleanedText == "iphone"
    assert parsed.tokens == ["iphone"]


def test_expensive_intent_from_colloquial_word():
    parsed = parse_query("Mehenga Leptop")

    assert parsed.expensiveIntent is True
    assert parsed.cleanedText == "laptop"


def test_cheap_and_expensive_can_both_be_set():
    parsed = parse_query("budget or premium earphones")

    assert parsed.cheapIntent and parsed.expensiveIntent
    assert parsed.tokens == ["or", "earphones"]


def test_color_uses_list_order_not_text_order():
    parsed = parse_query("black or red phone")

    assert parsed.color == "red"


def test_rewrite_applies_inside_words():
    parsed = parse_query("badaphone")

    assert parsed.cleanedText == "bigphone"


def test_misspellings_apply_in_table_order():
    # "ifone" is listed before "aifone" and rewrites its tail first.
    assert parse_query("aifone").cleanedText == "aiphone"


@pytest.mark.parametrize("query", ["", "   ", "sasta", "50k"])
def test_queries_without_text_give_no_tokens(query):
    parsed = parse_query(query)

    assert parsed.tokens == []
    assert parsed.cleanedText == ""


def test_parse_is_deterministic():
    assert parse_query("Sasta Samsang 128gb blue 20k") == parse_query("Sasta Samsang 128gb blue 20k")


def test_original_query_is_kept_verbatim():
    assert parse_query("  Sasta iPhone ").originalQuery == "  Sasta iPhone "


def test_injected_lexicon_is_used():
    parser = QueryParser(Lexicon.build(misspellings={"pixle": "pixel"}))

    parsed = parser.parse("pixle ifone")

    assert parsed.tokens == ["pixel", "ifone"]


def test_lexicon_tables_are_read_only():
    lexicon = Lexicon()

    with pytest.raises(TypeError):
        lexicon.colloquial["sasta"] = "pricey"
