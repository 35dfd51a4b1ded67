import pytest

from app.tools.internal.sort_normalizer import SORT_OPTIONS, normalize_sort, word_by_word_ratio


@pytest.mark.parametrize("key", SORT_OPTIONS)
def test_exact_key_returns_itself(key):
    assert normalize_sort(key) == key
    assert normalize_sort(key.upper()) == key
    assert normalize_sort(f"  {key}  ") == key


def test_spaced_key_is_treated_as_exact():
    assert normalize_sort("Price High To Low") == "price-high-to-low"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("cheapest", "price-low-to-high"),
        ("Chepest", "price-low-to-high"),
        ("lowest price", "price-low-to-high"),
        ("most expensive", "price-high-to-low"),
        ("Price: High to Low", "price-high-to-low"),
        ("best seling", "best-selling"),
        ("most popular", "best-selling"),
        ("top rated", "top-reviewed"),
        ("top-reviewd", "top-reviewed"),
    ],
)
def test_near_miss_phrasing_maps_to_key(raw, expected):
    assert normalize_sort(raw) == expected


@pytest.mark.parametrize("raw", ["banana", "xyz", "1234", "weather tomorrow"])
def test_unrelated_input_has_no_match(raw):
    assert normalize_sort(raw) is None


@pytest.mark.parametrize("raw", ["newest first", "least popular", "worst rated", "lowest rated", "cheapest first"])
def test_phrases_sharing_a_word_with_a_label_have_no_match(raw):
    assert normalize_sort(raw) is None


def test_price_alone_names_no_direction():
    assert normalize_sort("price") is None


def test_equally_close_keys_are_ambiguous():
    # "ricate" is as close to "price" as to "rated".
    assert normalize_sort("highest ricate") is None
    assert normalize_sort("highest price") == "price-high-to-low"
    assert normalize_sort("highest rated") == "top-reviewed"


@pytest.mark.parametrize("raw", [None, "", "   ", "--"])
def test_empty_input_has_no_match(raw):
    assert normalize_sort(raw) is None


def test_non_string_input_has_no_match():
    assert normalize_sort(42) is None


def test_strict_threshold_rejects_near_miss():
    assert normalize_sort("best seling", threshold=100) is None
    assert normalize_sort("best-selling", threshold=100) == "best-selling"


def test_word_by_word_ratio():
    assert word_by_word_ratio("best seling", "best selling") > 90
    assert word_by_word_ratio("least popular", "most popular") < 70
    assert word_by_word_ratio("cheapest first", "cheapest") == 0
    assert word_by_word_ratio("top rated", "top rated") == 100


def test_result_is_always_canonical_or_none():
    for raw in ["cheap", "popular", "reviews", "expensive", "price", "best", "price low to hgh"]:
        result = normalize_sort(raw, threshold=0)
        assert result is None or result in SORT_OPTIONS
