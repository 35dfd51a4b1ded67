from urllib.parse import parse_qsl

import pytest
from pydantic import ValidationError

from app.tools.internal.query_builder import ListingQuery


def _pairs(query: ListingQuery):
    return parse_qsl(query.to_query_string())


def test_destination_and_price_bounds_only():
    query = ListingQuery(destinations=[3], min_price=20, max_price=50)

    assert _pairs(query) == [("destinations[0]", "3"), ("min_price", "20"), ("max_price", "50")]
    keys = {key for key, _ in _pairs(query)}
    assert "search" not in keys
    assert "sort_by" not in keys


def test_empty_query_is_empty_string():
    assert ListingQuery().to_query_string() == ""
    assert ListingQuery(destinations=None, categories=None).params() == []


def test_indexed_array_encoding_in_input_order():
    query = ListingQuery(destinations=[7, 2, 9], categories=[4, 1])

    assert query.params() == [
        ("destinations[0]", "7"),
        ("destinations[1]", "2"),
        ("destinations[2]", "9"),
        ("categories[0]", "4"),
        ("categories[1]", "1"),
    ]
    assert query.to_query_string().startswith("destinations%5B0%5D=7&destinations%5B1%5D=2")


def test_duplicate_ids_are_sent_once():
    query = ListingQuery(destinations=[5, 3, 5, 3, 8])
    assert [value for _, value in query.params()] == ["5", "3", "8"]


def test_round_trip_recovers_ids():
    query = ListingQuery(destinations=[11, 12], categories=[30])
    parsed = parse_qsl(query.to_query_string())

    destinations = [int(v) for k, v in parsed if k.startswith("destinations[")]
    categories = [int(v) for k, v in parsed if k.startswith("categories[")]
    assert destinations == [11, 12]
    assert categories == [30]


def test_all_filters_in_fixed_order():
    query = ListingQuery(
        search="desert safari",
        destinations=[1],
        categories=[2],
        min_price=10.5,
        max_price=99,
        sort_by="top-reviewed",
    )
    assert [key for key, _ in query.params()] == [
        "destinations[0]",
        "categories[0]",
        "search",
        "min_price",
        "max_price",
        "sort_by",
    ]
    assert dict(_pairs(query))["search"] == "desert safari"
    assert dict(_pairs(query))["min_price"] == "10.5"
    assert dict(_pairs(query))["max_price"] == "99"


def test_zero_price_is_sent():
    assert ("min_price", "0") in ListingQuery(min_price=0).params()


def test_blank_search_is_omitted():
    assert ListingQuery(search="   ").params() == []


def test_inverted_price_bounds_are_swapped():
    query = ListingQuery(min_price=80, max_price=30)
    assert (query.min_price, query.max_price) == (30, 80)


def test_negative_price_is_rejected():
    with pytest.raises(ValidationError):
        ListingQuery(min_price=-1)


def test_unknown_sort_key_is_rejected():
    with pytest.raises(ValidationError):
        ListingQuery(sort_by="cheapest")


def test_query_is_immutable():
    query = ListingQuery(destinations=[1])
    with pytest.raises(ValidationError):
        query.search = "boats"


def test_same_input_builds_same_string():
    first = ListingQuery(destinations=[2, 1], search="nile", sort_by="best-selling")
    second = ListingQuery(destinations=[2, 1], search="nile", sort_by="best-selling")
    assert first.to_query_string() == second.to_query_string()
