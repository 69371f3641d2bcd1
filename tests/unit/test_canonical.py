from __future__ import annotations

from decimal import Decimal

import pytest

from payos.core.canonical import (
    canonicalize,
    dump_compact,
    flatten,
    render_scalar,
    sort_top_level,
    to_query_string,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        (10.0, "10"),
        (1.5, "1.5"),
        (Decimal("3.0"), "3"),
        (Decimal("2.75"), "2.75"),
        ("text", "text"),
    ],
)
def test_render_scalar(value, expected):
    assert render_scalar(value) == expected


def test_flatten_walks_objects_and_keeps_arrays_whole():
    value = {
        "b": 1,
        "a": {"y": True, "x": None},
        "c": [{"z": 1, "a": 2}, 3, "é"],
    }

    assert flatten(value) == {
        "a.x": "",
        "a.y": "true",
        "b": "1",
        "c": '[{"a":2,"z":1},3,"é"]',
    }
    assert list(flatten(value)) == ["a.x", "a.y", "b", "c"]


def test_canonical_form_ignores_key_insertion_order():
    first = {"orderCode": 123, "amount": 1000, "meta": {"b": [1, 2], "a": False}}
    second = {"meta": {"a": False, "b": [1, 2]}, "amount": 1000, "orderCode": 123}

    assert canonicalize(first) == canonicalize(second)
    assert canonicalize(first) == "amount=1000&meta.a=false&meta.b=[1,2]&orderCode=123"


def test_keys_sort_by_code_point():
    assert list(flatten({"b": 1, "B": 2, "a": 3, "_": 4})) == ["B", "_", "a", "b"]


def test_empty_containers_contribute_nothing():
    assert flatten({}) == {}
    assert flatten([]) == {}
    assert flatten({"nested": {}}) == {}
    assert canonicalize({}) == ""


def test_sort_top_level_reserializes_nested_values():
    value = {"c": [3, 1, 2], "a": "s", "b": {"y": 1, "x": [2, 1]}, "d": None}

    assert sort_top_level(value) == {
        "a": "s",
        "b": '{"x":[2,1],"y":1}',
        "c": "[3,1,2]",
        "d": "",
    }
    assert sort_top_level(value, sort_arrays=True) == {
        "a": "s",
        "b": '{"x":[1,2],"y":1}',
        "c": "[1,2,3]",
        "d": "",
    }


def test_sort_top_level_of_non_object_is_empty():
    assert sort_top_level([1, 2]) == {}
    assert sort_top_level("value") == {}


def test_integral_floats_inside_json_drop_fraction():
    assert dump_compact({"amount": 10.0, "rate": 0.5}) == '{"amount":10,"rate":0.5}'


def test_query_string_encoding():
    pairs = {"a b": "x&y", "safe": "-_.~", "url": "https://x.io/?q=1"}

    assert to_query_string(pairs) == "a b=x&y&safe=-_.~&url=https://x.io/?q=1"
    assert (
        to_query_string(pairs, encode_uri=True)
        == "a%20b=x%26y&safe=-_.~&url=https%3A%2F%2Fx.io%2F%3Fq%3D1"
    )
