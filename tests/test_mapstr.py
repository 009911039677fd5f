import pytest

from integdev.importbeats.mapstr import (
    KeyNotFoundError,
    delete_value,
    flatten,
    get_value,
    put_value,
    to_mapstr,
)


def test_put_creates_nested_maps_and_get_reads_back():
    data = {}
    assert put_value(data, "attributes.visState.title", "x") is None
    assert get_value(data, "attributes.visState.title") == "x"
    assert get_value(data, "attributes.visState") == {"title": "x"}


def test_put_returns_old_value():
    data = {"a": {"b": 1}}
    assert put_value(data, "a.b", 2) == 1
    assert data["a"]["b"] == 2


def test_literal_dotted_key_wins():
    data = {"meta.key": "literal", "meta": {"key": "nested"}}
    assert get_value(data, "meta.key") == "literal"


def test_get_missing_key():
    with pytest.raises(KeyNotFoundError):
        get_value({"a": {}}, "a.b")
    with pytest.raises(KeyNotFoundError):
        get_value({}, "x.y")


def test_get_through_non_mapping():
    with pytest.raises(TypeError):
        get_value({"a": 1}, "a.b")


def test_delete_removes_key():
    data = {"a": {"b": 1, "c": 2}}
    delete_value(data, "a.b")
    assert data == {"a": {"c": 2}}
    with pytest.raises(KeyNotFoundError):
        delete_value(data, "a.b")


def test_flatten():
    nested = {"a": {"b": 1, "c": {"d": 2}}, "e": 3}
    assert flatten(nested) == {"a.b": 1, "a.c.d": 2, "e": 3}


def test_flatten_round_trip_through_put():
    nested = {"x": {"y": [1, 2], "z": {"w": None}}, "v": "s"}
    rebuilt = {}
    for key, value in flatten(nested).items():
        put_value(rebuilt, key, value)
    assert rebuilt == nested


def test_to_mapstr():
    data = {"a": 1}
    assert to_mapstr(data) is data
    with pytest.raises(TypeError):
        to_mapstr([1, 2])
    with pytest.raises(TypeError):
        to_mapstr({1: "a"})