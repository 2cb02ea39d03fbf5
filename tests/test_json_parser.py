import json

import pytest

from external_choices import json_parser
from external_choices.errors import (
    EmptyArray,
    EmptyData,
    InvalidStructure,
    JsonParseError,
    NestedNotSupported,
    NoChoices,
)
from external_choices.models import Choice


def dump(obj) -> bytes:
    return json.dumps(obj).encode("utf-8")


def pairs(choices):
    return [(c.label, c.value) for c in choices]


def test_named_properties():
    raw = b'[{"name":"Choice A","id":"1"},{"name":"Choice B","id":"2"}]'
    choices = json_parser.parse(raw, "name", "id")

    assert len(choices) == 2
    assert choices[0] == Choice(label="Choice A", value="1")


def test_default_properties_are_first_and_second_keys():
    raw = dump([{"name": "A", "id": "1", "extra": "x"}])
    assert pairs(json_parser.parse(raw)) == [("A", "1")]


def test_single_property_uses_label_as_value():
    raw = dump([{"colour": "Red"}, {"colour": "Blue"}])
    assert pairs(json_parser.parse(raw, "", "")) == [("Red", "Red"), ("Blue", "Blue")]


def test_same_label_and_value_property():
    raw = dump([{"name": "A", "id": "1"}])
    assert pairs(json_parser.parse(raw, "name", "name")) == [("A", "A")]


def test_unknown_property_falls_back_to_position():
    raw = dump([{"name": "A", "id": "1"}])
    assert pairs(json_parser.parse(raw, "Name", "ID")) == [("A", "1")]


def test_scalars_stringified_and_trimmed():
    raw = dump([{"n": 1, "flag": True}, {"n": 2.5, "flag": False}, {"n": "  3 ", "flag": "  x "}])
    assert pairs(json_parser.parse(raw, "n", "flag")) == [("1", "true"), ("2.5", "false"), ("3", "x")]


def test_empty_value_falls_back_to_label():
    raw = dump([{"name": "A", "id": ""}, {"name": "B", "id": None}, {"name": "C"}])
    assert pairs(json_parser.parse(raw, "name", "id")) == [("A", "A"), ("B", "B"), ("C", "C")]


def test_non_object_elements_and_empty_labels_skipped():
    raw = dump([{"name": "A", "id": "1"}, "stray", 5, None, {"name": " ", "id": "2"}, {"name": "B", "id": "3"}])
    assert pairs(json_parser.parse(raw, "name", "id")) == [("A", "1"), ("B", "3")]


def test_utf8_bom_accepted():
    raw = b'\xef\xbb\xbf[{"name":"A"}]'
    assert pairs(json_parser.parse(raw)) == [("A", "A")]


@pytest.mark.parametrize(
    "payload",
    [
        [{"a": {"b": "x"}}],
        [{"a": "x", "b": [1, 2]}],
        ["plain string"],
        [[1, 2]],
    ],
)
def test_nested_or_non_object_first_element_rejected(payload):
    with pytest.raises(NestedNotSupported):
        json_parser.parse(dump(payload))


def test_root_must_be_array():
    with pytest.raises(InvalidStructure):
        json_parser.parse(dump({"name": "A"}))


def test_empty_array():
    with pytest.raises(EmptyArray):
        json_parser.parse(b"[]")


def test_malformed_json():
    with pytest.raises(JsonParseError) as excinfo:
        json_parser.parse(b'[{"name": "A",')
    assert excinfo.value.code == "json_parse_error"


def test_deeply_nested_json_is_a_parse_error():
    depth = 100000
    with pytest.raises(JsonParseError):
        json_parser.parse(b"[" * depth + b"]" * depth)


def test_empty_data():
    with pytest.raises(EmptyData):
        json_parser.parse(b"")


def test_no_surviving_elements():
    with pytest.raises(NoChoices):
        json_parser.parse(dump([{"name": ""}, {"name": None}]))


def test_get_columns_returns_first_element_keys():
    raw = dump([{"name": "A", "id": "1", "group": "g"}, {"other": "x"}])
    assert json_parser.get_columns(raw) == ["name", "id", "group"]
    assert json_parser.get_properties(raw) == ["name", "id", "group"]


def test_get_columns_rejects_nested():
    with pytest.raises(NestedNotSupported):
        json_parser.get_columns(b'[{"a":{"b":"x"}}]')
