"""JSON source parser. Flat objects only; nested records are rejected."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from .columns import resolve_property_name
from .errors import EmptyArray, EmptyData, InvalidStructure, JsonParseError, NestedNotSupported, NoChoices
from .models import Choice


def _load(data: bytes) -> Any:
    if not data:
        raise EmptyData("JSON data is empty.")

    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise JsonParseError(exc.msg) from exc
    except UnicodeDecodeError as exc:
        raise JsonParseError(str(exc)) from exc
    except RecursionError as exc:
        raise JsonParseError("Maximum nesting depth exceeded") from exc


def _is_nested(item: Dict[str, Any]) -> bool:
    return any(isinstance(value, (dict, list)) for value in item.values())


def _first_record(data: bytes) -> tuple[list, Dict[str, Any]]:
    parsed = _load(data)

    if not isinstance(parsed, list):
        raise InvalidStructure()

    if not parsed:
        raise EmptyArray()

    first = parsed[0]
    if not isinstance(first, dict) or _is_nested(first):
        raise NestedNotSupported()

    return parsed, first


def _stringify(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def parse(data: bytes, label_property: str = "", value_property: str = "") -> List[Choice]:
    items, first = _first_record(data)

    properties = list(first.keys())
    label_prop = resolve_property_name(properties, label_property, 0)
    value_prop = resolve_property_name(properties, value_property, 1 if len(properties) > 1 else 0)

    choices: List[Choice] = []
    for item in items:
        if not isinstance(item, dict):
            continue

        label = _stringify(item.get(label_prop))
        if label == "":
            continue

        value = _stringify(item.get(value_prop))
        if label_prop == value_prop or value == "":
            value = label

        choices.append(Choice(label=label, value=value))

    if not choices:
        raise NoChoices("No valid choices found in JSON.")

    return choices


def get_properties(data: bytes) -> List[str]:
    _, first = _first_record(data)
    return list(first.keys())


# Same signature as the tabular parsers
get_columns = get_properties
