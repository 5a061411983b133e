"""
Admission check for payloads.

Converts caller data into the JSON value tree defined in
``json_seal.core.models``, failing with ``InvalidPayload`` for anything the
JSON data model cannot express.
"""

import math
from collections import OrderedDict
from typing import Any, Set

from json_seal.core.errors import InvalidPayload
from json_seal.core.models import (
    JSON_NULL,
    JsonArray,
    JsonBool,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    JsonValue,
)

# Nesting limit, kept well under the interpreter's recursion limit.
MAX_DEPTH = 200

_MAPPING_TYPES = (dict, OrderedDict)
_SEQUENCE_TYPES = (list, tuple)


def validate(value: Any) -> JsonValue:
    """
    Check that ``value`` is representable as JSON and return it as a tree.

    Accepted inputs are ``None``, ``bool``, finite ``float``, ``int`` values
    that a float64 holds exactly, ``str``, ``list``/``tuple`` and
    ``dict`` with string keys, as well as already-built JSON value nodes.
    Subclasses of these types are refused since they carry more than
    plain data.

    Raises:
        InvalidPayload: on the first offending value, including reference
            cycles and nesting deeper than ``MAX_DEPTH``.
    """
    return _to_node(value, set(), 0, "$")


def is_json_value(value: Any) -> bool:
    """Return True if :func:`validate` would accept ``value``."""
    try:
        validate(value)
    except InvalidPayload:
        return False
    return True


def _to_node(value: Any, ancestors: Set[int], depth: int, path: str) -> JsonValue:
    if depth > MAX_DEPTH:
        raise InvalidPayload(f"{path}: nesting exceeds {MAX_DEPTH} levels")

    kind = type(value)
    if value is None or kind is JsonNull:
        return JSON_NULL
    if kind is bool:
        return JsonBool(value)
    if kind is int or kind is float:
        return _number(value, path)
    if kind is str:
        return JsonString(value)

    if kind is JsonBool:
        if type(value.value) is not bool:
            raise InvalidPayload(f"{path}: boolean node holds {type(value.value).__name__}")
        return value
    if kind is JsonNumber:
        if type(value.value) not in (int, float):
            raise InvalidPayload(f"{path}: number node holds {type(value.value).__name__}")
        return _number(value.value, path)
    if kind is JsonString:
        if type(value.value) is not str:
            raise InvalidPayload(f"{path}: string node holds {type(value.value).__name__}")
        return value

    if kind in _SEQUENCE_TYPES or kind is JsonArray:
        items = value.items if kind is JsonArray else value
        with _visiting(value, ancestors, path):
            nodes = []
            for index, item in enumerate(items):
                nodes.append(_to_node(item, ancestors, depth + 1, f"{path}[{index}]"))
            return JsonArray(tuple(nodes))

    if kind in _MAPPING_TYPES or kind is JsonObject:
        pairs = value.members if kind is JsonObject else value.items()
        with _visiting(value, ancestors, path):
            members = []
            seen = set()
            for key, item in pairs:
                if type(key) is not str:
                    raise InvalidPayload(f"{path}: object keys must be strings, got {type(key).__name__}")
                if key in seen:
                    raise InvalidPayload(f"{path}: duplicate key {key!r}")
                seen.add(key)
                members.append((key, _to_node(item, ancestors, depth + 1, f"{path}[{key!r}]")))
            return JsonObject(tuple(members))

    raise InvalidPayload(f"{path}: {kind.__name__} is not a JSON value")


def _number(value: Any, path: str) -> JsonNumber:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidPayload(f"{path}: non-finite number {value!r}")
        return JsonNumber(value)
    try:
        as_float = float(value)
    except OverflowError:
        raise InvalidPayload(f"{path}: integer {value} is out of float64 range") from None
    if int(as_float) != value:
        raise InvalidPayload(f"{path}: integer {value} is not exactly representable as float64")
    return JsonNumber(value)


class _visiting:
    """Marks a container as being on the current path; a revisit is a cycle."""

    def __init__(self, container: Any, ancestors: Set[int], path: str):
        self._id = id(container)
        self._ancestors = ancestors
        self._path = path

    def __enter__(self) -> None:
        if self._id in self._ancestors:
            raise InvalidPayload(f"{self._path}: reference cycle detected")
        self._ancestors.add(self._id)

    def __exit__(self, *exc_info: Any) -> None:
        self._ancestors.discard(self._id)
