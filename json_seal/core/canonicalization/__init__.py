"""
Deterministic JSON canonicalization (RFC 8785) implementation.

This module provides byte-stable serialization for signing and verification:
object members sorted by the UTF-16 code units of their names, a minimal
string escape set over well-formed UTF-16, numbers rendered from their
shortest round-trip digits using the ECMAScript layout, and no whitespace.
Unicode normalization is deliberately not applied.

Both plain Python data (``None``, ``bool``, ``int``, ``float``, ``str``,
``list``, ``tuple``, ``dict``) and the value nodes from
``json_seal.core.models`` are accepted.
"""

import json
import math
import re
from typing import Any, Iterable, List, Tuple, Union

from json_seal.core.errors import (
    DuplicateKey,
    InvalidPayload,
    InvalidSurrogate,
    JsonSealError,
    NonFiniteNumber,
    UnsupportedKind,
)
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

_ESCAPES = {
    '"': '\\"',
    '\\': '\\\\',
    '\b': '\\b',
    '\f': '\\f',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
}

_ESCAPE_RE = re.compile('["\\\\\x00-\x1f]')
_SURROGATE_RE = re.compile('[\ud800-\udfff]')


def _escape_char(match: "re.Match[str]") -> str:
    ch = match.group(0)
    return _ESCAPES.get(ch) or "\\u%04x" % ord(ch)


def _join_surrogates(s: str) -> str:
    """
    Check UTF-16 well-formedness and fold surrogate pairs into code points.

    A Python string holds code points, so an unpaired UTF-16 code unit shows
    up as a lone code point in U+D800..U+DFFF.
    """
    if not _SURROGATE_RE.search(s):
        return s
    out = []
    i = 0
    while i < len(s):
        c = ord(s[i])
        if 0xD800 <= c <= 0xDBFF:
            if i + 1 >= len(s):
                raise InvalidSurrogate(f"Invalid UTF-16: isolated high surrogate at index {i}")
            d = ord(s[i + 1])
            if not 0xDC00 <= d <= 0xDFFF:
                raise InvalidSurrogate(
                    f"Invalid UTF-16: high surrogate at index {i} not followed by low surrogate"
                )
            out.append(chr(0x10000 + ((c - 0xD800) << 10) + (d - 0xDC00)))
            i += 2
            continue
        if 0xDC00 <= c <= 0xDFFF:
            raise InvalidSurrogate(f"Invalid UTF-16: isolated low surrogate at index {i}")
        out.append(s[i])
        i += 1
    return "".join(out)


def _render_string(s: str) -> str:
    return '"' + _ESCAPE_RE.sub(_escape_char, _join_surrogates(s)) + '"'


def _render_number(x: Union[int, float]) -> str:
    if isinstance(x, int):
        try:
            as_float = float(x)
        except OverflowError:
            raise NonFiniteNumber(f"Integer {x} overflows float64") from None
        if int(as_float) != x:
            raise UnsupportedKind(f"Integer {x} is not exactly representable as float64")
        x = as_float
    if not math.isfinite(x):
        raise NonFiniteNumber(f"Non-finite numbers are not permitted in canonical JSON: {x!r}")
    # -0.0 == 0 as well
    if x == 0:
        return "0"

    # repr gives the shortest round-trip digits; only their layout changes.
    s = repr(x)
    sign = ""
    if s.startswith("-"):
        sign, s = "-", s[1:]
    mantissa, _, exp = s.partition("e")
    int_part, _, frac = mantissa.partition(".")
    digits = int_part + frac
    point = len(int_part) + (int(exp) if exp else 0)
    stripped = digits.lstrip("0")
    point -= len(digits) - len(stripped)
    digits = stripped.rstrip("0")

    k = len(digits)
    if k <= point <= 21:
        return sign + digits + "0" * (point - k)
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits
    return sign + _exponent_form(digits, point - 1)


def _exponent_form(digits: str, exponent: int) -> str:
    # Uppercase marker, no "+" and no leading zeros in the exponent.
    mantissa = digits if len(digits) == 1 else digits[0] + "." + digits[1:]
    return f"{mantissa}E{exponent}"


def _render_array(items: Iterable[Any]) -> str:
    return "[" + ",".join(_canon(item) for item in items) + "]"


def _render_object(pairs: Iterable[Tuple[Any, Any]]) -> str:
    members = []
    seen = set()
    for key, value in pairs:
        if not isinstance(key, str):
            raise UnsupportedKind(f"Object keys must be strings, got {type(key).__name__}")
        key = _join_surrogates(key)
        if key in seen:
            raise DuplicateKey(key)
        seen.add(key)
        members.append((key, value))

    # Ordering by UTF-16 code units, which differs from code point order
    # once characters outside the BMP are involved.
    members.sort(key=lambda kv: kv[0].encode("utf-16-be"))
    return "{" + ",".join(_render_string(k) + ":" + _canon(v) for k, v in members) + "}"


def _canon(value: Any) -> str:
    """Recursively convert a value to its canonical JSON text."""
    if value is None or isinstance(value, JsonNull):
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _render_number(value)
    if isinstance(value, str):
        return _render_string(value)
    if isinstance(value, (list, tuple)):
        return _render_array(value)
    if isinstance(value, dict):
        return _render_object(value.items())
    if isinstance(value, (JsonBool, JsonNumber, JsonString)):
        return _canon_scalar_node(value)
    if isinstance(value, JsonArray):
        return _render_array(value.items)
    if isinstance(value, JsonObject):
        return _render_object(value.members)
    raise UnsupportedKind(f"Unsupported type in canonical JSON: {type(value).__name__}")


def _canon_scalar_node(node: Union[JsonBool, JsonNumber, JsonString]) -> str:
    inner = node.value
    if isinstance(node, JsonBool) and isinstance(inner, bool):
        return "true" if inner else "false"
    if isinstance(node, JsonNumber) and isinstance(inner, (int, float)) and not isinstance(inner, bool):
        return _render_number(inner)
    if isinstance(node, JsonString) and isinstance(inner, str):
        return _render_string(inner)
    raise UnsupportedKind(f"{type(node).__name__} holds {type(inner).__name__}")


def canonical_json_dumps(value: Any) -> str:
    """
    Return the canonical JSON text for ``value``.

    Raises:
        NonFiniteNumber: NaN or an infinity anywhere in the value
        InvalidSurrogate: a string or key with unpaired UTF-16 surrogates
        DuplicateKey: an object with a repeated member name
        UnsupportedKind: anything outside the seven JSON kinds
    """
    try:
        return _canon(value)
    except RecursionError:
        raise UnsupportedKind("Value is nested too deeply or contains a reference cycle") from None


def canonicalize(value: Any) -> bytes:
    """
    Convert a value to canonical JSON bytes.

    Args:
        value: plain Python JSON data or a JSON value node

    Returns:
        bytes: The canonical JSON representation as UTF-8 bytes
    """
    return canonical_json_dumps(value).encode("utf-8")


def verify_canonical_equivalence(a: Any, b: Any) -> bool:
    """
    Check if two values have identical canonical JSON representations.

    Values that cannot be canonicalized are never equivalent to anything.
    """
    try:
        return canonicalize(a) == canonicalize(b)
    except JsonSealError:
        return False


def _lift(value: Any) -> JsonValue:
    if value is None:
        return JSON_NULL
    if isinstance(value, bool):
        return JsonBool(value)
    if isinstance(value, (int, float)):
        return JsonNumber(value)
    if isinstance(value, str):
        return JsonString(value)
    if isinstance(value, list):
        return JsonArray(tuple(_lift(item) for item in value))
    # objects were already built by the pairs hook
    return value


def _object_node(pairs: List[Tuple[str, Any]]) -> JsonObject:
    return JsonObject(tuple((key, _lift(value)) for key, value in pairs))


def _reject_constant(name: str) -> Any:
    raise InvalidPayload(f"{name} is not a JSON value")


def parse_json(text: Union[str, bytes, bytearray]) -> JsonValue:
    """
    Read JSON text into value nodes without losing repeated member names.

    ``json.loads`` keeps only the last of two members with the same name,
    which would let a tampered document canonicalize cleanly. Objects are
    read as ordered pairs instead so duplicates reach the canonicalizer.

    Raises:
        InvalidPayload: malformed JSON, non-UTF-8 bytes, or the
            non-standard ``NaN``/``Infinity`` literals
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidPayload(f"JSON text is not valid UTF-8: {e}") from e
    try:
        parsed = json.loads(
            text,
            object_pairs_hook=_object_node,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise InvalidPayload(f"Malformed JSON: {e}") from e
    except RecursionError:
        raise InvalidPayload("JSON text is nested too deeply") from None
    return _lift(parsed)
