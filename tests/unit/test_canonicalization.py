"""Tests for the canonicalizer and the JSON reader."""

import json

import pytest

from json_seal.core.canonicalization import (
    canonical_json_dumps,
    canonicalize,
    parse_json,
    verify_canonical_equivalence,
)
from json_seal.core.errors import (
    CanonicalizationError,
    DuplicateKey,
    InvalidPayload,
    NonFiniteNumber,
    UnsupportedKind,
)
from json_seal.core.models import (
    JSON_NULL,
    JsonArray,
    JsonBool,
    JsonNumber,
    JsonObject,
    JsonString,
)

SAMPLES = [
    None,
    True,
    False,
    0,
    1,
    -1,
    1.234,
    "",
    "hello",
    [],
    {},
    {"a": 1, "b": 2},
    {"b": 2, "a": 1},
    {"nested": {"z": 1, "a": 2}},
    ["a", {"b": 1, "a": 2}, 3],
]


def test_canonicalization() -> None:
    """Test that canonicalization produces consistent output."""
    data = {"b": 2, "a": 1, "c": [3, 1, 2]}
    assert canonicalize(data) == b'{"a":1,"b":2,"c":[3,1,2]}'
    assert canonical_json_dumps(data) == '{"a":1,"b":2,"c":[3,1,2]}'


def test_literals() -> None:
    assert canonicalize(None) == b"null"
    assert canonicalize(True) == b"true"
    assert canonicalize(False) == b"false"


def test_idempotent_through_parse() -> None:
    first = canonicalize(SAMPLES)
    assert canonicalize(json.loads(first)) == first
    assert canonicalize(parse_json(first)) == first


def test_key_order_does_not_matter() -> None:
    a = {"b": 2, "a": 1, "c": {"y": [1, {"q": 1, "p": 2}], "x": None}}
    b = {"c": {"x": None, "y": [1, {"p": 2, "q": 1}]}, "a": 1, "b": 2}
    assert canonicalize(a) == canonicalize(b)
    assert verify_canonical_equivalence(a, b)


def test_equivalence_is_false_for_uncanonicalizable_values() -> None:
    assert not verify_canonical_equivalence({"a": float("nan")}, {"a": float("nan")})
    assert not verify_canonical_equivalence({"a": 1}, {"a": 2})


def test_nested_objects() -> None:
    assert canonicalize({"b": {"z": 1, "a": 2}, "a": 0}) == b'{"a":0,"b":{"a":2,"z":1}}'


def test_arrays_canonicalize_their_elements() -> None:
    assert canonicalize([3, {"b": 2, "a": 1}, [2, 1]]) == b'[3,{"a":1,"b":2},[2,1]]'


def test_tuples_are_arrays() -> None:
    assert canonicalize((1, 2)) == canonicalize([1, 2])


def test_integers_and_integral_floats_match() -> None:
    assert canonicalize(1) == canonicalize(1.0)
    assert canonicalize(-0) == canonicalize(-0.0) == b"0"


def test_escaped_strings_round_trip() -> None:
    value = {"quote": '"', "slash": "\\", "newline": "\n", "control": "\b", "path": "C:\\Users\\x"}
    assert json.loads(canonicalize(value)) == value


def test_special_keys_round_trip() -> None:
    value = {'"quoted"': 1, "line\nbreak": 2, "\U0001F525": 3}
    assert json.loads(canonicalize(value)) == value


def test_output_has_no_whitespace() -> None:
    out = canonical_json_dumps({"a": [1, 2, {"b": None}], "c": "d e"})
    assert out == '{"a":[1,2,{"b":null}],"c":"d e"}'


def test_caller_value_is_not_mutated() -> None:
    value = {"b": [3, 1], "a": {"d": 1, "c": 2}}
    snapshot = json.dumps(value)
    canonicalize(value)
    assert json.dumps(value) == snapshot


def test_value_nodes_are_accepted() -> None:
    node = JsonObject((
        ("b", JsonArray((JsonNumber(1), JsonBool(True), JSON_NULL))),
        ("a", JsonString("x")),
    ))
    assert canonicalize(node) == b'{"a":"x","b":[1,true,null]}'


def test_duplicate_members_in_node_are_rejected() -> None:
    node = JsonObject((("a", JsonNumber(1)), ("a", JsonNumber(2))))
    with pytest.raises(DuplicateKey) as excinfo:
        canonicalize(node)
    assert excinfo.value.key == "a"


def test_surrogate_spellings_of_the_same_key_are_duplicates() -> None:
    node = JsonObject((("\U0001F600", JsonNumber(1)), ("\ud83d\ude00", JsonNumber(2))))
    with pytest.raises(DuplicateKey):
        canonicalize(node)


@pytest.mark.parametrize("value", [
    {1: "a"},
    {"a": {1, 2}},
    b"bytes",
    object(),
])
def test_unsupported_kinds(value: object) -> None:
    with pytest.raises(UnsupportedKind):
        canonicalize(value)


def test_integer_beyond_float64_precision() -> None:
    with pytest.raises(UnsupportedKind):
        canonicalize(2 ** 53 + 1)
    assert canonicalize(2 ** 53) == b"9007199254740992"


def test_integer_overflowing_float64() -> None:
    with pytest.raises(NonFiniteNumber):
        canonicalize(10 ** 400)


def test_cycles_fail_instead_of_recursing_forever() -> None:
    value: dict = {"a": 1}
    value["self"] = value
    with pytest.raises(CanonicalizationError):
        canonicalize(value)


def test_errors_share_a_base_class() -> None:
    for error in (NonFiniteNumber, DuplicateKey, UnsupportedKind):
        assert issubclass(error, CanonicalizationError)
    assert issubclass(CanonicalizationError, ValueError)


# parse_json

def test_parse_json_builds_value_nodes() -> None:
    node = parse_json('{"a":[1,2.5,"x",true,null],"b":{}}')
    assert isinstance(node, JsonObject)
    assert node.keys() == ["a", "b"]
    assert node.get("a") == JsonArray((
        JsonNumber(1), JsonNumber(2.5), JsonString("x"), JsonBool(True), JSON_NULL,
    ))
    assert node.to_python() == {"a": [1, 2.5, "x", True, None], "b": {}}


def test_parse_json_keeps_duplicate_members() -> None:
    node = parse_json('{"a":1,"a":2}')
    assert node.keys() == ["a", "a"]


def test_parse_json_keeps_nested_duplicates_inside_arrays() -> None:
    with pytest.raises(DuplicateKey):
        canonicalize(parse_json('[[{"k":1,"k":1}]]'))


def test_parse_json_accepts_utf8_bytes() -> None:
    assert parse_json('{"\u20ac":1}'.encode("utf-8")).keys() == ["\u20ac"]


@pytest.mark.parametrize("text", ["NaN", "[Infinity]", '{"a":-Infinity}'])
def test_parse_json_rejects_non_standard_constants(text: str) -> None:
    with pytest.raises(InvalidPayload):
        parse_json(text)


@pytest.mark.parametrize("text", ["", "{", '{"a":1,}', "[1 2]", b"\xff\xfe"])
def test_parse_json_rejects_malformed_text(text: object) -> None:
    with pytest.raises(InvalidPayload):
        parse_json(text)
