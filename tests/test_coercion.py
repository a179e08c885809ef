from enum import Enum

import pytest

from argengine import Boolean, Choice, Custom, Float, Integer, SchemaConflictError, String
from argengine.coercion import coerce, kind_name


def test_string():
    assert coerce(String(), "foo") == "foo"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("42", 42),
        ("-7", -7),
        ("0x10", 16),
        ("0o17", 15),
        ("0b101", 5),
    ],
)
def test_integer(raw, expected):
    assert coerce(Integer(), raw) == expected


@pytest.mark.parametrize("raw", ["foo", "1.5", ""])
def test_integer_invalid(raw):
    with pytest.raises(ValueError) as e:
        coerce(Integer(), raw)
    assert str(e.value) == "expected an integer"


def test_integer_range():
    kind = Integer(1, 100)
    assert coerce(kind, "1") == 1
    assert coerce(kind, "100") == 100
    with pytest.raises(ValueError) as e:
        coerce(kind, "0")
    assert str(e.value) == "out of range, must be >= 1"
    with pytest.raises(ValueError) as e:
        coerce(kind, "101")
    assert str(e.value) == "out of range, must be <= 100"


def test_float():
    assert coerce(Float(), "1.5") == 1.5
    assert coerce(Float(max=1.0), "0.25") == 0.25
    with pytest.raises(ValueError):
        coerce(Float(max=1.0), "1.5")
    with pytest.raises(ValueError):
        coerce(Float(), "abc")


@pytest.mark.parametrize("raw", ["nan", "NaN", "-nan"])
def test_float_rejects_nan(raw):
    with pytest.raises(ValueError) as e:
        coerce(Float(0, 1), raw)
    assert str(e.value) == "expected a number"
    with pytest.raises(ValueError):
        coerce(Float(), raw)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("true", True),
        ("True", True),
        ("yes", True),
        ("1", True),
        ("false", False),
        ("n", False),
        ("0", False),
    ],
)
def test_boolean(raw, expected):
    assert coerce(Boolean(), raw) is expected


def test_boolean_invalid():
    with pytest.raises(ValueError):
        coerce(Boolean(), "maybe")


def test_choice():
    kind = Choice(["json", "yaml"], aliases={"yml": "yaml"})
    assert coerce(kind, "json") == "json"
    assert coerce(kind, "yml") == "yaml"
    assert kind.allowed == ("json", "yaml", "yml")
    with pytest.raises(ValueError) as e:
        coerce(kind, "JSON")
    assert str(e.value) == "expected one of {json, yaml, yml}"


def test_choice_alias_unknown_target():
    with pytest.raises(SchemaConflictError):
        Choice(["json"], aliases={"yml": "yaml"})


def test_choice_from_enum():
    class Format(Enum):
        PLAIN_TEXT = 1
        JSON = 2

    kind = Choice.from_enum(Format)
    assert kind.choices == ("plain-text", "json")
    assert coerce(kind, "plain-text") is Format.PLAIN_TEXT


def test_custom():
    def parse_even(s: str) -> int:
        value = int(s)
        if value % 2:
            raise ValueError("must be even")
        return value

    kind = Custom(parse_even)
    assert coerce(kind, "4") == 4
    with pytest.raises(ValueError) as e:
        coerce(kind, "3")
    assert str(e.value) == "must be even"
    assert kind_name(kind) == "parse_even"


def test_custom_no_reason():
    def fail(s):
        raise TypeError

    with pytest.raises(ValueError) as e:
        coerce(Custom(fail, "thing"), "x")
    assert str(e.value) == "unable to convert into thing"


def test_kind_name():
    assert kind_name(Integer()) == "integer"
    assert kind_name(String()) == "string"
