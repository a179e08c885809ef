from datetime import timedelta

import pytest

from argengine import Command, InvalidValueError, parse
from argengine.types import (
    Color,
    Duration,
    parse_color,
    parse_duration,
    parse_email,
    parse_int_range,
    parse_key_value,
    parse_port,
    parse_size,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("30s", timedelta(seconds=30)),
        ("5m", timedelta(minutes=5)),
        ("2h", timedelta(hours=2)),
        ("1d", timedelta(days=1)),
        ("90", timedelta(seconds=90)),
    ],
)
def test_duration(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "5x", "-5s", "1.5h"])
def test_duration_invalid(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_key_value():
    assert parse_key_value("name=value") == ("name", "value")
    assert parse_key_value("url=a=b") == ("url", "a=b")
    assert parse_key_value("empty=") == ("empty", "")
    with pytest.raises(ValueError):
        parse_key_value("novalue")
    with pytest.raises(ValueError):
        parse_key_value("=value")


def test_size():
    assert parse_size("1920x1080") == (1920, 1080)
    for raw in ("1920", "0x10", "axb", "1x2x3"):
        with pytest.raises(ValueError):
            parse_size(raw)


def test_int_range():
    assert parse_int_range("10..20") == range(10, 20)
    for raw in ("10", "20..10", "5..5", "a..b"):
        with pytest.raises(ValueError):
            parse_int_range(raw)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("#ff8000", (255, 128, 0)),
        ("00FF00", (0, 255, 0)),
        ("Red", (255, 0, 0)),
        ("black", (0, 0, 0)),
    ],
)
def test_color(raw, expected):
    assert parse_color(raw) == expected


@pytest.mark.parametrize("raw", ["#fff", "purple", "#gg0000"])
def test_color_invalid(raw):
    with pytest.raises(ValueError):
        parse_color(raw)


def test_email():
    assert parse_email("user@example.com") == "user@example.com"
    for raw, reason in [
        ("user.example.com", "missing @"),
        ("a@b@example.com", "multiple @ symbols"),
        ("@example.com", "empty local part"),
        ("user@localhost", "domain missing ."),
    ]:
        with pytest.raises(ValueError) as e:
            parse_email(raw)
        assert str(e.value) == reason


def test_port():
    assert parse_port("8080") == 8080
    assert parse_port("65535") == 65535
    for raw in ("0", "65536", "-1", "http"):
        with pytest.raises(ValueError):
            parse_port(raw)


def test_value_kinds_in_schema():
    schema = (
        Command("render")
        .option("timeout", value_kind=Duration, default="60s")
        .option("color", value_kind=Color, env_var="COLOR")
        .build()
    )
    result = parse(schema, ["--timeout", "5m"], env={"COLOR": "blue"})
    assert result["timeout"] == timedelta(minutes=5)
    assert result["color"] == (0, 0, 255)
    assert parse(schema, [])["timeout"] == timedelta(seconds=60)


def test_value_kind_error_message():
    schema = Command("render").option("color", value_kind=Color).build()
    with pytest.raises(InvalidValueError) as e:
        parse(schema, ["--color", "pink"])
    assert str(e.value) == (
        'Invalid value "pink" for "--color": expected hex (#RRGGBB) or a name (red, green, blue, white, black).'
    )
