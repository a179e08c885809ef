"""Ready-made :class:`~argengine.coercion.Custom` value kinds for common formats.

.. code-block:: python

    from argengine import ArgumentSpec
    from argengine.types import Duration, Port

    ArgumentSpec.named("timeout", value_kind=Duration, default="60s")
    ArgumentSpec.named("port", "p", value_kind=Port, default="8080")

Each value kind wraps a plain ``parse_*`` function, which may also be called directly.
"""

from datetime import timedelta

from argengine.coercion import Custom
from argengine.validators._number import Number

__all__ = [
    "Color",
    "Duration",
    "Email",
    "IntRange",
    "KeyValue",
    "Port",
    "Size",
    "parse_color",
    "parse_duration",
    "parse_email",
    "parse_int_range",
    "parse_key_value",
    "parse_port",
    "parse_size",
]

_DURATION_UNITS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
}

_NAMED_COLORS = {
    "red": (255, 0, 0),
    "green": (0, 255, 0),
    "blue": (0, 0, 255),
    "white": (255, 255, 255),
    "black": (0, 0, 0),
}

_port_range = Number(gte=1, lte=65535)


def parse_duration(s: str) -> timedelta:
    """``30s``, ``5m``, ``2h``, ``1d``; a bare number is seconds."""
    s = s.strip()
    if not s:
        raise ValueError("duration cannot be empty")
    multiplier = _DURATION_UNITS.get(s[-1].lower())
    number = s[:-1] if multiplier else s
    if not number.isdigit():
        raise ValueError("expected a duration like 30s, 5m, 2h or 1d")
    return timedelta(seconds=int(number) * (multiplier or 1))


def parse_key_value(s: str) -> tuple[str, str]:
    """``KEY=VALUE`` into ``(key, value)``; the value may itself contain ``=``."""
    key, sep, value = s.partition("=")
    if not sep:
        raise ValueError("expected KEY=VALUE")
    key = key.strip()
    if not key:
        raise ValueError("key cannot be empty")
    return key, value


def parse_size(s: str) -> tuple[int, int]:
    """``WIDTHxHEIGHT`` (e.g. ``1920x1080``) into ``(width, height)``."""
    parts = s.lower().split("x")
    if len(parts) != 2:
        raise ValueError("expected WIDTHxHEIGHT, e.g. 1920x1080")
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError("width and height must be integers") from None
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be greater than 0")
    return width, height


def parse_int_range(s: str) -> range:
    """``START..END`` (end exclusive) into a :class:`range`."""
    start, sep, end = s.partition("..")
    if not sep:
        raise ValueError("expected START..END, e.g. 10..20")
    try:
        lo, hi = int(start), int(end)
    except ValueError:
        raise ValueError("start and end must be integers") from None
    if lo >= hi:
        raise ValueError(f"start ({lo}) must be less than end ({hi})")
    return range(lo, hi)


def parse_color(s: str) -> tuple[int, int, int]:
    """``#RRGGBB``, ``RRGGBB`` or one of red/green/blue/white/black into ``(r, g, b)``."""
    named = _NAMED_COLORS.get(s.lower())
    if named is not None:
        return named
    hex_ = s.removeprefix("#")
    if len(hex_) != 6:
        raise ValueError("expected hex (#RRGGBB) or a name (" + ", ".join(_NAMED_COLORS) + ")")
    components = []
    for label, chunk in zip(("red", "green", "blue"), (hex_[0:2], hex_[2:4], hex_[4:6]), strict=True):
        try:
            components.append(int(chunk, 16))
        except ValueError:
            raise ValueError(f"invalid {label} component {chunk!r}") from None
    return components[0], components[1], components[2]


def parse_email(s: str) -> str:
    if "@" not in s:
        raise ValueError("missing @")
    local, _, domain = s.partition("@")
    if "@" in domain:
        raise ValueError("multiple @ symbols")
    if not local:
        raise ValueError("empty local part")
    if "." not in domain.strip("."):
        raise ValueError("domain missing .")
    return s


def parse_port(s: str) -> int:
    try:
        port = int(s)
    except ValueError:
        raise ValueError("not a valid port number") from None
    if port == 0:
        raise ValueError("port 0 is reserved")
    _port_range(port)
    return port


Duration = Custom(parse_duration, "duration")
KeyValue = Custom(parse_key_value, "KEY=VALUE")
Size = Custom(parse_size, "size")
IntRange = Custom(parse_int_range, "range")
Color = Custom(parse_color, "color")
Email = Custom(parse_email, "email")
Port = Custom(parse_port, "port")
