"""Value kinds and the string-to-value coercion for each of them.

A value kind is a small frozen tag; :func:`coerce` dispatches on the tag.
Coercion failures raise :exc:`ValueError` with a human-readable reason; the
resolver attaches argument and token context to it.
"""

import math
from collections.abc import Callable
from enum import Enum
from typing import Any, Union

from attrs import field

from argengine.utils import default_name_transform, frozen, to_pairs_converter, to_tuple_converter
from argengine.validators._number import Number


@frozen
class String:
    pass


@frozen
class Integer:
    min: int | None = None
    """Inclusive lower bound."""

    max: int | None = None
    """Inclusive upper bound."""

    @property
    def range(self) -> Number:
        return Number(gte=self.min, lte=self.max)


@frozen
class Float:
    min: float | None = None
    max: float | None = None

    @property
    def range(self) -> Number:
        return Number(gte=self.min, lte=self.max)


@frozen
class Boolean:
    pass


@frozen
class Choice:
    """One of a fixed set of case-sensitive tags."""

    choices: tuple[str, ...] = field(converter=to_tuple_converter)

    aliases: tuple[tuple[str, str], ...] = field(default=(), converter=to_pairs_converter)
    """Alternative spellings, ``alias -> choice``."""

    values: tuple[tuple[str, Any], ...] = field(default=(), converter=to_pairs_converter, kw_only=True)
    """Optional ``choice -> python value`` mapping (see :meth:`from_enum`)."""

    def __attrs_post_init__(self):
        unknown = [target for _, target in self.aliases if target not in self.choices]
        if unknown:
            from argengine.exceptions import SchemaConflictError

            raise SchemaConflictError(f"Choice aliases reference unknown choices: {unknown}.")

    @classmethod
    def from_enum(cls, enum: type[Enum], *, name_transform: Callable[[str], str] = default_name_transform) -> "Choice":
        """Build a choice whose tags are the transformed member names, resolving to the members."""
        values = {name_transform(member.name): member for member in enum}
        return cls(tuple(values), values=values)

    @property
    def allowed(self) -> tuple[str, ...]:
        return self.choices + tuple(alias for alias, _ in self.aliases)


@frozen
class Custom:
    """Delegate coercion to a caller-supplied function.

    ``func`` receives the raw string and returns the typed value, or raises
    :exc:`ValueError`/:exc:`TypeError` describing why the string is unacceptable.
    """

    func: Callable[[str], Any]
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or getattr(self.func, "__name__", "value")


ValueKind = Union[String, Integer, Float, Boolean, Choice, Custom]


def _bool(s: str) -> bool:
    s = s.lower()
    if s in {"no", "n", "0", "false", "f"}:
        return False
    elif s in {"yes", "y", "1", "true", "t"}:
        return True
    else:
        raise ValueError("expected a boolean (true/false, yes/no, 1/0)")


def _int(s: str) -> int:
    s = s.strip().lower()
    try:
        if s.lstrip("+-").startswith("0x"):
            return int(s, 16)
        elif s.lstrip("+-").startswith("0o"):
            return int(s, 8)
        elif s.lstrip("+-").startswith("0b"):
            return int(s, 2)
        return int(s)
    except ValueError:
        raise ValueError("expected an integer") from None


def _float(s: str) -> float:
    try:
        value = float(s)
    except ValueError:
        raise ValueError("expected a number") from None
    if math.isnan(value):
        raise ValueError("expected a number")
    return value


def _check_range(kind: Integer | Float, value: int | float) -> None:
    try:
        kind.range(value)
    except ValueError as e:
        raise ValueError(f"out of range, {e.args[0]}") from None


def coerce(kind: ValueKind, raw: str) -> Any:
    """Convert a raw string into a typed value according to ``kind``.

    Raises
    ------
    ValueError
        The string cannot be represented by ``kind``.
    """
    if isinstance(kind, String):
        return raw
    elif isinstance(kind, Integer):
        value = _int(raw)
        _check_range(kind, value)
        return value
    elif isinstance(kind, Float):
        value = _float(raw)
        _check_range(kind, value)
        return value
    elif isinstance(kind, Boolean):
        return _bool(raw)
    elif isinstance(kind, Choice):
        if raw in kind.choices:
            tag = raw
        else:
            tag = dict(kind.aliases).get(raw)
            if tag is None:
                raise ValueError("expected one of {" + ", ".join(kind.allowed) + "}")
        return dict(kind.values).get(tag, tag)
    elif isinstance(kind, Custom):
        try:
            return kind.func(raw)
        except (ValueError, TypeError) as e:
            reason = e.args[0] if e.args else f"unable to convert into {kind.display_name}"
            raise ValueError(str(reason)) from e
    else:
        raise TypeError(f"Unsupported value kind {kind!r}.")


def kind_name(kind: ValueKind) -> str:
    if isinstance(kind, Custom):
        return kind.display_name
    return type(kind).__name__.lower()
