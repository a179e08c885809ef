from enum import Enum
from typing import Any

from attrs import field

from argengine.coercion import Boolean, String, ValueKind
from argengine.exceptions import SchemaConflictError
from argengine.utils import UNSET, default_name_transform, frozen, is_iterable, to_tuple_converter


class Kind(Enum):
    POSITIONAL = "positional"
    NAMED = "named"


class Action(Enum):
    """What binding an argument does to its collected values."""

    SET = "set"
    """A single occurrence; repeating the flag is a :class:`.DuplicateArgumentError`."""

    APPEND = "append"
    """Every occurrence adds its value(s)."""

    COUNT = "count"
    """Value is the number of occurrences (``-vvv`` -> ``3``)."""

    SET_TRUE = "set_true"
    """Value is :obj:`True` when present."""


@frozen
class Arity:
    """How many values an argument may bind.

    ``max`` of :obj:`None` means unbounded.
    """

    min: int = 1
    max: int | None = 1

    def __attrs_post_init__(self):
        if self.min < 0:
            raise SchemaConflictError("Arity min must be >= 0.")
        if self.max is not None and self.max < max(self.min, 1):
            raise SchemaConflictError(f"Arity max ({self.max}) must be >= max(min, 1).")

    @classmethod
    def one(cls) -> "Arity":
        return cls(1, 1)

    @classmethod
    def optional(cls) -> "Arity":
        return cls(0, 1)

    @classmethod
    def many(cls, min: int = 0, max: int | None = None) -> "Arity":
        return cls(min, max)

    @property
    def required(self) -> bool:
        return self.min > 0

    @property
    def unbounded(self) -> bool:
        return self.max is None

    @property
    def multiple(self) -> bool:
        """Resolves to a sequence rather than a scalar."""
        return self.max is None or self.max > 1

    def __str__(self):
        if self.max == self.min:
            return str(self.min)
        elif self.max is None:
            return f"{self.min}.."
        return f"{self.min}..={self.max}"


EXACTLY_ONE = Arity.one()
OPTIONAL = Arity.optional()


def _normalize_short(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.lstrip("-")
    if len(value) != 1:
        raise SchemaConflictError(f"Short flag must be a single character, got {value!r}.")
    return "-" + value


def _normalize_long(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.lstrip("-")
    if not value or "=" in value:
        raise SchemaConflictError(f"Invalid long flag {value!r}.")
    return "--" + value


def _normalize_aliases(value) -> tuple[str, ...]:
    return tuple(_normalize_long(x) for x in to_tuple_converter(value))  # pyright: ignore[reportReturnType]


def _default_converter(value: Any) -> Any:
    if value is UNSET or isinstance(value, str) or not is_iterable(value):
        return value
    return tuple(value)


@frozen
class ArgumentSpec:
    """Declared shape of one flag or positional argument."""

    identifier: str
    """Key of the argument in the parse result; unique along any command chain."""

    kind: Kind = Kind.NAMED

    short: str | None = field(default=None, converter=_normalize_short)
    long: str | None = field(default=None, converter=_normalize_long)

    aliases: tuple[str, ...] = field(default=(), converter=_normalize_aliases)
    """Additional long flags."""

    arity: Arity | None = None
    """Defaults by action and kind; see :meth:`__attrs_post_init__`."""

    value_kind: ValueKind = field(factory=String)

    action: Action = Action.SET

    default: Any = field(default=UNSET, converter=_default_converter)
    """Raw string (coerced like user input) or an already typed value."""

    env_var: tuple[str, ...] = field(default=(), converter=to_tuple_converter)
    """Environment variable name(s) to fall back to, first set one wins."""

    delimiter: str | None = None
    """Split a single raw value into many values (``--tags a,b,c``)."""

    is_global: bool = False
    """Matchable in every descendant subcommand."""

    requires: tuple[str, ...] = field(default=(), converter=to_tuple_converter)
    conflicts_with: tuple[str, ...] = field(default=(), converter=to_tuple_converter)

    allow_hyphen_values: bool = False
    """Value tokens may look like options (e.g. ``--pattern -x``)."""

    trailing_var_arg: bool = False
    """Once this unbounded positional receives a value, every remaining token binds to it verbatim."""

    help: str = ""

    def __attrs_post_init__(self):
        if not self.identifier:
            raise SchemaConflictError("Argument identifier must not be empty.")

        action = self.action
        if isinstance(self.value_kind, Boolean) and self.kind is Kind.NAMED and action is Action.SET:
            # A boolean named argument is a presence flag; "--flag=false" is still accepted.
            action = Action.SET_TRUE
            object.__setattr__(self, "action", action)

        if self.kind is Kind.POSITIONAL:
            if self.short or self.long or self.aliases:
                raise SchemaConflictError(f"Positional argument {self.identifier!r} cannot have flags.")
            if self.is_global:
                raise SchemaConflictError(f"Positional argument {self.identifier!r} cannot be global.")
            if action in (Action.COUNT, Action.SET_TRUE):
                raise SchemaConflictError(f"Positional argument {self.identifier!r} cannot use action {action.value}.")
        elif not (self.short or self.long):
            raise SchemaConflictError(f"Named argument {self.identifier!r} requires a short or long flag.")

        if self.arity is None:
            if action is Action.APPEND:
                arity = Arity.many()
            elif self.kind is Kind.POSITIONAL:
                arity = EXACTLY_ONE
            else:
                arity = OPTIONAL
            object.__setattr__(self, "arity", arity)
        elif self.is_flag and self.arity.multiple:
            raise SchemaConflictError(f"Flag {self.identifier!r} cannot take multiple values.")

        assert self.arity is not None
        if self.trailing_var_arg and (self.kind is not Kind.POSITIONAL or self.arity.max is not None):
            raise SchemaConflictError(f"Trailing argument {self.identifier!r} must be an unbounded positional.")

        if self.default is UNSET:
            if action is Action.SET_TRUE:
                object.__setattr__(self, "default", False)
            elif action is Action.COUNT:
                object.__setattr__(self, "default", 0)

        if self.delimiter == "":
            raise SchemaConflictError(f"Delimiter of {self.identifier!r} must not be empty.")

    @classmethod
    def positional(cls, identifier: str, **kwargs) -> "ArgumentSpec":
        return cls(identifier, kind=Kind.POSITIONAL, **kwargs)

    @classmethod
    def named(cls, identifier: str, short: str | None = None, long: Any = UNSET, **kwargs) -> "ArgumentSpec":
        """Create a named argument.

        If ``long`` is not provided, it is derived from ``identifier`` (``dry_run`` -> ``--dry-run``).
        Pass ``long=None`` for a short-only flag.
        """
        if long is UNSET:
            long = "--" + default_name_transform(identifier)
        return cls(identifier, kind=Kind.NAMED, short=short, long=long, **kwargs)

    @property
    def is_positional(self) -> bool:
        return self.kind is Kind.POSITIONAL

    @property
    def is_flag(self) -> bool:
        """Presence alone binds the argument; no value token is consumed."""
        return self.action in (Action.COUNT, Action.SET_TRUE)

    @property
    def takes_value(self) -> bool:
        return not self.is_flag

    @property
    def flags(self) -> tuple[str, ...]:
        return tuple(x for x in (self.short, self.long) if x) + self.aliases

    @property
    def name(self) -> str:
        """Display name for messages."""
        if self.long:
            return self.long
        elif self.short:
            return self.short
        return self.identifier.upper()

    @property
    def required(self) -> bool:
        assert self.arity is not None
        return self.arity.required and self.default is UNSET

    def split(self, value: str) -> list[str]:
        """Split a single raw CLI value on :attr:`delimiter`."""
        if self.delimiter is None:
            return [value]
        return value.split(self.delimiter)

    def split_fallback(self, value: str) -> list[str]:
        """Split an environment/config/default string.

        Multi-value arguments split on :attr:`delimiter`, or on whitespace if no delimiter is declared.
        """
        assert self.arity is not None
        if self.delimiter is not None:
            return value.split(self.delimiter)
        if self.arity.multiple:
            return value.split()
        return [value]

