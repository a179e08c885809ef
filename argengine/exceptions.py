import difflib
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional

from attrs import define, field

from argengine.token import Token

if TYPE_CHECKING:
    from rich.console import Console

    from argengine.argument import ArgumentSpec
    from argengine.group import GroupSpec


__all__ = [
    "ConflictingArgumentsError",
    "DuplicateArgumentError",
    "InvalidValueError",
    "MissingDependencyError",
    "MissingRequiredArgumentError",
    "MissingRequiredGroupError",
    "MissingSubcommandError",
    "MissingValueError",
    "ParseError",
    "SchemaConflictError",
    "UnknownArgumentError",
]


class SchemaConflictError(Exception):
    """The schema being built is malformed (colliding identifiers/flags, bad group references, ...)."""

    # This doesn't derive from ParseError since this is a developer error
    # rather than a runtime error.


def _did_you_mean(value: str, candidates: Sequence[str]) -> str:
    close_matches = difflib.get_close_matches(value, candidates, n=1, cutoff=0.6)
    if close_matches:
        return f' Did you mean "{close_matches[0]}"?'
    return ""


@define(kw_only=True)
class ParseError(Exception):
    """Root exception for errors caused by user input.

    As a ParseError bubbles up through :func:`~argengine.parse`, more information is added to it.
    """

    msg: str | None = None
    """
    If set, override automatic message generation.
    """

    argument: Optional["ArgumentSpec"] = None
    """
    :class:`.ArgumentSpec` the error relates to.
    """

    command_chain: Sequence[str] | None = None
    """
    Subcommand names that were selected before the error occurred.
    """

    root_input_tokens: list[str] | None = None
    """
    The tokens that were initially fed into :func:`~argengine.parse`.
    """

    unused_tokens: list[str] | None = None
    """
    Tokens that had not been consumed when the error occurred.
    """

    console: Optional["Console"] = field(default=None)
    """:class:`~rich.console.Console` to display the error."""

    @property
    def identifier(self) -> str | None:
        return None if self.argument is None else self.argument.identifier

    def _prefix(self) -> str:
        if self.command_chain:
            return f'Command "{" ".join(self.command_chain)}": '
        return ""

    def __str__(self):
        if self.msg is not None:
            return self.msg
        return self._prefix()


@define(kw_only=True)
class UnknownArgumentError(ParseError):
    """Token does not match any declared flag, subcommand or positional slot.

    A nearest-neighbor suggestion may be printed.
    """

    token: str
    """The offending token."""

    candidates: tuple[str, ...] = ()
    """Flags/subcommands that were valid at the position of ``token``."""

    def __str__(self):
        if self.msg is not None:
            return self.msg
        if self.token.startswith("-"):
            response = f'Unknown option: "{self.token}".'
            lookup = self.token.split("=", 1)[0]
        else:
            response = f'Unexpected argument: "{self.token}".'
            lookup = self.token
        response += _did_you_mean(lookup, self.candidates)
        return super().__str__() + response


@define(kw_only=True)
class MissingValueError(ParseError):
    """A value-taking flag or positional lacks a supplied value."""

    keyword: str | None = None
    """The flag that was given without a value."""

    tokens_so_far: list[str] = field(factory=list)
    """Values that were collected before running out."""

    def __str__(self):
        if self.msg is not None:
            return self.msg
        assert self.argument is not None
        assert self.argument.arity is not None
        name = self.keyword or self.argument.name
        if self.argument.arity.min > 1:
            response = f'Parameter "{name}" requires at least {self.argument.arity.min} values.'
            if self.tokens_so_far:
                response += f" Only got {len(self.tokens_so_far)}."
        else:
            response = f'Parameter "{name}" requires a value.'
        return super().__str__() + response


@define(kw_only=True)
class DuplicateArgumentError(ParseError):
    """An argument was bound more times than its action/arity permits."""

    token: Token | None = None
    """The repeated token."""

    def __str__(self):
        if self.msg is not None:
            return self.msg
        assert self.argument is not None
        name = self.token.keyword if self.token and self.token.keyword else self.argument.name
        if self.argument.arity is not None and self.argument.arity.max not in (None, 1):
            return super().__str__() + f'Parameter "{name}" accepts at most {self.argument.arity.max} values.'
        return super().__str__() + f'Parameter "{name}" specified multiple times.'


@define(kw_only=True)
class MissingRequiredArgumentError(ParseError):
    """A required argument was not provided."""

    def __str__(self):
        if self.msg is not None:
            return self.msg
        assert self.argument is not None
        if self.argument.is_positional:
            response = f'Missing required argument "{self.argument.name}".'
        else:
            response = f'Missing required option "{self.argument.name}".'
        if self.argument.env_var:
            response += f" It may also be set via {', '.join(self.argument.env_var)}."
        return super().__str__() + response


@define(kw_only=True)
class MissingSubcommandError(MissingRequiredArgumentError):
    """A command that requires a subcommand was invoked without one."""

    available: tuple[str, ...] = ()

    def __str__(self):
        if self.msg is not None:
            return self.msg
        response = "A subcommand is required."
        if self.available:
            response += f" Available commands: {', '.join(self.available)}."
        return ParseError.__str__(self) + response


@define(kw_only=True)
class MissingRequiredGroupError(ParseError):
    """None of the members of a required group was provided."""

    group: "GroupSpec"
    member_names: tuple[str, ...] = ()
    """Display names of the group members."""

    def __str__(self):
        if self.msg is not None:
            return self.msg
        names = "{" + ", ".join(self.member_names) + "}"
        if self.group.name:
            return super().__str__() + f'Group "{self.group.name}" requires one of {names}.'
        return super().__str__() + f"One of {names} is required."


@define(kw_only=True)
class ConflictingArgumentsError(ParseError):
    """Two arguments that cannot be used together were both provided."""

    a: str
    """Identifier of the first conflicting argument (in declaration order)."""

    b: str
    """Identifier of the second conflicting argument."""

    display: tuple[str, str] | None = None
    """Flags as the user typed them, for the message."""

    def __str__(self):
        if self.msg is not None:
            return self.msg
        a, b = self.display or (self.a, self.b)
        return super().__str__() + f'"{a}" cannot be used with "{b}".'


@define(kw_only=True)
class MissingDependencyError(ParseError):
    """An argument was provided without the argument(s) it requires."""

    present: str
    missing: tuple[str, ...] = field(converter=tuple)

    display: tuple[str, tuple[str, ...]] | None = None

    def __str__(self):
        if self.msg is not None:
            return self.msg
        present, missing = self.display or (self.present, self.missing)
        if len(missing) == 1:
            return super().__str__() + f'"{present}" requires "{missing[0]}".'
        return super().__str__() + f'"{present}" requires {", ".join(repr(x) for x in missing)}.'


@define(kw_only=True)
class InvalidValueError(ParseError):
    """A supplied raw value could not be coerced or failed validation."""

    raw: Any = None
    """The offending raw value."""

    reason: str = ""

    source: str = "cli"
    """Where ``raw`` came from: ``"cli"``, an environment variable name, ``"config"`` or ``"default"``."""

    def __str__(self):
        if self.msg is not None:
            return self.msg
        name = self.argument.name if self.argument is not None else "value"
        provided_by = "" if self.source == "cli" else f" from {self.source}"
        response = f'Invalid value "{self.raw}" for "{name}"{provided_by}'
        if self.reason:
            response += f": {self.reason}."
        else:
            response += "."
        return super().__str__() + response
