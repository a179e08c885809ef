"""Turn matched raw tokens into typed values with recorded provenance.

Per argument, the first available source wins:

1. Tokens bound on the command line.
2. The first set (non-empty) environment variable of :attr:`.ArgumentSpec.env_var`.
3. The config lookup, keyed by identifier.
4. :attr:`.ArgumentSpec.default`.

Otherwise the argument is absent from the result.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Any

from attrs import field

from argengine.argument import Action, ArgumentSpec
from argengine.coercion import Integer, _bool, coerce
from argengine.command import CommandSpec, arguments_in_scope, groups_in_scope
from argengine.exceptions import InvalidValueError, MissingValueError, ParseError
from argengine.group import MutuallyExclusive
from argengine.match import MatchSet
from argengine.token import Token
from argengine.utils import UNSET, Lookup, as_lookup, frozen, is_iterable

logger = logging.getLogger(__name__)


class Origin(Enum):
    CLI = "cli"
    ENVIRONMENT = "env"
    CONFIG = "config"
    DEFAULT = "default"


@frozen
class ResolvedValue:
    identifier: str
    value: Any = field(hash=False)
    origin: Origin
    source: str = ""
    """The flag, environment variable name, ``"config"`` or ``"default"`` that supplied the value."""


def _values_converter(value: Mapping[str, ResolvedValue]) -> Mapping[str, ResolvedValue]:
    return MappingProxyType(dict(value))


@frozen(kw_only=True)
class ParseResult:
    """Typed outcome of one parse invocation."""

    command_chain: tuple[str, ...] = ()
    values: Mapping[str, ResolvedValue] = field(factory=dict, converter=_values_converter, hash=False)
    trailing: tuple[str, ...] = ()
    unused: tuple[str, ...] = ()

    def __getitem__(self, identifier: str) -> Any:
        return self.values[identifier].value

    def __contains__(self, identifier: str) -> bool:
        return identifier in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def get(self, identifier: str, default: Any = None) -> Any:
        try:
            return self[identifier]
        except KeyError:
            return default

    def origin(self, identifier: str) -> Origin | None:
        resolved = self.values.get(identifier)
        return None if resolved is None else resolved.origin

    def as_dict(self) -> dict[str, Any]:
        return {k: v.value for k, v in self.values.items()}


def _coerce_one(argument: ArgumentSpec, raw: str, source: str) -> Any:
    try:
        if argument.action is Action.SET_TRUE:
            return _bool(raw)
        elif argument.action is Action.COUNT:
            return coerce(Integer(min=0), raw)
        return coerce(argument.value_kind, raw)
    except ValueError as e:
        reason = e.args[0] if e.args else ""
        raise InvalidValueError(argument=argument, raw=raw, reason=str(reason), source=source) from e


def _shape(argument: ArgumentSpec, values: Sequence[Any]) -> Any:
    assert argument.arity is not None
    if argument.arity.multiple:
        return tuple(values)
    return values[-1]


def _from_tokens(argument: ArgumentSpec, tokens: Sequence[Token]) -> Any:
    assert argument.arity is not None
    if argument.action is Action.COUNT:
        return sum(t.implicit_value if t.is_implicit else _coerce_one(argument, t.value, "cli") for t in tokens)
    if argument.action is Action.SET_TRUE:
        token = tokens[-1]
        return bool(token.implicit_value) if token.is_implicit else _coerce_one(argument, token.value, "cli")
    if len(tokens) < argument.arity.min:
        raise MissingValueError(
            argument=argument,
            keyword=next((t.keyword for t in tokens if t.keyword), None),
            tokens_so_far=[t.value for t in tokens],
        )
    return _shape(argument, [_coerce_one(argument, t.value, "cli") for t in tokens])


def _from_raw(argument: ArgumentSpec, raw: Any, source: str) -> Any:
    """Coerce an environment/config value: a string, or a sequence of strings."""
    if is_iterable(raw):
        parts = [str(x) for x in raw]
    else:
        parts = argument.split_fallback(str(raw))
    assert argument.arity is not None
    if not argument.arity.multiple and len(parts) != 1:
        reason = f"expected a single value, got {len(parts)}"
        raise InvalidValueError(argument=argument, raw=raw, reason=reason, source=source)
    return _shape(argument, [_coerce_one(argument, part, source) for part in parts])


def _from_default(argument: ArgumentSpec) -> Any:
    default = argument.default
    assert argument.arity is not None
    if isinstance(default, str):
        return _from_raw(argument, default, "default")
    if is_iterable(default):
        values = [_coerce_one(argument, x, "default") if isinstance(x, str) else x for x in default]
        return tuple(values) if argument.arity.multiple else default
    if argument.arity.multiple and not argument.is_flag:
        return (default,)
    return default


def resolve_argument(
    argument: ArgumentSpec, tokens: Sequence[Token], env: Lookup, config: Lookup
) -> ResolvedValue | None:
    """Resolve a single argument; :obj:`None` if no source supplies a value."""
    identifier = argument.identifier
    if tokens:
        keyword = next((t.keyword for t in tokens if t.keyword), None) or "cli"
        return ResolvedValue(identifier, _from_tokens(argument, tokens), Origin.CLI, keyword)

    for name in argument.env_var:
        raw = env(name)
        if raw:
            return ResolvedValue(identifier, _from_raw(argument, raw, name), Origin.ENVIRONMENT, name)

    raw = config(identifier)
    if raw is not None:
        return ResolvedValue(identifier, _from_raw(argument, raw, "config"), Origin.CONFIG, "config")

    if argument.default is not UNSET:
        return ResolvedValue(identifier, _from_default(argument), Origin.DEFAULT, "default")

    return None


def resolve(
    schema: CommandSpec,
    match_set: MatchSet,
    *,
    env: None | Mapping[str, Any] | Lookup = None,
    config: None | Mapping[str, Any] | Lookup = None,
) -> ParseResult:
    """Coerce every in-scope argument of the matched command chain.

    Parameters
    ----------
    schema: CommandSpec
        Root of the command tree.
    match_set: MatchSet
        Output of :func:`~argengine.match.match`, already validated.
    env: None | Mapping | Callable
        ``name -> value`` environment lookup. Never read from :data:`os.environ` implicitly.
    config: None | Mapping | Callable
        ``identifier -> value`` lookup, populated from a config file by the caller.

    Raises
    ------
    InvalidValueError
        A value could not be coerced, or is out of range.
    MissingValueError
        Fewer values were bound than the argument's arity demands.
    """
    nodes = schema.chain(match_set.command_chain)
    env_lookup, config_lookup = as_lookup(env), as_lookup(config)

    values: dict[str, ResolvedValue] = {}
    try:
        for argument in arguments_in_scope(nodes):
            resolved = resolve_argument(argument, match_set.tokens(argument.identifier), env_lookup, config_lookup)
            if resolved is None:
                continue
            logger.debug("Resolved %s=%r from %s.", resolved.identifier, resolved.value, resolved.origin.value)
            values[argument.identifier] = resolved
    except ParseError as e:
        if e.command_chain is None:
            e.command_chain = match_set.command_chain
        raise

    for group in groups_in_scope(nodes):
        if not isinstance(group, MutuallyExclusive) or not group.name:
            continue
        selected = next((member for member in group.members if match_set.is_bound(member)), None)
        if selected is not None:
            values[group.name] = ResolvedValue(group.name, selected, Origin.CLI, selected)

    return ParseResult(
        command_chain=match_set.command_chain,
        values=values,
        trailing=match_set.trailing,
        unused=match_set.unused,
    )
