"""Bind raw CLI tokens to the arguments of a schema.

Matching is purely syntactic: it decides which token belongs to which
:class:`.ArgumentSpec` and which subcommands were selected. It never coerces
values, and absence of a value is a valid outcome (validation decides later).
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from attrs import field

from argengine.argument import Action, ArgumentSpec
from argengine.command import CommandSpec
from argengine.exceptions import DuplicateArgumentError, MissingValueError, ParseError, UnknownArgumentError
from argengine.token import Token
from argengine.utils import frozen, is_option_like, normalize_tokens

logger = logging.getLogger(__name__)


def _bindings_converter(value: Mapping[str, Iterable[Token]]) -> Mapping[str, tuple[Token, ...]]:
    return MappingProxyType({k: tuple(v) for k, v in value.items()})


@frozen(kw_only=True)
class MatchSet:
    """Raw token bindings of one parse invocation."""

    bindings: Mapping[str, tuple[Token, ...]] = field(factory=dict, converter=_bindings_converter, hash=False)
    """Argument identifier to the tokens bound to it, in command-line order."""

    command_chain: tuple[str, ...] = ()
    """Selected subcommand names, outermost first. The root command is not included."""

    trailing: tuple[str, ...] = ()
    """Tokens after ``--`` of a passthrough command, verbatim."""

    unused: tuple[str, ...] = ()
    """Unrecognized tokens; only populated when matching with ``allow_unknown=True``."""

    def tokens(self, identifier: str) -> tuple[Token, ...]:
        return self.bindings.get(identifier, ())

    def is_bound(self, identifier: str) -> bool:
        return bool(self.bindings.get(identifier))

    @property
    def bound(self) -> frozenset[str]:
        return frozenset(k for k, v in self.bindings.items() if v)


class _Matcher:
    def __init__(self, schema: CommandSpec, *, end_of_options_delimiter: str, allow_unknown: bool):
        self.nodes: list[CommandSpec] = [schema]
        self.chain: list[str] = []
        self.end_of_options_delimiter = end_of_options_delimiter
        self.allow_unknown = allow_unknown
        self.bindings: dict[str, list[Token]] = {}
        self.occurrences: dict[str, int] = {}
        self.trailing: list[str] = []
        self.unused: list[str] = []
        self.scope: dict[str, ArgumentSpec] = {}
        self._enter(schema)

    @property
    def node(self) -> CommandSpec:
        return self.nodes[-1]

    def _enter(self, node: CommandSpec):
        if node is not self.nodes[-1]:
            self.nodes.append(node)
            self.chain.append(node.name)
            logger.debug("Selected subcommand %r.", " ".join(self.chain))
        scope = {}
        for ancestor in self.nodes[:-1]:
            for argument in ancestor.global_arguments:
                scope.update(dict.fromkeys(argument.flags, argument))
        for argument in node.named:
            scope.update(dict.fromkeys(argument.flags, argument))
        self.scope = scope

    def run(self, tokens: Sequence[str]):
        force_positional = False
        verbatim = False
        i = 0
        while i < len(tokens):
            token = tokens[i]
            i += 1

            if verbatim:
                self._bind_positional(token)
                continue

            if force_positional:
                if self.node.passthrough:
                    self.trailing.append(token)
                else:
                    self._bind_positional(token)
                continue

            if self.end_of_options_delimiter and token == self.end_of_options_delimiter:
                force_positional = True
                continue

            if is_option_like(token):
                i = self._match_option(tokens, i, token)
                continue

            child = self.node.child(token)
            if child is not None:
                self._enter(child)
                continue

            argument = self._bind_positional(token)
            if argument is not None and argument.trailing_var_arg:
                # e.g. "ssh web ls -la"
                verbatim = True

    def _unknown(self, token: str, i: int) -> int:
        if self.allow_unknown:
            self.unused.append(token)
            return i
        raise UnknownArgumentError(token=token, candidates=tuple(self.scope) + self.node.child_names)

    def _match_option(self, tokens: Sequence[str], i: int, token: str) -> int:
        if token.startswith("--"):
            flag, sep, inline = token.partition("=")
            argument = self.scope.get(flag)
            if argument is None:
                return self._unknown(token, i)
            return self._bind_named(argument, flag, inline if sep else None, tokens, i)

        if "=" in token:
            flag, _, inline = token.partition("=")
            argument = self.scope.get(flag)
            if argument is not None:
                return self._bind_named(argument, flag, inline, tokens, i)

        argument = self.scope.get(token)
        if argument is not None:
            return self._bind_named(argument, token, None, tokens, i)

        # GNU-style combined short options: process left-to-right.
        # Once we hit an option that takes a value, the rest is the value.
        chars = token[1:]
        if len(chars) < 2:
            return self._unknown(token, i)
        matches: list[tuple[ArgumentSpec, str, str | None]] = []
        for position, char in enumerate(chars):
            argument = self.scope.get("-" + char)
            if argument is None:
                return self._unknown(token, i)
            if argument.is_flag:
                matches.append((argument, "-" + char, None))
                continue
            remainder = chars[position + 1 :].removeprefix("=")
            matches.append((argument, "-" + char, remainder or None))
            break

        for argument, flag, _ in matches[:-1]:
            self._bind_named(argument, flag, None, tokens, i)
        argument, flag, inline = matches[-1]
        return self._bind_named(argument, flag, inline, tokens, i)

    def _bind_named(
        self,
        argument: ArgumentSpec,
        keyword: str,
        inline: str | None,
        tokens: Sequence[str],
        i: int,
    ) -> int:
        assert argument.arity is not None

        if argument.is_flag:
            self._occur(argument, keyword)
            if inline is None:
                implicit = 1 if argument.action is Action.COUNT else True
                self._append(argument, [Token(keyword=keyword, implicit_value=implicit)])
            else:
                # e.g. "--verbose=false"
                self._append(argument, [Token(keyword=keyword, value=inline)])
            return i

        self._occur(argument, keyword)
        values = []
        if inline is not None:
            values.append(inline)
        else:
            if argument.action is Action.APPEND or argument.arity.max is None:
                limit = 1 if argument.action is Action.APPEND else len(tokens)
            else:
                limit = argument.arity.max - len(self.bindings.get(argument.identifier, ()))
            while i < len(tokens) and len(values) < limit:
                candidate = tokens[i]
                if candidate == self.end_of_options_delimiter:
                    break
                if not argument.allow_hyphen_values and is_option_like(candidate):
                    break
                values.append(candidate)
                i += 1
            if not values:
                raise MissingValueError(argument=argument, keyword=keyword, unused_tokens=list(tokens[i:]))

        split = [part for value in values for part in argument.split(value)]
        self._append(argument, [Token(keyword=keyword, value=value, index=index) for index, value in enumerate(split)])
        return i

    def _bind_positional(self, token: str) -> ArgumentSpec | None:
        for argument in self.node.positionals:
            assert argument.arity is not None
            count = len(self.bindings.get(argument.identifier, ()))
            if argument.arity.max is None or count < argument.arity.max:
                values = argument.split(token)
                self._append(
                    argument, [Token(value=value, index=count + index) for index, value in enumerate(values)]
                )
                return argument
        self._unknown(token, 0)
        return None

    def _occur(self, argument: ArgumentSpec, keyword: str):
        assert argument.arity is not None
        count = self.occurrences.get(argument.identifier, 0)
        if count and argument.action is Action.SET_TRUE:
            raise DuplicateArgumentError(argument=argument, token=Token(keyword=keyword))
        if count and argument.action is Action.SET and argument.arity.max is not None:
            if len(self.bindings.get(argument.identifier, ())) >= argument.arity.max:
                raise DuplicateArgumentError(argument=argument, token=Token(keyword=keyword))
        self.occurrences[argument.identifier] = count + 1

    def _append(self, argument: ArgumentSpec, tokens: list[Token]):
        logger.debug("Bound %r to %s.", [t.keyword or t.value for t in tokens], argument.identifier)
        self.bindings.setdefault(argument.identifier, []).extend(tokens)


def match(
    schema: CommandSpec,
    tokens: None | str | Iterable[str],
    *,
    end_of_options_delimiter: str = "--",
    allow_unknown: bool = False,
) -> MatchSet:
    """Bind ``tokens`` to the arguments and subcommands of ``schema``.

    Parameters
    ----------
    schema: CommandSpec
        Root of the command tree.
    tokens: None | str | Iterable[str]
        Either a string, or a list of strings. Defaults to ``sys.argv[1:]``.
    end_of_options_delimiter: str
        Everything after this special token is forced to be interpreted positionally.
        Set to an empty string to disable.
    allow_unknown: bool
        Collect unknown flags and surplus positionals into :attr:`MatchSet.unused`
        instead of raising :exc:`.UnknownArgumentError`.

    Raises
    ------
    UnknownArgumentError
        A token matches no flag, subcommand or free positional slot.
    MissingValueError
        A value-taking flag has no value after it.
    DuplicateArgumentError
        An argument was given again after reaching its maximum number of values.
    """
    tokens = normalize_tokens(tokens)
    matcher = _Matcher(schema, end_of_options_delimiter=end_of_options_delimiter, allow_unknown=allow_unknown)
    try:
        matcher.run(tokens)
    except ParseError as e:
        if e.command_chain is None:
            e.command_chain = tuple(matcher.chain)
        raise
    return MatchSet(
        bindings=matcher.bindings,
        command_chain=tuple(matcher.chain),
        trailing=tuple(matcher.trailing),
        unused=tuple(matcher.unused),
    )
