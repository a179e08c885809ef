import logging
from collections.abc import Mapping
from typing import Any

from argengine.argument import ArgumentSpec
from argengine.command import CommandSpec, arguments_in_scope, groups_in_scope
from argengine.exceptions import (
    DuplicateArgumentError,
    MissingRequiredArgumentError,
    MissingSubcommandError,
    ParseError,
)
from argengine.match import MatchSet
from argengine.utils import Lookup, as_lookup
from argengine.validators import bound_groups, check_group

logger = logging.getLogger(__name__)


def _has_fallback(argument: ArgumentSpec, env: Lookup, config: Lookup) -> bool:
    if any(env(name) for name in argument.env_var):
        return True
    return config(argument.identifier) is not None


def validate(
    schema: CommandSpec,
    match_set: MatchSet,
    *,
    env: None | Mapping[str, Any] | Lookup = None,
    config: None | Mapping[str, Any] | Lookup = None,
) -> None:
    """Check group constraints and per-argument requirements for the matched command chain.

    Validation runs once, over the fully resolved chain; groups and arguments of every
    node along the chain are in scope.

    Parameters
    ----------
    schema: CommandSpec
        Root of the command tree.
    match_set: MatchSet
        Output of :func:`~argengine.match.match`.
    env: None | Mapping | Callable
        Environment lookup; a required argument with a set environment variable is satisfied.
    config: None | Mapping | Callable
        Config lookup keyed by identifier; a required argument with a config value is satisfied.

    Raises
    ------
    ConflictingArgumentsError
    MissingRequiredGroupError
    MissingDependencyError
    MissingRequiredArgumentError
    DuplicateArgumentError
    """
    nodes = schema.chain(match_set.command_chain)
    arguments = {argument.identifier: argument for argument in arguments_in_scope(nodes)}
    env_lookup, config_lookup = as_lookup(env), as_lookup(config)

    groups = groups_in_scope(nodes)
    named_groups = {group.name: group for group in groups if group.name}
    bound = bound_groups(groups, match_set.bound)

    def display(identifier: str) -> str:
        group = named_groups.get(identifier)
        if group is not None:
            supplied = [member for member in group.members if member in bound]
            if supplied:
                return display(supplied[0])
            return "{" + ", ".join(display(member) for member in group.members) + "}"
        tokens = match_set.tokens(identifier)
        if tokens and tokens[0].keyword:
            return tokens[0].keyword
        return arguments[identifier].name

    try:
        for group in groups:
            check_group(group, bound, display)

        for identifier, argument in arguments.items():
            assert argument.arity is not None
            tokens = match_set.tokens(identifier)
            if not tokens:
                if argument.required and not _has_fallback(argument, env_lookup, config_lookup):
                    raise MissingRequiredArgumentError(argument=argument)
            elif not argument.is_flag and argument.arity.max is not None and len(tokens) > argument.arity.max:
                raise DuplicateArgumentError(argument=argument, token=tokens[argument.arity.max])

        leaf = nodes[-1]
        if leaf.children and leaf.subcommand_required:
            raise MissingSubcommandError(available=leaf.child_names)
    except ParseError as e:
        if e.command_chain is None:
            e.command_chain = match_set.command_chain
        raise

    logger.debug("Validated command chain %r.", match_set.command_chain)
