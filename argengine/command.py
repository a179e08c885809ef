"""Schema construction.

:class:`Command` is the mutable builder; :meth:`Command.build` freezes a tree of
builders into a tree of :class:`CommandSpec`, the schema consumed by :func:`~argengine.parse`.
Every schema problem is reported eagerly as a :exc:`.SchemaConflictError`.
"""

import sys
from collections.abc import Callable, Iterable, Iterator, Sequence
from itertools import chain
from typing import Any, Optional

from attrs import define, field

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from argengine.argument import Action, ArgumentSpec
from argengine.exceptions import SchemaConflictError
from argengine.group import ConflictsWith, GroupSpec, Requires
from argengine.utils import frozen, to_tuple_converter


@frozen
class CommandSpec:
    """Immutable node of the subcommand tree. The root node is the program itself."""

    name: str
    help: str = ""
    arguments: tuple[ArgumentSpec, ...] = field(default=(), converter=to_tuple_converter)
    groups: tuple[GroupSpec, ...] = field(default=(), converter=to_tuple_converter)
    children: tuple["CommandSpec", ...] = field(default=(), converter=to_tuple_converter)
    aliases: tuple[str, ...] = field(default=(), converter=to_tuple_converter)
    handler: Callable[..., Any] | None = field(default=None, kw_only=True)
    subcommand_required: bool = field(default=False, kw_only=True)
    passthrough: bool = field(default=False, kw_only=True)

    def child(self, token: str) -> Optional["CommandSpec"]:
        """Child whose name or alias is ``token``."""
        for child in self.children:
            if token == child.name or token in child.aliases:
                return child
        return None

    def chain(self, names: Iterable[str]) -> tuple["CommandSpec", ...]:
        """Nodes from this (root) node down through the subcommand ``names``."""
        nodes = [self]
        for name in names:
            child = nodes[-1].child(name)
            if child is None:
                raise KeyError(name)
            nodes.append(child)
        return tuple(nodes)

    @property
    def positionals(self) -> tuple[ArgumentSpec, ...]:
        return tuple(x for x in self.arguments if x.is_positional)

    @property
    def named(self) -> tuple[ArgumentSpec, ...]:
        return tuple(x for x in self.arguments if not x.is_positional)

    @property
    def global_arguments(self) -> tuple[ArgumentSpec, ...]:
        return tuple(x for x in self.arguments if x.is_global)

    @property
    def child_names(self) -> tuple[str, ...]:
        return tuple(x.name for x in self.children)

    def __getitem__(self, identifier: str) -> ArgumentSpec:
        for argument in self.arguments:
            if argument.identifier == identifier:
                return argument
        raise KeyError(identifier)

    def __contains__(self, identifier: str) -> bool:
        return any(x.identifier == identifier for x in self.arguments)


def _implied_groups(argument: ArgumentSpec) -> list[GroupSpec]:
    groups: list[GroupSpec] = []
    if argument.requires:
        groups.append(Requires(argument.identifier, argument.requires))
    for other in argument.conflicts_with:
        groups.append(ConflictsWith(argument.identifier, other))
    return groups


@define(eq=False)
class Command:
    """Incrementally declare a command: its arguments, groups and subcommands.

    Example
    -------

    .. code-block:: python

        from argengine import ArgumentSpec, Command
        from argengine.group import MutuallyExclusive

        root = Command("gh")
        create = root.subcommand("repo").subcommand("create")
        create.add_argument(ArgumentSpec.positional("name"))
        create.flag("public").flag("private")
        create.add_group(MutuallyExclusive(["public", "private"], required=True, name="visibility"))
        schema = root.build()
    """

    name: str
    help: str = ""
    aliases: tuple[str, ...] = field(default=(), converter=to_tuple_converter)
    handler: Callable[..., Any] | None = field(default=None, kw_only=True)
    subcommand_required: bool = field(default=False, kw_only=True)
    passthrough: bool = field(default=False, kw_only=True)

    _arguments: list[ArgumentSpec] = field(factory=list, init=False, repr=False)
    _groups: list[GroupSpec] = field(factory=list, init=False, repr=False)
    _children: list["Command"] = field(factory=list, init=False, repr=False)
    _parent: Optional["Command"] = field(default=None, init=False, repr=False)

    ###########
    # Queries #
    ###########
    @property
    def parent(self) -> Optional["Command"]:
        return self._parent

    @property
    def arguments(self) -> tuple[ArgumentSpec, ...]:
        return tuple(self._arguments)

    @property
    def groups(self) -> tuple[GroupSpec, ...]:
        return tuple(self._groups)

    @property
    def children(self) -> tuple["Command", ...]:
        return tuple(self._children)

    def ancestors(self) -> Iterator["Command"]:
        node = self._parent
        while node is not None:
            yield node
            node = node._parent

    def walk(self) -> Iterator["Command"]:
        """This node and all of its descendants, depth first."""
        yield self
        for child in self._children:
            yield from child.walk()

    def _inherited_flags(self) -> dict[str, ArgumentSpec]:
        return {
            flag: argument
            for node in self.ancestors()
            for argument in node._arguments
            if argument.is_global
            for flag in argument.flags
        }

    def _visible_arguments(self) -> set[str]:
        return {x.identifier for node in chain((self,), self.ancestors()) for x in node._arguments}

    def _visible_group_names(self) -> set[str]:
        return {x.name for node in chain((self,), self.ancestors()) for x in node._groups if x.name}

    def _visible_identifiers(self) -> set[str]:
        """Identifiers of arguments and named groups in this node and its ancestors."""
        out = set()
        for node in chain((self,), self.ancestors()):
            out.update(x.identifier for x in node._arguments)
            out.update(x.name for x in node._groups if x.name)
        return out

    def _subtree_identifiers(self) -> set[str]:
        out = set()
        for node in self.walk():
            out.update(x.identifier for x in node._arguments)
            out.update(x.name for x in node._groups if x.name)
        return out

    ################
    # Construction #
    ################
    def add_argument(self, spec: ArgumentSpec) -> Self:
        """Declare an argument on this command.

        Raises
        ------
        SchemaConflictError
            Identifier or flag collision, or an invalid positional layout.
        """
        if spec.identifier in self._visible_identifiers() or any(
            spec.identifier in child._subtree_identifiers() for child in self._children
        ):
            raise SchemaConflictError(f'Command "{self.name}": identifier {spec.identifier!r} is already declared.')

        taken = {flag: argument for argument in self._arguments for flag in argument.flags}
        taken.update(self._inherited_flags())
        for flag in spec.flags:
            if flag in taken:
                raise SchemaConflictError(
                    f'Command "{self.name}": flag {flag} of {spec.identifier!r} '
                    f"collides with {taken[flag].identifier!r}."
                )
        if len(set(spec.flags)) != len(spec.flags):
            raise SchemaConflictError(f"Argument {spec.identifier!r} declares the same flag twice.")

        if spec.is_global:
            # Descendants already attached would now inherit these flags.
            for descendant in chain.from_iterable(child.walk() for child in self._children):
                for argument in descendant._arguments:
                    if set(argument.flags) & set(spec.flags):
                        raise SchemaConflictError(
                            f"Global argument {spec.identifier!r} collides with {argument.identifier!r} "
                            f'of command "{descendant.name}".'
                        )

        if spec.is_positional:
            self._check_positional(spec)

        self._arguments.append(spec)
        return self

    def _check_positional(self, spec: ArgumentSpec):
        assert spec.arity is not None
        positionals = [x for x in self._arguments if x.is_positional]
        if not positionals:
            return
        last = positionals[-1]
        assert last.arity is not None
        if last.arity.unbounded:
            if spec.arity.unbounded:
                raise SchemaConflictError(
                    f"Cannot have 2 unbounded positional arguments ({last.identifier!r}, {spec.identifier!r})."
                )
            raise SchemaConflictError(
                f"Positional {spec.identifier!r} cannot follow unbounded positional {last.identifier!r}."
            )
        if spec.required and not all(x.required for x in positionals):
            raise SchemaConflictError(f"Required positional {spec.identifier!r} cannot follow an optional positional.")

    def add_group(self, spec: GroupSpec) -> Self:
        """Declare a constraint over arguments of this command or its ancestors.

        :class:`.Requires` and :class:`.ConflictsWith` may also name a previously declared named
        group; such a group counts as supplied when any of its members is.

        Raises
        ------
        SchemaConflictError
            The group references an undeclared identifier, or its name is already in use.
        """
        known = self._visible_arguments()
        if isinstance(spec, (Requires, ConflictsWith)):
            known |= self._visible_group_names()
        unknown = [x for x in spec.members if x not in known]
        if unknown:
            raise SchemaConflictError(f'Command "{self.name}": group references unknown argument(s) {unknown}.')
        if spec.name and (
            spec.name in self._visible_identifiers()
            or any(spec.name in child._subtree_identifiers() for child in self._children)
        ):
            raise SchemaConflictError(f'Command "{self.name}": group name {spec.name!r} is already declared.')
        self._groups.append(spec)
        return self

    def add_subcommand(self, spec: "Command") -> Self:
        """Attach ``spec`` (and its subtree) as a child of this command.

        Raises
        ------
        SchemaConflictError
            Name collision among siblings, identifier collision along the chain,
            flag collision with inherited global arguments, or this command has a handler
            while requiring a subcommand.
        """
        if spec._parent is not None:
            raise SchemaConflictError(f'Command "{spec.name}" is already attached to "{spec._parent.name}".')
        if any(node is self for node in spec.walk()):
            raise SchemaConflictError(f'Command "{spec.name}" cannot be its own descendant.')
        if self.handler is not None and self.subcommand_required:
            raise SchemaConflictError(
                f'Command "{self.name}" has a handler and requires a subcommand; mark the subcommand optional.'
            )

        sibling_names = {name for child in self._children for name in (child.name, *child.aliases)}
        for name in (spec.name, *spec.aliases):
            if name in sibling_names:
                raise SchemaConflictError(f'Command "{self.name}" already has a subcommand named {name!r}.')

        collisions = self._visible_identifiers() & spec._subtree_identifiers()
        if collisions:
            raise SchemaConflictError(
                f'Subcommand "{spec.name}" redeclares identifier(s) {sorted(collisions)} of command "{self.name}".'
            )

        inherited = self._inherited_flags()
        inherited.update(
            {flag: argument for argument in self._arguments if argument.is_global for flag in argument.flags}
        )
        for descendant in spec.walk():
            for argument in descendant._arguments:
                for flag in argument.flags:
                    if flag in inherited:
                        raise SchemaConflictError(
                            f'Command "{descendant.name}": flag {flag} of {argument.identifier!r} collides with '
                            f"inherited global {inherited[flag].identifier!r}."
                        )

        spec._parent = self
        self._children.append(spec)
        return self

    ###############
    # Convenience #
    ###############
    def argument(self, identifier: str, **kwargs) -> Self:
        """Declare a positional argument."""
        return self.add_argument(ArgumentSpec.positional(identifier, **kwargs))

    def option(self, identifier: str, short: str | None = None, **kwargs) -> Self:
        """Declare a named, value-taking argument."""
        return self.add_argument(ArgumentSpec.named(identifier, short, **kwargs))

    def flag(self, identifier: str, short: str | None = None, **kwargs) -> Self:
        """Declare a presence flag (or a counter, with ``action=Action.COUNT``)."""
        kwargs.setdefault("action", Action.SET_TRUE)
        return self.add_argument(ArgumentSpec.named(identifier, short, **kwargs))

    def subcommand(self, name: str, help: str = "", **kwargs) -> "Command":
        """Create, attach and return a child command builder."""
        child = type(self)(name, help, **kwargs)
        self.add_subcommand(child)
        return child

    def build(self) -> CommandSpec:
        """Freeze this subtree into a :class:`CommandSpec`.

        Raises
        ------
        SchemaConflictError
            A ``requires``/``conflicts_with`` target is not declared in this command or an ancestor.
        """
        if self._children and self.handler is not None and self.subcommand_required:
            raise SchemaConflictError(
                f'Command "{self.name}" has a handler and requires a subcommand; mark the subcommand optional.'
            )
        known = self._visible_arguments() | self._visible_group_names()

        groups = list(self._groups)
        for argument in self._arguments:
            for target in chain(argument.requires, argument.conflicts_with):
                if target not in known:
                    raise SchemaConflictError(
                        f'Command "{self.name}": {argument.identifier!r} references unknown argument {target!r}.'
                    )
            groups.extend(_implied_groups(argument))

        return CommandSpec(
            self.name,
            self.help,
            self._arguments,
            groups,
            [child.build() for child in self._children],
            self.aliases,
            handler=self.handler,
            subcommand_required=self.subcommand_required,
            passthrough=self.passthrough,
        )


def arguments_in_scope(nodes: Sequence[CommandSpec]) -> list[ArgumentSpec]:
    """All arguments declared along a command chain, root first."""
    return [argument for node in nodes for argument in node.arguments]


def groups_in_scope(nodes: Sequence[CommandSpec]) -> list[GroupSpec]:
    return [group for node in nodes for group in node.groups]
