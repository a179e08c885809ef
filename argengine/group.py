from typing import Union

from attrs import field

from argengine.exceptions import SchemaConflictError
from argengine.utils import frozen, to_tuple_converter


def _at_least_two(instance, attribute, value):
    if len(value) < 2:
        raise SchemaConflictError(f"{type(instance).__name__} needs at least 2 members, got {value!r}.")
    if len(set(value)) != len(value):
        raise SchemaConflictError(f"{type(instance).__name__} has duplicate members: {value!r}.")


@frozen
class MutuallyExclusive:
    """At most one member may be supplied; with ``required``, exactly one.

    A named group resolves to the identifier of the supplied member.
    """

    members: tuple[str, ...] = field(converter=to_tuple_converter, validator=_at_least_two)
    required: bool = False
    name: str = field(default="", kw_only=True)


@frozen
class RequiresAll:
    """If any member is supplied, all members must be supplied."""

    members: tuple[str, ...] = field(converter=to_tuple_converter, validator=_at_least_two)
    name: str = field(default="", kw_only=True)


@frozen
class Requires:
    """If ``source`` is supplied, every one of ``targets`` must be supplied too."""

    source: str
    targets: tuple[str, ...] = field(converter=to_tuple_converter)
    name: str = field(default="", kw_only=True)

    def __attrs_post_init__(self):
        if not self.targets:
            raise SchemaConflictError(f"Requires({self.source!r}) needs at least one target.")
        if self.source in self.targets:
            raise SchemaConflictError(f"{self.source!r} cannot require itself.")

    @property
    def members(self) -> tuple[str, ...]:
        return (self.source,) + self.targets


@frozen
class ConflictsWith:
    """``a`` and ``b`` may not both be supplied."""

    a: str
    b: str
    name: str = field(default="", kw_only=True)

    def __attrs_post_init__(self):
        if self.a == self.b:
            raise SchemaConflictError(f"{self.a!r} cannot conflict with itself.")

    @property
    def members(self) -> tuple[str, ...]:
        return (self.a, self.b)


GroupSpec = Union[MutuallyExclusive, RequiresAll, Requires, ConflictsWith]
