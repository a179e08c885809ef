from collections.abc import Callable, Collection, Iterable

from argengine.exceptions import (
    ConflictingArgumentsError,
    MissingDependencyError,
    MissingRequiredGroupError,
)
from argengine.group import ConflictsWith, GroupSpec, MutuallyExclusive, Requires, RequiresAll

DisplayName = Callable[[str], str]


def _identity(identifier: str) -> str:
    return identifier


def mutually_exclusive(group: MutuallyExclusive, bound: Collection[str], display: DisplayName = _identity):
    supplied = [member for member in group.members if member in bound]
    if len(supplied) > 1:
        a, b = supplied[:2]
        raise ConflictingArgumentsError(a=a, b=b, display=(display(a), display(b)))
    if group.required and not supplied:
        raise MissingRequiredGroupError(group=group, member_names=tuple(display(x) for x in group.members))


def requires_all(group: RequiresAll, bound: Collection[str], display: DisplayName = _identity):
    supplied = [member for member in group.members if member in bound]
    if not supplied or len(supplied) == len(group.members):
        return
    missing = tuple(member for member in group.members if member not in bound)
    present = supplied[0]
    raise MissingDependencyError(
        present=present,
        missing=missing,
        display=(display(present), tuple(display(x) for x in missing)),
    )


def requires(group: Requires, bound: Collection[str], display: DisplayName = _identity):
    if group.source not in bound:
        return
    missing = tuple(target for target in group.targets if target not in bound)
    if missing:
        raise MissingDependencyError(
            present=group.source,
            missing=missing,
            display=(display(group.source), tuple(display(x) for x in missing)),
        )


def conflicts_with(group: ConflictsWith, bound: Collection[str], display: DisplayName = _identity):
    if group.a in bound and group.b in bound:
        raise ConflictingArgumentsError(a=group.a, b=group.b, display=(display(group.a), display(group.b)))


def bound_groups(groups: Iterable[GroupSpec], bound: Collection[str]) -> frozenset[str]:
    """``bound`` plus the name of every named group with at least one bound member.

    A group may only reference groups declared before it, so one ordered pass suffices.
    """
    out = set(bound)
    for group in groups:
        if group.name and any(member in out for member in group.members):
            out.add(group.name)
    return frozenset(out)


def check_group(group: GroupSpec, bound: Collection[str], display: DisplayName = _identity):
    """Raise the appropriate :class:`.ParseError` if ``bound`` identifiers violate ``group``."""
    if isinstance(group, MutuallyExclusive):
        mutually_exclusive(group, bound, display)
    elif isinstance(group, RequiresAll):
        requires_all(group, bound, display)
    elif isinstance(group, Requires):
        requires(group, bound, display)
    elif isinstance(group, ConflictsWith):
        conflicts_with(group, bound, display)
    else:
        raise TypeError(f"Unsupported group {group!r}.")
