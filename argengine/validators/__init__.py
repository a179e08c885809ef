__all__ = [
    "Number",
    "bound_groups",
    "check_group",
    "conflicts_with",
    "mutually_exclusive",
    "requires",
    "requires_all",
]

from argengine.validators._group import (
    bound_groups,
    check_group,
    conflicts_with,
    mutually_exclusive,
    requires,
    requires_all,
)
from argengine.validators._number import Number
