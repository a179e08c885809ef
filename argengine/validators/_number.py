from collections.abc import Sequence
from typing import Any

from argengine.utils import frozen


@frozen(kw_only=True)
class Number:
    """Limit input number to a value range.

    Used by :class:`~argengine.coercion.Integer` and :class:`~argengine.coercion.Float`
    for their inclusive ``min``/``max`` bounds, and usable on its own inside a
    :class:`~argengine.coercion.Custom` coercion:

    .. code-block:: python

        from argengine import ArgumentSpec
        from argengine.coercion import Custom
        from argengine.validators import Number

        even_percent = Number(gte=0, lte=100, modulo=2)


        def parse_even_percent(s: str) -> int:
            value = int(s)
            even_percent(value)
            return value


        ArgumentSpec.named("level", value_kind=Custom(parse_even_percent))
    """

    lt: int | float | None = None
    """Input value must be **less than** this value."""

    lte: int | float | None = None
    """Input value must be **less than or equal** this value."""

    gt: int | float | None = None
    """Input value must be **greater than** this value."""

    gte: int | float | None = None
    """Input value must be **greater than or equal** this value."""

    modulo: int | float | None = None
    """Input value must be a multiple of this value."""

    def __call__(self, value: Any):
        if isinstance(value, Sequence):
            if isinstance(value, str):
                raise TypeError
            for v in value:
                self(v)
        else:
            if not isinstance(value, int | float):
                return

            if self.lt is not None and value >= self.lt:
                raise ValueError(f"must be < {self.lt}")

            if self.lte is not None and value > self.lte:
                raise ValueError(f"must be <= {self.lte}")

            if self.gt is not None and value <= self.gt:
                raise ValueError(f"must be > {self.gt}")

            if self.gte is not None and value < self.gte:
                raise ValueError(f"must be >= {self.gte}")

            if self.modulo is not None and value % self.modulo:
                raise ValueError(f"must be a multiple of {self.modulo}")
