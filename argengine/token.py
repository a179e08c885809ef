from typing import Any

from attrs import evolve, field

from argengine.utils import UNSET, frozen


@frozen(kw_only=True)
class Token:
    """Tracks how a user supplied a value to the application."""

    keyword: str | None = None
    """The flag (e.g. ``--port``) the value was supplied with; :obj:`None` for positional values."""

    value: str = ""
    source: str = "cli"
    index: int = field(default=0, kw_only=True)
    """Position of this value within a single occurrence (multi-value flags and delimiter splits)."""

    implicit_value: Any = field(default=UNSET, kw_only=True)
    """Value implied by the mere presence of a flag (``True`` for presence flags, ``1`` for counters)."""

    @property
    def is_implicit(self) -> bool:
        return self.implicit_value is not UNSET

    def evolve(self, **kwargs) -> "Token":
        return evolve(self, **kwargs)
