import os
from collections.abc import Mapping

from attrs import define, field


@define
class Env:
    """Environment lookup for :attr:`.ArgumentSpec.env_var` fallbacks.

    Reads ``environ`` (the live process environment by default) at lookup time.
    Empty values are treated as unset.
    """

    environ: Mapping[str, str] | None = field(default=None, repr=False)
    prefix: str = field(default="", kw_only=True)
    """Prepended to every looked-up name, e.g. ``"MYAPP_"`` turns ``PORT`` into ``MYAPP_PORT``."""

    def __call__(self, name: str) -> str | None:
        environ = os.environ if self.environ is None else self.environ
        return environ.get(self.prefix + name) or None
