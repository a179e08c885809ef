import sys
from pathlib import Path
from typing import Any

from argengine.config._common import ConfigFromFile

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


class Toml(ConfigFromFile):
    def _load_config(self, path: Path) -> dict[str, Any]:
        with path.open("rb") as f:
            return tomllib.load(f)
