import json
from pathlib import Path
from typing import Any

from argengine.config._common import ConfigError, ConfigFromFile


class Json(ConfigFromFile):
    def _load_config(self, path: Path) -> dict[str, Any]:
        with path.open() as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"{path}: line {e.lineno}, column {e.colno}: {e.msg}") from e
