__all__ = [
    "ConfigError",
    "ConfigFromFile",
    "Dict",
    "Env",
    "Json",
    "Toml",
    "Yaml",
]

from argengine.config._common import ConfigError, ConfigFromFile, Dict
from argengine.config._env import Env
from argengine.config._json import Json
from argengine.config._toml import Toml
from argengine.config._yaml import Yaml
