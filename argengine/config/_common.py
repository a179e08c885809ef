import errno
import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from contextlib import suppress
from pathlib import Path
from typing import Any

from attrs import define, field

from argengine.utils import to_tuple_converter


class ConfigError(Exception):
    """A configuration file exists but could not be loaded."""


def _normalize_key(key: str) -> str:
    return str(key).replace("-", "_").replace(".", "_")


def flatten(config: Mapping[str, Any], prefix: str = "", delimiter: str = "_") -> dict[str, Any]:
    """Flatten nested tables into identifier keys.

    ``{"database": {"url": ...}}`` becomes ``{"database_url": ...}``; dashes become underscores.
    """
    out = {}
    for key, value in config.items():
        key = prefix + _normalize_key(key)
        if isinstance(value, Mapping):
            out.update(flatten(value, key + delimiter, delimiter))
        else:
            out[key] = value
    return out


@define(kw_only=True)
class ConfigBase(ABC):
    """Base class for configuration sources.

    A source is an ``identifier -> value | None`` callable, directly usable as the
    ``config`` lookup of :func:`~argengine.parse`. Values are returned as loaded
    (strings, numbers, booleans or lists); the resolver stringifies and coerces them.
    """

    root_keys: Iterable[str] = field(default=(), converter=to_tuple_converter)
    """Only consider the table found by walking these keys from the document root."""

    _source: str | None = field(default=None, alias="source")

    @property
    @abstractmethod
    def config(self) -> dict[str, Any]:
        """Return the configuration dictionary."""
        raise NotImplementedError

    @property
    @abstractmethod
    def source(self) -> str:
        """Return a string identifying the configuration source for error messages."""
        raise NotImplementedError

    @property
    def flattened(self) -> dict[str, Any]:
        config: Any = self.config
        try:
            for key in self.root_keys:
                config = config[key]
        except (KeyError, TypeError):
            return {}
        if not isinstance(config, Mapping):
            return {}
        return flatten(config)

    def __call__(self, identifier: str) -> Any:
        return self.flattened.get(identifier)


class FileCacheKey:
    """Abstraction to quickly check if a file needs to be read again.

    If a newly instantiated ``CacheKey`` doesn't equal a previously instantiated ``CacheKey``,
    then the file needs to be re-read.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).absolute()
        if self.path.exists():
            stat = self.path.stat()
            self._mtime = stat.st_mtime
            self._size = stat.st_size
        else:
            self._mtime = None
            self._size = None

    def __eq__(self, other):
        if not isinstance(other, type(self)):
            return False

        return self._mtime == other._mtime and self._size == other._size and self.path == other.path


@define
class ConfigFromFile(ConfigBase):
    """Configuration source that loads from a file.

    Supports file caching and parent directory searching.
    """

    path: str | Path = field(converter=Path)
    must_exist: bool = field(default=False, kw_only=True)
    search_parents: bool = field(default=False, kw_only=True)

    _config: dict[str, Any] | None = field(default=None, init=False, repr=False)
    "Loaded configuration structure (to be loaded by subclassed ``_load_config`` method)."

    _config_cache_key: FileCacheKey | None = field(default=None, init=False, repr=False)
    "Conditions under which ``_config`` was loaded."

    @abstractmethod
    def _load_config(self, path: Path) -> dict[str, Any]:
        """Load the config dictionary from path.

        Do **not** do any downstream caching; ``ConfigFromFile`` handles caching.

        Parameters
        ----------
        path: Path
            Path to the file. Guaranteed to exist.

        Returns
        -------
        dict
            Loaded configuration.
        """
        raise NotImplementedError

    @property
    def config(self) -> dict[str, Any]:
        assert isinstance(self.path, Path)
        for parent in self.path.expanduser().resolve().absolute().parents:
            candidate = parent / self.path.name
            if candidate.exists():
                cache_key = FileCacheKey(candidate)
                if self._config_cache_key == cache_key:
                    return self._config or {}

                try:
                    self._config = self._load_config(candidate) or {}
                    self._config_cache_key = cache_key
                except ConfigError:
                    raise
                except Exception as e:
                    msg = getattr(type(e), "__name__", "")
                    with suppress(IndexError):
                        exception_msg = e.args[0]
                        if msg:
                            msg += ": "
                        msg += str(exception_msg)
                    raise ConfigError(f"{candidate}: {msg}") from e
                return self._config
            elif self.search_parents:
                # Continue iterating over parents.
                continue
            elif self.must_exist:
                raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(self.path))
            else:
                break

        # No matching file was found.
        if self.must_exist:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(self.path))

        self._config = {}
        return self._config

    @property
    def source(self) -> str:
        """Return a string identifying the configuration source for error messages."""
        if self._source is not None:
            return self._source
        assert isinstance(self.path, Path)
        return str(self.path.absolute())


@define
class Dict(ConfigBase):
    """Configuration source from an in-memory dictionary.

    Useful for programmatically generated configurations.
    """

    data: dict[str, Any]

    @property
    def config(self) -> dict[str, Any]:
        return self.data

    @property
    def source(self) -> str:
        """Return a string identifying the configuration source for error messages."""
        if self._source is not None:
            return self._source
        return "dict"
