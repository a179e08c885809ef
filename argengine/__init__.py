__version__ = "0.1.0"

__all__ = [
    "Action",
    "App",
    "ArgumentSpec",
    "Arity",
    "Boolean",
    "Choice",
    "Command",
    "CommandSpec",
    "ConflictingArgumentsError",
    "ConflictsWith",
    "Custom",
    "DuplicateArgumentError",
    "ErrorPanel",
    "Float",
    "Integer",
    "InvalidValueError",
    "Kind",
    "MatchSet",
    "MissingDependencyError",
    "MissingRequiredArgumentError",
    "MissingRequiredGroupError",
    "MissingSubcommandError",
    "MissingValueError",
    "MutuallyExclusive",
    "Origin",
    "ParseError",
    "ParseResult",
    "Plugin",
    "PluginRegistry",
    "Requires",
    "RequiresAll",
    "ResolvedValue",
    "SchemaConflictError",
    "String",
    "Token",
    "UNSET",
    "UnknownArgumentError",
    "config",
    "default_name_transform",
    "match",
    "parse",
    "resolve",
    "types",
    "validate",
    "validators",
]

from argengine import validators
from argengine.argument import Action, ArgumentSpec, Arity, Kind
from argengine.coercion import Boolean, Choice, Custom, Float, Integer, String
from argengine.command import Command, CommandSpec
from argengine.core import App, parse
from argengine.exceptions import (
    ConflictingArgumentsError,
    DuplicateArgumentError,
    InvalidValueError,
    MissingDependencyError,
    MissingRequiredArgumentError,
    MissingRequiredGroupError,
    MissingSubcommandError,
    MissingValueError,
    ParseError,
    SchemaConflictError,
    UnknownArgumentError,
)
from argengine.group import ConflictsWith, MutuallyExclusive, Requires, RequiresAll
from argengine.match import MatchSet, match
from argengine.panel import ErrorPanel
from argengine.registry import Plugin, PluginRegistry
from argengine.resolve import Origin, ParseResult, ResolvedValue, resolve
from argengine.token import Token
from argengine.utils import UNSET, default_name_transform
from argengine.validate import validate

# Opt-in submodules, loaded on first access.
_LAZY_IMPORTS = {
    "config": "argengine.config",  # TOML/JSON/YAML/env sources; yaml and tomli are imported here
    "types": "argengine.types",
}


def __getattr__(name: str):
    if name in _LAZY_IMPORTS:
        import importlib

        module = importlib.import_module(_LAZY_IMPORTS[name])
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
