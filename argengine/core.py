import logging
import os
import sys
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Optional

from attrs import define, field

from argengine.command import Command, CommandSpec
from argengine.exceptions import ParseError
from argengine.match import match
from argengine.panel import ErrorPanel
from argengine.resolve import ParseResult, resolve
from argengine.utils import Lookup, as_lookup, normalize_tokens, to_tuple_converter
from argengine.validate import validate

if TYPE_CHECKING:
    from rich.console import Console

logger = logging.getLogger(__name__)


def parse(
    schema: CommandSpec,
    tokens: None | str | Iterable[str] = None,
    env: None | Mapping[str, Any] | Lookup = None,
    config: None | Mapping[str, Any] | Lookup = None,
    *,
    end_of_options_delimiter: str = "--",
    allow_unknown: bool = False,
) -> ParseResult:
    """Match, validate and resolve ``tokens`` against ``schema``.

    The stages are all-or-nothing: any :exc:`.ParseError` aborts the whole parse.

    Parameters
    ----------
    schema: CommandSpec
        Frozen command tree, see :meth:`.Command.build`.
    tokens: None | str | Iterable[str]
        Either a string, or a list of strings. Defaults to ``sys.argv[1:]``.
    env: None | Mapping | Callable
        Environment lookup used for :attr:`.ArgumentSpec.env_var` fallbacks.
        :obj:`None` disables environment fallback; pass :data:`os.environ` explicitly to use the process environment.
    config: None | Mapping | Callable
        ``identifier -> value`` lookup, e.g. a :mod:`argengine.config` source.
    end_of_options_delimiter: str
        All tokens after this delimiter are force-interpreted as positional arguments.
    allow_unknown: bool
        Collect unrecognized tokens into :attr:`.ParseResult.unused` instead of failing.

    Returns
    -------
    ParseResult

    Raises
    ------
    ParseError
        Any user-input error; see :mod:`argengine.exceptions`.
    """
    tokens = normalize_tokens(tokens)
    try:
        match_set = match(
            schema,
            tokens,
            end_of_options_delimiter=end_of_options_delimiter,
            allow_unknown=allow_unknown,
        )
        validate(schema, match_set, env=env, config=config)
        result = resolve(schema, match_set, env=env, config=config)
    except ParseError as e:
        e.root_input_tokens = tokens
        raise
    logger.debug("Parsed %r into command %r.", tokens, result.command_chain)
    return result


def _schema_converter(value: Command | CommandSpec) -> CommandSpec:
    if isinstance(value, Command):
        return value.build()
    return value


def _default_env() -> Mapping[str, str]:
    return os.environ


def _config_converter(value) -> tuple[Mapping[str, Any] | Lookup, ...]:
    # A single mapping or callable is one source, not an iterable of sources.
    if isinstance(value, Mapping) or callable(value):
        return (value,)
    return to_tuple_converter(value)


@define
class App:
    """Process-facing shell around :func:`parse`.

    Reads the process environment, layers config sources, renders errors with
    :mod:`rich` and dispatches to the handler of the selected command.
    """

    schema: CommandSpec = field(converter=_schema_converter)

    env: None | Mapping[str, Any] | Lookup = field(factory=_default_env, kw_only=True)

    config: tuple[Mapping[str, Any] | Lookup, ...] = field(default=(), converter=_config_converter, kw_only=True)
    """Config lookups in priority order; the first one that knows an identifier wins."""

    _error_console: Optional["Console"] = field(default=None, alias="error_console", kw_only=True)

    print_error: bool = field(default=True, kw_only=True)
    """Print a rich-formatted error on error."""

    exit_on_error: bool = field(default=True, kw_only=True)
    """If there is an error parsing the CLI tokens, invoke ``sys.exit(1)``. Otherwise, re-raise."""

    end_of_options_delimiter: str = field(default="--", kw_only=True)

    @property
    def error_console(self) -> "Console":
        if self._error_console is None:
            from rich.console import Console

            self._error_console = Console(stderr=True)
        return self._error_console

    def config_lookup(self, identifier: str) -> Any:
        for source in self.config:
            value = as_lookup(source)(identifier)
            if value is not None:
                return value
        return None

    def _parse(
        self,
        tokens,
        *,
        allow_unknown: bool,
        error_console: Optional["Console"],
        print_error: bool | None,
        exit_on_error: bool | None,
    ) -> ParseResult:
        try:
            return parse(
                self.schema,
                tokens,
                self.env,
                self.config_lookup,
                end_of_options_delimiter=self.end_of_options_delimiter,
                allow_unknown=allow_unknown,
            )
        except ParseError as e:
            e.console = error_console or self.error_console
            if self.print_error if print_error is None else print_error:
                e.console.print(ErrorPanel(e))
            if self.exit_on_error if exit_on_error is None else exit_on_error:
                sys.exit(1)
            raise

    def parse_args(
        self,
        tokens: None | str | Iterable[str] = None,
        *,
        error_console: Optional["Console"] = None,
        print_error: bool | None = None,
        exit_on_error: bool | None = None,
    ) -> ParseResult:
        """Interpret ``tokens`` into a :class:`.ParseResult`.

        Parameters
        ----------
        tokens: None | str | Iterable[str]
            Either a string, or a list of strings. Defaults to ``sys.argv[1:]``.
        error_console: ~rich.console.Console
            Console to print error messages. Defaults to :attr:`App.error_console`.
        print_error: bool | None
            Overrides :attr:`App.print_error`.
        exit_on_error: bool | None
            Overrides :attr:`App.exit_on_error`.
        """
        return self._parse(
            tokens,
            allow_unknown=False,
            error_console=error_console,
            print_error=print_error,
            exit_on_error=exit_on_error,
        )

    def parse_known_args(
        self,
        tokens: None | str | Iterable[str] = None,
        *,
        error_console: Optional["Console"] = None,
        print_error: bool | None = None,
        exit_on_error: bool | None = None,
    ) -> ParseResult:
        """Like :meth:`parse_args`, but unrecognized tokens land in :attr:`.ParseResult.unused`.

        Useful to peek at a few options (e.g. verbosity) before the real parse.
        """
        return self._parse(
            tokens,
            allow_unknown=True,
            error_console=error_console,
            print_error=print_error,
            exit_on_error=exit_on_error,
        )

    def handler_for(self, result: ParseResult) -> Callable[..., Any] | None:
        """Handler of the deepest command in ``result.command_chain`` that has one."""
        for node in reversed(self.schema.chain(result.command_chain)):
            if node.handler is not None:
                return node.handler
        return None

    def __call__(self, tokens: None | str | Iterable[str] = None, **kwargs) -> Any:
        """Parse ``tokens`` and invoke the selected command's handler with the :class:`.ParseResult`.

        Returns the handler's return value, or the :class:`.ParseResult` itself when
        no command along the chain has a handler.
        """
        result = self.parse_args(tokens, **kwargs)
        handler = self.handler_for(result)
        if handler is None:
            return result
        logger.debug("Dispatching %r to %s.", result.command_chain, getattr(handler, "__name__", handler))
        return handler(result)
