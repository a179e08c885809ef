"""Assemble a command tree out of independently written plugins.

.. code-block:: python

    from argengine import App, Command, Plugin, PluginRegistry


    def build_greet() -> Command:
        return Command("greet", "Say hello.").argument("name")


    def greet(result):
        print(f"Hello {result['name']}")


    registry = PluginRegistry()
    registry.register(Plugin("greet", build_greet, greet, version="1.0.0"))
    app = App(registry.build_schema(Command("tool")))
    app(["greet", "world"])
"""

import logging
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from attrs import define, field

from argengine.command import Command, CommandSpec
from argengine.exceptions import MissingSubcommandError, SchemaConflictError

if TYPE_CHECKING:
    from argengine.resolve import ParseResult

logger = logging.getLogger(__name__)


@define
class Plugin:
    name: str
    """Subcommand name the plugin is reachable under."""

    build: Callable[[], Command]
    """Returns a fresh, unattached :class:`.Command` builder named :attr:`name`."""

    execute: Callable[..., Any]
    """Called with the :class:`.ParseResult` (plus any extra dispatch arguments)."""

    version: str = field(default="", kw_only=True)
    description: str = field(default="", kw_only=True)


@define
class PluginRegistry:
    _plugins: dict[str, Plugin] = field(factory=dict, init=False, repr=False)

    def register(self, plugin: Plugin) -> Plugin:
        """Add ``plugin``; registration order is the subcommand order.

        Raises
        ------
        SchemaConflictError
            A plugin with the same name is already registered.
        """
        if plugin.name in self._plugins:
            raise SchemaConflictError(f"Plugin {plugin.name!r} is already registered.")
        self._plugins[plugin.name] = plugin
        logger.debug("Registered plugin %s %s.", plugin.name, plugin.version)
        return plugin

    def get(self, name: str) -> Plugin | None:
        return self._plugins.get(name)

    def __getitem__(self, name: str) -> Plugin:
        return self._plugins[name]

    def __contains__(self, name: str) -> bool:
        return name in self._plugins

    def __iter__(self) -> Iterator[Plugin]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def build_schema(self, root: Command) -> CommandSpec:
        """Attach every plugin's command below ``root`` and freeze the tree.

        A plugin command without its own handler gets :attr:`Plugin.execute`;
        a missing help text defaults to :attr:`Plugin.description`.
        """
        for plugin in self:
            command = plugin.build()
            if command.name != plugin.name:
                raise SchemaConflictError(
                    f"Plugin {plugin.name!r} built a command named {command.name!r}; the names must match."
                )
            if command.handler is None:
                command.handler = plugin.execute
            if not command.help:
                command.help = plugin.description
            root.add_subcommand(command)
        return root.build()

    def dispatch(self, result: "ParseResult", *args, **kwargs) -> Any:
        """Call :attr:`Plugin.execute` of the plugin selected by ``result.command_chain``.

        Raises
        ------
        MissingSubcommandError
            No plugin subcommand was selected.
        """
        if not result.command_chain or result.command_chain[0] not in self._plugins:
            raise MissingSubcommandError(available=tuple(self._plugins), command_chain=result.command_chain)
        plugin = self._plugins[result.command_chain[0]]
        logger.debug("Dispatching %r to plugin %s.", result.command_chain, plugin.name)
        return plugin.execute(result, *args, **kwargs)
