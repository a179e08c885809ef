"""Each plugin contributes its own subcommand and handler.

.. code-block:: console

    $ python plugins.py file ls /tmp --all
    $ python plugins.py user add alice --admin
    $ python plugins.py --plugins
"""

from argengine import App, Command, Plugin, PluginRegistry
from argengine.types import Email


def build_file() -> Command:
    command = Command("file")
    ls = command.subcommand("ls", "List a directory.")
    ls.argument("path", default=".")
    ls.flag("all", "a")
    return command


def run_file(result):
    if result.command_chain[-1] != "ls":
        print("available: ls")
        return
    print(f"ls {result['path']} (all={result['all']})")


def build_user() -> Command:
    command = Command("user")
    add = command.subcommand("add", "Add a user.")
    add.argument("username")
    add.option("email", value_kind=Email)
    add.flag("admin")
    return command


def run_user(result):
    if result.command_chain[-1] != "add":
        print("available: add")
        return
    role = "admin" if result["admin"] else "user"
    print(f"added {result['username']} as {role}")


registry = PluginRegistry()
registry.register(Plugin("file", build_file, run_file, version="1.0.0", description="File operations."))
registry.register(Plugin("user", build_user, run_user, version="2.1.0", description="User management."))

root = Command("tool")
root.flag("plugins", help="List installed plugins.")
app = App(registry.build_schema(root))


def main():
    result = app.parse_args()
    if result["plugins"] or not result.command_chain:
        for plugin in registry:
            print(f"{plugin.name:<8} {plugin.version:<8} {plugin.description}")
        return
    registry.dispatch(result)


if __name__ == "__main__":
    main()
