"""Layered configuration: command line > environment > config file > defaults.

.. code-block:: console

    $ python environment_config.py
    $ APP_PORT=3000 python environment_config.py
    $ APP_PORT=3000 python environment_config.py --port 8080
    $ python environment_config.py --show-config
"""

import logging

from rich.console import Console
from rich.table import Table

from argengine import App, Choice, Command, Integer
from argengine.config import Env, Toml

root = Command("server", "Serve the application.")
root.option("host", "H", default="127.0.0.1", env_var="APP_HOST")
root.option("port", "p", value_kind=Integer(1, 65535), default="8080", env_var="APP_PORT")
root.option(
    "log_level",
    "l",
    value_kind=Choice(["trace", "debug", "info", "warn", "error"]),
    default="info",
    env_var="APP_LOG_LEVEL",
)
root.option("database_url", env_var=["APP_DATABASE_URL", "DATABASE_URL"])
root.option("workers", "w", value_kind=Integer(min=1), default="4", env_var="APP_WORKERS")
root.flag("show_config")

app = App(
    root,
    env=Env(),
    config=Toml("app.toml", search_parents=True),
)


def main():
    result = app.parse_args()
    logging.basicConfig(level="DEBUG" if result["log_level"] == "trace" else result["log_level"].upper())

    if result["show_config"]:
        table = Table("setting", "value", "origin")
        for identifier, resolved in result.values.items():
            table.add_row(identifier, str(resolved.value), f"{resolved.origin.value} ({resolved.source})")
        Console().print(table)
        return

    print(f"Listening on {result['host']}:{result['port']} with {result['workers']} workers")


if __name__ == "__main__":
    main()
