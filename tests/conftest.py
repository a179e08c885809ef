import pytest
from rich.console import Console

from argengine import Action, Command, Integer, MutuallyExclusive


@pytest.fixture
def console():
    return Console(width=70, force_terminal=True, highlight=False, color_system=None, legacy_windows=False)


@pytest.fixture
def server():
    """Single-command schema with env-var and default fallbacks."""
    root = Command("server")
    root.option("host", "H", default="127.0.0.1", env_var="APP_HOST")
    root.option("port", "p", value_kind=Integer(1, 65535), default="8080", env_var="APP_PORT")
    root.option("log_level", "l", default="info", env_var="APP_LOG_LEVEL")
    root.flag("verbose", "v", action=Action.COUNT)
    return root.build()


@pytest.fixture
def gh():
    """Nested ``gh repo create`` style schema."""
    root = Command("gh")
    root.flag("verbose", "v", action=Action.COUNT, is_global=True)
    repo = root.subcommand("repo", "Manage repositories.", subcommand_required=True)
    create = repo.subcommand("create", "Create a repository.")
    create.argument("name")
    create.flag("public")
    create.flag("private")
    create.option("description", "d")
    create.add_group(MutuallyExclusive(["public", "private"], required=True, name="visibility"))
    clone = repo.subcommand("clone", "Clone a repository.", aliases=["cl"])
    clone.argument("repository")
    clone.argument("directory", default=".")
    return root.build()


@pytest.fixture
def deploy():
    """Flag dependencies and conflicts."""
    root = Command("deploy")
    root.flag("force", "f")
    root.flag("dry_run", "n", requires="force")
    root.flag("verbose", "v")
    root.flag("quiet", "q", conflicts_with="verbose")
    return root.build()
