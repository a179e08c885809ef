import pytest

from argengine import (
    Action,
    Arity,
    Command,
    ConflictingArgumentsError,
    ConflictsWith,
    DuplicateArgumentError,
    MissingDependencyError,
    MissingRequiredArgumentError,
    MissingRequiredGroupError,
    MissingSubcommandError,
    RequiresAll,
    match,
    validate,
)


def check(schema, tokens, **kwargs):
    validate(schema, match(schema, tokens), **kwargs)


def test_valid(gh):
    check(gh, ["repo", "create", "demo", "--private"])


def test_mutually_exclusive_conflict(gh):
    with pytest.raises(ConflictingArgumentsError) as e:
        check(gh, ["repo", "create", "demo", "--public", "--private"])
    assert e.value.a == "public"
    assert e.value.b == "private"
    assert str(e.value) == 'Command "repo create": "--public" cannot be used with "--private".'


def test_mutually_exclusive_declaration_order(gh):
    with pytest.raises(ConflictingArgumentsError) as e:
        check(gh, ["repo", "create", "demo", "--private", "--public"])
    assert (e.value.a, e.value.b) == ("public", "private")


def test_required_group(gh):
    with pytest.raises(MissingRequiredGroupError) as e:
        check(gh, ["repo", "create", "demo"])
    assert str(e.value) == 'Command "repo create": Group "visibility" requires one of {--public, --private}.'


def test_requires(deploy):
    check(deploy, ["--force"])
    check(deploy, ["--force", "--dry-run"])
    with pytest.raises(MissingDependencyError) as e:
        check(deploy, ["--dry-run"])
    assert e.value.present == "dry_run"
    assert e.value.missing == ("force",)
    assert str(e.value) == '"--dry-run" requires "--force".'


def test_requires_display_uses_typed_flag(deploy):
    with pytest.raises(MissingDependencyError) as e:
        check(deploy, ["-n"])
    assert str(e.value) == '"-n" requires "--force".'


def test_conflicts_with(deploy):
    check(deploy, ["-v"])
    check(deploy, ["-q"])
    with pytest.raises(ConflictingArgumentsError) as e:
        check(deploy, ["-v", "-q"])
    assert str(e.value) == '"-q" cannot be used with "-v".'


def test_requires_all():
    root = Command("login").option("user", "u").option("password")
    root.add_group(RequiresAll(["user", "password"]))
    schema = root.build()
    check(schema, [])
    check(schema, ["-u", "me", "--password", "secret"])
    with pytest.raises(MissingDependencyError) as e:
        check(schema, ["-u", "me"])
    assert str(e.value) == '"-u" requires "--password".'


def test_missing_required_positional():
    schema = Command("cp").argument("src").argument("dst").build()
    with pytest.raises(MissingRequiredArgumentError) as e:
        check(schema, ["a"])
    assert e.value.identifier == "dst"
    assert str(e.value) == 'Missing required argument "DST".'


def test_missing_required_option():
    schema = Command("api").option("token", arity=Arity.one(), env_var="API_TOKEN").build()
    with pytest.raises(MissingRequiredArgumentError) as e:
        check(schema, [])
    assert str(e.value) == 'Missing required option "--token". It may also be set via API_TOKEN.'


def test_required_satisfied_by_env():
    schema = Command("api").option("token", arity=Arity.one(), env_var="API_TOKEN").build()
    check(schema, [], env={"API_TOKEN": "abc"})
    with pytest.raises(MissingRequiredArgumentError):
        check(schema, [], env={"API_TOKEN": ""})


def test_required_satisfied_by_config():
    schema = Command("api").option("token", arity=Arity.one()).build()
    check(schema, [], config={"token": "abc"})


def test_append_exceeds_max():
    schema = Command("cc").option("include", "I", action=Action.APPEND, arity=Arity.many(0, 2)).build()
    check(schema, ["-I", "a", "-I", "b"])
    with pytest.raises(DuplicateArgumentError) as e:
        check(schema, ["-I", "a", "-I", "b", "--include", "c"])
    assert str(e.value) == 'Parameter "--include" accepts at most 2 values.'


def test_missing_subcommand(gh):
    with pytest.raises(MissingSubcommandError) as e:
        check(gh, ["repo"])
    assert e.value.available == ("create", "clone")
    assert str(e.value) == 'Command "repo": A subcommand is required. Available commands: create, clone.'


def test_optional_subcommand(gh):
    check(gh, [])


def test_groups_ignore_fallbacks():
    root = Command("deploy").flag("force", env_var="FORCE").flag("dry_run", requires="force")
    schema = root.build()
    with pytest.raises(MissingDependencyError):
        check(schema, ["--dry-run"], env={"FORCE": "1"})


@pytest.fixture
def login():
    root = Command("login").option("user", "u").option("password").option("token").flag("save", requires="auth_basic")
    root.add_group(RequiresAll(["user", "password"], name="auth_basic"))
    root.add_group(ConflictsWith("auth_basic", "token"))
    return root.build()


def test_group_conflicts_with_group(login):
    check(login, ["--token", "t"])
    check(login, ["-u", "me", "--password", "secret"])
    with pytest.raises(ConflictingArgumentsError) as e:
        check(login, ["-u", "me", "--password", "secret", "--token", "t"])
    assert (e.value.a, e.value.b) == ("auth_basic", "token")
    assert str(e.value) == '"-u" cannot be used with "--token".'


def test_requires_named_group(login):
    check(login, ["--save", "--password", "secret", "-u", "me"])
    with pytest.raises(MissingDependencyError) as e:
        check(login, ["--save"])
    assert e.value.missing == ("auth_basic",)
    assert str(e.value) == '"--save" requires "{--user, --password}".'
