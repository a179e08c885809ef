import pytest

from argengine import (
    Action,
    Arity,
    Command,
    DuplicateArgumentError,
    Integer,
    MissingValueError,
    Token,
    UnknownArgumentError,
    match,
)


def values(match_set, identifier):
    return [t.value for t in match_set.tokens(identifier)]


def test_long_and_short(server):
    match_set = match(server, ["--host", "0.0.0.0", "-p", "9000"])
    assert values(match_set, "host") == ["0.0.0.0"]
    assert match_set.tokens("port") == (Token(keyword="-p", value="9000"),)
    assert match_set.bound == {"host", "port"}
    assert match_set.command_chain == ()


@pytest.mark.parametrize("cmd", ["--port=9000", "-p=9000", "-p9000", "-p 9000"])
def test_inline_values(server, cmd):
    match_set = match(server, cmd)
    assert values(match_set, "port") == ["9000"]


def test_tokens_from_string(server):
    match_set = match(server, "--host 'my host'")
    assert values(match_set, "host") == ["my host"]


def test_presence_flag_is_implicit(deploy):
    match_set = match(deploy, ["--force"])
    (token,) = match_set.tokens("force")
    assert token.is_implicit
    assert token.implicit_value is True
    assert token.keyword == "--force"


def test_presence_flag_explicit_value(deploy):
    match_set = match(deploy, ["--force=false"])
    (token,) = match_set.tokens("force")
    assert not token.is_implicit
    assert token.value == "false"


def test_short_cluster(deploy):
    match_set = match(deploy, ["-fn"])
    assert match_set.bound == {"force", "dry_run"}


def test_counter_cluster(server):
    match_set = match(server, ["-vvv"])
    assert [t.implicit_value for t in match_set.tokens("verbose")] == [1, 1, 1]


def test_cluster_ending_in_value(server):
    match_set = match(server, ["-vp9000"])
    assert len(match_set.tokens("verbose")) == 1
    assert values(match_set, "port") == ["9000"]


def test_cluster_value_from_next_token(server):
    match_set = match(server, ["-vp", "9000"])
    assert values(match_set, "port") == ["9000"]


def test_negative_number_is_a_value():
    schema = Command("calc").option("offset", value_kind=Integer()).argument("x").build()
    match_set = match(schema, ["--offset", "-5", "-3.5"])
    assert values(match_set, "offset") == ["-5"]
    assert values(match_set, "x") == ["-3.5"]


def test_hyphen_values():
    schema = Command("grep").option("pattern", allow_hyphen_values=True).build()
    match_set = match(schema, ["--pattern", "-x"])
    assert values(match_set, "pattern") == ["-x"]


def test_subcommand_transition(gh):
    match_set = match(gh, ["repo", "create", "demo", "--public"])
    assert match_set.command_chain == ("repo", "create")
    assert values(match_set, "name") == ["demo"]
    assert match_set.is_bound("public")
    assert not match_set.is_bound("private")


def test_subcommand_alias(gh):
    match_set = match(gh, ["repo", "cl", "owner/demo"])
    assert match_set.command_chain == ("repo", "clone")
    assert values(match_set, "repository") == ["owner/demo"]


def test_global_flag_after_subcommand(gh):
    match_set = match(gh, ["-v", "repo", "create", "demo", "--public", "-vv"])
    assert len(match_set.tokens("verbose")) == 3


def test_child_flag_not_visible_in_parent(gh):
    with pytest.raises(UnknownArgumentError) as e:
        match(gh, ["--public", "repo", "create", "demo"])
    assert str(e.value) == 'Unknown option: "--public".'
    assert e.value.command_chain == ()


def test_unknown_option_suggestion(gh):
    with pytest.raises(UnknownArgumentError) as e:
        match(gh, ["repo", "create", "demo", "--publc"])
    assert str(e.value) == 'Command "repo create": Unknown option: "--publc". Did you mean "--public"?'
    assert e.value.command_chain == ("repo", "create")


def test_unknown_subcommand_suggestion(gh):
    with pytest.raises(UnknownArgumentError) as e:
        match(gh, ["repo", "craete"])
    assert str(e.value) == 'Command "repo": Unexpected argument: "craete". Did you mean "create"?'


def test_surplus_positional():
    schema = Command("cp").argument("src").argument("dst").build()
    with pytest.raises(UnknownArgumentError) as e:
        match(schema, ["a", "b", "c"])
    assert str(e.value) == 'Unexpected argument: "c".'


def test_allow_unknown(server):
    match_set = match(server, ["--bogus", "--port", "1", "-x"], allow_unknown=True)
    assert match_set.unused == ("--bogus", "-x")
    assert values(match_set, "port") == ["1"]


def test_missing_value(server):
    with pytest.raises(MissingValueError) as e:
        match(server, ["--port"])
    assert str(e.value) == 'Parameter "--port" requires a value.'


def test_missing_value_before_option(server):
    with pytest.raises(MissingValueError) as e:
        match(server, ["--host", "--port", "1"])
    assert e.value.keyword == "--host"


def test_duplicate_set(server):
    with pytest.raises(DuplicateArgumentError) as e:
        match(server, ["--port", "1", "-p", "2"])
    assert str(e.value) == 'Parameter "-p" specified multiple times.'


def test_repeated_set_many_accumulates():
    schema = Command("app").option("files", arity=Arity.many()).build()
    match_set = match(schema, ["--files", "a", "--files", "b", "c"])
    assert values(match_set, "files") == ["a", "b", "c"]
    assert [t.keyword for t in match_set.tokens("files")] == ["--files", "--files", "--files"]


def test_repeated_set_bounded():
    schema = Command("app").option("point", arity=Arity.many(1, 2)).argument("name", default="").build()
    match_set = match(schema, ["--point", "1", "--point", "2", "origin"])
    assert values(match_set, "point") == ["1", "2"]
    assert values(match_set, "name") == ["origin"]
    with pytest.raises(DuplicateArgumentError) as e:
        match(schema, ["--point", "1", "2", "--point", "3"])
    assert str(e.value) == 'Parameter "--point" accepts at most 2 values.'


def test_duplicate_presence_flag(deploy):
    with pytest.raises(DuplicateArgumentError):
        match(deploy, ["-f", "--force"])


def test_append_and_delimiter():
    schema = Command("app").option("tags", "t", action=Action.APPEND, delimiter=",").build()
    match_set = match(schema, ["--tags", "a,b", "-t", "c"])
    assert values(match_set, "tags") == ["a", "b", "c"]
    assert [t.index for t in match_set.tokens("tags")] == [0, 1, 0]


def test_append_takes_one_value_per_occurrence():
    schema = Command("app").option("tags", action=Action.APPEND).argument("rest", arity=Arity.many()).build()
    match_set = match(schema, ["--tags", "a", "b"])
    assert values(match_set, "tags") == ["a"]
    assert values(match_set, "rest") == ["b"]


def test_set_many_is_greedy():
    schema = Command("app").option("files", arity=Arity.many(1)).flag("force").build()
    match_set = match(schema, ["--files", "a", "b", "c", "--force"])
    assert values(match_set, "files") == ["a", "b", "c"]
    assert match_set.is_bound("force")


def test_set_bounded_stops_at_max():
    schema = Command("app").option("point", arity=Arity.many(2, 2)).argument("name").build()
    match_set = match(schema, ["--point", "1", "2", "origin"])
    assert values(match_set, "point") == ["1", "2"]
    assert values(match_set, "name") == ["origin"]


def test_positionals_fill_in_order():
    schema = Command("cp").argument("src", arity=Arity.many(1, 2)).argument("dst", default=".").build()
    match_set = match(schema, ["a", "b", "c"])
    assert values(match_set, "src") == ["a", "b"]
    assert values(match_set, "dst") == ["c"]


def test_end_of_options_delimiter():
    schema = Command("cp").argument("src").argument("dst").flag("force").build()
    match_set = match(schema, ["--force", "--", "-a", "--force"])
    assert values(match_set, "src") == ["-a"]
    assert values(match_set, "dst") == ["--force"]
    assert len(match_set.tokens("force")) == 1


def test_end_of_options_delimiter_custom():
    schema = Command("echo").argument("words", arity=Arity.many()).build()
    match_set = match(schema, ["a", "::", "-b"], end_of_options_delimiter="::")
    assert values(match_set, "words") == ["a", "-b"]


def test_end_of_options_delimiter_disabled():
    schema = Command("echo").argument("words", arity=Arity.many()).build()
    with pytest.raises(UnknownArgumentError):
        match(schema, ["a", "--", "b"], end_of_options_delimiter="")


def test_passthrough_trailing():
    root = Command("tool")
    run = root.subcommand("run", passthrough=True)
    run.argument("program")
    match_set = match(root.build(), ["run", "python", "--", "-c", "print(1)"])
    assert values(match_set, "program") == ["python"]
    assert match_set.trailing == ("-c", "print(1)")


def ssh_schema():
    root = Command("cloud")
    ssh = root.subcommand("ssh")
    ssh.argument("name")
    ssh.argument("command", arity=Arity.many(1), trailing_var_arg=True)
    root.flag("verbose", "v", action=Action.COUNT, is_global=True)
    return root.build()


def test_trailing_var_arg():
    match_set = match(ssh_schema(), ["ssh", "-v", "web", "ls", "-la", "--", "-v"])
    assert values(match_set, "name") == ["web"]
    assert values(match_set, "command") == ["ls", "-la", "--", "-v"]
    assert len(match_set.tokens("verbose")) == 1


def test_trailing_var_arg_not_started():
    with pytest.raises(UnknownArgumentError):
        match(ssh_schema(), ["ssh", "web", "-la"])


def test_lone_dash_is_positional():
    schema = Command("cat").argument("file").build()
    match_set = match(schema, ["-"])
    assert values(match_set, "file") == ["-"]
