"""Tests for rconshell.client command-line entry point."""

# std imports
import asyncio

# 3rd party
import pytest

# local
from rconshell import rcon
from rconshell import client as cl
from rconshell.builder import ALIAS_STYLES, DEFAULT_ALIAS_STYLES
from conftest import PASSWORD, VANILLA_HELP, FakeServer


def test_argument_parser_defaults():
    args = cl._get_argument_parser().parse_args(["mc.example.org"])
    assert args.address == "mc.example.org"
    assert args.encoding == "utf8" and args.timeout == 10.0
    assert args.help_command == "help" and args.command_prefix == "/"
    assert args.alias_style is None and args.no_history is False


def test_transform_args():
    parser = cl._get_argument_parser()
    result = cl._transform_args(
        parser.parse_args(["mc.example.org:25576", "--password", "s3cret", "--timeout", "2.5"])
    )
    assert result["host"] == "mc.example.org" and result["port"] == 25576
    assert result["password"] == "s3cret" and result["timeout"] == 2.5
    assert result["alias_strategies"] == DEFAULT_ALIAS_STYLES

    default_port = cl._transform_args(parser.parse_args(["localhost"]))
    assert default_port["port"] == rcon.DEFAULT_PORT


def test_transform_args_alias_styles():
    parser = cl._get_argument_parser()
    result = cl._transform_args(parser.parse_args(["localhost", "--alias-style", "none"]))
    assert result["alias_strategies"] == ()

    result = cl._transform_args(
        parser.parse_args(["localhost", "--alias-style", "alias-for", "--alias-style", "arrow"])
    )
    assert result["alias_strategies"] == ALIAS_STYLES["alias-for"] + ALIAS_STYLES["arrow"]


def test_alias_style_choices():
    with pytest.raises(SystemExit):
        cl._get_argument_parser().parse_args(["localhost", "--alias-style", "bogus"])


def test_transform_args_history_file():
    parser = cl._get_argument_parser()
    result = cl._transform_args(parser.parse_args(["localhost"]))
    assert "rconshell" in result["history_file"]
    assert result["history_file"].endswith("history")

    result_custom = cl._transform_args(
        parser.parse_args(["localhost", "--history-file", "/tmp/my-history"])
    )
    assert result_custom["history_file"] == "/tmp/my-history"

    for argv in (["--no-history"], ["--history-file", ""]):
        result_disabled = cl._transform_args(parser.parse_args(["localhost"] + argv))
        assert result_disabled["history_file"] is None


def test_password_from_environment(monkeypatch):
    monkeypatch.setenv("RCON_PASSWORD", "from-env")
    args = cl._get_argument_parser().parse_args(["localhost"])
    assert args.password == "from-env"


class _HelpClient:

    def __init__(self, body):
        self.body = body
        self.sent = []

    async def send_command(self, cmd):
        self.sent.append(cmd)
        return self.body


@pytest.mark.asyncio
async def test_fetch_registry():
    client = _HelpClient(VANILLA_HELP)
    registry = await cl.fetch_registry(client)
    assert client.sent == ["help"]
    assert registry.resolve("tp") == "teleport"
    assert registry.resolve("tell") == "msg"
    assert "whitelist" in registry


@pytest.mark.asyncio
async def test_fetch_registry_custom_conventions():
    client = _HelpClient("!kick <player>\n!k -> kick\n!ban <player>\n")
    registry = await cl.fetch_registry(
        client, help_command="commands", command_prefix="!", alias_strategies=()
    )
    assert client.sent == ["commands"]
    assert list(registry.all_names()) == ["kick", "k", "ban"]
    assert registry.usage("k") == "!k"
    assert registry.usage("kick") == "!kick <player>"


@pytest.mark.asyncio
async def test_run_session(monkeypatch):
    captured = {}

    async def _fake_repl(client, registry, history_file=None, help_command="help"):
        captured["registry"] = registry
        captured["reply"] = await client.send_command("seed")
        captured["history_file"] = history_file

    monkeypatch.setattr(cl, "repl_event_loop", _fake_repl)
    server = FakeServer(responses={"help": VANILLA_HELP, "seed": "Seed: [42]"})
    port = await server.start()
    try:
        await cl.run_session("127.0.0.1", port, password=PASSWORD, timeout=5)
    finally:
        await server.stop()
    assert captured["registry"].resolve("w") == "msg"
    assert captured["reply"] == "Seed: [42]"
    assert captured["history_file"] is None


@pytest.mark.asyncio
async def test_run_session_wrong_password():
    server = FakeServer(responses={"help": VANILLA_HELP})
    port = await server.start()
    try:
        with pytest.raises(rcon.RconAuthError):
            await cl.run_session("127.0.0.1", port, password="wrong", timeout=5)
    finally:
        await server.stop()


@pytest.mark.asyncio
async def test_run_client_wrong_password():
    server = FakeServer()
    port = await server.start()
    try:
        result = await cl.run_client(
            ["127.0.0.1:{0}".format(port), "--password", "wrong", "--no-history"]
        )
    finally:
        await server.stop()
    assert result == 1


@pytest.mark.asyncio
async def test_run_client_connection_refused():
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    result = await cl.run_client(["127.0.0.1:{0}".format(port), "--password", PASSWORD])
    assert result == 1


@pytest.mark.asyncio
async def test_run_client_bad_address():
    with pytest.raises(SystemExit) as exc_info:
        await cl.run_client(["localhost:notaport"])
    assert exc_info.value.code == 2
