#!/usr/bin/env python3
"""
RCON shell command-line client for the 'rconshell' python package.
"""
# std imports
import argparse
import asyncio
import itertools
import logging
import sys
import os

# 3rd party
import prompt_toolkit

# local imports
from rconshell import accessories
from rconshell import rcon
from rconshell.builder import ALIAS_STYLES, DEFAULT_ALIAS_STYLES, GrammarBuilder
from rconshell.client_repl import repl_event_loop
from rconshell.help_text import iter_help_lines

__all__ = ("fetch_registry", "run_session", "run_client", "main")

_XDG_DATA = os.environ.get(
    "XDG_DATA_HOME", os.path.join(os.path.expanduser("~"), ".local", "share")
)
DATA_DIR = os.path.join(_XDG_DATA, "rconshell")
HISTORY_FILE = os.path.join(DATA_DIR, "history")


async def fetch_registry(
    client,
    help_command="help",
    command_prefix="/",
    alias_strategies=DEFAULT_ALIAS_STYLES,
):
    """
    Request the server's help dump and derive its command registry.

    :param rcon.RconClient client: Authenticated client.
    :param str help_command: Command answered with one usage line per command.
    :param str command_prefix: Prefix character of command names.
    :param alias_strategies: Alias detection strategies,
        see :class:`~.GrammarBuilder`.
    :rtype: rconshell.registry.CommandRegistry
    """
    log = logging.getLogger(__name__)
    body = await client.send_command(help_command)
    builder = GrammarBuilder(
        command_prefix=command_prefix, alias_strategies=alias_strategies
    )
    builder.feed_lines(iter_help_lines(body))
    registry = builder.build()
    log.info(
        "derived %d commands and %d aliases from %r (%d lines skipped)",
        len(registry),
        len(registry.aliases),
        help_command,
        len(registry.warnings),
    )
    return registry


async def _prompt_password():
    session = prompt_toolkit.PromptSession()
    return await session.prompt_async("Enter RCON password: ", is_password=True)


async def run_session(
    host,
    port=rcon.DEFAULT_PORT,
    password=None,
    encoding="utf8",
    timeout=10.0,
    help_command="help",
    command_prefix="/",
    alias_strategies=DEFAULT_ALIAS_STYLES,
    history_file=None,
):
    """
    Connect, authenticate, derive completions and run the REPL.

    :param str password: RCON password, prompted for when ``None``.
    :raises OSError: When the server cannot be reached.
    :raises rcon.RconAuthError: When the password is rejected.
    """
    log = logging.getLogger(__name__)
    client = await rcon.open_connection(host, port, encoding=encoding, timeout=timeout)
    log.info("Connected to %s", client)
    try:
        if password is None:
            password = await _prompt_password()
        await client.authenticate(password)
        registry = await fetch_registry(
            client,
            help_command=help_command,
            command_prefix=command_prefix,
            alias_strategies=alias_strategies,
        )
        print("Connected. Type commands or 'exit' to quit.")
        await repl_event_loop(
            client, registry, history_file=history_file, help_command=help_command
        )
    finally:
        await client.close()


async def run_client(argv=None):
    """Command-line 'rconshell' entry point, via setuptools."""
    parser = _get_argument_parser()
    args = parser.parse_args(argv)
    try:
        kwargs = _transform_args(args)
    except ValueError as err:
        parser.error("invalid address {0!r}: {1}".format(args.address, err))
    config_msg = "Client configuration: {key_values}".format(
        key_values=accessories.repr_mapping(
            dict(kwargs, password=kwargs["password"] and "********")
        )
    )
    log = accessories.make_logger(
        name=__name__,
        loglevel=kwargs.pop("loglevel"),
        logfile=kwargs.pop("logfile"),
        logfmt=kwargs.pop("logfmt"),
    )
    log.debug(config_msg)

    try:
        await run_session(**kwargs)
    except rcon.RconAuthError as err:
        log.error("%s:%s: %s", kwargs["host"], kwargs["port"], err)
        return 1
    except (OSError, asyncio.TimeoutError, asyncio.IncompleteReadError, rcon.RconError) as err:
        log.error(
            "%s:%s: %s", kwargs["host"], kwargs["port"], str(err) or type(err).__name__
        )
        return 1
    return 0


def _get_argument_parser():
    parser = argparse.ArgumentParser(
        description="Interactive RCON shell with completion from server help",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "address", action="store", help="server address, host[:port]"
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s " + accessories.get_version()
    )
    parser.add_argument(
        "--password",
        default=os.environ.get("RCON_PASSWORD"),
        help="RCON password, prompted for when unset (env RCON_PASSWORD)",
    )
    parser.add_argument("--loglevel", default="warn", help="log level")
    parser.add_argument(
        "--logfmt", default=accessories._DEFAULT_LOGFMT, help="log format"
    )
    parser.add_argument("--logfile", help="filepath")
    parser.add_argument("--encoding", default="utf8", help="encoding name")
    parser.add_argument(
        "--timeout", default=10.0, type=float, help="seconds to wait for server replies"
    )
    parser.add_argument(
        "--help-command", default="help", help="command listing usage of all commands"
    )
    parser.add_argument(
        "--command-prefix", default="/", help="prefix character of command names"
    )
    parser.add_argument(
        "--alias-style",
        action="append",
        choices=tuple(ALIAS_STYLES),
        help="alias line convention of the server, may be repeated "
        "(default: arrow and alias-for)",
    )
    parser.add_argument(
        "--history-file", default=HISTORY_FILE, help="command history filepath"
    )
    parser.add_argument(
        "--no-history", action="store_true", help="keep command history in memory only"
    )
    return parser


def _transform_args(args):
    host, port = accessories.parse_address(args.address, rcon.DEFAULT_PORT)
    if args.alias_style is None:
        alias_strategies = DEFAULT_ALIAS_STYLES
    else:
        alias_strategies = tuple(
            itertools.chain.from_iterable(ALIAS_STYLES[style] for style in args.alias_style)
        )
    return {
        "host": host,
        "port": port,
        "password": args.password,
        "loglevel": args.loglevel,
        "logfile": args.logfile,
        "logfmt": args.logfmt,
        "encoding": args.encoding,
        "timeout": args.timeout,
        "help_command": args.help_command,
        "command_prefix": args.command_prefix,
        "alias_strategies": alias_strategies,
        "history_file": None if args.no_history else (args.history_file or None),
    }


def main():
    sys.exit(asyncio.run(run_client()))


if __name__ == "__main__":
    main()
