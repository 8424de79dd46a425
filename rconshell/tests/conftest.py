"""Pytest configuration and fixtures."""

# std imports
import asyncio

# 3rd party
import pytest

# local
from rconshell.rcon import (
    SERVERDATA_AUTH,
    SERVERDATA_EXECCOMMAND,
    SERVERDATA_AUTH_RESPONSE,
    SERVERDATA_RESPONSE_VALUE,
    read_packet,
    encode_packet,
)
from rconshell.builder import build_registry

#: Abridged ``help`` response of a vanilla server, as sent over RCON.
VANILLA_HELP = (
    "/advancement (grant|revoke)"
    "/ban <targets> [<reason>]"
    "/difficulty [peaceful|easy|normal|hard]"
    "/gamemode <gamemode> [<target>]"
    "/gamerule doDaylightCycle <value>"
    "/gamerule keepInventory <value>"
    "/msg <targets> <message>"
    "/op <targets>"
    "/spreadplayers <center> <spreadDistance> <maxRange> (<respectTeams>|under)"
    "/teleport (<location>|<destination>|<targets>)"
    "/tell -> msg"
    "/time (set|add|query)"
    "/tp -> teleport"
    "/w -> msg"
    "/weather (clear|rain|thunder)"
    "/whisper <targets> <message>"
    "/whitelist (on|off|list|add|remove|reload)"
)

PASSWORD = "hunter2"


class FakeServer:
    """
    Minimal Minecraft-like RCON server.

    Replies to commands from :attr:`responses`, splitting replies into
    packets of ``chunk_size`` characters before encoding them, and
    answers unknown packet types the way the vanilla server does.
    """

    def __init__(self, responses=None, chunk_size=4096, auth_preamble=False):
        self.responses = responses or {}
        self.chunk_size = chunk_size
        self.auth_preamble = auth_preamble
        self.received = []
        self.server = None

    async def start(self):
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def stop(self):
        self.server.close()
        await self.server.wait_closed()

    async def _handle(self, reader, writer):
        try:
            while True:
                request_id, packet_type, payload = await read_packet(reader)
                text = payload.decode("utf8")
                self.received.append((packet_type, text))
                if packet_type == SERVERDATA_AUTH:
                    if self.auth_preamble:
                        writer.write(encode_packet(request_id, SERVERDATA_RESPONSE_VALUE, b""))
                    reply_id = request_id if text == PASSWORD else -1
                    writer.write(encode_packet(reply_id, SERVERDATA_AUTH_RESPONSE, b""))
                elif packet_type == SERVERDATA_EXECCOMMAND:
                    body = self.responses.get(text, "Unknown command")
                    chunks = [
                        body[i:i + self.chunk_size].encode("utf8")
                        for i in range(0, len(body), self.chunk_size)
                    ] or [b""]
                    for chunk in chunks:
                        writer.write(encode_packet(request_id, SERVERDATA_RESPONSE_VALUE, chunk))
                else:
                    reply = "Unknown request {0:x}".format(packet_type).encode("utf8")
                    writer.write(encode_packet(request_id, SERVERDATA_RESPONSE_VALUE, reply))
                await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


@pytest.fixture
def registry():
    """Registry of a small hand-written help dump."""
    return build_registry([
        "whitelist <add|remove|list>",
        "whisper <player> <message>",
        "op <player>",
        "gamerule doDaylightCycle <value>",
        "gamerule keepInventory <value>",
        "gamemode <mode> [<target>]",
        "spreadplayers <center> (<respectTeams>|under) [<maxHeight>]",
        "time (set|add) (day|night|<time>)",
        "time query (daytime|gametime|day)",
        "execute [as <targets>] run <command>",
        "tp -> teleport",
        "teleport <destination>",
    ])
