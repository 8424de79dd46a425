"""
Asyncio client for the Source RCON protocol, as spoken by Minecraft servers.

Each packet is framed as::

    int32 length | int32 request id | int32 type | payload | NUL NUL

with all integers little-endian and ``length`` counting every byte after
itself.
"""

from __future__ import annotations

# std imports
import struct
import asyncio
import logging
import itertools
from typing import List, Tuple, Optional

__all__ = (
    "SERVERDATA_AUTH",
    "SERVERDATA_AUTH_RESPONSE",
    "SERVERDATA_EXECCOMMAND",
    "SERVERDATA_RESPONSE_VALUE",
    "DEFAULT_PORT",
    "MAX_COMMAND_LENGTH",
    "RconError",
    "RconAuthError",
    "RconProtocolError",
    "encode_packet",
    "read_packet",
    "RconClient",
    "open_connection",
)

SERVERDATA_AUTH = 3
SERVERDATA_AUTH_RESPONSE = 2
SERVERDATA_EXECCOMMAND = 2
SERVERDATA_RESPONSE_VALUE = 0

DEFAULT_PORT = 25575

#: Longest command payload a Minecraft server accepts, in bytes.
MAX_COMMAND_LENGTH = 1446

# Servers split responses every 4096 characters before encoding them, so a
# packet holds up to 4096 UTF-8 sequences plus header and padding.
_MAX_PACKET_SIZE = 4 * 4096 + 10
_ID_TYPE = struct.Struct("<ii")
_LENGTH = struct.Struct("<i")


class RconError(Exception):
    """Base class of RCON session failures."""


class RconAuthError(RconError):
    """Raised when the server rejects the password."""


class RconProtocolError(RconError):
    """Raised when a packet from the server is malformed."""


def encode_packet(request_id: int, packet_type: int, payload: bytes) -> bytes:
    """Return a framed RCON packet."""
    body = _ID_TYPE.pack(request_id, packet_type) + payload + b"\x00\x00"
    return _LENGTH.pack(len(body)) + body


async def read_packet(reader: asyncio.StreamReader) -> Tuple[int, int, bytes]:
    """
    Read one packet from *reader*.

    :returns: ``(request_id, packet_type, payload)``.
    :raises asyncio.IncompleteReadError: When the connection closes mid-packet.
    :raises RconProtocolError: When the length field is out of bounds.
    """
    (length,) = _LENGTH.unpack(await reader.readexactly(_LENGTH.size))
    if not _ID_TYPE.size + 2 <= length <= _MAX_PACKET_SIZE:
        raise RconProtocolError(f"invalid packet length {length}")
    data = await reader.readexactly(length)
    request_id, packet_type = _ID_TYPE.unpack_from(data)
    payload = data[_ID_TYPE.size:-2]
    return request_id, packet_type, payload


class RconClient:
    """
    Authenticated request/response session with an RCON server.

    Use :func:`open_connection` to create instances.

    :param reader: Stream reader of the connection.
    :param writer: Stream writer of the connection.
    :param encoding: Encoding of commands and responses.
    :param timeout: Seconds to wait for each server packet.
    :param fragment_sentinel: Follow each command with an empty sentinel
        packet, reading reply packets until the sentinel is answered, so that
        responses split over several packets are reassembled.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        encoding: str = "utf8",
        timeout: float = 10.0,
        fragment_sentinel: bool = True,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.encoding = encoding
        self.timeout = timeout
        self.fragment_sentinel = fragment_sentinel
        self.log = logging.getLogger(__name__)
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    def __str__(self) -> str:
        peer = self._writer.get_extra_info("peername")
        if peer:
            return "{0}:{1}".format(*peer[:2])
        return "rcon"

    async def _read(self) -> Tuple[int, int, bytes]:
        return await asyncio.wait_for(read_packet(self._reader), self.timeout)

    def _send(self, packet_type: int, payload: bytes) -> int:
        request_id = next(self._ids)
        self._writer.write(encode_packet(request_id, packet_type, payload))
        return request_id

    async def authenticate(self, password: str) -> None:
        """
        Log in with *password*.

        :raises RconAuthError: When the server answers with request id -1.
        """
        async with self._lock:
            request_id = self._send(SERVERDATA_AUTH, password.encode(self.encoding))
            await self._writer.drain()
            while True:
                reply_id, packet_type, _ = await self._read()
                # Source servers precede the auth response with an empty value.
                if packet_type == SERVERDATA_AUTH_RESPONSE:
                    break
            if reply_id == -1:
                raise RconAuthError("authentication failed")
            if reply_id != request_id:
                raise RconProtocolError(
                    f"auth response for request {reply_id}, expected {request_id}"
                )
            self.log.info("authenticated to %s", self)

    async def send_command(self, command: str) -> str:
        """
        Send *command* and return the server's response text.

        :raises RconError: When the encoded command is too long.
        """
        payload = command.encode(self.encoding)
        if len(payload) > MAX_COMMAND_LENGTH:
            raise RconError(
                f"command is {len(payload)} bytes, limit is {MAX_COMMAND_LENGTH}"
            )
        async with self._lock:
            request_id = self._send(SERVERDATA_EXECCOMMAND, payload)
            sentinel_id: Optional[int] = None
            if self.fragment_sentinel:
                sentinel_id = self._send(SERVERDATA_RESPONSE_VALUE, b"")
            await self._writer.drain()
            self.log.debug("sent request %d: %r", request_id, command)

            chunks: List[bytes] = []
            while True:
                reply_id, _, body = await self._read()
                if reply_id == request_id:
                    chunks.append(body)
                    if sentinel_id is None:
                        break
                elif reply_id == sentinel_id:
                    break
                else:
                    self.log.debug("discarding reply to request %d", reply_id)
        return b"".join(chunks).decode(self.encoding, errors="replace")

    async def close(self) -> None:
        """Close the connection."""
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError) as exc:
            self.log.debug("error closing connection: %s", exc)


async def open_connection(
    host: str,
    port: int = DEFAULT_PORT,
    encoding: str = "utf8",
    timeout: float = 10.0,
    fragment_sentinel: bool = True,
) -> RconClient:
    """
    Connect to an RCON server.

    :param str host: Remote server host.
    :param int port: Remote RCON port.
    :param str encoding: Encoding of commands and responses.
    :param float timeout: Seconds allowed for connecting and for each reply.
    :param bool fragment_sentinel: See :class:`RconClient`.
    :return: unauthenticated :class:`RconClient`.
    """
    reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
    return RconClient(
        reader,
        writer,
        encoding=encoding,
        timeout=timeout,
        fragment_sentinel=fragment_sentinel,
    )
