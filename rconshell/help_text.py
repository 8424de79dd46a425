"""Normalization of server help dumps and command responses."""

from __future__ import annotations

# std imports
import re
from typing import Iterator

__all__ = (
    "ERROR_PREFIXES",
    "strip_formatting_codes",
    "format_help_response",
    "iter_help_lines",
    "format_generic_response",
)

#: Server error messages that run straight into the offending command text.
ERROR_PREFIXES = (
    "Unknown or incomplete command, see below for error",
    "Incorrect argument for command",
)

_RE_FORMATTING_CODE = re.compile("§[0-9a-fk-orx]", re.IGNORECASE)


def strip_formatting_codes(text: str) -> str:
    """Remove Minecraft ``§`` colour and style codes from *text*."""
    return _RE_FORMATTING_CODE.sub("", text)


def format_help_response(body: str) -> str:
    """
    Return help response *body* with one command per line.

    The vanilla server answers ``help`` over RCON with every command
    concatenated, ``/advancement (grant|revoke)/attribute <target> ...``;
    a newline is inserted before each ``/`` not already starting a line.

    Example::

        >>> format_help_response("/op <targets>/deop <targets>")
        '/op <targets>\\n/deop <targets>'
    """
    fixed = []
    prev = None
    for char in body:
        if char == "/" and prev is not None and prev != "\n":
            fixed.append("\n")
        fixed.append(char)
        prev = char
    return "".join(fixed).strip()


def iter_help_lines(body: str) -> Iterator[str]:
    """Yield stripped, non-empty help lines of a raw help response."""
    for line in format_help_response(strip_formatting_codes(body)).splitlines():
        line = line.strip()
        if line:
            yield line


def format_generic_response(body: str) -> str:
    """Put a known error prefix of *body* on a line of its own."""
    for prefix in ERROR_PREFIXES:
        if body.startswith(prefix):
            return "{0}\n{1}".format(prefix, body[len(prefix):].lstrip())
    return body
