"""
Help-text tokenizer.

Splits the argument portion of one server help line, such as
``(grant|revoke) <targets> [<reason>]``, into a flat stream of
:class:`Token` values.  The command name itself is split off by the
caller, see :mod:`rconshell.grammar`.
"""

from __future__ import annotations

# std imports
import enum
from typing import List
from dataclasses import dataclass

__all__ = ("TokenKind", "Token", "MalformedHelpLine", "tokenize")


class TokenKind(enum.Enum):
    """Kinds of tokens found in help syntax."""

    LITERAL = "literal"
    PLACEHOLDER = "placeholder"
    GROUP_OPEN = "("
    GROUP_CLOSE = ")"
    ALTERNATION = "|"
    OPTIONAL_OPEN = "["
    OPTIONAL_CLOSE = "]"


@dataclass(frozen=True)
class Token:
    """
    One atomic unit of help syntax.

    :param kind: Token kind.
    :param text: Keyword text for literals, argument name for placeholders,
        empty for markers.
    """

    kind: TokenKind
    text: str = ""


class MalformedHelpLine(ValueError):
    """Raised when a help line has unbalanced or empty brackets."""


_OPEN_KIND = {"(": TokenKind.GROUP_OPEN, "[": TokenKind.OPTIONAL_OPEN}
_CLOSE_KIND = {")": TokenKind.GROUP_CLOSE, "]": TokenKind.OPTIONAL_CLOSE}
_PAIRS = {"(": ")", "[": "]", "<": ">"}
_SPECIAL = "()[]<>|"


def _match_angle(text: str, start: int) -> int:
    """
    Return index of the ``>`` closing the ``<`` at *start*.

    Brackets of every kind nested inside the angle region must balance.
    """
    stack: List[str] = []
    for idx in range(start, len(text)):
        char = text[idx]
        if char in _PAIRS:
            stack.append(_PAIRS[char])
        elif char in ")]>":
            if not stack or stack.pop() != char:
                raise MalformedHelpLine(f"unexpected {char!r} at column {idx} in {text!r}")
            if not stack:
                return idx
    raise MalformedHelpLine(f"unclosed '<' at column {start} in {text!r}")


def tokenize(text: str) -> List[Token]:
    """
    Tokenize help syntax into a list of :class:`Token`.

    Example::

        >>> [t.kind.name for t in tokenize("[<mode>|under]")]
        ['OPTIONAL_OPEN', 'PLACEHOLDER', 'ALTERNATION', 'LITERAL', 'OPTIONAL_CLOSE']

    ``<name>`` is a placeholder, unless the angle brackets hold alternation
    or nested groups (``<add|remove>``), which is read as a required group.

    :param text: Help syntax following the command name.
    :raises MalformedHelpLine: When brackets are unbalanced or empty.
    """
    tokens: List[Token] = []
    closers: List[str] = []
    word: List[str] = []

    def _flush() -> None:
        if word:
            tokens.append(Token(TokenKind.LITERAL, "".join(word)))
            del word[:]

    idx = 0
    while idx < len(text):
        char = text[idx]
        if char.isspace() or char in _SPECIAL:
            _flush()
        if char in _OPEN_KIND:
            closers.append(_PAIRS[char])
            tokens.append(Token(_OPEN_KIND[char]))
        elif char in _CLOSE_KIND:
            if not closers or closers.pop() != char:
                raise MalformedHelpLine(f"unexpected {char!r} at column {idx} in {text!r}")
            if tokens[-1].kind in (TokenKind.GROUP_OPEN, TokenKind.OPTIONAL_OPEN):
                raise MalformedHelpLine(f"empty group at column {idx} in {text!r}")
            tokens.append(Token(_CLOSE_KIND[char]))
        elif char == "<":
            end = _match_angle(text, idx)
            inner = text[idx + 1:end].strip()
            if not inner:
                raise MalformedHelpLine(f"empty placeholder at column {idx} in {text!r}")
            if any(c in inner for c in "|([<"):
                tokens.append(Token(TokenKind.GROUP_OPEN))
                tokens.extend(tokenize(inner))
                tokens.append(Token(TokenKind.GROUP_CLOSE))
            else:
                tokens.append(Token(TokenKind.PLACEHOLDER, inner))
            idx = end
        elif char == ">":
            raise MalformedHelpLine(f"unexpected '>' at column {idx} in {text!r}")
        elif char == "|":
            tokens.append(Token(TokenKind.ALTERNATION))
        elif not char.isspace():
            word.append(char)
        idx += 1
    _flush()

    if closers:
        raise MalformedHelpLine(f"missing {''.join(reversed(closers))!r} in {text!r}")
    return tokens
