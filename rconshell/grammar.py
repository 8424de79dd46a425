"""
Command grammar trees.

A command's argument syntax is held as a small tree of frozen node values:
:class:`Seq`, :class:`Choice`, :class:`Opt`, :class:`Literal` and
:class:`Placeholder`.  This module parses token streams from
:mod:`rconshell.tokenizer` into such trees, merges the trees of several
help lines describing the same command, and renders trees back into help
syntax.
"""

from __future__ import annotations

# std imports
from typing import List, Tuple, Union, Optional
from dataclasses import dataclass

# local
from .tokenizer import Token, TokenKind, MalformedHelpLine, tokenize

__all__ = (
    "Literal",
    "Placeholder",
    "Seq",
    "Choice",
    "Opt",
    "GrammarNode",
    "GrammarConflict",
    "parse_tokens",
    "parse_syntax",
    "merge",
    "render",
)


@dataclass(frozen=True)
class Literal:
    """A fixed keyword, matched exactly and case-sensitively."""

    text: str


@dataclass(frozen=True)
class Placeholder:
    """A free-form argument, such as ``<player>``."""

    name: str


@dataclass(frozen=True)
class Seq:
    """Nodes that must appear in order."""

    items: Tuple["GrammarNode", ...] = ()


@dataclass(frozen=True)
class Choice:
    """Mutually exclusive alternatives at one position, in declaration order."""

    options: Tuple["GrammarNode", ...]


@dataclass(frozen=True)
class Opt:
    """Zero or one occurrence of ``node``."""

    node: "GrammarNode"


GrammarNode = Union[Literal, Placeholder, Seq, Choice, Opt]


class GrammarConflict(ValueError):
    """Raised when two variants of a command cannot be merged."""


def _collapse(items: Tuple[GrammarNode, ...]) -> GrammarNode:
    """Return the sole item of *items*, or a :class:`Seq` of them."""
    if len(items) == 1:
        return items[0]
    return Seq(items)


def _items(node: GrammarNode) -> Tuple[GrammarNode, ...]:
    if isinstance(node, Seq):
        return node.items
    return (node,)


def _make_choice(branches: List[GrammarNode]) -> GrammarNode:
    """Build a :class:`Choice`, flattening nested choices and duplicates."""
    options: List[GrammarNode] = []
    for branch in branches:
        for option in branch.options if isinstance(branch, Choice) else (branch,):
            if option not in options:
                options.append(option)
    if len(options) == 1:
        return options[0]
    return Choice(tuple(options))


class _Parser:
    """Recursive descent over a token list with an explicit cursor."""

    def __init__(self, tokens: List[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    def _peek(self) -> Optional[Token]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _expect(self, kind: TokenKind) -> None:
        token = self._peek()
        if token is None or token.kind is not kind:
            raise MalformedHelpLine(f"expected {kind.value!r} at token {self.pos}")
        self.pos += 1

    def parse(self) -> Seq:
        node = self.alternation()
        if self._peek() is not None:
            raise MalformedHelpLine(f"unexpected {self._peek().kind.value!r} at token {self.pos}")
        if isinstance(node, Seq):
            return node
        return Seq((node,))

    def alternation(self) -> GrammarNode:
        branches = [self.sequence()]
        while self._peek() is not None and self._peek().kind is TokenKind.ALTERNATION:
            self.pos += 1
            branches.append(self.sequence())
        return _make_choice(branches)

    def sequence(self) -> GrammarNode:
        items: List[GrammarNode] = []
        while True:
            token = self._peek()
            if token is None or token.kind in (
                TokenKind.ALTERNATION,
                TokenKind.GROUP_CLOSE,
                TokenKind.OPTIONAL_CLOSE,
            ):
                break
            self.pos += 1
            if token.kind is TokenKind.LITERAL:
                items.append(Literal(token.text))
            elif token.kind is TokenKind.PLACEHOLDER:
                items.append(Placeholder(token.text))
            elif token.kind is TokenKind.GROUP_OPEN:
                inner = self.alternation()
                self._expect(TokenKind.GROUP_CLOSE)
                items.extend(_items(inner))
            elif token.kind is TokenKind.OPTIONAL_OPEN:
                inner = self.alternation()
                self._expect(TokenKind.OPTIONAL_CLOSE)
                if _items(inner):
                    items.append(Opt(inner))
        return _collapse(tuple(items))


def parse_tokens(tokens: List[Token]) -> Seq:
    """
    Parse a token stream into a grammar tree rooted at a :class:`Seq`.

    :raises MalformedHelpLine: When group markers are mispaired.
    """
    return _Parser(tokens).parse()


def parse_syntax(text: str) -> Seq:
    """Tokenize and parse help syntax, e.g. ``"(on|off) [<target>]"``."""
    return parse_tokens(tokenize(text))


def _label(node: GrammarNode) -> Optional[Tuple[str, str]]:
    """Return ``(kind, text)`` of the atom a branch starts with, if any."""
    if isinstance(node, Literal):
        return ("literal", node.text)
    if isinstance(node, Placeholder):
        return ("placeholder", node.name)
    if isinstance(node, Seq) and node.items:
        return _label(node.items[0])
    return None


def _optional(items: Tuple[GrammarNode, ...]) -> GrammarNode:
    node = _collapse(items)
    if isinstance(node, Opt):
        return node
    return Opt(node)


def _add_branch(choice: Choice, node: GrammarNode) -> Choice:
    """
    Return *choice* extended by alternative *node*.

    A branch starting with the same label absorbs *node* by a recursive
    merge.  A literal and a placeholder sharing one label cannot coexist.
    """
    branches = list(choice.options)
    if node in branches:
        return choice
    key = _label(node)
    if key is not None:
        for idx, branch in enumerate(branches):
            other = _label(branch)
            if other == key:
                branches[idx] = _collapse(_merge_items(_items(branch), _items(node)))
                return Choice(tuple(branches))
            if other is not None and other[1] == key[1]:
                raise GrammarConflict(
                    f"{key[0]} {key[1]!r} conflicts with {other[0]} {other[1]!r}"
                )
    branches.append(node)
    return Choice(tuple(branches))


def _merge_items(
    left: Tuple[GrammarNode, ...], right: Tuple[GrammarNode, ...]
) -> Tuple[GrammarNode, ...]:
    if left == right:
        return left
    if not left:
        return (_optional(right),)
    if not right:
        return (_optional(left),)
    if left[0] == right[0]:
        return (left[0],) + _merge_items(left[1:], right[1:])
    if len(left) == 1 and isinstance(left[0], Choice):
        return (_add_branch(left[0], _collapse(right)),)
    return (_add_branch(Choice((_collapse(left),)), _collapse(right)),)


def merge(first: Seq, second: Seq) -> Seq:
    """
    Merge two variants of one command into a single tree.

    Leading nodes both variants agree on are kept once; where they diverge,
    the remainders become alternatives of a :class:`Choice`.  When one
    variant is a prefix of the other, the extra tail becomes optional.

    Example::

        >>> render(merge(parse_syntax("doDaylightCycle <value>"),
        ...              parse_syntax("keepInventory <value>")))
        '(doDaylightCycle <value>|keepInventory <value>)'

    :raises GrammarConflict: When a literal and a placeholder of the same
        name meet at one position.
    """
    return Seq(_merge_items(first.items, second.items))


def render(node: GrammarNode) -> str:
    """Format a grammar tree back into help syntax."""
    if isinstance(node, Literal):
        return node.text
    if isinstance(node, Placeholder):
        return f"<{node.name}>"
    if isinstance(node, Seq):
        return " ".join(render(item) for item in node.items)
    if isinstance(node, Choice):
        return "(" + "|".join(render(option) for option in node.options) + ")"
    if isinstance(node, Opt):
        if isinstance(node.node, Choice):
            return "[" + "|".join(render(option) for option in node.node.options) + "]"
        return f"[{render(node.node)}]"
    raise TypeError(f"not a grammar node: {node!r}")
