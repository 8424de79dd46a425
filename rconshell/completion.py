"""
Completion and inline hints for partially typed commands.

:func:`complete` is called on every edit of the input line.  It performs no
I/O and never mutates the registry.  The walk over a command's grammar
tracks every position still reachable after the words typed so far, so an
optional argument or a choice between a keyword and a placeholder needs no
backtracking.
"""

from __future__ import annotations

# std imports
from typing import Dict, List, Tuple, Iterable, Iterator
from dataclasses import dataclass

# local
from .grammar import Opt, Seq, Choice, Literal, GrammarNode, Placeholder
from .registry import CommandRegistry

__all__ = ("CompletionResult", "complete")

# Remaining grammar nodes to match, in order; empty when the form is complete.
_Position = Tuple[GrammarNode, ...]


@dataclass(frozen=True)
class CompletionResult:
    """
    Answer of one :func:`complete` query.

    :param candidates: Completions of the active word, in grammar order.
    :param hint: Remaining characters of the only candidate, or the name of
        an expected placeholder; empty when ambiguous or nothing matches.
    :param fragment: Portion of the active word matched against candidates
        (the text a chosen candidate replaces).
    :param hint_is_placeholder: Whether ``hint`` names a placeholder rather
        than completing the active word.
    """

    candidates: Tuple[str, ...] = ()
    hint: str = ""
    fragment: str = ""
    hint_is_placeholder: bool = False


def _heads(position: _Position) -> Iterator[_Position]:
    """Yield positions reachable from *position* that start with an atom."""
    if not position:
        yield position
        return
    node, rest = position[0], position[1:]
    if isinstance(node, Seq):
        yield from _heads(node.items + rest)
    elif isinstance(node, Choice):
        for option in node.options:
            yield from _heads((option,) + rest)
    elif isinstance(node, Opt):
        yield from _heads((node.node,) + rest)
        yield from _heads(rest)
    else:
        yield position


def _expand(positions: Iterable[_Position]) -> List[_Position]:
    seen: Dict[_Position, None] = {}
    for position in positions:
        for head in _heads(position):
            seen.setdefault(head, None)
    return list(seen)


def _advance(positions: List[_Position], word: str) -> List[_Position]:
    """Consume *word*, returning the positions that follow it."""
    following: Dict[_Position, None] = {}
    for position in _expand(positions):
        if not position:
            continue
        node = position[0]
        if isinstance(node, Placeholder) or (isinstance(node, Literal) and node.text == word):
            following.setdefault(position[1:], None)
    return list(following)


def _matching(options: Iterable[str], fragment: str) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(opt for opt in options if opt.startswith(fragment)))


def _literal_result(options: Iterable[str], fragment: str) -> CompletionResult:
    """
    Prefix-match *options* against *fragment*.

    The hint is the remainder of the only candidate; several candidates
    give no hint, even when they share a longer common prefix.
    """
    candidates = _matching(options, fragment)
    hint = ""
    if fragment and len(candidates) == 1:
        hint = candidates[0][len(fragment):]
    return CompletionResult(candidates=candidates, hint=hint, fragment=fragment)


def _split(text: str) -> Tuple[List[str], str]:
    """Split *text* into committed words and the active word."""
    words = text.split()
    if not words or text[-1:].isspace():
        return words, ""
    return words[:-1], words[-1]


def complete(registry: CommandRegistry, line: str, cursor: int) -> CompletionResult:
    """
    Return completions and hint for *line* with the cursor at *cursor*.

    Only text before the cursor is considered.  The first word completes
    against command names and aliases; later words walk the grammar of the
    resolved command.  Unknown commands and words the grammar does not
    accept produce an empty result.  A literal hint is given only when a
    single candidate remains, so ``s`` against ``save-all`` and
    ``save-off`` hints nothing.

    Example::

        >>> complete(registry, "whitelist a", 11)
        CompletionResult(candidates=('add',), hint='dd', fragment='a', hint_is_placeholder=False)

    :param registry: Command grammars.
    :param line: Input line.
    :param cursor: Cursor offset into *line*, clamped to its bounds.
    """
    cursor = max(0, min(cursor, len(line)))
    committed, active = _split(line[:cursor])
    prefix = registry.command_prefix

    if not committed:
        fragment = active
        if prefix and fragment.startswith(prefix):
            fragment = fragment[len(prefix):]
        return _literal_result(registry.all_names(), fragment)

    name = committed[0]
    if prefix and name.startswith(prefix):
        name = name[len(prefix):]
    canonical = registry.resolve(name)
    spec = registry.lookup(canonical) if canonical is not None else None
    if spec is None:
        return CompletionResult()

    positions: List[_Position] = [(spec.grammar,)]
    for word in committed[1:]:
        positions = _advance(positions, word)
        if not positions:
            return CompletionResult()

    literals: List[str] = []
    placeholders: List[str] = []
    for position in _expand(positions):
        if not position:
            continue
        node = position[0]
        if isinstance(node, Literal):
            literals.append(node.text)
        elif isinstance(node, Placeholder):
            placeholders.append(node.name)

    result = _literal_result(literals, active)
    if not result.candidates and placeholders and not active:
        return CompletionResult(hint=placeholders[0], hint_is_placeholder=True)
    return result
