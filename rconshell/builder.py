"""
Derive a :class:`~.CommandRegistry` from server help lines.

:class:`GrammarBuilder` is fed help lines one at a time, such as::

    /gamerule doDaylightCycle <value>
    /gamerule keepInventory <value>
    /teleport (<location>|<destination>|<targets>)
    /tp -> teleport

Lines naming the same command are merged into one grammar tree, alias
lines are recognized by pluggable alias strategies, and lines that cannot
be parsed are logged and skipped without failing the whole build.
"""

from __future__ import annotations

# std imports
import re
import logging
from typing import Dict, List, Tuple, Callable, Iterable, Optional

# local
from .grammar import Seq, GrammarConflict, merge, parse_syntax
from .registry import CommandSpec, CommandRegistry
from .tokenizer import MalformedHelpLine

__all__ = (
    "AliasStrategy",
    "arrow_alias",
    "alias_for_marker",
    "ALIAS_STYLES",
    "DEFAULT_ALIAS_STYLES",
    "GrammarBuilder",
    "build_registry",
)

#: Signature of alias detection strategies: receives the command name and
#: the rest of the help line, returns the alias target name or ``None``.
AliasStrategy = Callable[[str, str], Optional[str]]

_RE_ARROW = re.compile(r"^->\s*(?P<target>\S+)$")
_RE_ALIAS_FOR = re.compile(r"\balias\s+for\s+(?P<target>\S+)$", re.IGNORECASE)
_RE_NAME = re.compile(r"^[^\s()\[\]<>|]+$")

log = logging.getLogger(__name__)


def arrow_alias(name: str, rest: str) -> Optional[str]:
    """
    Detect vanilla Minecraft alias lines, ``/tp -> teleport``.

    :returns: target name, or ``None`` when *rest* is not an alias marker.
    """
    match = _RE_ARROW.match(rest)
    if match:
        return match.group("target")
    return None


def alias_for_marker(name: str, rest: str) -> Optional[str]:
    """Detect Bukkit style alias lines, ``/tele Alias for /tp``."""
    match = _RE_ALIAS_FOR.search(rest)
    if match:
        return match.group("target")
    return None


#: Alias strategies selectable by name, see ``--alias-style``.
ALIAS_STYLES: Dict[str, Tuple[AliasStrategy, ...]] = {
    "arrow": (arrow_alias,),
    "alias-for": (alias_for_marker,),
    "none": (),
}

DEFAULT_ALIAS_STYLES: Tuple[AliasStrategy, ...] = (arrow_alias, alias_for_marker)


class GrammarBuilder:
    """
    Accumulates help lines and finalizes them into a :class:`CommandRegistry`.

    :param command_prefix: Character stripped from the front of command
        names, ``"/"`` for Minecraft.
    :param alias_strategies: Alias detection strategies, tried in order.
        An empty sequence disables alias detection, so that every distinct
        leading token becomes a command of its own.
    """

    def __init__(
        self,
        command_prefix: str = "/",
        alias_strategies: Iterable[AliasStrategy] = DEFAULT_ALIAS_STYLES,
    ) -> None:
        self.command_prefix = command_prefix
        self.alias_strategies = tuple(alias_strategies)
        self._grammars: Dict[str, Seq] = {}
        self._alias_targets: Dict[str, str] = {}
        self._order: List[str] = []
        self._warnings: List[str] = []

    @property
    def warnings(self) -> Tuple[str, ...]:
        """Warnings recorded so far."""
        return tuple(self._warnings)

    def _warn(self, msg: str, *args: object, into: Optional[List[str]] = None) -> None:
        log.warning(msg, *args)
        (self._warnings if into is None else into).append(msg % args)

    def _strip_prefix(self, name: str) -> str:
        if self.command_prefix and name.startswith(self.command_prefix):
            return name[len(self.command_prefix):]
        return name

    def _declare(self, name: str) -> None:
        if name not in self._order:
            self._order.append(name)

    def feed(self, line: str) -> None:
        """
        Fold one help line into the grammar.

        Blank lines are ignored.  Malformed lines and unmergeable variants
        are recorded in :attr:`warnings` and otherwise skipped.  When no
        alias strategy is configured, a malformed line of a new name, such
        as ``/tp -> teleport``, still declares that name with no arguments.
        """
        line = line.strip()
        if not line:
            return
        head, _, rest = line.partition(" ")
        name = self._strip_prefix(head)
        rest = rest.strip()
        if not name or not _RE_NAME.match(name):
            self._warn("skipping help line %r: bad command name %r", line, head)
            return

        for strategy in self.alias_strategies:
            target = strategy(name, rest)
            if target is not None:
                self._alias_targets.setdefault(name, self._strip_prefix(target))
                self._declare(name)
                return

        try:
            grammar = parse_syntax(rest)
        except MalformedHelpLine as exc:
            if self.alias_strategies or name in self._grammars:
                self._warn("skipping help line %r: %s", line, exc)
                return
            # without alias detection, the name still becomes a command
            self._warn("declaring %r without arguments, help line %r: %s", name, line, exc)
            grammar = Seq(())

        existing = self._grammars.get(name)
        if existing is None:
            self._grammars[name] = grammar
            self._declare(name)
            return
        try:
            self._grammars[name] = merge(existing, grammar)
        except GrammarConflict as exc:
            self._warn("keeping first variant of %r, discarding %r: %s", name, line, exc)

    def feed_lines(self, lines: Iterable[str]) -> None:
        """Call :meth:`feed` for each of *lines*."""
        for line in lines:
            self.feed(line)

    def _resolve_alias(self, alias: str, warnings: List[str]) -> Optional[str]:
        seen = [alias]
        target = self._alias_targets[alias]
        while target not in self._grammars:
            if target not in self._alias_targets:
                self._warn("dropping alias %r: unknown command %r", alias, target, into=warnings)
                return None
            if target in seen:
                self._warn(
                    "dropping alias %r: cycle %s", alias, " -> ".join(seen + [target]),
                    into=warnings,
                )
                return None
            seen.append(target)
            target = self._alias_targets[target]
        return target

    def build(self) -> CommandRegistry:
        """Return an immutable :class:`CommandRegistry` of all lines fed so far."""
        warnings = list(self._warnings)
        aliases: Dict[str, str] = {}
        for alias in self._alias_targets:
            if alias in self._grammars:
                self._warn(
                    "ignoring alias %r: shadowed by command of that name", alias, into=warnings
                )
                continue
            target = self._resolve_alias(alias, warnings)
            if target is not None:
                aliases[alias] = target

        commands = {
            name: CommandSpec(
                name=name,
                grammar=grammar,
                aliases=tuple(a for a in self._order if aliases.get(a) == name),
            )
            for name, grammar in self._grammars.items()
        }
        names = tuple(n for n in self._order if n in commands or n in aliases)
        log.debug("built %d commands, %d aliases", len(commands), len(aliases))
        return CommandRegistry(
            commands,
            aliases,
            names=names,
            warnings=tuple(warnings),
            command_prefix=self.command_prefix,
        )


def build_registry(lines: Iterable[str], **kwargs: object) -> CommandRegistry:
    """
    Build a :class:`CommandRegistry` from help *lines*.

    Keyword arguments are passed to :class:`GrammarBuilder`.
    """
    builder = GrammarBuilder(**kwargs)  # type: ignore[arg-type]
    builder.feed_lines(lines)
    return builder.build()
