"""Read-only store of derived command grammars and aliases."""

from __future__ import annotations

# std imports
import types
from typing import Tuple, Mapping, Iterator, Optional
from dataclasses import dataclass

# local
from .grammar import Seq, render

__all__ = ("CommandSpec", "CommandRegistry")


@dataclass(frozen=True)
class CommandSpec:
    """
    Grammar of one server command.

    :param name: Canonical command name, without command prefix.
    :param grammar: Merged syntax tree of all help lines seen for ``name``.
    :param aliases: Alias names resolving to ``name``, in declaration order.
    """

    name: str
    grammar: Seq
    aliases: Tuple[str, ...] = ()


class CommandRegistry:
    """
    Immutable lookup surface over command grammars.

    Instances are normally produced by :meth:`~.GrammarBuilder.build`.  Nothing
    mutates a registry after construction, so one instance may be shared by
    any number of completion queries.

    :param commands: Mapping of canonical name to :class:`CommandSpec`.
    :param aliases: Mapping of alias to canonical name.
    :param names: Canonical names and aliases in declaration order, used by
        :meth:`all_names`.  Defaults to commands followed by aliases.
    :param warnings: Problems recorded while deriving the grammar.
    :param command_prefix: Character the server accepts before command names.
    """

    def __init__(
        self,
        commands: Mapping[str, CommandSpec],
        aliases: Optional[Mapping[str, str]] = None,
        names: Optional[Tuple[str, ...]] = None,
        warnings: Tuple[str, ...] = (),
        command_prefix: str = "/",
    ) -> None:
        self._commands = types.MappingProxyType(dict(commands))
        self._aliases = types.MappingProxyType(dict(aliases or {}))
        if names is None:
            names = tuple(self._commands) + tuple(self._aliases)
        self._names = tuple(names)
        self._warnings = tuple(warnings)
        self._prefix = command_prefix

    def __repr__(self) -> str:
        return "<CommandRegistry commands={0} aliases={1}>".format(
            len(self._commands), len(self._aliases)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommandRegistry):
            return NotImplemented
        return (
            dict(self._commands) == dict(other._commands)
            and dict(self._aliases) == dict(other._aliases)
            and self._names == other._names
        )

    __hash__ = None  # type: ignore[assignment]

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.resolve(name) is not None

    @property
    def commands(self) -> Mapping[str, CommandSpec]:
        """Read-only mapping of canonical name to :class:`CommandSpec`."""
        return self._commands

    @property
    def aliases(self) -> Mapping[str, str]:
        """Read-only mapping of alias to canonical name."""
        return self._aliases

    @property
    def warnings(self) -> Tuple[str, ...]:
        """Help lines skipped or partially merged while building."""
        return self._warnings

    @property
    def command_prefix(self) -> str:
        """Prefix character optionally typed before a command name."""
        return self._prefix

    def resolve(self, name: str) -> Optional[str]:
        """
        Return the canonical name for an alias or canonical *name*.

        Unknown names return ``None``.
        """
        if name in self._commands:
            return name
        return self._aliases.get(name)

    def lookup(self, canonical: str) -> Optional[CommandSpec]:
        """Return :class:`CommandSpec` of a canonical name, or ``None``."""
        return self._commands.get(canonical)

    def all_names(self) -> Iterator[str]:
        """Yield canonical names and aliases in declaration order."""
        yield from self._names

    def usage(self, name: str) -> Optional[str]:
        """
        Return the help syntax of command or alias *name*.

        Example::

            >>> registry.usage("tp")
            '/teleport (<location>|<destination>|<targets>)'
        """
        canonical = self.resolve(name)
        if canonical is None:
            return None
        spec = self._commands[canonical]
        return " ".join(filter(None, (self._prefix + spec.name, render(spec.grammar))))
