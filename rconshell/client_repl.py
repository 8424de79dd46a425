"""REPL components for interactive RCON sessions, built on prompt_toolkit."""

from __future__ import annotations

# std imports
import re
import sys
import asyncio
import logging
from typing import Any, List, Tuple, Callable, Iterable, Optional

# 3rd party
import prompt_toolkit
import prompt_toolkit.lexers
import prompt_toolkit.styles
import prompt_toolkit.history
import prompt_toolkit.completion
import prompt_toolkit.application
import prompt_toolkit.auto_suggest
import prompt_toolkit.key_binding
from wcwidth import wcswidth

# local
from .rcon import RconError, RconClient
from .registry import CommandRegistry
from .help_text import format_help_response, format_generic_response
from .completion import complete

__all__ = (
    "GrammarCompleter",
    "GrammarAutoSuggest",
    "CommandLexer",
    "toolbar_fragments",
    "PromptToolkitRepl",
    "repl_event_loop",
)

_RE_FIRST_WORD = re.compile(r"^(\s*)(\S*)(.*)$", re.DOTALL)

_STYLE = prompt_toolkit.styles.Style.from_dict({
    "command.known": "fg:ansigreen",
    "bottom-toolbar": "noreverse",
    "bottom-toolbar.usage": "fg:#cccccc",
    "bottom-toolbar.placeholder": "fg:ansiyellow bold",
    "auto-suggest": "fg:#666666",
})


def _wcswidth(text: str) -> int:
    """Return display width of *text*, handling wide chars."""
    w = wcswidth(text)
    return w if w >= 0 else len(text)


def _truncate(text: str, avail: int) -> str:
    """Truncate *text* to fit *avail* display columns."""
    if avail <= 0:
        return ""
    if _wcswidth(text) <= avail:
        return text
    result = []
    total = 0
    for ch in text:
        cw = _wcswidth(ch)
        if total + cw + 1 > avail:
            break
        result.append(ch)
        total += cw
    return "".join(result) + "…"


def _strip_prefix(registry: CommandRegistry, word: str) -> str:
    prefix = registry.command_prefix
    if prefix and word.startswith(prefix):
        return word[len(prefix):]
    return word


def _make_history(
    history_file: Optional[str],
) -> "prompt_toolkit.history.History":
    """Create a history instance, ensuring parent directories exist."""
    if history_file:
        import pathlib  # pylint: disable=import-outside-toplevel

        pathlib.Path(history_file).parent.mkdir(parents=True, exist_ok=True)
        return prompt_toolkit.history.FileHistory(history_file)
    return prompt_toolkit.history.InMemoryHistory()


class GrammarCompleter(prompt_toolkit.completion.Completer):  # type: ignore[misc]
    """
    Completer offering commands and arguments derived from server help.

    Command name candidates carry their usage as display meta.

    :param registry: Command grammars of the session.
    """

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def get_completions(
        self, document: Any, complete_event: Any
    ) -> Iterable["prompt_toolkit.completion.Completion"]:
        """
        Yield one completion per candidate of the active word.

        At the end of the line a space follows the candidate, so the next
        word completes without typing it.
        """
        before = document.text_before_cursor
        on_command = len(before.split()) <= 1 and not before[-1:].isspace()
        suffix = "" if document.text_after_cursor else " "
        result = complete(self.registry, document.text, document.cursor_position)
        for candidate in result.candidates:
            yield prompt_toolkit.completion.Completion(
                candidate + suffix,
                start_position=-len(result.fragment),
                display=candidate,
                display_meta=self.registry.usage(candidate) if on_command else None,
            )


class GrammarAutoSuggest(prompt_toolkit.auto_suggest.AutoSuggest):  # type: ignore[misc]
    """
    Inline hint completing the active word when only one candidate remains.

    Placeholder names are not suggested inline, accepting the suggestion
    would insert them; the toolbar shows them instead.
    """

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def get_suggestion(
        self, buffer: Any, document: Any
    ) -> Optional["prompt_toolkit.auto_suggest.Suggestion"]:
        """Return the hint for *document*, or ``None``."""
        if not document.is_cursor_at_the_end:
            return None
        result = complete(self.registry, document.text, document.cursor_position)
        if result.hint and not result.hint_is_placeholder:
            return prompt_toolkit.auto_suggest.Suggestion(result.hint)
        return None


class CommandLexer(prompt_toolkit.lexers.Lexer):  # type: ignore[misc]
    """Highlight the command name of each line when the server knows it."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def lex_document(self, document: Any) -> Callable[[int], List[Tuple[str, str]]]:
        """Return function of line number to formatted text fragments."""
        lines = document.lines

        def get_line(lineno: int) -> List[Tuple[str, str]]:
            try:
                line = lines[lineno]
            except IndexError:
                return []
            lead, word, rest = _RE_FIRST_WORD.match(line).groups()
            if word and self.registry.resolve(_strip_prefix(self.registry, word)) is not None:
                return [("", lead), ("class:command.known", word), ("", rest)]
            return [("", line)]

        return get_line


def toolbar_fragments(
    registry: CommandRegistry, text: str, cursor: int, columns: int
) -> List[Tuple[str, str]]:
    """
    Return toolbar fragments for input *text* with cursor at *cursor*.

    Shows the expected placeholder, if any, followed by the usage of the
    command being typed, truncated to *columns* cells.
    """
    words = text[:cursor].split()
    if not words:
        return []
    usage = registry.usage(_strip_prefix(registry, words[0]))
    if usage is None:
        return []
    result = complete(registry, text, cursor)
    fragments: List[Tuple[str, str]] = []
    avail = columns - 1
    if result.hint_is_placeholder:
        label = _truncate(f"<{result.hint}> ", avail)
        fragments.append(("class:bottom-toolbar.placeholder", label))
        avail -= _wcswidth(label)
    fragments.append(("class:bottom-toolbar.usage", _truncate(usage, avail)))
    return fragments


class PromptToolkitRepl:
    """
    REPL using prompt_toolkit's PromptSession with grammar completion.

    Provides persistent or in-memory history, tab completion, inline hints,
    command highlighting and a toolbar showing the usage of the command
    being typed.

    :param registry: Command grammars of the session.
    :param log: Logger instance.
    :param history_file: Path to a persistent history file, or ``None``
        to use in-memory history only.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        log: logging.Logger,
        history_file: Optional[str] = None,
    ) -> None:
        """Initialize REPL with registry, logger, and optional history file."""
        self.registry = registry
        self._log = log
        kb = prompt_toolkit.key_binding.KeyBindings()

        @kb.add("c-]")
        def _escape_quit(event: Any) -> None:
            """Ctrl+] closes the session, matching classic telnet."""
            event.app.exit(exception=EOFError)

        self._session: "prompt_toolkit.PromptSession[str]" = prompt_toolkit.PromptSession(
            history=_make_history(history_file),
            completer=GrammarCompleter(registry),
            auto_suggest=GrammarAutoSuggest(registry),
            lexer=CommandLexer(registry),
            complete_while_typing=False,
            key_bindings=kb,
            style=_STYLE,
            bottom_toolbar=self._get_toolbar,
        )

    def _get_toolbar(self) -> List[Tuple[str, str]]:
        document = self._session.default_buffer.document
        columns = prompt_toolkit.application.get_app().output.get_size().columns
        return toolbar_fragments(self.registry, document.text, document.cursor_position, columns)

    async def prompt(self) -> Optional[str]:
        """
        Read one line of input from the user.

        :returns: Input string, or ``None`` on EOF or interrupt.
        """
        try:
            result: str = await self._session.prompt_async("> ")
            return result
        except EOFError:
            return None
        except KeyboardInterrupt:
            return None


def _format_response(registry: CommandRegistry, help_command: str, cmd: str, body: str) -> str:
    name = _strip_prefix(registry, cmd.split()[0])
    if name == help_command:
        return format_help_response(body)
    return format_generic_response(body)


async def repl_event_loop(
    client: RconClient,
    registry: CommandRegistry,
    history_file: Optional[str] = None,
    help_command: str = "help",
    repl: Optional[Any] = None,
    echo: Callable[..., None] = print,
) -> None:
    """
    Prompt for commands and print the server's responses until EOF.

    ``exit`` and ``quit`` end the session, empty lines are ignored.  A
    failed command is reported and the loop continues; a lost connection
    ends the loop.

    :param client: Authenticated RCON client.
    :param registry: Command grammars of the session.
    :param history_file: Path to a persistent history file.
    :param help_command: Command whose response is reformatted as help.
    :param repl: Object with an async ``prompt()`` method, a
        :class:`PromptToolkitRepl` is created when ``None``.
    :param echo: ``print``-like output function.
    """
    log = logging.getLogger(__name__)
    if repl is None:
        repl = PromptToolkitRepl(registry, log, history_file=history_file)
    while True:
        line = await repl.prompt()
        if line is None:
            break
        cmd = line.strip()
        if cmd.lower() in ("exit", "quit"):
            break
        if not cmd:
            continue
        try:
            response = await client.send_command(cmd)
        except RconError as exc:
            echo(f"Error: {exc}", file=sys.stderr)
            continue
        except (asyncio.IncompleteReadError, asyncio.TimeoutError, ConnectionError) as exc:
            log.error("connection lost: %s", str(exc) or type(exc).__name__)
            break
        echo(_format_response(registry, help_command, cmd, response))
