"""Tests for rconshell.completion module."""

# 3rd party
import pytest

# local
from rconshell.builder import build_registry
from rconshell.completion import CompletionResult, complete
from rconshell.help_text import iter_help_lines
from conftest import VANILLA_HELP


def _at_end(registry, line):
    return complete(registry, line, len(line))


class TestCommandNames:

    def test_ambiguous_prefix(self, registry):
        result = complete(registry, "wh", 2)
        assert result.candidates == ("whitelist", "whisper")
        assert result.hint == ""

    def test_unique_prefix_hint(self, registry):
        result = _at_end(registry, "whit")
        assert result.candidates == ("whitelist",)
        assert result.hint == "elist"
        assert result.fragment == "whit"

    def test_empty_line_lists_everything(self, registry):
        result = complete(registry, "", 0)
        assert result.candidates == (
            "whitelist", "whisper", "op", "gamerule", "gamemode",
            "spreadplayers", "time", "execute", "tp", "teleport",
        )
        assert result.hint == ""

    def test_aliases_included(self, registry):
        assert _at_end(registry, "t").candidates == ("time", "tp", "teleport")

    def test_command_prefix_typed(self, registry):
        result = _at_end(registry, "/whis")
        assert result.candidates == ("whisper",)
        assert result.hint == "per"
        assert result.fragment == "whis"

    def test_case_sensitive(self, registry):
        assert _at_end(registry, "WH") == CompletionResult(fragment="WH")

    def test_shared_prefix_gives_no_hint(self):
        registry = build_registry(["/save-all", "/save-off", "/save-on"])
        result = _at_end(registry, "s")
        assert result.candidates == ("save-all", "save-off", "save-on")
        assert result.hint == ""
        assert _at_end(registry, "save-a").hint == "ll"

    def test_complete_name_no_hint(self, registry):
        result = _at_end(registry, "op")
        assert result.candidates == ("op",)
        assert result.hint == ""


class TestArguments:

    def test_placeholder_prompt(self, registry):
        result = complete(registry, "op ", 3)
        assert result.candidates == ()
        assert result.hint == "player"
        assert result.hint_is_placeholder

    def test_literal_choice(self, registry):
        result = complete(registry, "whitelist a", 11)
        assert result.candidates == ("add",)
        assert result.hint == "dd"
        assert not result.hint_is_placeholder

    def test_empty_active_lists_all_options(self, registry):
        result = _at_end(registry, "whitelist ")
        assert result.candidates == ("add", "remove", "list")
        assert result.hint == ""

    def test_merged_variants(self, registry):
        assert _at_end(registry, "gamerule ").candidates == ("doDaylightCycle", "keepInventory")
        assert _at_end(registry, "gamerule k").hint == "eepInventory"
        assert _at_end(registry, "gamerule keepInventory ").hint == "value"

    def test_declaration_order_not_sorted(self, registry):
        assert _at_end(registry, "time ").candidates == ("set", "add", "query")
        assert _at_end(registry, "time set ").candidates == ("day", "night")
        assert _at_end(registry, "time query d").candidates == ("daytime", "day")

    def test_placeholder_consumes_any_word(self, registry):
        result = _at_end(registry, "whisper Steve ")
        assert result.hint == "message"

    def test_typing_free_text_has_no_hint(self, registry):
        assert _at_end(registry, "op Ste") == CompletionResult(fragment="Ste")

    def test_optional_skipped(self, registry):
        assert _at_end(registry, "execute ").candidates == ("as", "run")
        assert _at_end(registry, "execute r").hint == "un"
        assert _at_end(registry, "execute run ").hint == "command"

    def test_optional_entered(self, registry):
        assert _at_end(registry, "execute as ").hint == "targets"
        assert _at_end(registry, "execute as @a ").candidates == ("run",)

    def test_optional_tail_after_placeholder(self, registry):
        result = _at_end(registry, "gamemode creative ")
        assert result.hint == "target"
        assert _at_end(registry, "gamemode creative Steve ") == CompletionResult()

    def test_literal_or_placeholder(self, registry):
        result = _at_end(registry, "spreadplayers 0,0 ")
        assert result.candidates == ("under",)
        assert result.hint == ""
        assert _at_end(registry, "spreadplayers 0,0 u").hint == "nder"
        assert _at_end(registry, "spreadplayers 0,0 true ").hint == "maxHeight"
        assert _at_end(registry, "spreadplayers 0,0 under ").hint == "maxHeight"

    def test_alias_walks_canonical_grammar(self, registry):
        assert _at_end(registry, "tp ") == _at_end(registry, "teleport ")
        assert _at_end(registry, "tp ").hint == "destination"

    def test_prefixed_command(self, registry):
        assert complete(registry, "/whitelist a", 12).candidates == ("add",)

    def test_exhausted_form(self, registry):
        assert _at_end(registry, "whitelist add ") == CompletionResult()

    def test_wrong_literal_fails_walk(self, registry):
        assert _at_end(registry, "whitelist addd ") == CompletionResult()
        assert _at_end(registry, "time sett d") == CompletionResult()

    def test_unknown_command(self, registry):
        assert _at_end(registry, "say hello") == CompletionResult()
        assert _at_end(registry, "say ") == CompletionResult()

    def test_repeated_whitespace(self, registry):
        result = _at_end(registry, "  whitelist    a")
        assert result.candidates == ("add",)


class TestCursor:

    def test_mid_token(self, registry):
        result = complete(registry, "whitelist remove", 12)
        assert result.candidates == ("remove",)
        assert result.hint == "move"
        assert result.fragment == "re"

    def test_ignores_text_after_cursor(self, registry):
        assert complete(registry, "op Steve", 3) == complete(registry, "op ", 3)

    @pytest.mark.parametrize("cursor", [-5, 0])
    def test_cursor_clamped_low(self, registry, cursor):
        assert complete(registry, "wh", cursor) == complete(registry, "", 0)

    def test_cursor_clamped_high(self, registry):
        assert complete(registry, "whit", 99).hint == "elist"


def test_vanilla_help_completion():
    registry = build_registry(iter_help_lines(VANILLA_HELP))
    assert _at_end(registry, "/wh").candidates == ("whisper", "whitelist")
    assert _at_end(registry, "/whitelist r").candidates == ("remove", "reload")
    assert _at_end(registry, "/tell ").hint == "targets"
    assert _at_end(registry, "/difficulty ").candidates == ("peaceful", "easy", "normal", "hard")
    assert _at_end(registry, "/difficulty hard ") == CompletionResult()
    assert _at_end(registry, "/ban Steve ").hint == "reason"
