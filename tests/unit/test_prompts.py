#!/usr/bin/env python3
"""
Unit tests for prompt sources.
"""

import pytest

from mediadrive.errors import NonInteractiveInputError
from mediadrive.prompts import (
    ConsolePromptSource,
    NonInteractivePromptSource,
    QueuedPromptSource,
    parse_answer_list,
)


class TestQueuedPromptSource:
    """Tests for QueuedPromptSource."""

    def test_answers_in_order(self):
        prompts = QueuedPromptSource(["a", " b ", "3"])
        assert [prompts.ask("?"), prompts.ask("?"), prompts.ask("?")] == ["a", "b", "3"]
        assert prompts.remaining == 0

    def test_records_prompts(self):
        prompts = QueuedPromptSource(["x"])
        prompts.ask("Name: ")
        assert prompts.asked == ["Name: "]

    def test_exhausted_falls_back_to_cancel(self):
        prompts = QueuedPromptSource([])
        assert prompts.ask("Name: ") == "C"

    def test_custom_fallback(self):
        assert QueuedPromptSource([], fallback="B").ask("?") == "B"

    def test_exhausted_non_interactive_raises(self):
        prompts = QueuedPromptSource(["only"], non_interactive=True)
        assert prompts.ask("first") == "only"
        with pytest.raises(NonInteractiveInputError):
            prompts.ask("second")

    def test_echo(self):
        transcript = []
        QueuedPromptSource(["yes"], echo=transcript.append).ask("Sure? ")
        assert transcript == ["Sure? yes"]

    @pytest.mark.parametrize("answer, expected", [("y", True), ("YES", True), ("n", False), ("maybe", False)])
    def test_ask_yes_no(self, answer, expected):
        assert QueuedPromptSource([answer]).ask_yes_no("?") is expected

    def test_ask_yes_no_blank_uses_default(self):
        assert QueuedPromptSource([""]).ask_yes_no("?", default=True) is True
        assert QueuedPromptSource([""]).ask_yes_no("?") is False


class TestConsolePromptSource:
    """Tests for ConsolePromptSource."""

    def test_strips_input(self):
        prompts = ConsolePromptSource(input_func=lambda prompt: "  2  ")
        assert prompts.ask("Pick: ") == "2"
        assert prompts.non_interactive is False

    def test_eof_means_cancel(self):
        def _eof(prompt):
            raise EOFError

        assert ConsolePromptSource(input_func=_eof).ask("Pick: ") == "C"


class TestNonInteractivePromptSource:
    """Tests for NonInteractivePromptSource."""

    def test_every_prompt_raises(self):
        prompts = NonInteractivePromptSource()
        assert prompts.non_interactive is True
        with pytest.raises(NonInteractiveInputError) as exc_info:
            prompts.ask("Remove storage group(s) 1? [y/N]: ")
        assert "Remove storage group(s) 1?" in str(exc_info.value)


class TestParseAnswerList:
    """Tests for parse_answer_list."""

    def test_split(self):
        assert parse_answer_list("Photos;1; 2,3") == ["Photos", "1", "2,3"]

    def test_blank_entries_kept(self):
        assert parse_answer_list(";1;") == ["", "1", ""]

    def test_empty(self):
        assert parse_answer_list(None) == []
        assert parse_answer_list("") == []
