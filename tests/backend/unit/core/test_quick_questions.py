"""Tests for the quick-questions block parser and normalizer."""

from __future__ import annotations

import pytest

from core.constants import DEFAULT_QUICK_QUESTIONS
from core.quick_questions import (
    QUICK_QUESTIONS_PATTERN,
    ensure_quick_questions_block,
    format_quick_questions_block,
    parse_quick_questions,
)

SCENARIO_A = (
    "Hi there!\n<QUICK_QUESTIONS>\nHow are you?\nWhat's new?\nTell me more\nAnything else?\n</QUICK_QUESTIONS>"
)


def _blocks(content: str) -> list[str]:
    return QUICK_QUESTIONS_PATTERN.findall(content)


class TestParseQuickQuestions:
    def test_scenario_a(self) -> None:
        parsed = parse_quick_questions(SCENARIO_A)

        assert parsed.display_text == "Hi there!"
        assert parsed.questions == ["How are you?", "What's new?", "Tell me more", "Anything else?"]

    def test_no_block_returns_content_unchanged(self) -> None:
        content = "  Just an answer.\n"
        parsed = parse_quick_questions(content)

        assert parsed.display_text == content
        assert parsed.questions == []

    @pytest.mark.parametrize("content", ["", None])
    def test_empty_content(self, content: str | None) -> None:
        parsed = parse_quick_questions(content)  # type: ignore[arg-type]
        assert parsed.display_text == ""
        assert parsed.questions == []

    def test_blank_lines_and_whitespace_dropped(self) -> None:
        parsed = parse_quick_questions("A<QUICK_QUESTIONS>\n\n  One  \n\n Two\n</QUICK_QUESTIONS>")
        assert parsed.questions == ["One", "Two"]

    def test_partial_block_accepted(self) -> None:
        parsed = parse_quick_questions("Body\n<QUICK_QUESTIONS>\nOnly one\n</QUICK_QUESTIONS>")
        assert parsed.questions == ["Only one"]
        assert parsed.display_text == "Body"

    def test_empty_block(self) -> None:
        parsed = parse_quick_questions("Body <QUICK_QUESTIONS></QUICK_QUESTIONS>")
        assert parsed.questions == []
        assert parsed.display_text == "Body"

    def test_only_first_block_is_removed(self) -> None:
        content = "A\n<QUICK_QUESTIONS>\nQ1\n</QUICK_QUESTIONS>\nB\n<QUICK_QUESTIONS>\nQ2\n</QUICK_QUESTIONS>"
        parsed = parse_quick_questions(content)

        assert parsed.questions == ["Q1"]
        assert "Q2" in parsed.display_text
        assert parsed.display_text.startswith("A")

    def test_unterminated_block_is_not_a_block(self) -> None:
        content = "Answer\n<QUICK_QUESTIONS>\nQ1"
        parsed = parse_quick_questions(content)

        assert parsed.display_text == content
        assert parsed.questions == []

    def test_block_in_middle_of_text(self) -> None:
        parsed = parse_quick_questions("Before <QUICK_QUESTIONS>\nQ\n</QUICK_QUESTIONS> after")
        assert parsed.display_text == "Before  after"

    def test_parsing_is_idempotent(self) -> None:
        assert parse_quick_questions(SCENARIO_A) == parse_quick_questions(SCENARIO_A)


class TestEnsureQuickQuestionsBlock:
    def test_well_formed_block_is_preserved(self) -> None:
        result = ensure_quick_questions_block(SCENARIO_A)

        assert result == "Hi there!\n\n" + format_quick_questions_block(
            ["How are you?", "What's new?", "Tell me more", "Anything else?"]
        )

    def test_missing_block_is_filled_with_defaults(self) -> None:
        result = ensure_quick_questions_block("Plain answer.")
        parsed = parse_quick_questions(result)

        assert parsed.display_text == "Plain answer."
        assert parsed.questions == list(DEFAULT_QUICK_QUESTIONS[:4])

    def test_short_block_is_padded(self) -> None:
        result = ensure_quick_questions_block("A\n<QUICK_QUESTIONS>\nMine\n</QUICK_QUESTIONS>")
        questions = parse_quick_questions(result).questions

        assert len(questions) == 4
        assert questions[0] == "Mine"

    def test_long_block_is_truncated(self) -> None:
        block = "\n".join(f"Q{i}" for i in range(7))
        result = ensure_quick_questions_block(f"A\n<QUICK_QUESTIONS>\n{block}\n</QUICK_QUESTIONS>")

        assert parse_quick_questions(result).questions == ["Q0", "Q1", "Q2", "Q3"]

    def test_duplicates_are_removed(self) -> None:
        result = ensure_quick_questions_block("A<QUICK_QUESTIONS>\nSame\nSame\n</QUICK_QUESTIONS>")
        questions = parse_quick_questions(result).questions

        assert questions.count("Same") == 1
        assert len(questions) == 4

    def test_unterminated_block_is_salvaged(self) -> None:
        result = ensure_quick_questions_block("Answer\n<QUICK_QUESTIONS>\nQ1\nQ2")
        parsed = parse_quick_questions(result)

        assert parsed.display_text == "Answer"
        assert parsed.questions[:2] == ["Q1", "Q2"]
        assert len(_blocks(result)) == 1

    def test_extra_blocks_and_stray_tags_removed(self) -> None:
        content = (
            "A </QUICK_QUESTIONS>\n<QUICK_QUESTIONS>\nQ1\n</QUICK_QUESTIONS>\n"
            "B\n<QUICK_QUESTIONS>\nQ9\n</QUICK_QUESTIONS>"
        )
        result = ensure_quick_questions_block(content)

        assert len(_blocks(result)) == 1
        assert result.count("<QUICK_QUESTIONS>") == 1
        assert result.count("</QUICK_QUESTIONS>") == 1
        assert "Q9" not in result
        assert parse_quick_questions(result).questions[0] == "Q1"

    def test_block_only_response(self) -> None:
        result = ensure_quick_questions_block("<QUICK_QUESTIONS>\nQ1\n</QUICK_QUESTIONS>")
        assert result.startswith("<QUICK_QUESTIONS>")
        assert parse_quick_questions(result).display_text == ""

    @pytest.mark.parametrize(
        "content",
        [
            "Hello",
            SCENARIO_A,
            "x <QUICK_QUESTIONS>",
            "<QUICK_QUESTIONS></QUICK_QUESTIONS>",
            "a\n</QUICK_QUESTIONS>\nb",
        ],
    )
    def test_always_exactly_one_block_of_four(self, content: str) -> None:
        result = ensure_quick_questions_block(content)

        assert len(_blocks(result)) == 1
        questions = parse_quick_questions(result).questions
        assert len(questions) == 4
        assert all(q.strip() for q in questions)

    def test_normalization_is_stable(self) -> None:
        once = ensure_quick_questions_block("Answer\n<QUICK_QUESTIONS>\nQ1\n</QUICK_QUESTIONS>")
        assert ensure_quick_questions_block(once) == once
