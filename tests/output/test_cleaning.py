"""Tests for the individual cleanup stages."""

import pytest

from lmcode.output.cleaning import (
    cut_at_prose,
    fenced_bodies,
    normalize_lines,
    strip_comments,
    strip_reasoning,
)


class TestStripReasoning:
    def test_removes_think_block(self) -> None:
        assert strip_reasoning("<think>plan it</think>\ncode()") == "\ncode()"

    def test_case_insensitive_variants(self) -> None:
        text = "<THINKING>a\nb</THINKING>x<reasoning>y</reasoning>z"
        assert strip_reasoning(text) == "xz"

    def test_dangling_close_tag(self) -> None:
        """Streamed replies can lose the opening tag."""
        assert strip_reasoning("half a thought</think>\ncode()") == "\ncode()"

    def test_plain_text_untouched(self) -> None:
        assert strip_reasoning("a < b and b > c") == "a < b and b > c"


class TestFencedBodies:
    def test_bodies_in_order(self) -> None:
        text = "Sure:\n```python\na = 1\n```\nand\n```\nb = 2\n```\n"
        assert fenced_bodies(text) == ["a = 1", "b = 2"]

    def test_repeated_bodies_all_kept(self) -> None:
        text = "```js\nf();\n```\n```js\ng();\n```\n```js\nf();\n```"
        assert fenced_bodies(text) == ["f();", "g();", "f();"]

    def test_no_fences(self) -> None:
        assert fenced_bodies("x = 1\n") == []


class TestCutAtProse:
    def test_cut_at_prose(self) -> None:
        text = "x = 1\ny = 2\nHere is what changed:\nI renamed things."
        assert cut_at_prose(text) == "x = 1\ny = 2"

    @pytest.mark.parametrize(
        "line",
        ["Explanation:", "Note: the loop now stops early.", "Summary of changes"],
    )
    def test_prose_lines(self, line: str) -> None:
        assert cut_at_prose(f"run()\n{line}\nmore text") == "run()"

    @pytest.mark.parametrize(
        "line",
        [
            "fixed = compute()",
            "note(fixed)",
            "solution.run()",
            "summary += 1",
            "answer //= 2",
            "note: str = ''",
            "answer: int = 42",
            "fixed: dict[str, int] = {}",
            "summary, note = split(text)",
            "answer != 0 and note < limit",
        ],
    )
    def test_lead_in_word_used_as_code(self, line: str) -> None:
        text = f"{line}\nprint(1)"
        assert cut_at_prose(text) == text

    def test_unclosed_fence_line_dropped(self) -> None:
        assert cut_at_prose("```ts\nconst a = 1;") == "const a = 1;"


class TestStripComments:
    def test_slash_comments(self) -> None:
        code = "int a = 1; // set a\n// whole line\nint b = 2;"
        assert strip_comments(code) == "int a = 1;\nint b = 2;"

    def test_floor_division_survives(self) -> None:
        code = "half = n // 2\nsteps //= 2"
        assert strip_comments(code) == code

    def test_comment_after_brace(self) -> None:
        assert strip_comments("if (ok) {// fast path\n}") == "if (ok) {\n}"

    def test_urls_survive(self) -> None:
        code = 'const url = "http://example.com/api";'
        assert strip_comments(code) == code

    def test_hash_comments(self) -> None:
        code = "#!/usr/bin/env python\n# comment\nx = 1  # trailing\nprint('#not')"
        assert strip_comments(code) == "#!/usr/bin/env python\nx = 1\nprint('#not')"

    def test_preprocessor_directives_kept(self) -> None:
        code = "#include <stdio.h>\n#define MAX 10\n#pragma once"
        assert strip_comments(code) == code

    def test_block_comments(self) -> None:
        code = "a();\n/**\n * docs\n */\nb(); /* inline */ c();"
        assert strip_comments(code) == "a();\nb();  c();"

    def test_markup_comments(self) -> None:
        assert strip_comments("<div><!-- note --></div>") == "<div></div>"

    def test_sql_comments(self) -> None:
        code = "SELECT 1; -- pick one\n-- full line\nSELECT 2;\ni--;"
        assert strip_comments(code) == "SELECT 1; \nSELECT 2;\ni--;"

    def test_blank_lines_without_comments_kept(self) -> None:
        assert strip_comments("a\n\nb") == "a\n\nb"


def test_normalize_lines() -> None:
    assert normalize_lines("a  \n\n\n\nb\t\n") == ["a", "", "b", ""]
