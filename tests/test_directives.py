"""
Tests for directive extraction — pure text processing.
"""

import re

from pineforge.core.services.directives import (
    collapse_blank_lines,
    extract_directives,
    strip_code_fences,
)


def _assert_clean(text: str, prefix: str = "RUN_COMMAND:") -> None:
    for line in text.split("\n"):
        assert not line.strip().upper().startswith(prefix)
    assert "\n\n\n" not in text


class TestExtractDirectives:
    def test_no_directives_still_collapses_blank_runs(self):
        result = extract_directives("Just a normal reply.\n\n\n\nWith gaps.\n")
        assert result.commands == []
        assert not result
        assert result.cleaned_text == "Just a normal reply.\n\nWith gaps."
        _assert_clean(result.cleaned_text)

    def test_no_directives_tidy_text_unchanged(self):
        text = "Line one.\n\nLine two."
        assert extract_directives(text).cleaned_text == text

    def test_empty_text(self):
        result = extract_directives("")
        assert result.commands == []
        assert result.cleaned_text == ""

    def test_single_directive(self):
        result = extract_directives("Installing.\nRUN_COMMAND: npm install clsx\nDone.")
        assert result.commands == ["npm install clsx"]
        assert result.cleaned_text == "Installing.\nDone."

    def test_any_letter_case_in_source_order(self):
        text = (
            "Intro\n"
            "run_command: pnpm add zod\n"
            "  Run_Command:   npm run build  \n"
            "middle\n"
            "\tRUN_COMMAND: npx shadcn add button\n"
            "outro"
        )
        result = extract_directives(text)
        assert result.commands == [
            "pnpm add zod",
            "npm run build",
            "npx shadcn add button",
        ]
        assert [d.order for d in result.directives] == [0, 1, 2]
        _assert_clean(result.cleaned_text)

    def test_n_occurrences_yield_n_commands(self):
        lines = []
        for i in range(12):
            lines.append(f"step {i}")
            prefix = "RUN_COMMAND:" if i % 2 else "run_command:"
            lines.append(f"{prefix} npm run task{i}")
        result = extract_directives("\n".join(lines))
        assert result.commands == [f"npm run task{i}" for i in range(12)]
        _assert_clean(result.cleaned_text)

    def test_prefix_mid_line_is_not_a_directive(self):
        text = "Please do not RUN_COMMAND: rm -rf /"
        result = extract_directives(text)
        assert result.commands == []
        assert result.cleaned_text == text

    def test_blank_directive_discarded_but_line_removed(self):
        result = extract_directives("a\nRUN_COMMAND:   \nb\nRUN_COMMAND: npm test")
        assert result.commands == ["npm test"]
        assert "RUN_COMMAND" not in result.cleaned_text

    def test_excess_newlines_collapsed(self):
        text = "Top\n\nRUN_COMMAND: npm i\n\n\nBottom"
        result = extract_directives(text)
        assert result.cleaned_text == "Top\n\nBottom"

    def test_only_directives_leaves_empty_text(self):
        result = extract_directives("RUN_COMMAND: npm i\nRUN_COMMAND: npm run build\n")
        assert result.commands == ["npm i", "npm run build"]
        assert result.cleaned_text == ""

    def test_cap_drops_extra_but_strips_all(self):
        text = "\n".join(f"RUN_COMMAND: npm run t{i}" for i in range(10))
        result = extract_directives(text, max_directives=3)
        assert result.commands == ["npm run t0", "npm run t1", "npm run t2"]
        assert result.dropped == 7
        assert result.cleaned_text == ""

    def test_oversized_text_not_scanned(self):
        text = "RUN_COMMAND: npm i\n" + "x" * 100
        result = extract_directives(text, max_chars=50)
        assert result.commands == []
        assert result.cleaned_text == text

    def test_custom_prefix_is_escaped(self):
        result = extract_directives("EXEC(1): npm test\nRUN_COMMAND: npm i", prefix="EXEC(1):")
        assert result.commands == ["npm test"]
        assert "RUN_COMMAND: npm i" in result.cleaned_text


class TestTextHelpers:
    def test_collapse_blank_lines(self):
        assert collapse_blank_lines("a\n\n\n\n\nb\n\nc") == "a\n\nb\n\nc"

    def test_strip_code_fences(self):
        text = "Here is the page:\n\n```tsx\nexport default 1;\n```\n\n\nSaved."
        stripped = strip_code_fences(text)
        assert "```" not in stripped
        assert stripped == "Here is the page:\n\nSaved."
        assert not re.search(r"\n{3,}", stripped)

    def test_strip_code_fences_multiple_blocks(self):
        text = "A\n```\none\n```\nB\n```py\ntwo\n```"
        assert strip_code_fences(text) == "A\n\nB"
