"""
Unit tests for the block-stack compiler.

Tests stack invariants, inline math detection in context, environment
declarations, arrays, list items and the fatal error cases.
"""
import textwrap

import pytest

from ntx.compiler import Compiler, convert_to_tex
from ntx.config import Config, load_config_from_dict
from ntx.errors import NtxIndentationError, NtxSyntaxError
from ntx.tokenizer import tokenize
from ntx.tokens import BlockType


def _compiler(source, config=None):
    config = config or Config()
    return Compiler(tokenize(textwrap.dedent(source).splitlines(), config), config)


class TestStack:
    """Test invariants of the block stack."""

    def test_indents_never_decrease_up_the_stack(self):
        """After every token the stack is non-empty and indents are monotonic."""
        compiler = _compiler(
            """\
            \\thm main
                Let x be real.
                * one
                    * nested a=b
                * two
            \\eq
                y = \\arr{ 1 0; 0 1 }
            """
        )
        while not compiler.done:
            compiler.step()
            assert len(compiler.stack) >= 1
            indents = [block.indent for block in compiler.stack]
            assert indents == sorted(indents)
        compiler.finish()
        assert len(compiler.stack) == 1

    def test_root_is_plain_text(self):
        """The bottom of the stack is an unnamed text block at indent 0."""
        root = _compiler("").stack[0]
        assert root.type is BlockType.PLAIN_TEXT
        assert (root.indent, root.name) == (0, "")

    def test_empty_document(self):
        """No tokens compile to an empty string."""
        assert convert_to_tex([]) == ""


class TestInlineMath:
    """Test inline math in running text."""

    def test_relation_claims_left_operand(self, compile_source):
        """'a' is text alone but becomes the left side of a relation."""
        assert compile_source("Note that a = b") == "Note that $a = b$"

    def test_adjacency_is_kept(self, compile_source):
        """Operators written without spaces stay without spaces."""
        assert compile_source("Let a=b.") == "Let $a=b$."

    def test_words_close_math(self, compile_source):
        """A lowercase word ends the math run."""
        assert compile_source("x and y") == "$x$ and $y$"

    def test_function_application(self, compile_source):
        """Brackets after a symbol are absorbed into the run."""
        assert compile_source("Then f(x) holds.") == "Then $f(x)$ holds."

    def test_math_closes_at_entry_depth(self, compile_source):
        """Math opened inside brackets leaves the closing bracket outside."""
        assert compile_source("(see x)") == "(see $x$)"

    def test_numbers_continue(self, compile_source):
        """Digits keep the run going."""
        assert compile_source("the value n+1 is") == "the value $n+1$ is"

    def test_empty_line_closes_math(self, compile_source):
        """An empty line ends inline math and makes a paragraph break."""
        assert compile_source("x\n\n1990 was a year") == "$x$\n\n1990 was a year"

    def test_math_runs_across_lines(self, compile_source):
        """A run continues over a line break at the same indent."""
        assert compile_source("Let x =\ny + 1 hold") == "Let $x = y + 1$ hold"


class TestDeclarations:
    """Test environment declarations."""

    def test_theorem_wraps_body(self, compile_source):
        """A text declaration wraps its indented body."""
        tex = compile_source("\\thm\n    Let a=b.\n")
        assert "\\begin{theorem}" in tex
        assert "Let $a=b$." in tex
        assert tex.rstrip().endswith("\\end{theorem}")

    def test_label(self, compile_source):
        """The declaration label becomes a \\label."""
        tex = compile_source("\\lemma key\n    Easy.\n")
        assert "\\begin{lemma}\n\\label{key}\nEasy.\n\\end{lemma}" in tex

    def test_body_ends_on_dedent(self, compile_source):
        """Dedenting closes the environment."""
        tex = compile_source("\\proof\n    Clear.\nAfterwards.")
        assert tex == "\n\\begin{proof}\nClear.\n\\end{proof}\nAfterwards."

    def test_nested_environments(self, compile_source):
        """Environments nest one indent step per level."""
        tex = compile_source(
            """\
            \\thm
                Claim.
                \\proof
                    Done.
            """
        )
        assert tex.index("\\begin{proof}") > tex.index("\\begin{theorem}")
        assert tex.index("\\end{proof}") < tex.index("\\end{theorem}")

    def test_section_renders_in_place(self, compile_source):
        """Sections do not nest and take no body."""
        tex = compile_source("\\section Groups and rings\nText.")
        assert tex == "\n\\section{Groups and rings}\nText."

    def test_unknown_environment_is_text(self, compile_source):
        """Unknown names pass through without error."""
        assert "\\foo" in compile_source("\\foo bar")

    def test_declaration_closes_inline_math(self, compile_source):
        """A declaration ends an open math run first."""
        tex = compile_source("x\n\\thm\n    y\n")
        assert tex.startswith("$x$\n\\begin{theorem}")

    def test_declaration_inside_equation_raises(self, compile_source):
        """Text environments cannot open inside an equation."""
        with pytest.raises(NtxSyntaxError) as excinfo:
            compile_source("\\eq\n    x\n    \\thm\n")
        assert excinfo.value.line == 3
        assert excinfo.value.column == "*"
        assert "whilst in environment MathBlock" in excinfo.value.message

    def test_unsupported_kind_raises(self, compile_source):
        """Only text and math blocks can be declared."""
        config = load_config_from_dict({"environments": {"grid": {"kind": "array"}}})
        with pytest.raises(NtxSyntaxError, match="Cannot declare environment of type Array"):
            compile_source("\\grid\n", config)

    def test_custom_indent_width(self, compile_source, custom_config):
        """The configured indent step sets the body indent."""
        tex = compile_source("\\defn\n  Some text.\n", custom_config)
        assert tex == "\n\\begin{definition}\nSome text.\n\\end{definition}\n"


class TestArrays:
    """Test arrays inside equations."""

    def test_array(self, compile_source):
        """An array renders as a bracketed grid."""
        tex = compile_source("\\eq\n    R = \\arr{ a b; c d }\n")
        assert "R = \\left( \\begin{array}{cc} a & b // c & d \\end{array} \\right)" in tex

    def test_nested_braces_stay_in_cell(self, compile_source):
        """Braces inside a cell do not close the array."""
        tex = compile_source("\\eq\n    \\arr{ \\frac{1}{2} 0; 0 1 }\n")
        assert "{cc} \\frac{1}{2} & 0 // 0 & 1 \\end{array}" in tex

    def test_array_must_close_on_its_line(self, compile_source):
        """A line break inside an array is an error."""
        with pytest.raises(NtxSyntaxError) as excinfo:
            compile_source("\\eq\n    \\arr{ a b;\n    c d }\n")
        assert excinfo.value.line == 3

    def test_array_outside_equation_is_text(self, compile_source):
        """Outside a math block the array marker is ordinary math."""
        tex = compile_source("See \\arr{ a }")
        assert "array" not in tex


class TestLists:
    """Test list items."""

    def test_nested_list(self, compile_source, squash):
        """A deeper marker opens a nested enumerate inside the item."""
        tex = compile_source("* item one\n    * nested\n")
        assert squash(tex) == squash(
            "\\begin{enumerate}\\item item one \\begin{enumerate}\\item nested"
            " \\end{enumerate}\\end{enumerate}"
        )

    def test_sibling_items(self, compile_source, squash):
        """Consecutive markers share one enumerate; text afterwards closes it."""
        tex = compile_source("* one\n* two\nafter")
        assert squash(tex) == "\\begin{enumerate}\\itemone\\itemtwo\\end{enumerate}after"

    def test_labelled_items(self, compile_source, squash):
        """Bracketed labels become optional item arguments inside a list."""
        tex = compile_source("* first\n[[b c]] second\n")
        assert squash(tex) == "\\begin{enumerate}\\itemfirst\\item[bc]second\\end{enumerate}"

    def test_labelled_items_on_deeper_line(self, compile_source, squash):
        """A deeper bracketed label starts a labelled list."""
        tex = compile_source("Cases:\n    [a] first\n    [b] second\n")
        assert squash(tex) == (
            "Cases:\\begin{enumerate}\\item[a]first\\item[b]second\\end{enumerate}"
        )

    def test_bracket_at_line_start_is_text(self, compile_source):
        """A line of running text starting with a bracket is not a list item."""
        tex = compile_source("The unit interval\n[0, 1] is closed.\n")
        assert "\\item" not in tex
        assert "enumerate" not in tex
        assert tex.endswith("is closed.")

    def test_blank_line_between_items(self, compile_source):
        """A blank line between sibling items is a single blank line."""
        tex = compile_source("* one\n\n* two\n")
        assert "\\item one\n\n\\item two" in tex
        assert "\n\n\n" not in tex

    def test_list_inside_theorem(self, compile_source, squash):
        """A deeper line inside an environment starts a list there."""
        tex = compile_source(
            """\
            \\thm
                Facts:
                    * one
                    * two
                Done.
            """
        )
        assert squash(tex) == (
            "\\begin{theorem}Facts:\\begin{enumerate}\\itemone\\itemtwo"
            "\\end{enumerate}Done.\\end{theorem}"
        )

    def test_item_closes_math_of_previous_item(self, compile_source, squash):
        """Inline math at the end of an item stays in that item."""
        tex = compile_source("* take x\n* then y\n")
        assert squash(tex) == (
            "\\begin{enumerate}\\itemtake$x$\\itemthen$y$\\end{enumerate}"
        )


class TestIndentationErrors:
    """Test indentation errors and their fields."""

    def test_unexpected_indent(self, compile_source):
        """A deeper line that is not a list item is an error."""
        with pytest.raises(NtxIndentationError) as excinfo:
            compile_source("\\thm\n    Let x\n        more\n")
        err = excinfo.value
        assert (err.line, err.expected, err.found) == (3, 4, 8)
        assert str(err) == "[3:0] IndentationError: Expected indent 4 found 8"

    def test_dedent_to_unknown_level(self, compile_source):
        """A dedent must land on an open block's indent."""
        with pytest.raises(NtxIndentationError) as excinfo:
            compile_source(
                """\
                \\thm
                    \\proof
                        Done.
                      oops
                """
            )
        err = excinfo.value
        assert (err.line, err.expected, err.found, err.block_line) == (4, 4, 6, 1)
        assert "started on line 1" in err.message

    def test_indented_first_line(self, compile_source):
        """Content cannot start indented under the root."""
        with pytest.raises(NtxIndentationError):
            compile_source("x\n    y\n")
