"""
Compile a token stream into LaTeX with a stack of open blocks.

The stack always holds a root PlainText block at indent 0.  Tokens are
consumed in order and each one either lands in the top block, opens a new
block on top, or closes the top block.  Closing renders the block (see
``renderer.amalgamate``) and appends the result to the new top, so a parent
never sees an open child.

What opens a block
  environment declaration    PlainText / MathBlock, one indent step deeper
  list-item marker           ListItem, on a deeper line, at a line start
                             inside a list item, or ``*`` starting a line
                             of running text
  math-like element          MathInline, possibly claiming preceding words
  ``\\arr{`` in a MathBlock    Array

What closes a block
  dedent below its indent, an empty line (MathInline), its closing ``}``
  (Array), a non-math element (MathInline), end of input.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from .blocks import Block
from .config import Config
from .detection import continues_math_inline, starts_math_inline
from .errors import InternalError, NtxIndentationError, NtxSyntaxError
from .renderer import Attached, amalgamate, render_section
from .tokens import (
    BLANK_LINE,
    BlockType,
    Element,
    EnvironmentDeclaration,
    LineBreak,
    Token,
)

_ARRAY_START = "\\arr{"
_DECLARABLE = (BlockType.PLAIN_TEXT, BlockType.MATH_BLOCK)


class Compiler:
    """Single-pass block-stack compiler over a token list.

    Drive it with :meth:`run`, or call :meth:`step` until :attr:`done` and
    then :meth:`finish` to observe the stack between tokens.
    """

    def __init__(self, tokens: Sequence[Token], config: Optional[Config] = None) -> None:
        self.tokens = tokens
        self.config = config or Config()
        self.pos = 0
        self.stack: list[Block] = [Block(BlockType.PLAIN_TEXT, 0, 0)]

    @property
    def top(self) -> Block:
        return self.stack[-1]

    @property
    def done(self) -> bool:
        return self.pos >= len(self.tokens)

    def run(self) -> str:
        """Consume every token and return the compiled LaTeX."""
        while not self.done:
            self.step()
        return self.finish()

    def step(self) -> None:
        """Consume the token at :attr:`pos` (and any it looks ahead over)."""
        token = self.tokens[self.pos]
        if isinstance(token, LineBreak):
            self.pos = self._line_break(token)
        elif isinstance(token, EnvironmentDeclaration):
            self.pos = self._declaration(token)
        elif isinstance(token, Element):
            self.pos = self._element(token)
        else:
            raise InternalError(f"Unknown token {token!r}")

    def finish(self) -> str:
        """Unwind the stack and return the root block's text."""
        while len(self.stack) > 1:
            self._pop()
        if len(self.stack) != 1 or self.top.type is not BlockType.PLAIN_TEXT:
            raise InternalError("Block stack did not unwind to the root")
        # anything after the first fragment is blank-line padding
        return amalgamate(self.top)[0]

    # ------------------------------------------------------------------
    # Stack operations
    # ------------------------------------------------------------------

    def _push(self, block: Block) -> None:
        self.stack.append(block)

    def _pop(self) -> None:
        if len(self.stack) < 2:
            raise InternalError("Cannot close the root block")
        fragments = amalgamate(self.stack.pop())
        self.top.data.extend(fragments)

    def _line_of(self, pos: int) -> int:
        if not self.tokens:
            return 0
        return self.tokens[min(pos, len(self.tokens) - 1)].line

    @staticmethod
    def _text(element: Element) -> str:
        return Attached(element.data) if element.attached else element.data

    # ------------------------------------------------------------------
    # List items
    # ------------------------------------------------------------------

    def _item_label(self, pos: int, bracketed: bool = True) -> Optional[tuple[str, int]]:
        """Match a list-item marker at the start of a line.

        Returns ``(label, next_pos)`` for ``*``, ``[ label words ]`` or
        ``[[ label words ]]``; with *bracketed* false only ``*`` counts.
        """
        tokens = self.tokens
        if pos == 0 or pos >= len(tokens):
            return None
        if not isinstance(tokens[pos - 1], LineBreak):
            return None

        def is_text(i: int, text: str) -> bool:
            return i < len(tokens) and isinstance(tokens[i], Element) and tokens[i].data == text

        if is_text(pos, "*"):
            return "\\item", pos + 1
        if not bracketed:
            return None

        i = pos
        opened = 0
        while opened < 2 and is_text(i, "["):
            opened += 1
            i += 1
        if not opened:
            return None

        words: list[str] = []
        while i < len(tokens) and not is_text(i, "]"):
            if not isinstance(tokens[i], Element):
                return None
            words.append(tokens[i].data)
            i += 1

        for _ in range(opened):
            if not is_text(i, "]"):
                return None
            i += 1
        return f"\\item[{' '.join(words)}]", i

    def _continued_item(self, pos: int) -> Optional[tuple[str, int]]:
        """Marker at *pos* on a line that continues the current block.

        Bracketed labels only open items inside a list; in running text a
        line such as ``[0, 1] is closed.`` stays text.
        """
        below = self.stack[-2] if self.top.type is BlockType.MATH_INLINE else self.top
        return self._item_label(pos, bracketed=below.type is BlockType.LIST_ITEM)

    def _close_flush_list(self, indent: int) -> None:
        """Close list items written flush with their parent's text.

        Such a list ends at the first line at its indent that is not an item.
        """
        below = self.stack[-2] if self.top.type is BlockType.MATH_INLINE else self.top
        if below.type is not BlockType.LIST_ITEM or not below.flush:
            return
        while self.top.type is BlockType.MATH_INLINE or (
            self.top.type is BlockType.LIST_ITEM and self.top.flush and self.top.indent == indent
        ):
            self._pop()

    # ------------------------------------------------------------------
    # Token handlers
    # ------------------------------------------------------------------

    def _line_break(self, token: LineBreak) -> int:
        if self.top.type is BlockType.ARRAY:
            raise NtxSyntaxError(
                "Array started on previous line must be completed on the same line",
                token.line,
                0,
            )

        if token.is_empty:
            if self.top.type is BlockType.MATH_INLINE:
                self._pop()
            self.top.data.append(BLANK_LINE)
            return self.pos + 1

        if token.indent > self.top.indent:
            return self._deeper_line(token)

        while self.top.indent > token.indent:
            self._pop()
        if self.top.indent != token.indent:
            raise NtxIndentationError(
                f"Indent level doesn't match any. Expecting {self.top.indent} "
                f"started on line {self._line_of(self.top.initial_pos)} found {token.indent}",
                token.line,
                expected=self.top.indent,
                found=token.indent,
                block_line=self._line_of(self.top.initial_pos),
            )
        if self._continued_item(self.pos + 1) is not None:
            if self.top.type is BlockType.MATH_INLINE:
                # a new item ends the math run of the previous one
                self._pop()
        else:
            self._close_flush_list(token.indent)
        return self.pos + 1

    def _deeper_line(self, token: LineBreak) -> int:
        """An indent increase is only valid as the start of a new list level."""
        item = self._item_label(self.pos + 1)
        if item is not None and self.top.type is BlockType.MATH_INLINE:
            self._pop()
        if item is None or self.top.type not in (BlockType.PLAIN_TEXT, BlockType.LIST_ITEM):
            raise NtxIndentationError(
                f"Expected indent {self.top.indent} found {token.indent}",
                token.line,
                expected=self.top.indent,
                found=token.indent,
            )

        label, next_pos = item
        self._push(
            Block(
                BlockType.LIST_ITEM,
                token.indent,
                self.pos + 1,
                name=label,
                starts_list=True,
            )
        )
        return next_pos

    def _declaration(self, token: EnvironmentDeclaration) -> int:
        if self.top.type in (BlockType.MATH_BLOCK, BlockType.ARRAY):
            raise NtxSyntaxError(
                f"Cannot declare an environment whilst in environment {self.top.type}",
                token.line,
                "*",
            )
        if self.top.type is BlockType.MATH_INLINE:
            self._pop()

        if token.kind is BlockType.SECTION:
            self.top.data.append(render_section(token.name, token.label))
        elif token.kind in _DECLARABLE:
            self._push(
                Block(
                    token.kind,
                    self.top.indent + self.config.indent_width,
                    self.pos,
                    name=token.name,
                    label=token.label,
                )
            )
        else:
            raise NtxSyntaxError(
                f"Cannot declare environment of type {token.kind}",
                token.line,
                "*",
            )
        return self.pos + 1

    def _element(self, token: Element) -> int:
        block_type = self.top.type

        if block_type is BlockType.LIST_ITEM:
            item = self._item_label(self.pos)
            if item is not None:
                label, next_pos = item
                # sibling item; nests structurally, renders flat
                self._push(
                    Block(
                        BlockType.LIST_ITEM,
                        self.top.indent,
                        self.pos,
                        name=label,
                        flush=self.top.flush,
                    )
                )
                return next_pos
            return self._text_element(token)

        if block_type is BlockType.PLAIN_TEXT:
            item = self._item_label(self.pos, bracketed=False)
            if item is not None:
                label, next_pos = item
                self._push(
                    Block(
                        BlockType.LIST_ITEM,
                        self.top.indent,
                        self.pos,
                        name=label,
                        starts_list=True,
                        flush=True,
                    )
                )
                return next_pos
            return self._text_element(token)

        if block_type is BlockType.MATH_BLOCK:
            if token.data == _ARRAY_START:
                self._push(
                    Block(
                        BlockType.ARRAY,
                        self.top.indent,
                        self.pos,
                        curly_depth=token.open_curly + 1,
                    )
                )
            else:
                self.top.data.append(self._text(token))
            return self.pos + 1

        if block_type is BlockType.ARRAY:
            if token.data == "}" and token.open_curly == self.top.curly_depth:
                self._pop()
            else:
                self._array_cell(token)
            return self.pos + 1

        if block_type is BlockType.MATH_INLINE:
            return self._math_element(token)

        raise InternalError(f"Unexpected block {block_type} on the stack")

    def _array_cell(self, token: Element) -> None:
        """Add *token* to the open array.

        A cell is a whitespace-separated run at the array's own brace level,
        so ``\\frac{1}{2}`` and ``x+1`` each stay a single cell.
        """
        cells = self.top.data
        nested = token.open_curly > self.top.curly_depth
        if cells and not cells[-1].endswith(";") and (token.attached or nested):
            separator = "" if token.attached else " "
            cells[-1] = f"{cells[-1]}{separator}{token.data}"
        else:
            cells.append(token.data)

    def _text_element(self, token: Element) -> int:
        data = self.top.data
        claim = starts_math_inline(token, data)
        if claim is None:
            data.append(self._text(token))
            return self.pos + 1

        block = Block(
            BlockType.MATH_INLINE,
            self.top.indent,
            self.pos - claim,
            round_depth=token.open_round,
        )
        if claim:
            block.data.extend(data[-claim:])
            del data[-claim:]
        block.data.append(self._text(token))
        self._push(block)
        return self.pos + 1

    def _math_element(self, token: Element) -> int:
        following = self.tokens[self.pos + 1] if self.pos + 1 < len(self.tokens) else None
        absorbed = continues_math_inline(token, following, self.top.data, self.top.round_depth)

        if absorbed == 0:
            self._pop()
            self.top.data.append(self._text(token))
            return self.pos + 1

        self.top.data.append(self._text(token))
        if absorbed == 2:
            self.top.data.append(self._text(following))
        return self.pos + absorbed


def convert_to_tex(tokens: Sequence[Token], config: Optional[Config] = None) -> str:
    """Compile *tokens* into a LaTeX string."""
    return Compiler(tokens, config).run()
