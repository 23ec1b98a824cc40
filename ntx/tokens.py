"""
Token and block-kind definitions shared by the tokenizer and the compiler.

A source document becomes a flat list of tokens:

LineBreak
  One per source line (directive lines excepted).  Empty lines carry
  ``is_empty=True``; other lines carry their indentation.
EnvironmentDeclaration
  A whole ``\\<name> <label>`` line whose name is in the environment table.
Element
  A word, bracket or operator, with character-class counts and the
  bracket depth in effect when it was read.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class BlockType(Enum):
    """Kinds of block the compiler can hold on its stack."""

    SECTION = "section"
    PLAIN_TEXT = "plain_text"
    MATH_BLOCK = "math_block"
    MATH_INLINE = "math_inline"
    ARRAY = "array"
    LIST_ITEM = "list_item"

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.value.split("_"))


@dataclass(frozen=True)
class LineBreak:
    line: int
    is_empty: bool
    indent: int = 0


@dataclass(frozen=True)
class EnvironmentDeclaration:
    line: int
    kind: BlockType
    name: str
    label: str = ""


@dataclass(frozen=True)
class Element:
    line: int
    column: int
    data: str
    open_round: int = 0
    open_square: int = 0
    open_curly: int = 0
    n_lower: int = 0
    n_upper: int = 0
    n_digits: int = 0
    attached: bool = False  # no whitespace between this and the previous element

    @property
    def is_digits(self) -> bool:
        return bool(self.data) and self.n_digits == len(self.data)

    @property
    def is_lowercase(self) -> bool:
        return bool(self.data) and self.n_lower == len(self.data)


Token = Union[LineBreak, EnvironmentDeclaration, Element]

# Fragment appended to a block for each empty source line.
BLANK_LINE = "\n"
