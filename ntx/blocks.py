"""Open environments held on the compiler's stack."""
from __future__ import annotations

from dataclasses import dataclass, field

from .tokens import BlockType


@dataclass
class Block:
    """One open environment.

    ``data`` holds raw element text and, in place of each closed child, the
    child's rendered text.  ``indent`` is the indentation the block's content
    lines must sit at; ``initial_pos`` is the index of the token that opened it.
    """

    type: BlockType
    indent: int
    initial_pos: int
    name: str = ""
    label: str = ""
    data: list[str] = field(default_factory=list)
    starts_list: bool = False  # first item of a list run: wraps the enumerate
    flush: bool = False  # LIST_ITEM: marker at the parent's own indent
    round_depth: int = 0  # MATH_INLINE: round-bracket depth on entry
    curly_depth: int = 0  # ARRAY: curly depth of the closing brace
