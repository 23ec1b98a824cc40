"""
Render a closed block's fragments into LaTeX text.

``amalgamate`` returns a list of fragments for the parent block.  The first
is the block's own text; any others must follow it in the parent:

- inline math ending in ``; , . :`` returns the punctuation separately so it
  lands after the closing ``$``;
- blank lines at the end of a block are returned as a trailing marker so the
  blank line appears after the block's closing text.
"""
from __future__ import annotations

from collections.abc import Sequence

from .blocks import Block
from .errors import InternalError
from .tokens import BLANK_LINE, BlockType

_OPEN_ENDINGS = ("{", "[", "(", '"', "'", "\n")
_CLOSE_STARTS = ("}", "]", ")", ".", ",", ";", ":", '"', "'", "\n")
_ARGUMENT_OPENERS = ("{", "[", "(")
_TRAILING_PUNCTUATION = ";,.:"

_TEXT_BLANK = "\n\n"
_MATH_BLANK = "\n"


class Attached(str):
    """A fragment written directly against the previous one in the source."""

    __slots__ = ()


def _with_text(fragment: str, text: str) -> str:
    """Return *text*, keeping *fragment*'s attachment."""
    return Attached(text) if isinstance(fragment, Attached) else text


# ---------------------------------------------------------------------------
# Spacing
# ---------------------------------------------------------------------------

def needs_space(left: str, right: str) -> bool:
    """Whether a space separates *left* and *right* when joined."""
    if isinstance(right, Attached):
        return False
    if left.endswith(_OPEN_ENDINGS) or right.startswith(_CLOSE_STARTS):
        return False
    # command arguments: \frac{, \section[
    if left.startswith("\\") and right.startswith(_ARGUMENT_OPENERS):
        return False
    return True


def join_fragments(fragments: Sequence[str], blank: str = _TEXT_BLANK) -> str:
    """Concatenate *fragments*, collapsing each run of blank-line markers into *blank*.

    Leading markers are dropped; callers strip trailing ones first.
    """
    parts: list[str] = []
    prev: str | None = None
    pending_blank = False

    for fragment in fragments:
        if fragment == BLANK_LINE:
            pending_blank = prev is not None
            continue
        if not fragment:
            continue
        if prev is not None:
            if pending_blank:
                # newlines already on either side count towards the blank line
                have = len(prev) - len(prev.rstrip("\n"))
                have += len(fragment) - len(fragment.lstrip("\n"))
                parts.append("\n" * max(0, len(blank) - have))
            elif needs_space(prev, fragment):
                parts.append(" ")
        parts.append(fragment)
        prev = fragment
        pending_blank = False

    return "".join(parts)


def _split_trailing(data: Sequence[str]) -> tuple[Sequence[str], list[str]]:
    """Separate trailing blank-line markers, collapsed to at most one."""
    end = len(data)
    while end and data[end - 1] == BLANK_LINE:
        end -= 1
    return data[:end], [BLANK_LINE] if end < len(data) else []


# ---------------------------------------------------------------------------
# Block renderers
# ---------------------------------------------------------------------------

def _wrap(name: str, label: str, body: str) -> str:
    head = f"\n\\begin{{{name}}}\n"
    if label:
        head += f"\\label{{{label}}}\n"
    return f"{head}{body}\n\\end{{{name}}}\n"


def _render_plain_text(block: Block) -> list[str]:
    body, trailing = _split_trailing(block.data)
    text = join_fragments(body)
    if block.name:
        text = _wrap(block.name, block.label, text)
    return [text] + trailing


def _render_math_block(block: Block) -> list[str]:
    body, trailing = _split_trailing(block.data)
    # unlabelled equations are unnumbered
    name = block.name or "equation"
    if not block.label:
        name += "*"
    return [_wrap(name, block.label, join_fragments(body, _MATH_BLANK))] + trailing


def _render_math_inline(block: Block) -> list[str]:
    data = list(block.data)
    last = data[-1] if data else ""
    if last and last[-1] in _TRAILING_PUNCTUATION:
        data[-1] = _with_text(last, last[:-1])
        return [f"${join_fragments(data, _MATH_BLANK)}$", last[-1]]
    return [f"${join_fragments(data, _MATH_BLANK)}$"]


def array_width(data: Sequence[str]) -> int:
    """Number of columns: the widest row, rows ending at ``;`` fragments."""
    widest = 0
    current = 0
    for cell in data:
        if cell.endswith(";"):
            widest = max(widest, current + (len(cell) > 1))
            current = 0
        else:
            current += 1
    return max(widest, current)


def _render_array(block: Block) -> list[str]:
    width = array_width(block.data)
    parts = [f"\\left( \\begin{{array}}{{{'c' * width}}} "]
    column = 0
    for cell in block.data:
        if cell.endswith(";"):
            if len(cell) > 1:
                parts.append(cell[:-1] + " ")
            parts.append("// ")
            column = 0
        else:
            column += 1
            parts.append(cell + (" & " if column < width else " "))
    parts.append("\\end{array} \\right)")
    return ["".join(parts)]


def _render_list_item(block: Block) -> list[str]:
    body, trailing = _split_trailing(block.data)
    text = f"\n{block.name} {join_fragments(body)}"
    if block.starts_list:
        text = f"\n\\begin{{enumerate}}{text}\n\\end{{enumerate}}\n"
    return [text] + trailing


def amalgamate(block: Block) -> list[str]:
    """Render a closed *block* into the fragments that replace it in its parent."""
    if block.type is BlockType.PLAIN_TEXT:
        return _render_plain_text(block)
    if block.type is BlockType.MATH_BLOCK:
        return _render_math_block(block)
    if block.type is BlockType.MATH_INLINE:
        return _render_math_inline(block)
    if block.type is BlockType.ARRAY:
        return _render_array(block)
    if block.type is BlockType.LIST_ITEM:
        return _render_list_item(block)
    raise InternalError(f"Cannot render a block of type {block.type}")


def render_section(name: str, title: str) -> str:
    """Sectioning command emitted in place for a section declaration."""
    return f"\n\\{name}{{{title}}}\n"
