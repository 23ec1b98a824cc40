"""
Errors raised while compiling ntx markup.

All compilation errors are fatal: they are raised where the problem is
detected and propagate out of the compiler unchanged.

Hierarchy
---------
- NtxError
  - NtxSyntaxError        malformed nesting (arrays, declarations, brackets)
  - NtxIndentationError   indentation that matches no open block
  - InternalError         compiler invariant broken (never valid input)
"""
from __future__ import annotations

from typing import Optional


class NtxError(Exception):
    """Base class for every error raised by the ntx compiler.

    Parameters
    ----------
    message : str
        Human-readable description of the problem.
    line : int, optional
        1-based source line on which the problem was detected.
    column : int or str, optional
        Column of the offending text, or ``"*"`` when the whole line is at fault.
    """

    kind = "Error"

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: int | str | None = None,
    ) -> None:
        self.message = message
        self.line = line
        self.column = column
        super().__init__(self.format())

    def format(self) -> str:
        column = 0 if self.column is None else self.column
        if self.line is None:
            return f"{self.kind}: {self.message}"
        return f"[{self.line}:{column}] {self.kind}: {self.message}"


class NtxSyntaxError(NtxError):
    """Malformed structure: open arrays, illegal declarations, unbalanced brackets."""

    kind = "SyntaxError"


class NtxIndentationError(NtxError):
    """Indentation that does not match any open block.

    ``expected`` and ``found`` are the indentation widths involved;
    ``block_line`` is the line on which the nearest open block began, when
    that block is what the indentation failed to match.
    """

    kind = "IndentationError"

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        *,
        expected: int,
        found: int,
        block_line: Optional[int] = None,
    ) -> None:
        self.expected = expected
        self.found = found
        self.block_line = block_line
        super().__init__(message, line, 0)


class InternalError(NtxError):
    """A compiler invariant was violated."""

    kind = "InternalError"
