"""
Heuristics deciding which words of running text are mathematics.

The rules are empirical and tuned against real notes; they are kept exactly
as they are so that existing notes keep rendering the same way.

Starting inline math (``starts_math_inline``), by token length:

- 1 character: letters and digits except ``a`` and ``I``; the operators
  ``= - + / *``; and ``^ _ < >`` when something precedes them.
- 2 characters: anything without lowercase letters; one lowercase letter
  unless it follows a capital (``Ab`` reads as a word, ``aB`` does not).
- 3+ characters: never with a closing bracket; always with ``\\ [ { ^ _``;
  otherwise only a single letter combined with ``+ - / *``.

Operators claim the preceding fragment as their left operand, so the
return value is the number of already-placed fragments to pull back into
the new math run.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Optional

from .tokens import BLANK_LINE, Element, Token

_CLOSING = "}])"
_MATH_MARKERS = "\\[{^_"
_ARITHMETIC = "+-/*"
_BINARY_OPERATORS = "=-+/*"
_NEEDS_OPERAND = "^_<>"

_REFERENCE_RE = re.compile(r"\\(?:ref|eqref|cite)\b.*")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def _is_upper(c: str) -> bool:
    return "A" <= c <= "Z"


def _is_lower(c: str) -> bool:
    return "a" <= c <= "z"


def _claimable(fragment: str) -> bool:
    """Whether *fragment* may be pulled into a math run as a left operand."""
    return fragment != BLANK_LINE and not any(c in fragment for c in _CLOSING)


def _take_at_least_one(history: Sequence[str]) -> int:
    return 1 if history and _claimable(history[-1]) else 0


def starts_math_inline(element: Element, history: Sequence[str]) -> Optional[int]:
    """Return how many trailing *history* fragments open a math run with *element*.

    ``None`` means *element* does not start inline math; ``0`` means it starts
    math on its own.
    """
    s = element.data
    n = len(s)

    if n == 0:
        return None

    if n == 1:
        if element.n_lower or element.n_upper or element.n_digits:
            return None if s in ("a", "I") else 0
        if s in _BINARY_OPERATORS:
            return _take_at_least_one(history)
        if s in _NEEDS_OPERAND:
            return _take_at_least_one(history) if history else None
        return None

    if n == 2:
        if element.n_lower == 0:
            return 0
        if element.n_lower == 1:
            # "Ab", "Of": a capitalised word
            if _is_upper(s[0]) and _is_lower(s[1]):
                return None
            return 0
        return None

    if any(c in s for c in _CLOSING):
        return None
    if any(c in s for c in _MATH_MARKERS):
        return 0
    if element.n_lower + element.n_upper == 1 and any(c in s for c in _ARITHMETIC):
        return 0
    return None


def continues_math_inline(
    element: Element,
    next_token: Optional[Token],
    history: Sequence[str],
    entry_round_depth: int,
) -> int:
    """Return how many tokens the open math run absorbs, starting at *element*.

    ``0`` closes the run before *element*; ``1`` absorbs *element*; ``2``
    absorbs *element* and *next_token*, which happens when *element* alone
    would not continue but the token after it would restart math.
    """
    if element.open_square or element.open_curly:
        return 1
    if starts_math_inline(element, history) is not None:
        return 1
    if element.is_digits:
        return 1
    # math must close at the round-bracket depth it opened with
    if element.open_round != entry_round_depth:
        return 1
    if (
        not element.is_lowercase
        and isinstance(next_token, Element)
        and starts_math_inline(next_token, history) is not None
    ):
        return 2
    return 0


def is_math_mode(word: str, currently_in_math_mode: bool) -> bool:
    """Word-level check: does *word* look like mathematics?

    *currently_in_math_mode* settles the ambiguous cases (empty words,
    numbers and words with at most one letter or digit) by keeping the
    current mode.
    """
    if not word:
        return currently_in_math_mode

    if len(word) == 1:
        if word.isalnum():
            return word not in ("a", "I")
        return word in _BINARY_OPERATORS

    if _REFERENCE_RE.fullmatch(word):
        return False
    if word.startswith("\\") or "^" in word or "_" in word:
        return True
    if _NUMBER_RE.fullmatch(word):
        return currently_in_math_mode
    if sum(1 for c in word if c.isalnum()) <= 1:
        return currently_in_math_mode
    return False
