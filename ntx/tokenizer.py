"""
Turn ntx source lines into a flat token stream.

For every line, in order:

1. Directive lines (``% TAG ...``, ``% CMD ...``) are dropped entirely.
2. A whitespace-only line becomes an empty ``LineBreak``.
3. Any other line becomes a ``LineBreak`` carrying its indentation, then
   either a single ``EnvironmentDeclaration`` (whole-line ``\\name label``
   with a known name) or a run of ``Element`` tokens.

Bracket depth is tracked across lines; an environment may not be declared
while any bracket is open.
"""
from __future__ import annotations

import re
from collections.abc import Iterable

from .config import Config
from .detection import is_math_mode
from .errors import NtxSyntaxError
from .tokens import Element, EnvironmentDeclaration, LineBreak, Token

# Whole-line declaration forms; the label-less-spaces form is tried first.
_ENV_DECL_RE = re.compile(r"[ ]*\\([A-Za-z]+)[ ]*([^ ]*)")
_SECTION_DEF_RE = re.compile(r"[ ]*\\([A-Za-z]+)[ ]*(.*)")

_SEPARATORS = frozenset(" \t")
_OPERATORS = frozenset("+*/=")
_OPENERS = {"(": 0, "[": 1}
_CLOSERS = {")": 0, "]": 1, "}": 2}


def tokenize(lines: Iterable[str], config: Config) -> list[Token]:
    """Tokenize *lines* (without trailing newlines) into an ordered token list."""
    tokens: list[Token] = []
    # open (, [, { counts
    depth = [0, 0, 0]

    for line_number, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n")
        if config.is_directive(line):
            continue

        if not line.strip():
            tokens.append(LineBreak(line_number, True))
            continue

        indent = len(line) - len(line.lstrip(" "))
        tokens.append(LineBreak(line_number, False, indent))

        declaration = _match_declaration(line, line_number, config, depth)
        if declaration is not None:
            tokens.append(declaration)
            continue

        tokens.extend(_split_line(line, line_number, indent, depth))

    return tokens


def _match_declaration(
    line: str, line_number: int, config: Config, depth: list[int]
) -> EnvironmentDeclaration | None:
    """Return the declaration on *line*, or None if it is ordinary text."""
    match = _ENV_DECL_RE.fullmatch(line) or _SECTION_DEF_RE.fullmatch(line)
    if match is None:
        return None

    short_name, label = match.group(1), match.group(2)
    spec = config.environments.get(short_name)
    if spec is None:
        return None

    if any(n < 0 for n in depth):
        unmatched = ", ".join(
            f"'{closer}'={-n}" for closer, n in zip(")]}", depth) if n < 0
        )
        raise NtxSyntaxError(
            f"Cannot start new environment='{short_name}' as brackets not balanced. "
            f"Unmatched closing {unmatched}.",
            line_number,
            0,
        )
    if any(depth):
        round_, square, curly = depth
        raise NtxSyntaxError(
            f"Cannot start new environment='{short_name}' as brackets not closed. "
            f"Open '('={round_}, '{{'={curly}, '['={square}.",
            line_number,
            0,
        )
    return EnvironmentDeclaration(line_number, spec.kind, spec.name, label.strip())


def _split_line(line: str, line_number: int, indent: int, depth: list[int]) -> list[Element]:
    """Split one content line into elements, updating *depth* in place."""
    elements: list[Element] = []
    # column where the previously emitted element ended
    last_end = -1

    def emit(start: int, end: int) -> None:
        nonlocal last_end
        if start >= end:
            return
        data = line[start:end]
        elements.append(
            Element(
                line=line_number,
                column=start,
                data=data,
                open_round=depth[0],
                open_square=depth[1],
                open_curly=depth[2],
                n_lower=sum(1 for c in data if "a" <= c <= "z"),
                n_upper=sum(1 for c in data if "A" <= c <= "Z"),
                n_digits=sum(1 for c in data if "0" <= c <= "9"),
                attached=start == last_end,
            )
        )
        last_end = end

    word_start = indent
    for pos in range(indent, len(line)):
        c = line[pos]
        if c in _SEPARATORS:
            emit(word_start, pos)
            word_start = pos + 1
        elif c == "{":
            # attaches to its word: "\arr{", "\frac{"
            emit(word_start, pos + 1)
            depth[2] += 1
            word_start = pos + 1
        elif c in _OPENERS:
            emit(word_start, pos)
            emit(pos, pos + 1)
            depth[_OPENERS[c]] += 1
            word_start = pos + 1
        elif c in _CLOSERS:
            emit(word_start, pos)
            emit(pos, pos + 1)
            depth[_CLOSERS[c]] -= 1
            word_start = pos + 1
        elif c == ";":
            # kept on the end of its word, marks array rows
            emit(word_start, pos + 1)
            word_start = pos + 1
        elif c in _OPERATORS:
            emit(word_start, pos)
            emit(pos, pos + 1)
            word_start = pos + 1

    emit(word_start, len(line))
    return elements


def format_tokens(tokens: Iterable[Token]) -> str:
    """Render *tokens* one per line for ``--debug`` output."""
    out: list[str] = []
    in_math = False
    for token in tokens:
        if isinstance(token, LineBreak):
            out.append(
                f"[{token.line}]  LineBreak{{is_empty={int(token.is_empty)}, indent={token.indent}}}"
            )
        elif isinstance(token, EnvironmentDeclaration):
            out.append(
                f"[{token.line}]  EnvironmentDeclaration{{name={token.name}, label={token.label}}}"
            )
        else:
            in_math = is_math_mode(token.data, in_math)
            out.append(
                f"[{token.line}:{token.column}]  Element{{"
                f"open_b_round={token.open_round}, "
                f"open_b_square={token.open_square}, "
                f"open_b_curly={token.open_curly}, "
                f"n_lower_case={token.n_lower}, "
                f"n_upper_case={token.n_upper}, "
                f"n_numerals={token.n_digits}, "
                f"math_like={int(in_math)}, "
                f'data="{token.data}"}}'
            )
    return "\n".join(out)
