import argparse
import sys
import time
from pathlib import Path
from typing import Optional

import yaml

from . import __version__
from .compiler import convert_to_tex
from .config import load_config
from .errors import NtxError
from .tokenizer import format_tokens, tokenize

EXIT_OK = 0
EXIT_HELP = 1
EXIT_FATAL = 2


def _banner() -> str:
    """Trailing comment recording the compiler version and compile time (UTC)."""
    major, _, rest = __version__.partition(".")
    minor = rest.partition(".")[0] or "0"
    return f"\n\n% ntx[{major}:{minor}] - compiled @ {time.asctime(time.gmtime())}\n"


def _fatal(message: str) -> int:
    print(message, file=sys.stderr)
    print("[FATAL] Cannot continue compiling", file=sys.stderr)
    return EXIT_FATAL


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ntx",
        description="Compile ntx notes into LaTeX",
        add_help=False,
    )
    parser.add_argument("--help", action="store_true", help="Produce help message")
    parser.add_argument("-f", "--file", type=Path, default=None, help="Which ntx to compile to tex")
    parser.add_argument(
        "-o", "--out", type=Path, default=None, help="If set write to the passed file"
    )
    parser.add_argument(
        "-d", "--debug", action="store_true", help="Print the elements to screen"
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="Path to config.yaml (optional)"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point: compile ``--file`` and write LaTeX to ``--out`` or stdout."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.help:
        parser.print_help()
        return EXIT_HELP

    if args.file is None:
        return EXIT_OK

    try:
        config = load_config(args.config)
    except (ValueError, yaml.YAMLError) as exc:
        print(f"Error: invalid config '{args.config}': {exc}", file=sys.stderr)
        return EXIT_FATAL

    if not args.file.is_file():
        print(f"Error: '{args.file}' not found.", file=sys.stderr)
        return EXIT_FATAL

    try:
        tokens = tokenize(args.file.read_text(encoding="utf-8").splitlines(), config)
        if args.debug:
            print(format_tokens(tokens))
        tex = convert_to_tex(tokens, config)
    except NtxError as exc:
        return _fatal(str(exc))

    if config.banner:
        tex += _banner()

    if args.out is not None:
        try:
            args.out.write_text(tex, encoding="utf-8")
        except OSError as exc:
            print(f"Error: cannot write '{args.out}': {exc.strerror or exc}", file=sys.stderr)
            return EXIT_FATAL
    else:
        sys.stdout.write(tex)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
