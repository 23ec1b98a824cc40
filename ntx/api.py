"""Programmatic API for compiling ntx markup."""
from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .compiler import convert_to_tex
from .config import Config, load_config, load_config_from_dict
from .tokenizer import tokenize

_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f\x7f]")


def compile_text(
    text: str,
    *,
    config: Config | Mapping[str, Any] | str | Path | None = None,
) -> str:
    """Compile ntx markup *text* into LaTeX.

    Args:
        text: The whole source document.
        config: Compiler config as one of:
            - ``None`` (use defaults)
            - ``Config`` instance
            - dict-like mapping using the same schema as ``config.yaml``
            - path to a YAML config file

    Returns:
        The compiled LaTeX, without the version banner.

    Raises:
        NtxSyntaxError, NtxIndentationError: the source is malformed.
    """
    resolved = _resolve_config(config)
    return convert_to_tex(tokenize(text.splitlines(), resolved), resolved)


def compile_file(
    path: str | Path,
    *,
    config: Config | Mapping[str, Any] | str | Path | None = None,
) -> str:
    """Read a UTF-8 ntx file and compile it; see :func:`compile_text`."""
    source = _sanitize_input_path(path)
    return compile_text(source.read_text(encoding="utf-8"), config=config)


def _resolve_config(
    config: Config | Mapping[str, Any] | str | Path | None,
) -> Config:
    if config is None:
        return Config()
    if isinstance(config, Config):
        return config
    if isinstance(config, Mapping):
        return load_config_from_dict(config)
    if isinstance(config, (str, Path)):
        return load_config(Path(config))
    raise TypeError(
        "config must be None, Config, dict-like mapping, or a config file path."
    )


def _sanitize_input_path(path_like: str | Path) -> Path:
    raw = str(path_like)
    if _CONTROL_CHAR_RE.search(raw):
        raise ValueError("source path contains invalid control characters")

    path = Path(path_like)
    if not path.exists():
        raise FileNotFoundError(f"'{path}' not found.")
    if not path.is_file():
        raise ValueError(f"'{path}' is not a file.")
    return path
