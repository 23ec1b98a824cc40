from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .api import compile_file, compile_text
from .compiler import Compiler, convert_to_tex
from .config import Config, EnvironmentSpec, load_config
from .errors import InternalError, NtxError, NtxIndentationError, NtxSyntaxError
from .tokenizer import tokenize

try:
    __version__ = version("ntx")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "Compiler",
    "Config",
    "EnvironmentSpec",
    "InternalError",
    "NtxError",
    "NtxIndentationError",
    "NtxSyntaxError",
    "compile_file",
    "compile_text",
    "convert_to_tex",
    "load_config",
    "tokenize",
]
