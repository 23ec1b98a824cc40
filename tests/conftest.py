"""
Shared pytest fixtures for ntx tests.

This module provides:
- Configuration fixtures (default, custom environment table)
- Source-document fixtures written to temporary files
- Helpers that tokenize or compile a source string in one call
"""
from __future__ import annotations

import textwrap

import pytest


# ==============================================================================
# Configuration fixtures
# ==============================================================================

@pytest.fixture
def default_config():
    """Return default configuration."""
    from ntx.config import Config
    return Config()


@pytest.fixture
def custom_config():
    """Return configuration with an extra environment and a two-space indent step."""
    from ntx.config import load_config_from_dict
    return load_config_from_dict(
        {
            "environments": {
                "defn": "definition",
                "align": {"kind": "math_block", "name": "align"},
            },
            "indent_width": 2,
        }
    )


# ==============================================================================
# Helpers
# ==============================================================================

@pytest.fixture
def tokens_of(default_config):
    """Return a function tokenizing a dedented source string."""
    from ntx.tokenizer import tokenize

    def _tokens_of(source: str, config=None):
        return tokenize(textwrap.dedent(source).splitlines(), config or default_config)

    return _tokens_of


@pytest.fixture
def compile_source(default_config):
    """Return a function compiling a dedented source string to LaTeX."""
    from ntx.api import compile_text

    def _compile(source: str, config=None):
        return compile_text(textwrap.dedent(source), config=config or default_config)

    return _compile


@pytest.fixture
def squash():
    """Return a function dropping all whitespace, for exact structure comparisons."""
    return lambda text: "".join(text.split())


# ==============================================================================
# Source-document fixtures
# ==============================================================================

@pytest.fixture
def theorem_source():
    """Return a small document with a section, a theorem, a proof and an equation."""
    return textwrap.dedent(
        """\
        % TAG algebra
        \\section Basics
        \\thm main
            Let x = y + 1.

        \\proof
            Immediate.
        \\eq rot
            R = \\arr{ a b; c d }
        """
    )


@pytest.fixture
def temp_ntx(tmp_path, theorem_source):
    """Write the theorem document to a temporary .ntx file."""
    path = tmp_path / "notes.ntx"
    path.write_text(theorem_source, encoding="utf-8")
    return path


@pytest.fixture
def broken_ntx(tmp_path):
    """Write a document with an unexpected indent to a temporary file."""
    path = tmp_path / "broken.ntx"
    path.write_text("\\thm\n    Let x\n        more\n", encoding="utf-8")
    return path
