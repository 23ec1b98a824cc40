from __future__ import annotations

import re
import warnings
import yaml
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

from .tokens import BlockType


@dataclass(frozen=True)
class EnvironmentSpec:
    """What a ``\\<short-name>`` declaration line expands to."""

    kind: BlockType
    name: str  # LaTeX environment / sectioning command name


_DEFAULT_ENVIRONMENTS: dict[str, EnvironmentSpec] = {
    "proof": EnvironmentSpec(BlockType.PLAIN_TEXT, "proof"),
    "thm": EnvironmentSpec(BlockType.PLAIN_TEXT, "theorem"),
    "theorem": EnvironmentSpec(BlockType.PLAIN_TEXT, "theorem"),
    "lemma": EnvironmentSpec(BlockType.PLAIN_TEXT, "lemma"),
    "corollary": EnvironmentSpec(BlockType.PLAIN_TEXT, "corollary"),
    "prop": EnvironmentSpec(BlockType.PLAIN_TEXT, "proposition"),
    "proposition": EnvironmentSpec(BlockType.PLAIN_TEXT, "proposition"),
    "construction": EnvironmentSpec(BlockType.PLAIN_TEXT, "construction"),
    "eq": EnvironmentSpec(BlockType.MATH_BLOCK, "equation"),
    "equation": EnvironmentSpec(BlockType.MATH_BLOCK, "equation"),
    "section": EnvironmentSpec(BlockType.SECTION, "section"),
    "subsection": EnvironmentSpec(BlockType.SECTION, "subsection"),
    "subsubsection": EnvironmentSpec(BlockType.SECTION, "subsubsection"),
}

# Metadata lines consumed by tooling; never part of the document body.
_DEFAULT_DIRECTIVES: tuple[str, ...] = (
    r"% TAG (.+)",
    r"% CMD (.+) (.+)",
)


def _default_environments() -> Mapping[str, EnvironmentSpec]:
    return MappingProxyType(dict(_DEFAULT_ENVIRONMENTS))


@dataclass
class Config:
    """Compiler configuration: environment table, directive lines and layout."""

    environments: Mapping[str, EnvironmentSpec] = field(default_factory=_default_environments)
    directive_patterns: tuple[str, ...] = _DEFAULT_DIRECTIVES
    indent_width: int = 4  # indentation step of an environment body
    banner: bool = True  # append the version banner to CLI output

    def __post_init__(self) -> None:
        compiled = []
        for pattern in self.directive_patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as exc:
                warnings.warn(
                    f"Ignoring invalid directive pattern {pattern!r}: {exc}",
                    RuntimeWarning,
                    stacklevel=2,
                )
        self._directives = tuple(compiled)

    def is_directive(self, line: str) -> bool:
        """Return True if *line* is a metadata directive to drop."""
        return any(p.fullmatch(line) for p in self._directives)


def load_config(path: Optional[Path]) -> Config:
    """Load configuration from a YAML file, returning defaults if *path* is None or missing.

    The ``environments`` section is merged over the built-in table; a
    ``null`` entry removes a built-in environment.
    """
    if path is None or not path.exists():
        return Config()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, Mapping):
        raise ValueError(f"{path}: configuration must be a mapping")
    return load_config_from_dict(data)


def load_config_from_dict(data: Mapping[str, Any]) -> Config:
    """Build a :class:`Config` from a mapping using the ``config.yaml`` schema."""
    environments = dict(_DEFAULT_ENVIRONMENTS)
    for short_name, entry in (data.get("environments") or {}).items():
        if entry is None:
            environments.pop(short_name, None)
        else:
            environments[str(short_name)] = _parse_environment(short_name, entry)

    fields: dict[str, Any] = {"environments": MappingProxyType(environments)}
    if "directives" in data:
        fields["directive_patterns"] = tuple(str(p) for p in data["directives"] or ())
    if "indent_width" in data:
        width = int(data["indent_width"])
        if width < 1:
            raise ValueError(f"indent_width must be positive, got {width}")
        fields["indent_width"] = width
    if "banner" in data:
        fields["banner"] = bool(data["banner"])
    return Config(**fields)


def _parse_environment(short_name: str, entry: Any) -> EnvironmentSpec:
    """Parse one ``environments`` entry: a LaTeX name or ``{kind, name}``."""
    if isinstance(entry, str):
        return EnvironmentSpec(BlockType.PLAIN_TEXT, entry)
    if not isinstance(entry, Mapping):
        raise ValueError(f"environment '{short_name}': expected a string or a mapping")

    kind_name = str(entry.get("kind", BlockType.PLAIN_TEXT.value))
    try:
        kind = BlockType(kind_name)
    except ValueError:
        allowed = ", ".join(k.value for k in BlockType)
        raise ValueError(
            f"environment '{short_name}': unknown kind '{kind_name}' (expected one of: {allowed})"
        ) from None
    return EnvironmentSpec(kind, str(entry.get("name", short_name)))
