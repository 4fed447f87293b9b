"""Runtime configuration for atlex.

Settings come from the process environment, optionally overlaid by a
``.env`` file::

    ATLEX_LEXICON_PATH=/srv/lexicons:/opt/more-lexicons
    ATLEX_STRICT_FIELD_TYPES=true
    ATLEX_INCLUDE_BUNDLED=false
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

ENV_LEXICON_PATH = "ATLEX_LEXICON_PATH"
ENV_STRICT_FIELD_TYPES = "ATLEX_STRICT_FIELD_TYPES"
ENV_INCLUDE_BUNDLED = "ATLEX_INCLUDE_BUNDLED"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class AtlexConfig:
    """Settings for the default registry and the compiler."""

    lexicon_paths: tuple[Path, ...] = ()
    """Directories searched for Lexicon JSON files by ``default_registry()``."""

    strict_field_types: bool = False
    """Treat unrecognized field types as compile errors."""

    include_bundled: bool = True
    """Make the Lexicons shipped with atlex available in the default registry."""


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {value!r}")


def load_config(
    env_file: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AtlexConfig:
    """Build an :class:`AtlexConfig` from environment variables.

    Args:
        env_file: Optional ``.env`` file whose values override ``environ``.
        environ: Variables to read instead of ``os.environ``.

    Raises:
        ValueError: If a boolean setting has an unrecognized value.

    Examples:
        >>> load_config(environ={"ATLEX_STRICT_FIELD_TYPES": "1"}).strict_field_types
        True
    """
    values: dict[str, str | None] = dict(os.environ if environ is None else environ)
    if env_file is not None:
        values.update(dotenv_values(Path(env_file)))

    raw_paths = values.get(ENV_LEXICON_PATH) or ""
    strict = values.get(ENV_STRICT_FIELD_TYPES)
    bundled = values.get(ENV_INCLUDE_BUNDLED)

    return AtlexConfig(
        lexicon_paths=tuple(Path(p) for p in raw_paths.split(os.pathsep) if p),
        strict_field_types=(
            _parse_bool(ENV_STRICT_FIELD_TYPES, strict) if strict is not None else False
        ),
        include_bundled=(
            _parse_bool(ENV_INCLUDE_BUNDLED, bundled) if bundled is not None else True
        ),
    )
