"""Render compiled Lexicon bundles as importable Python modules.

The runtime never needs generated source: a :class:`LexiconBundle` already
validates values and builds value classes. Generating a module gives static
type checkers and IDEs real class definitions to work with.

A generated module embeds the Lexicon document as a literal, registers it
with :func:`~atlex.lexicon.default_registry` on import and defines one
keyword-only dataclass per object-shaped schema, bound to the registered
bundle so that ``from_record`` builds instances of the generated classes.

Examples:
    >>> bundle = compile_lexicon(load_lexicon("com.atproto.repo.strongRef"))
    >>> print(generate_module(bundle))  # doctest: +SKIP
    >>> write_module(bundle, "generated/")
    PosixPath('generated/com/atproto/repo/strongRef.py')
"""

from __future__ import annotations

import os
import pprint
import re
import tempfile
from pathlib import Path

from .._logging import get_logger
from ..identifiers import nsid as nsid_codec
from ._compiler import LexiconBundle
from ._types import LocalNames, NullableType, ObjectType, TokenType
from ._values import TYPE_KEY

_HEADER = '''\
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from atlex.lexicon import LexiconObject, default_registry

LEXICON = {literal}

_BUNDLE = default_registry().register(LEXICON)
'''


def _docstring(text: str, indent: str) -> str:
    escaped = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if escaped.endswith('"'):
        escaped = escaped[:-1] + '\\"'
    lines = escaped.splitlines() or [""]
    if len(lines) == 1:
        return f'{indent}"""{lines[0]}"""'
    body = "\n".join(f"{indent}{line}" if line else "" for line in lines[1:])
    return f'{indent}"""{lines[0]}\n{body}\n{indent}"""'


def _constant_name(key: str) -> str:
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", key).upper().replace("-", "_")


def _render_class(bundle: LexiconBundle, key: str, local: LocalNames) -> list[str]:
    compiled = bundle.schema(key)
    cls = compiled.value_class
    object_type = compiled.type
    assert cls is not None and isinstance(object_type, ObjectType)

    description = compiled.description or f"``{compiled.canonical_name}``."
    enforced = cls.__enforced_keys__
    omit = cls.__omit_if_none__

    lines = [
        "@dataclass(kw_only=True)",
        f"class {cls.__name__}(LexiconObject):",
        _docstring(description, "    "),
        "",
        f'    __lexicon_id__: ClassVar[str] = "{bundle.id}"',
        f'    __schema_key__: ClassVar[str] = "{key}"',
        "    __lexicon_fields__: ClassVar[tuple[tuple[str, str, Any], ...]] = (",
    ]
    for record_key, attr, default in cls.__lexicon_fields__:
        lines.append(f"        ({record_key!r}, {attr!r}, {default!r}),")
    lines += [
        "    )",
        f"    __enforced_keys__: ClassVar[frozenset[str]] = frozenset({sorted(enforced)!r})",
        f"    __omit_if_none__: ClassVar[frozenset[str]] = frozenset({sorted(omit)!r})",
    ]

    for record_key, attr, default in cls.__lexicon_fields__:
        prop = object_type.get(record_key)
        if prop is None:
            annotation = "str" if record_key == TYPE_KEY else "Any"
        else:
            annotation = prop.type.annotation(local)
            optional = not prop.required and not isinstance(prop.type, NullableType)
            if optional and annotation != "Any":
                annotation = f"{annotation} | None"

        lines.append("")
        if record_key in enforced:
            lines.append(f"    {attr}: {annotation}")
        else:
            lines.append(f"    {attr}: {annotation} = {default!r}")
        if prop is not None and prop.description:
            lines.append(_docstring(prop.description, "    "))
    return lines


def generate_module(bundle: LexiconBundle) -> str:
    """Render ``bundle`` as Python source.

    Args:
        bundle: A compiled Lexicon.

    Returns:
        Source text of a module defining the bundle's value classes.
    """
    document = bundle.document
    literal = pprint.pformat(document.to_dict(), width=88, sort_dicts=False)
    description = document.description or f"Generated from the Lexicon ``{bundle.id}``."

    local: LocalNames = {
        (bundle.id, key): bundle.schema(key).value_class.__name__
        for key in bundle
        if bundle.schema(key).value_class is not None
    }

    summary = (
        f"Lexicon {bundle.id}.\n\n{description}\n\n"
        "Auto-generated by ``atlex compile``; edit the Lexicon JSON instead."
    )
    parts = [_docstring(summary, ""), _HEADER.format(literal=literal).rstrip()]

    for key in bundle:
        compiled = bundle.schema(key)
        if isinstance(compiled.type, TokenType):
            parts.append(f"{_constant_name(key)} = {compiled.type.name!r}")
            continue
        if compiled.value_class is None:
            continue
        parts.append("\n".join(["", *_render_class(bundle, key, local)]))

    binds = [
        f"_BUNDLE.bind_value_class({key!r}, {name})"
        for (_, key), name in local.items()
    ]
    if binds:
        parts.append("\n" + "\n".join(binds))

    return "\n\n".join(parts).rstrip() + "\n"


def module_path(nsid: str) -> Path:
    """Relative path of the generated module for ``nsid``.

    Examples:
        >>> module_path("com.atproto.repo.strongRef")
        PosixPath('com/atproto/repo/strongRef.py')
    """
    parts = nsid_codec.to_module_path(nsid)
    return Path(*parts[:-1], f"{parts[-1]}.py")


def _write_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(suffix=".py.tmp", dir=path.parent)
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        temp_path.replace(path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def write_module(bundle: LexiconBundle, output_dir: str | Path) -> Path:
    """Generate the module for ``bundle`` under ``output_dir``.

    The file is written to a temporary name and renamed into place, so
    readers never observe a partial module.

    Returns:
        Path of the written module.
    """
    path = Path(output_dir) / module_path(bundle.id)
    _write_atomic(path, generate_module(bundle))
    get_logger().info("Generated %s -> %s", bundle.id, path)
    return path
