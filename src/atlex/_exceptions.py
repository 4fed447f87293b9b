"""Custom exception hierarchy for atlex.

Provides actionable error messages with the failing lexicon, definition,
field path, or identifier attached as attributes so callers can react
programmatically as well as print them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


class AtlexError(Exception):
    """Base exception for all atlex errors."""


class IdentifierFormatError(AtlexError, ValueError):
    """An identifier string does not match its grammar.

    Only raised by the ``parse()`` convenience functions; the ``decode()``
    variants return ``None`` instead.

    Attributes:
        kind: Identifier kind (e.g. ``"TID"``, ``"at:// URI"``).
        value: The rejected input.
    """

    def __init__(self, kind: str, value: Any) -> None:
        self.kind = kind
        self.value = value
        super().__init__(f"Malformed {kind}: {value!r}")


class LexiconCompileError(AtlexError):
    """A Lexicon document could not be compiled.

    Fatal for the document being compiled: no partially usable bundle is
    produced.

    Attributes:
        lexicon_id: The document ``id`` (or ``None`` if it had none).
        reason: Human-readable description of what went wrong.
        def_name: The offending definition, when the error is def-specific.
    """

    def __init__(
        self,
        lexicon_id: str | None,
        reason: str,
        def_name: str | None = None,
    ) -> None:
        self.lexicon_id = lexicon_id
        self.reason = reason
        self.def_name = def_name

        where = lexicon_id or "<unknown lexicon>"
        if def_name is not None:
            where = f"{where}#{def_name}"
        super().__init__(f"Cannot compile lexicon '{where}': {reason}")


def format_path(path: Sequence[str | int]) -> str:
    """Render a validation path as ``$.field[0].child``."""
    parts = ["$"]
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        else:
            parts.append(f".{segment}")
    return "".join(parts)


class LexiconValidationError(AtlexError):
    """A value does not satisfy a compiled Lexicon schema.

    Validation failures are expected outcomes, so the public validators
    return them inside a ``ValidationResult`` rather than raising. The
    exception form exists for ``ValidationResult.unwrap()`` and
    ``from_record()``.

    Attributes:
        message: What constraint failed.
        path: Keys and indices leading to the offending value.
        context: Expected bound / actual value details.
    """

    def __init__(
        self,
        message: str,
        path: Sequence[str | int] = (),
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.path = tuple(path)
        self.context = dict(context or {})
        super().__init__(f"{format_path(self.path)}: {message}")

    @property
    def path_str(self) -> str:
        return format_path(self.path)


class LexiconReferenceError(AtlexError):
    """A ``ref`` or ``union`` target is not available.

    This points at a deployment problem (a Lexicon was never registered or
    a def name is wrong) rather than bad input data, so it propagates out of
    validation instead of being reported as a validation failure.

    Attributes:
        nsid: The referenced Lexicon id.
        fragment: The referenced def name.
        available: Def names known for ``nsid`` (empty if the Lexicon itself
            is missing).
    """

    def __init__(
        self,
        nsid: str,
        fragment: str = "main",
        available: Sequence[str] = (),
    ) -> None:
        self.nsid = nsid
        self.fragment = fragment
        self.available = tuple(available)

        target = nsid if fragment == "main" else f"{nsid}#{fragment}"
        lines = [f"Cannot resolve lexicon reference '{target}'"]
        if self.available:
            lines.append("")
            lines.append(f"Definitions available in {nsid}:")
            for name in self.available:
                lines.append(f"  - {name}")
        else:
            lines.append("")
            lines.append(
                f"No lexicon with id '{nsid}' is registered. Register the "
                f"document or add a source that provides it."
            )
        super().__init__("\n".join(lines))
