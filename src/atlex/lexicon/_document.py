"""Lexicon document model.

A :class:`LexiconDocument` is parsed once from a decoded JSON mapping and is
immutable afterwards. Definitions form a closed set of frozen dataclasses
(:data:`Definition`); the definition compiler dispatches on their type.

The raw mapping is validated against the Lexicon meta-schema first, so the
constructors below can assume a well-formed shape.

Examples:
    >>> doc = LexiconDocument.from_dict({
    ...     "lexicon": 1,
    ...     "id": "com.example.status",
    ...     "defs": {"main": {"type": "token"}},
    ... })
    >>> type(doc.defs["main"]).__name__
    'TokenDef'
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Union

from .._exceptions import LexiconCompileError
from ..identifiers import nsid as nsid_codec
from ._meta import LEXICON_DOCUMENT

MAIN_ONLY_TYPES = frozenset({"record", "query", "procedure", "subscription"})


def _frozen(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class FieldDef:
    """A user type: ``array``, ``boolean``, ``integer``, ``string``, ``bytes``,
    ``blob``, ``cid-link``, ``unknown``, ``ref`` or ``union``.

    Constraints are kept verbatim in ``options`` (Lexicon key names); array
    item definitions are parsed into ``items``.
    """

    type: str
    options: Mapping[str, Any] = field(default_factory=dict)
    items: FieldDef | None = None
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldDef:
        options = {
            k: v for k, v in data.items() if k not in ("type", "items", "description")
        }
        items = data.get("items")
        return cls(
            type=data["type"],
            options=_frozen(options),
            items=cls.from_dict(items) if items is not None else None,
            description=data.get("description"),
        )

    def get(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


def _properties(data: Mapping[str, Any]) -> Mapping[str, FieldDef]:
    return _frozen(
        {name: FieldDef.from_dict(prop) for name, prop in data.get("properties", {}).items()}
    )


@dataclass(frozen=True)
class ObjectDef:
    properties: Mapping[str, FieldDef]
    required: tuple[str, ...] = ()
    nullable: tuple[str, ...] = ()
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ObjectDef:
        return cls(
            properties=_properties(data),
            required=tuple(data.get("required", ())),
            nullable=tuple(data.get("nullable", ())),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class RecordDef:
    record: ObjectDef
    key: str | None = None
    """Record key type, e.g. ``"tid"``, ``"literal:self"`` or ``"any"``."""
    description: str | None = None


@dataclass(frozen=True)
class ParamsDef:
    """Query-string parameters of an RPC definition."""

    properties: Mapping[str, FieldDef]
    required: tuple[str, ...] = ()
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ParamsDef:
        return cls(
            properties=_properties(data),
            required=tuple(data.get("required", ())),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class BodyDef:
    """An RPC input/output body, or a subscription message (no encoding)."""

    encoding: str | None = None
    schema: ObjectDef | FieldDef | None = None
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BodyDef:
        schema = data.get("schema")
        if schema is None:
            parsed = None
        elif schema["type"] == "object":
            parsed = ObjectDef.from_dict(schema)
        else:
            parsed = FieldDef.from_dict(schema)
        return cls(
            encoding=data.get("encoding"),
            schema=parsed,
            description=data.get("description"),
        )


@dataclass(frozen=True)
class ErrorDef:
    name: str
    description: str | None = None


def _errors(data: Mapping[str, Any]) -> tuple[ErrorDef, ...]:
    return tuple(
        ErrorDef(name=e["name"], description=e.get("description"))
        for e in data.get("errors", ())
    )


def _optional(parser, data: Mapping[str, Any], key: str):
    value = data.get(key)
    return parser(value) if value is not None else None


@dataclass(frozen=True)
class QueryDef:
    parameters: ParamsDef | None = None
    output: BodyDef | None = None
    errors: tuple[ErrorDef, ...] = ()
    description: str | None = None


@dataclass(frozen=True)
class ProcedureDef:
    parameters: ParamsDef | None = None
    input: BodyDef | None = None
    output: BodyDef | None = None
    errors: tuple[ErrorDef, ...] = ()
    description: str | None = None


@dataclass(frozen=True)
class SubscriptionDef:
    parameters: ParamsDef | None = None
    message: BodyDef | None = None
    errors: tuple[ErrorDef, ...] = ()
    description: str | None = None


@dataclass(frozen=True)
class TokenDef:
    description: str | None = None


Definition = Union[
    RecordDef,
    ObjectDef,
    QueryDef,
    ProcedureDef,
    SubscriptionDef,
    TokenDef,
    FieldDef,
]


def parse_definition(data: Mapping[str, Any]) -> Definition:
    """Build the definition dataclass for one validated ``defs`` entry."""
    kind = data["type"]
    description = data.get("description")

    if kind == "record":
        return RecordDef(
            record=ObjectDef.from_dict(data["record"]),
            key=data.get("key"),
            description=description,
        )
    if kind == "object":
        return ObjectDef.from_dict(data)
    if kind == "query":
        return QueryDef(
            parameters=_optional(ParamsDef.from_dict, data, "parameters"),
            output=_optional(BodyDef.from_dict, data, "output"),
            errors=_errors(data),
            description=description,
        )
    if kind == "procedure":
        return ProcedureDef(
            parameters=_optional(ParamsDef.from_dict, data, "parameters"),
            input=_optional(BodyDef.from_dict, data, "input"),
            output=_optional(BodyDef.from_dict, data, "output"),
            errors=_errors(data),
            description=description,
        )
    if kind == "subscription":
        return SubscriptionDef(
            parameters=_optional(ParamsDef.from_dict, data, "parameters"),
            message=_optional(BodyDef.from_dict, data, "message"),
            errors=_errors(data),
            description=description,
        )
    if kind == "token":
        return TokenDef(description=description)
    return FieldDef.from_dict(data)


@dataclass(frozen=True)
class LexiconDocument:
    """A parsed Lexicon document.

    Attributes:
        id: The document NSID.
        defs: Def name to parsed definition, in source order.
        lexicon: Lexicon language version (always ``1``).
        revision: Optional non-negative revision number.
        description: Optional human-readable description.
        source: The raw mapping the document was parsed from.
    """

    id: str
    defs: Mapping[str, Definition]
    lexicon: int = 1
    revision: int | None = None
    description: str | None = None
    source: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LexiconDocument:
        """Validate ``data`` against the Lexicon meta-schema and parse it.

        Raises:
            LexiconCompileError: If the document is malformed.
        """
        if not isinstance(data, Mapping):
            raise LexiconCompileError(None, "a Lexicon document must be a JSON object")

        raw_id = data.get("id")
        lexicon_id = raw_id if isinstance(raw_id, str) else None

        if data.get("lexicon") != 1 or isinstance(data.get("lexicon"), bool):
            raise LexiconCompileError(
                lexicon_id,
                f"unsupported lexicon version {data.get('lexicon')!r} (expected 1)",
            )
        if lexicon_id is None or not nsid_codec.match(lexicon_id):
            raise LexiconCompileError(lexicon_id, f"invalid NSID {raw_id!r}")

        defs = data.get("defs")
        if isinstance(defs, Mapping):
            for name, definition in defs.items():
                kind = definition.get("type") if isinstance(definition, Mapping) else None
                if name != nsid_codec.MAIN and kind in MAIN_ONLY_TYPES:
                    raise LexiconCompileError(
                        lexicon_id,
                        f"'{kind}' definitions are only allowed under 'main'",
                        def_name=name,
                    )

        result = LEXICON_DOCUMENT.validate(data)
        if not result.ok:
            raise LexiconCompileError(lexicon_id, str(result.error))

        validated = result.value
        return cls(
            id=validated["id"],
            defs=_frozen(
                {name: parse_definition(d) for name, d in validated["defs"].items()}
            ),
            lexicon=validated["lexicon"],
            revision=validated.get("revision"),
            description=validated.get("description"),
            source=copy.deepcopy(dict(data)),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> LexiconDocument:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise LexiconCompileError(None, f"invalid JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> LexiconDocument:
        """Read and parse a ``.json`` Lexicon file."""
        path = Path(path)
        try:
            return cls.from_json(path.read_bytes())
        except LexiconCompileError as e:
            if e.lexicon_id is None:
                raise LexiconCompileError(None, f"{path}: {e.reason}") from e
            raise

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the source mapping."""
        return copy.deepcopy(dict(self.source))
