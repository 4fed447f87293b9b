"""Generated value classes for object-shaped Lexicon definitions.

Every object, record and RPC body compiles to a keyword-only dataclass
deriving from :class:`LexiconObject`. The class knows which Lexicon def it
belongs to, so it can validate incoming JSON (``from_record``) and serialize
itself back (``to_record``) applying the omission rule: a field is left out
only when it is ``None`` *and* was declared neither required nor nullable.
Nullable fields that are ``None`` serialize as an explicit ``null``.

Examples:
    >>> Post = bundle.value_class("main")
    >>> post = Post(text="hello", created_at="2024-01-01T00:00:00Z")
    >>> post.to_record()
    {'text': 'hello', 'createdAt': '2024-01-01T00:00:00Z', '$type': 'app.example.post'}
"""

from __future__ import annotations

import dataclasses
import json
import keyword
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from .._exceptions import LexiconCompileError
from ..identifiers import nsid as nsid_codec
from ._schema import MISSING, encode_base64
from ._types import ArrayType, LexType, NullableType, ObjectType, RefType, UnionType

if TYPE_CHECKING:
    from ._registry import LexiconRegistry

TYPE_KEY = "$type"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def attribute_name(key: str) -> str:
    """Map a Lexicon property name to a Python attribute name.

    Examples:
        >>> attribute_name("createdAt")
        'created_at'
        >>> attribute_name("$type")
        'type_'
        >>> attribute_name("from")
        'from_'
    """
    if key == TYPE_KEY:
        return "type_"
    name = _CAMEL_BOUNDARY.sub("_", key).lower()
    name = re.sub(r"\W", "_", name)
    if name[:1].isdigit():
        name = f"_{name}"
    if keyword.iskeyword(name) or keyword.issoftkeyword(name):
        name = f"{name}_"
    return name


def class_name(value: str) -> str:
    """PascalCase a def name or NSID segment.

    Examples:
        >>> class_name("replyRef")
        'ReplyRef'
        >>> class_name("cid-link")
        'CidLink'
    """
    parts = re.split(r"[^a-zA-Z0-9]+", value)
    name = "".join(p[:1].upper() + p[1:] for p in parts if p)
    if not name or name[0].isdigit():
        name = f"Def{name}"
    return name


def encode_value(value: Any) -> Any:
    """Encode a Python value into its JSON-compatible Lexicon form."""
    if isinstance(value, LexiconObject):
        return value.to_record()
    if isinstance(value, (bytes, bytearray)):
        return {"$bytes": encode_base64(bytes(value))}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    if isinstance(value, Mapping):
        return {k: encode_value(v) for k, v in value.items()}
    return value


class LexiconObject:
    """Base class for generated Lexicon value classes.

    Subclasses are keyword-only dataclasses; the class attributes below are
    filled in by :func:`build_value_class` or by generated source.
    """

    __lexicon_id__: ClassVar[str] = ""
    """NSID of the Lexicon the class was compiled from."""

    __schema_key__: ClassVar[str] = nsid_codec.MAIN
    """Def name (or RPC part) within that Lexicon."""

    __lexicon_fields__: ClassVar[tuple[tuple[str, str, Any], ...]] = ()
    """``(record_key, attribute, default)`` for each field, in order."""

    __enforced_keys__: ClassVar[frozenset[str]] = frozenset()
    """Required record keys, excluding ``$type``."""

    __omit_if_none__: ClassVar[frozenset[str]] = frozenset()
    """Record keys dropped from :meth:`to_record` when ``None``."""

    __lexicon_registry__: ClassVar[LexiconRegistry | None] = None
    """Registry used by :meth:`from_record`; ``None`` means the default."""

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        record: dict[str, Any] = {}
        for key, attr, _ in self.__lexicon_fields__:
            value = getattr(self, attr)
            if value is None and key in self.__omit_if_none__:
                continue
            record[key] = encode_value(value)
        return record

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_record(), **kwargs)

    @classmethod
    def _registry(cls) -> LexiconRegistry:
        if cls.__lexicon_registry__ is not None:
            return cls.__lexicon_registry__
        from ._registry import default_registry

        return default_registry()

    @classmethod
    def from_record(cls, data: Any):
        """Validate ``data`` and build an instance.

        Unknown keys are dropped. Nested references to other object-shaped
        defs are turned into instances of their value classes.

        Raises:
            LexiconValidationError: If ``data`` fails validation.
            LexiconReferenceError: If the class's Lexicon is not registered.
        """
        registry = cls._registry()
        compiled = registry.schema(cls.__lexicon_id__, cls.__schema_key__)
        value = compiled.validator.validate(data, registry).unwrap()
        return cls._from_validated(value, compiled.type, registry)

    @classmethod
    def _from_validated(cls, value: Mapping[str, Any], lex_type: LexType, registry):
        kwargs = {}
        for key, attr, _ in cls.__lexicon_fields__:
            if key not in value:
                continue
            prop = lex_type.get(key) if isinstance(lex_type, ObjectType) else None
            kwargs[attr] = hydrate(value[key], prop.type if prop else None, registry)
        return cls(**kwargs)


# Attributes a property must not shadow.
_RESERVED_ATTRS = frozenset(
    name for name in vars(LexiconObject) if not name.startswith("__")
)


def hydrate(value: Any, lex_type: LexType | None, registry: LexiconRegistry) -> Any:
    """Replace validated dicts with value-class instances where the type says so."""
    if value is None or lex_type is None:
        return value
    if isinstance(lex_type, NullableType):
        return hydrate(value, lex_type.inner, registry)
    if isinstance(lex_type, ArrayType) and isinstance(value, list):
        return [hydrate(v, lex_type.items, registry) for v in value]
    if not isinstance(value, Mapping):
        return value

    target: tuple[str, str] | None = None
    if isinstance(lex_type, RefType):
        target = (lex_type.nsid, lex_type.fragment)
    elif isinstance(lex_type, UnionType) and isinstance(value.get(TYPE_KEY), str):
        try:
            branded = nsid_codec.split(value[TYPE_KEY])
        except ValueError:
            branded = None
        if branded in lex_type.refs:
            target = branded

    if target is None:
        return value
    compiled = registry.schema(*target)
    if compiled.value_class is None:
        return value
    return compiled.value_class._from_validated(value, compiled.type, registry)


@dataclass(frozen=True)
class ValueField:
    """One field of a value class being built."""

    key: str
    annotation: Any
    required: bool = False
    nullable: bool = False
    default: Any = MISSING

    @property
    def attr(self) -> str:
        return attribute_name(self.key)


def build_value_class(
    name: str,
    nsid: str,
    schema_key: str,
    fields: Sequence[ValueField],
    *,
    type_name: str | None = None,
    registry: LexiconRegistry | None = None,
    doc: str | None = None,
) -> type[LexiconObject]:
    """Create a keyword-only dataclass for an object-shaped def.

    Args:
        name: Class name.
        nsid: Id of the owning Lexicon.
        schema_key: Def name or RPC part the class belongs to.
        fields: Declared properties, in order. ``$type`` is handled
            separately and must not be listed unless it was declared.
        type_name: Value of the trailing ``$type`` field; ``None`` for
            classes that carry no ``$type`` slot (RPC parts).
        registry: Registry the owning bundle lives in.
        doc: Class docstring.

    Raises:
        LexiconCompileError: If two property names map to the same attribute,
            or a property would shadow a :class:`LexiconObject` method.
    """
    ordered = [f for f in fields if f.key != TYPE_KEY]
    if type_name is not None:
        ordered.append(ValueField(TYPE_KEY, str, default=type_name))

    seen: dict[str, str] = {}
    dc_fields = []
    lexicon_fields = []
    for f in ordered:
        attr = f.attr
        if attr in _RESERVED_ATTRS:
            raise LexiconCompileError(
                nsid,
                f"property {f.key!r} maps to attribute {attr!r}, which is reserved",
                def_name=schema_key,
            )
        if attr in seen:
            raise LexiconCompileError(
                nsid,
                f"properties {seen[attr]!r} and {f.key!r} both map to attribute {attr!r}",
                def_name=schema_key,
            )
        seen[attr] = f.key

        default = None if f.default is MISSING else f.default
        if f.required and f.key != TYPE_KEY:
            dc_fields.append((attr, f.annotation))
        else:
            dc_fields.append((attr, f.annotation, dataclasses.field(default=default)))
        lexicon_fields.append((f.key, attr, default))

    namespace = {
        "__doc__": doc,
        "__lexicon_id__": nsid,
        "__schema_key__": schema_key,
        "__lexicon_fields__": tuple(lexicon_fields),
        "__enforced_keys__": frozenset(
            f.key for f in ordered if f.required and f.key != TYPE_KEY
        ),
        "__omit_if_none__": frozenset(
            f.key
            for f in ordered
            if not f.required and not f.nullable and f.key != TYPE_KEY
        ),
        "__lexicon_registry__": registry,
    }
    return dataclasses.make_dataclass(
        name,
        dc_fields,
        bases=(LexiconObject,),
        namespace=namespace,
        kw_only=True,
    )
