"""Compile one Lexicon field definition into a validator and a type descriptor."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .._exceptions import LexiconCompileError
from .._logging import get_logger
from ..identifiers import nsid as nsid_codec
from ._document import FieldDef
from ._schema import (
    AnyOf,
    AnySchema,
    ArraySchema,
    BooleanSchema,
    BytesSchema,
    EnumSchema,
    IntegerSchema,
    LiteralSchema,
    NoopSchema,
    ObjectSchema,
    RefSchema,
    Required,
    Schema,
    StringSchema,
    UnionSchema,
    WithDefault,
)
from ._types import (
    AnyType,
    ArrayType,
    BlobType,
    BooleanType,
    BytesType,
    CidLinkType,
    IntegerType,
    LexType,
    RefType,
    StringType,
    UnionType,
    UnknownType,
)

_MIME_TYPE = r"[^/\s]+/[^/\s]+"


@dataclass(frozen=True)
class CompiledField:
    validator: Schema
    type: LexType


def _const_or_enum(field: FieldDef) -> Schema | None:
    if "const" in field.options:
        return LiteralSchema(field.get("const"))
    if "enum" in field.options:
        return EnumSchema(field.get("enum"))
    return None


def _with_default(schema: Schema, field: FieldDef) -> Schema:
    if field.get("default") is not None:
        return WithDefault(schema, field.get("default"))
    return schema


def _string(field, nsid, strict):
    schema = _const_or_enum(field) or StringSchema(
        format=field.get("format"),
        min_length=field.get("minLength"),
        max_length=field.get("maxLength"),
        min_graphemes=field.get("minGraphemes"),
        max_graphemes=field.get("maxGraphemes"),
    )
    return CompiledField(
        _with_default(schema, field),
        StringType(
            format=field.get("format"),
            known_values=tuple(field.get("knownValues", ())),
        ),
    )


def _boolean(field, nsid, strict):
    schema = _const_or_enum(field) or BooleanSchema()
    return CompiledField(_with_default(schema, field), BooleanType())


def _integer(field, nsid, strict):
    schema = _const_or_enum(field) or IntegerSchema(
        minimum=field.get("minimum"), maximum=field.get("maximum")
    )
    return CompiledField(_with_default(schema, field), IntegerType())


def _array(field, nsid, strict):
    if field.items is None:
        raise LexiconCompileError(nsid, "array field is missing 'items'")
    inner = compile_field(field.items, nsid, strict=strict)
    schema = ArraySchema(
        inner.validator,
        min_length=field.get("minLength"),
        max_length=field.get("maxLength"),
    )
    return CompiledField(schema, ArrayType(inner.type))


def accept_pattern(accept: list[str]) -> re.Pattern[str]:
    """Turn MIME globs like ``image/*`` into one anchored alternation.

    Examples:
        >>> accept_pattern(["image/*", "video/mp4"]).pattern
        '^(?:image/.+|video/mp4)$'
    """
    alternatives = "|".join(
        re.escape(glob).replace(r"\*", ".+") for glob in accept
    )
    return re.compile(f"^(?:{alternatives})$")


def _blob(field, nsid, strict):
    accept = field.get("accept")
    if accept and "*/*" not in accept:
        mime_type = StringSchema(pattern=accept_pattern(accept))
    else:
        mime_type = StringSchema(pattern=_MIME_TYPE)
    size = IntegerSchema(minimum=0, maximum=field.get("maxSize"))

    current = ObjectSchema(
        {
            "$type": Required(LiteralSchema("blob")),
            "ref": Required(ObjectSchema({"$link": Required(StringSchema())})),
            "mimeType": Required(mime_type),
            "size": Required(size),
        }
    )
    legacy = ObjectSchema(
        {
            "cid": Required(StringSchema()),
            "mimeType": Required(mime_type),
        }
    )
    return CompiledField(
        AnyOf([current, legacy], description="blob"),
        BlobType(accept=tuple(accept or ()), max_size=field.get("maxSize")),
    )


def _bytes(field, nsid, strict):
    schema = BytesSchema(
        min_length=field.get("minLength"), max_length=field.get("maxLength")
    )
    return CompiledField(schema, BytesType())


def _cid_link(field, nsid, strict):
    schema = ObjectSchema({"$link": Required(StringSchema())})
    return CompiledField(schema, CidLinkType())


def _split_ref(ref: str, nsid: str) -> tuple[str, str]:
    try:
        return nsid_codec.split(ref, base=nsid)
    except ValueError:
        raise LexiconCompileError(nsid, f"invalid reference {ref!r}") from None


def _ref(field, nsid, strict):
    target, fragment = _split_ref(field.get("ref"), nsid)
    return CompiledField(RefSchema(target, fragment), RefType(target, fragment))


def _union(field, nsid, strict):
    pairs = [_split_ref(ref, nsid) for ref in field.get("refs", ())]
    return CompiledField(
        UnionSchema([RefSchema(t, f) for t, f in pairs]),
        UnionType(tuple(pairs)),
    )


def _unknown(field, nsid, strict):
    return CompiledField(AnySchema(), UnknownType())


_COMPILERS = {
    "string": _string,
    "boolean": _boolean,
    "integer": _integer,
    "array": _array,
    "blob": _blob,
    "bytes": _bytes,
    "cid-link": _cid_link,
    "ref": _ref,
    "union": _union,
    "unknown": _unknown,
}

FIELD_TYPES = frozenset(_COMPILERS)


def compile_field(field: FieldDef, nsid: str, *, strict: bool = False) -> CompiledField:
    """Compile a field definition belonging to the Lexicon ``nsid``.

    Args:
        field: The parsed field definition.
        nsid: Id of the enclosing Lexicon, used to expand ``#fragment``
            references.
        strict: Treat unrecognized field types as compile errors instead of
            accepting any value.

    Raises:
        LexiconCompileError: On malformed references, or on unrecognized
            field types when ``strict`` is set.
    """
    compiler = _COMPILERS.get(field.type)
    if compiler is not None:
        return compiler(field, nsid, strict)

    if strict:
        raise LexiconCompileError(nsid, f"unrecognized field type {field.type!r}")
    get_logger().warning(
        "Lexicon %s: unrecognized field type %r accepts any value", nsid, field.type
    )
    return CompiledField(NoopSchema(), AnyType())
