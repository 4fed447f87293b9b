"""The Lexicon language described with atlex's own schema nodes.

``LEXICON_DOCUMENT`` validates a raw Lexicon JSON document before it is
turned into :class:`~atlex.lexicon.LexiconDocument` dataclasses. ``main`` may
be any definition type; every other def name goes through the ``extra``
escape hatch of the ``defs`` object, which only admits user types (records
and RPC definitions are ``main``-only).

Field types the compiler does not know still pass here (see
``_UNRECOGNIZED_FIELD``) so that the field compiler can decide whether to
warn or fail.
"""

from __future__ import annotations

from ._formats import FORMATS
from ._schema import (
    ArraySchema,
    BooleanSchema,
    EnumSchema,
    IntegerSchema,
    LiteralSchema,
    MapSchema,
    ObjectSchema,
    Required,
    Schema,
    StringSchema,
    TaggedSchema,
)

_STR = StringSchema()
_STR_LIST = ArraySchema(StringSchema())
_NON_NEGATIVE = IntegerSchema(minimum=0)
_DESCRIPTION = {"description": _STR}


def _shape(type_name: str, **fields: Schema) -> ObjectSchema:
    return ObjectSchema(
        {"type": Required(LiteralSchema(type_name)), **_DESCRIPTION, **fields}
    )


BOOLEAN = _shape("boolean", default=BooleanSchema(), const=BooleanSchema())

INTEGER = _shape(
    "integer",
    minimum=IntegerSchema(),
    maximum=IntegerSchema(),
    enum=ArraySchema(IntegerSchema()),
    default=IntegerSchema(),
    const=IntegerSchema(),
)

STRING = _shape(
    "string",
    format=EnumSchema(sorted(FORMATS)),
    maxLength=_NON_NEGATIVE,
    minLength=_NON_NEGATIVE,
    maxGraphemes=_NON_NEGATIVE,
    minGraphemes=_NON_NEGATIVE,
    knownValues=_STR_LIST,
    enum=_STR_LIST,
    default=_STR,
    const=_STR,
)

BYTES = _shape("bytes", minLength=_NON_NEGATIVE, maxLength=_NON_NEGATIVE)
CID_LINK = _shape("cid-link")
BLOB = _shape("blob", accept=_STR_LIST, maxSize=_NON_NEGATIVE)
UNKNOWN = _shape("unknown")
REF = _shape("ref", ref=Required(_STR))
UNION = _shape("union", refs=Required(_STR_LIST), closed=BooleanSchema())
TOKEN = _shape("token")

_UNRECOGNIZED_FIELD = ObjectSchema({"type": Required(_STR)})

_ITEM_TYPES: dict[str, Schema] = {
    "boolean": BOOLEAN,
    "integer": INTEGER,
    "string": STRING,
    "bytes": BYTES,
    "cid-link": CID_LINK,
    "blob": BLOB,
    "unknown": UNKNOWN,
    "ref": REF,
    "union": UNION,
}

ARRAY = _shape(
    "array",
    items=Required(TaggedSchema("type", _ITEM_TYPES, fallback=_UNRECOGNIZED_FIELD)),
    minLength=_NON_NEGATIVE,
    maxLength=_NON_NEGATIVE,
)

FIELD = TaggedSchema(
    "type", {**_ITEM_TYPES, "array": ARRAY}, fallback=_UNRECOGNIZED_FIELD
)
"""Any property type allowed inside an object."""

OBJECT = _shape(
    "object",
    properties=Required(MapSchema(FIELD)),
    required=_STR_LIST,
    nullable=_STR_LIST,
)

_PRIMITIVE = TaggedSchema(
    "type",
    {"boolean": BOOLEAN, "integer": INTEGER, "string": STRING, "unknown": UNKNOWN},
)

PARAMS = _shape(
    "params",
    properties=Required(
        MapSchema(
            TaggedSchema(
                "type",
                {
                    "boolean": BOOLEAN,
                    "integer": INTEGER,
                    "string": STRING,
                    "unknown": UNKNOWN,
                    "array": _shape(
                        "array",
                        items=Required(_PRIMITIVE),
                        minLength=_NON_NEGATIVE,
                        maxLength=_NON_NEGATIVE,
                    ),
                },
            )
        )
    ),
    required=_STR_LIST,
)

_BODY_SCHEMA = TaggedSchema("type", {"object": OBJECT, "ref": REF, "union": UNION})

BODY = ObjectSchema(
    {**_DESCRIPTION, "encoding": Required(_STR), "schema": _BODY_SCHEMA}
)

MESSAGE = ObjectSchema({**_DESCRIPTION, "schema": _BODY_SCHEMA})

ERRORS = ArraySchema(ObjectSchema({"name": Required(_STR), **_DESCRIPTION}))

RECORD = _shape("record", key=_STR, record=Required(OBJECT))

QUERY = _shape("query", parameters=PARAMS, output=BODY, errors=ERRORS)

PROCEDURE = _shape(
    "procedure", parameters=PARAMS, input=BODY, output=BODY, errors=ERRORS
)

SUBSCRIPTION = _shape("subscription", parameters=PARAMS, message=MESSAGE, errors=ERRORS)

USER_TYPES: dict[str, Schema] = {
    **_ITEM_TYPES,
    "array": ARRAY,
    "object": OBJECT,
    "token": TOKEN,
}

USER_TYPE_DEF = TaggedSchema("type", USER_TYPES)
"""A def under any name other than ``main``."""

MAIN_DEF = TaggedSchema(
    "type",
    {
        "record": RECORD,
        "query": QUERY,
        "procedure": PROCEDURE,
        "subscription": SUBSCRIPTION,
        **USER_TYPES,
    },
)

LEXICON_DOCUMENT = ObjectSchema(
    {
        "lexicon": Required(LiteralSchema(1)),
        "id": Required(StringSchema(format="nsid")),
        "revision": _NON_NEGATIVE,
        **_DESCRIPTION,
        "defs": Required(ObjectSchema({"main": MAIN_DEF}, extra=USER_TYPE_DEF)),
    }
)
"""Meta-schema for a whole Lexicon document."""
