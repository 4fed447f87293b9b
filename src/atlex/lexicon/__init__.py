"""Lexicon compiler and runtime validator.

Compilation is a pure function from a Lexicon document (plus the registry
its references resolve against) to a :class:`LexiconBundle`: one
:class:`CompiledSchema` per def, each with a runtime validator, a type
descriptor and, for object-shaped defs, a generated value class.

Generating Python source (:func:`generate_module`) is a separate, optional
step; validation works directly off the in-memory bundle.

Examples:
    >>> from atlex.lexicon import LexiconRegistry, BundledSource
    >>> registry = LexiconRegistry([BundledSource()])
    >>> result = registry.validate(
    ...     "app.bsky.richtext.facet#byteSlice", {"byteStart": 0, "byteEnd": -1}
    ... )
    >>> str(result.error)
    '$.byteEnd: should be at least 0'
"""

from ._codegen import generate_module, module_path, write_module
from ._compiler import LexiconBundle, build_bundle, compile_lexicon
from ._defs import CompiledSchema, compile_def
from ._document import (
    BodyDef,
    Definition,
    ErrorDef,
    FieldDef,
    LexiconDocument,
    ObjectDef,
    ParamsDef,
    ProcedureDef,
    QueryDef,
    RecordDef,
    SubscriptionDef,
    TokenDef,
)
from ._fields import CompiledField, compile_field
from ._formats import FORMATS
from ._registry import (
    BundledSource,
    DirectorySource,
    LexiconRegistry,
    LexiconSource,
    default_registry,
    reset_default_registry,
)
from ._schema import (
    MISSING,
    AnyOf,
    AnySchema,
    ArraySchema,
    BooleanSchema,
    Bound,
    BytesSchema,
    EnumSchema,
    IntegerSchema,
    LiteralSchema,
    MapSchema,
    NoopSchema,
    Nullable,
    ObjectSchema,
    RefSchema,
    Required,
    Schema,
    StringSchema,
    TaggedSchema,
    UnionSchema,
    ValidationResult,
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
    NullableType,
    ObjectType,
    Property,
    RefType,
    StringType,
    TokenType,
    UnionType,
    UnknownType,
)
from ._values import LexiconObject, build_value_class, encode_value

__all__ = [
    # Compilation
    "compile_lexicon",
    "compile_def",
    "compile_field",
    "build_bundle",
    "LexiconBundle",
    "CompiledSchema",
    "CompiledField",
    # Documents
    "LexiconDocument",
    "Definition",
    "RecordDef",
    "ObjectDef",
    "QueryDef",
    "ProcedureDef",
    "SubscriptionDef",
    "TokenDef",
    "FieldDef",
    "ParamsDef",
    "BodyDef",
    "ErrorDef",
    # Registry
    "LexiconRegistry",
    "LexiconSource",
    "DirectorySource",
    "BundledSource",
    "default_registry",
    "reset_default_registry",
    # Runtime schemas
    "Schema",
    "ValidationResult",
    "MISSING",
    "AnySchema",
    "NoopSchema",
    "BooleanSchema",
    "IntegerSchema",
    "StringSchema",
    "LiteralSchema",
    "EnumSchema",
    "ArraySchema",
    "MapSchema",
    "ObjectSchema",
    "Required",
    "Nullable",
    "WithDefault",
    "Bound",
    "AnyOf",
    "BytesSchema",
    "RefSchema",
    "UnionSchema",
    "TaggedSchema",
    "FORMATS",
    # Types
    "LexType",
    "AnyType",
    "UnknownType",
    "StringType",
    "TokenType",
    "IntegerType",
    "BooleanType",
    "BytesType",
    "BlobType",
    "CidLinkType",
    "ArrayType",
    "RefType",
    "UnionType",
    "NullableType",
    "ObjectType",
    "Property",
    # Value classes
    "LexiconObject",
    "build_value_class",
    "encode_value",
    # Code generation
    "generate_module",
    "module_path",
    "write_module",
]
