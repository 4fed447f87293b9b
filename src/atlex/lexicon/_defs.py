"""Compile one Lexicon definition into one or more named schemas.

Most defs compile to a single :class:`CompiledSchema` keyed by the def name.
RPC definitions expand into several: ``params``, ``input``, ``output`` and
``message`` parts plus a ``main`` aggregate whose fields point at them.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from .._exceptions import LexiconCompileError
from ..identifiers import nsid as nsid_codec
from ._document import (
    Definition,
    FieldDef,
    ObjectDef,
    ProcedureDef,
    QueryDef,
    RecordDef,
    SubscriptionDef,
    TokenDef,
)
from ._fields import compile_field
from ._schema import (
    MISSING,
    AnySchema,
    Nullable,
    ObjectSchema,
    RefSchema,
    Required,
    Schema,
    StringSchema,
    ValidationResult,
)
from ._types import (
    LexType,
    NullableType,
    ObjectType,
    Property,
    RefType,
    TokenType,
    UnknownType,
)
from ._values import TYPE_KEY, LexiconObject, ValueField, build_value_class, class_name

if TYPE_CHECKING:
    from ._registry import LexiconRegistry

RPC_PARTS = ("params", "input", "output", "message")


@dataclass(frozen=True)
class CompiledSchema:
    """One compiled def (or RPC part) of a Lexicon.

    Attributes:
        nsid: Id of the owning Lexicon.
        key: Def name, or ``params`` / ``input`` / ``output`` / ``message``.
        validator: Runtime schema for values of this def.
        type: Shape of validated values.
        value_class: Generated dataclass for object-shaped defs.
        description: The def's description, if any.
        registry: Registry refs resolve against when ``validate`` is
            called without one. Set for every schema of a compiled bundle.
    """

    nsid: str
    key: str
    validator: Schema
    type: LexType
    value_class: type[LexiconObject] | None = None
    description: str | None = None
    registry: LexiconRegistry | None = dataclasses.field(
        default=None, compare=False, repr=False
    )

    @property
    def canonical_name(self) -> str:
        return nsid_codec.canonical_name(self.nsid, self.key)

    def validate(
        self, value: Any, registry: LexiconRegistry | None = None
    ) -> ValidationResult:
        return self.validator.validate(
            value, self.registry if registry is None else registry
        )


@dataclass(frozen=True)
class _Context:
    nsid: str
    strict: bool
    registry: LexiconRegistry | None
    class_name: str


def _compile_object(
    ctx: _Context,
    key: str,
    obj: ObjectDef,
    *,
    type_name: str | None,
    extra_properties: dict[str, FieldDef] | None = None,
    description: str | None = None,
) -> CompiledSchema:
    description = description or obj.description
    properties = {**obj.properties, **(extra_properties or {})}
    for group, names in (("required", obj.required), ("nullable", obj.nullable)):
        for name in names:
            if name not in properties:
                raise LexiconCompileError(
                    ctx.nsid, f"{group} property {name!r} is not declared", def_name=key
                )

    fields: dict[str, Schema] = {}
    props: list[Property] = []
    value_fields: list[ValueField] = []
    for name, field in properties.items():
        compiled = compile_field(field, ctx.nsid, strict=ctx.strict)
        validator, lex_type = compiled.validator, compiled.type
        required = name in obj.required or name == TYPE_KEY
        nullable = name in obj.nullable

        if nullable:
            validator = Nullable(validator)
            lex_type = NullableType(lex_type)
        if required:
            validator = Required(validator)

        annotation = lex_type.runtime_annotation()
        if not required and not nullable:
            annotation = Optional[annotation]

        fields[name] = validator
        props.append(Property(name, lex_type, required, field.description))
        value_fields.append(
            ValueField(
                name,
                annotation,
                required=required,
                nullable=nullable,
                default=field.get("default", MISSING),
            )
        )

    value_class = build_value_class(
        ctx.class_name,
        ctx.nsid,
        key,
        value_fields,
        type_name=type_name,
        registry=ctx.registry,
        doc=description,
    )
    return CompiledSchema(
        ctx.nsid,
        key,
        ObjectSchema(fields),
        ObjectType(tuple(props)),
        value_class,
        description,
    )


def _record(ctx: _Context, key: str, definition: RecordDef) -> list[CompiledSchema]:
    type_name = nsid_codec.canonical_name(ctx.nsid, key)
    brand = FieldDef("string", {"const": type_name, "default": type_name})
    return [
        _compile_object(
            ctx,
            key,
            definition.record,
            type_name=type_name,
            extra_properties={TYPE_KEY: brand},
            description=definition.description,
        )
    ]


def _object(ctx: _Context, key: str, definition: ObjectDef) -> list[CompiledSchema]:
    type_name = nsid_codec.canonical_name(ctx.nsid, key)
    return [_compile_object(ctx, key, definition, type_name=type_name)]


def _part(ctx: _Context, key: str, schema: ObjectDef | FieldDef, description) -> CompiledSchema:
    if isinstance(schema, ObjectDef):
        part_ctx = _Context(ctx.nsid, ctx.strict, ctx.registry, class_name(key))
        return _compile_object(part_ctx, key, schema, type_name=None)
    compiled = compile_field(schema, ctx.nsid, strict=ctx.strict)
    return CompiledSchema(
        ctx.nsid, key, compiled.validator, compiled.type, None, description
    )


def _rpc(
    ctx: _Context,
    key: str,
    definition: QueryDef | ProcedureDef | SubscriptionDef,
) -> list[CompiledSchema]:
    parts: dict[str, CompiledSchema] = {}

    params = definition.parameters
    if params is not None:
        parts["params"] = _part(
            ctx,
            "params",
            ObjectDef(
                properties=params.properties,
                required=params.required,
                description=params.description,
            ),
            params.description,
        )

    for part in ("input", "output", "message"):
        body = getattr(definition, part, None)
        if body is not None and body.schema is not None:
            parts[part] = _part(ctx, part, body.schema, body.description)

    fields: dict[str, Schema] = {}
    props: list[Property] = []
    value_fields: list[ValueField] = []

    if "params" in parts:
        ref = RefSchema(ctx.nsid, "params")
        params_required = bool(params.required)
        fields["params"] = Required(ref) if params_required else ref
        props.append(Property("params", RefType(ctx.nsid, "params"), params_required))
        value_fields.append(ValueField("params", Any, required=params_required))

    if "input" in parts:
        fields["input"] = Required(RefSchema(ctx.nsid, "input"))
        props.append(Property("input", RefType(ctx.nsid, "input"), True))
        value_fields.append(ValueField("input", Any, required=True))
    elif isinstance(definition, ProcedureDef):
        fields["raw_input"] = AnySchema()
        props.append(Property("raw_input", UnknownType(), False))
        value_fields.append(ValueField("raw_input", Any))

    main_class = build_value_class(
        ctx.class_name,
        ctx.nsid,
        key,
        value_fields,
        type_name=None,
        registry=ctx.registry,
        doc=definition.description,
    )
    main = CompiledSchema(
        ctx.nsid,
        key,
        ObjectSchema(fields),
        ObjectType(tuple(props)),
        main_class,
        definition.description,
    )
    return [main, *parts.values()]


def _token(ctx: _Context, key: str, definition: TokenDef) -> list[CompiledSchema]:
    name = nsid_codec.canonical_name(ctx.nsid, key)
    return [
        CompiledSchema(
            ctx.nsid, key, StringSchema(), TokenType(name=name), None, definition.description
        )
    ]


def _field(ctx: _Context, key: str, definition: FieldDef) -> list[CompiledSchema]:
    compiled = compile_field(definition, ctx.nsid, strict=ctx.strict)
    return [
        CompiledSchema(
            ctx.nsid,
            key,
            compiled.validator,
            compiled.type,
            None,
            definition.description,
        )
    ]


_DEF_COMPILERS: dict[type, Callable[[_Context, str, Any], list[CompiledSchema]]] = {
    RecordDef: _record,
    ObjectDef: _object,
    QueryDef: _rpc,
    ProcedureDef: _rpc,
    SubscriptionDef: _rpc,
    TokenDef: _token,
    FieldDef: _field,
}


def compile_def(
    nsid: str,
    def_name: str,
    definition: Definition,
    *,
    strict: bool = False,
    registry: LexiconRegistry | None = None,
    value_class_name: str | None = None,
) -> list[CompiledSchema]:
    """Compile one definition of the Lexicon ``nsid``.

    Args:
        nsid: Id of the owning Lexicon.
        def_name: Name of the def within the document.
        definition: Parsed definition.
        strict: Reject unrecognized field types.
        registry: Registry that generated value classes resolve against.
        value_class_name: Class name for the generated value class;
            defaults to the PascalCased def name.

    Returns:
        The compiled schemas, the one named ``def_name`` first.

    Raises:
        LexiconCompileError: If the definition cannot be compiled.
    """
    compiler = _DEF_COMPILERS.get(type(definition))
    if compiler is None:
        raise LexiconCompileError(
            nsid, f"unsupported definition {type(definition).__name__}", def_name=def_name
        )
    ctx = _Context(nsid, strict, registry, value_class_name or class_name(def_name))
    return compiler(ctx, def_name, definition)
