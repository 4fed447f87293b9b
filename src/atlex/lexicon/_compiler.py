"""Compile whole Lexicon documents into :class:`LexiconBundle` objects."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from .._exceptions import LexiconCompileError, LexiconReferenceError
from .._logging import log_operation
from ..identifiers import nsid as nsid_codec
from ._defs import RPC_PARTS, CompiledSchema, compile_def
from ._document import LexiconDocument, ProcedureDef, QueryDef, SubscriptionDef
from ._schema import Bound, Schema, ValidationResult
from ._types import LexType
from ._values import LexiconObject, class_name

if TYPE_CHECKING:
    from ._registry import LexiconRegistry


class LexiconBundle:
    """All compiled schemas of one Lexicon document, keyed by def name.

    RPC documents also contain their ``params`` / ``input`` / ``output`` /
    ``message`` parts. References are resolved through ``registry``.

    Examples:
        >>> bundle = compile_lexicon(document)
        >>> bundle.id
        'app.example.post'
        >>> bundle.validate("main", {"text": "hi"}).ok
        True
    """

    def __init__(
        self,
        document: LexiconDocument,
        schemas: Mapping[str, CompiledSchema],
        registry: LexiconRegistry,
    ) -> None:
        self._document = document
        self._schemas = dict(schemas)
        self._registry = registry

    @property
    def id(self) -> str:
        return self._document.id

    @property
    def document(self) -> LexiconDocument:
        return self._document

    @property
    def registry(self) -> LexiconRegistry:
        return self._registry

    def keys(self) -> list[str]:
        return list(self._schemas)

    def schema(self, key: str = nsid_codec.MAIN) -> CompiledSchema:
        """Return the compiled schema for ``key``.

        Raises:
            LexiconReferenceError: If the bundle has no such key.
        """
        try:
            return self._schemas[key]
        except KeyError:
            raise LexiconReferenceError(self.id, key, self.keys()) from None

    def validator(self, key: str = nsid_codec.MAIN) -> Schema:
        """Return the runtime schema for ``key``, resolving refs in this bundle's registry."""
        return Bound(self.schema(key).validator, self._registry)

    def type(self, key: str = nsid_codec.MAIN) -> LexType:
        return self.schema(key).type

    def value_class(self, key: str = nsid_codec.MAIN) -> type[LexiconObject] | None:
        return self.schema(key).value_class

    def bind_value_class(self, key: str, cls: type[LexiconObject]) -> None:
        """Use ``cls`` as the value class for ``key`` from now on.

        Generated modules call this so that values built by the registry are
        instances of the generated classes.

        Raises:
            ValueError: If ``cls`` was generated for a different def.
        """
        compiled = self.schema(key)
        if (cls.__lexicon_id__, cls.__schema_key__) != (self.id, key):
            raise ValueError(
                f"{cls.__name__} belongs to "
                f"{nsid_codec.canonical_name(cls.__lexicon_id__, cls.__schema_key__)!r}, "
                f"not {compiled.canonical_name!r}"
            )
        self._schemas[key] = dataclasses.replace(compiled, value_class=cls)

    def validate(self, key: str, value: Any) -> ValidationResult:
        return self.schema(key).validator.validate(value, self._registry)

    def from_record(self, key: str, data: Any) -> Any:
        """Validate ``data`` against ``key`` and return the typed value.

        Object-shaped defs produce a value-class instance, anything else the
        normalized value.

        Raises:
            LexiconValidationError: If ``data`` is invalid.
        """
        compiled = self.schema(key)
        if compiled.value_class is not None:
            return compiled.value_class.from_record(data)
        return compiled.validator.validate(data, self._registry).unwrap()

    def __getitem__(self, key: str) -> CompiledSchema:
        return self.schema(key)

    def __contains__(self, key: object) -> bool:
        return key in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def __repr__(self) -> str:
        return f"LexiconBundle({self.id!r}, keys={self.keys()!r})"


def _value_class_names(document: LexiconDocument) -> dict[str, str]:
    """Pick a distinct class name for every def.

    ``main`` is named after the last NSID segment, falling back to ``Main``
    when another def already claims that name.
    """
    names = {key: class_name(key) for key in document.defs if key != nsid_codec.MAIN}
    taken = set(names.values())
    main = document.defs.get(nsid_codec.MAIN)
    if isinstance(main, (QueryDef, ProcedureDef, SubscriptionDef)):
        taken |= {class_name(part) for part in RPC_PARTS}

    if main is not None:
        main_name = class_name(nsid_codec.name(document.id))
        names[nsid_codec.MAIN] = "Main" if main_name in taken else main_name

    seen: dict[str, str] = {}
    for key, name in names.items():
        if name in seen:
            raise LexiconCompileError(
                document.id,
                f"defs {seen[name]!r} and {key!r} both map to class name {name!r}",
                def_name=key,
            )
        seen[name] = key
    return names


def build_bundle(
    document: LexiconDocument, registry: LexiconRegistry, *, strict: bool = False
) -> LexiconBundle:
    """Compile every def of ``document``, bound to ``registry``.

    The bundle is not inserted into the registry.
    """
    names = _value_class_names(document)
    schemas: dict[str, CompiledSchema] = {}
    for def_name, definition in document.defs.items():
        for compiled in compile_def(
            document.id,
            def_name,
            definition,
            strict=strict,
            registry=registry,
            value_class_name=names[def_name],
        ):
            if compiled.key in schemas:
                raise LexiconCompileError(
                    document.id,
                    f"duplicate schema key {compiled.key!r}",
                    def_name=def_name,
                )
            schemas[compiled.key] = dataclasses.replace(compiled, registry=registry)
    return LexiconBundle(document, schemas, registry)


def compile_lexicon(
    document: LexiconDocument | Mapping[str, Any],
    registry: LexiconRegistry | None = None,
    *,
    strict: bool | None = None,
) -> LexiconBundle:
    """Compile a Lexicon document.

    Args:
        document: A parsed document, or the decoded JSON mapping.
        registry: Registry that references resolve against. When omitted a
            private registry is created and the bundle is registered in it,
            so same-document references work out of the box.
        strict: Reject unrecognized field types. Defaults to the
            ``strict_field_types`` setting of :func:`atlex.load_config`.

    Returns:
        The compiled bundle.

    Raises:
        LexiconCompileError: If the document is malformed. No bundle is
            produced in that case.
    """
    if not isinstance(document, LexiconDocument):
        document = LexiconDocument.from_dict(document)

    if registry is None:
        from ._registry import LexiconRegistry

        return LexiconRegistry(strict=strict).register(document)

    if strict is None:
        from .._config import load_config

        strict = load_config().strict_field_types

    with log_operation("compile_lexicon", nsid=document.id):
        return build_bundle(document, registry, strict=strict)
