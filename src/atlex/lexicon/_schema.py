"""Runtime schema nodes and the recursive validator.

A compiled Lexicon definition is a tree of :class:`Schema` nodes. Calling
:meth:`Schema.validate` walks that tree over a decoded JSON value and returns
a :class:`ValidationResult` holding either the normalized value (defaults
applied, ``$bytes`` decoded, references followed) or the first failure found.

Nodes signal failure internally by raising :class:`LexiconValidationError`
from ``_validate``; alternatives (:class:`AnyOf`, :class:`UnionSchema`,
:class:`Nullable`) recover it locally and try the next branch. Missing
references raise :class:`LexiconReferenceError`, which is never converted
into a validation failure.

Examples:
    >>> schema = ObjectSchema({
    ...     "text": Required(StringSchema(max_graphemes=300)),
    ...     "langs": ArraySchema(StringSchema(format="language"), max_length=3),
    ... })
    >>> schema.validate({"text": "hi", "langs": ["en"]}).ok
    True
    >>> str(schema.validate({"langs": ["en"]}).error)
    '$.text: is required'
"""

from __future__ import annotations

import base64
import binascii
import copy
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .._exceptions import LexiconValidationError
from ._formats import FORMATS, grapheme_length, utf8_length

if TYPE_CHECKING:
    from ._registry import LexiconRegistry

Path = tuple[str | int, ...]


class _Missing:
    """Sentinel type for "no default declared"."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one value.

    Exactly one of ``value`` / ``error`` is meaningful: ``error`` is ``None``
    on success.
    """

    value: Any = None
    error: LexiconValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the normalized value, raising the failure if there was one.

        Raises:
            LexiconValidationError: If validation failed.
        """
        if self.error is not None:
            raise self.error
        return self.value


def _fail(message: str, path: Path, **context: Any) -> LexiconValidationError:
    return LexiconValidationError(message, path, context)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


class Schema:
    """Base class for runtime schema nodes."""

    @property
    def default(self) -> Any:
        """Value substituted when the field is absent, or ``MISSING``."""
        return MISSING

    @property
    def is_required(self) -> bool:
        return False

    def validate(
        self, value: Any, registry: LexiconRegistry | None = None
    ) -> ValidationResult:
        """Validate ``value`` and return the normalized result.

        Args:
            value: A decoded JSON value.
            registry: Registry used to dereference ``ref`` / ``union``
                targets. Defaults to the process-wide registry.

        Raises:
            LexiconReferenceError: If a referenced Lexicon or def is missing.
        """
        try:
            result = self._validate(value, (), registry)
        except LexiconValidationError as e:
            return ValidationResult(error=e)
        return ValidationResult(value=result)

    def _validate(
        self, value: Any, path: Path, registry: LexiconRegistry | None
    ) -> Any:
        raise NotImplementedError


class AnySchema(Schema):
    """Accepts any value unchanged (the ``unknown`` field type)."""

    def _validate(self, value, path, registry):
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NoopSchema(AnySchema):
    """Placeholder for field types the compiler does not recognize."""


class BooleanSchema(Schema):
    def _validate(self, value, path, registry):
        if not isinstance(value, bool):
            raise _fail("should be a boolean", path, actual=_type_name(value))
        return value


class IntegerSchema(Schema):
    """Integer with inclusive bounds. Booleans are rejected."""

    def __init__(self, minimum: int | None = None, maximum: int | None = None):
        self.minimum = minimum
        self.maximum = maximum

    def _validate(self, value, path, registry):
        if isinstance(value, bool) or not isinstance(value, int):
            raise _fail("should be an integer", path, actual=_type_name(value))
        if self.minimum is not None and value < self.minimum:
            raise _fail(
                f"should be at least {self.minimum}",
                path,
                minimum=self.minimum,
                actual=value,
            )
        if self.maximum is not None and value > self.maximum:
            raise _fail(
                f"should be at most {self.maximum}",
                path,
                maximum=self.maximum,
                actual=value,
            )
        return value


class StringSchema(Schema):
    """String checked in order: format, UTF-8 byte length, grapheme count.

    Args:
        format: One of the names in ``FORMATS``.
        min_length: Minimum length in UTF-8 bytes.
        max_length: Maximum length in UTF-8 bytes.
        min_graphemes: Minimum number of grapheme clusters.
        max_graphemes: Maximum number of grapheme clusters.
        pattern: Regular expression the whole string must match.
    """

    def __init__(
        self,
        format: str | None = None,
        min_length: int | None = None,
        max_length: int | None = None,
        min_graphemes: int | None = None,
        max_graphemes: int | None = None,
        pattern: str | re.Pattern[str] | None = None,
    ):
        if format is not None and format not in FORMATS:
            raise ValueError(f"Unknown string format: {format!r}")
        self.format = format
        self.min_length = min_length
        self.max_length = max_length
        self.min_graphemes = min_graphemes
        self.max_graphemes = max_graphemes
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def _validate(self, value, path, registry):
        if not isinstance(value, str):
            raise _fail("should be a string", path, actual=_type_name(value))

        if self.format is not None:
            predicate, message = FORMATS[self.format]
            if not predicate(value):
                raise _fail(message, path, format=self.format, actual=value)

        if self.pattern is not None and self.pattern.fullmatch(value) is None:
            raise _fail(
                f"should match {self.pattern.pattern!r}",
                path,
                pattern=self.pattern.pattern,
                actual=value,
            )

        if self.min_length is not None or self.max_length is not None:
            size = utf8_length(value)
            if self.min_length is not None and size < self.min_length:
                raise _fail(
                    f"should be at least {self.min_length} bytes long",
                    path,
                    min_length=self.min_length,
                    actual=size,
                )
            if self.max_length is not None and size > self.max_length:
                raise _fail(
                    f"should be at most {self.max_length} bytes long",
                    path,
                    max_length=self.max_length,
                    actual=size,
                )

        if self.min_graphemes is not None or self.max_graphemes is not None:
            count = grapheme_length(value)
            if self.min_graphemes is not None and count < self.min_graphemes:
                raise _fail(
                    f"should have at least {self.min_graphemes} graphemes",
                    path,
                    min_graphemes=self.min_graphemes,
                    actual=count,
                )
            if self.max_graphemes is not None and count > self.max_graphemes:
                raise _fail(
                    f"should have at most {self.max_graphemes} graphemes",
                    path,
                    max_graphemes=self.max_graphemes,
                    actual=count,
                )

        return value


def _same_value(a: Any, b: Any) -> bool:
    # 1 == True in Python; JSON keeps them apart.
    return type(a) is type(b) and a == b


class LiteralSchema(Schema):
    """Exactly one allowed value (``const``)."""

    def __init__(self, value: Any):
        self.value = value

    def _validate(self, value, path, registry):
        if not _same_value(value, self.value):
            raise _fail(
                f"should equal {self.value!r}", path, expected=self.value, actual=value
            )
        return value

    def __repr__(self) -> str:
        return f"LiteralSchema({self.value!r})"


class EnumSchema(Schema):
    """Membership in a closed set of values (``enum``)."""

    def __init__(self, values: Sequence[Any]):
        self.values = tuple(values)

    def _validate(self, value, path, registry):
        if not any(_same_value(value, v) for v in self.values):
            raise _fail(
                f"should be one of {list(self.values)!r}",
                path,
                expected=list(self.values),
                actual=value,
            )
        return value


class ArraySchema(Schema):
    """List of items with element-count bounds; stops at the first bad item."""

    def __init__(
        self,
        items: Schema,
        min_length: int | None = None,
        max_length: int | None = None,
    ):
        self.items = items
        self.min_length = min_length
        self.max_length = max_length

    def _validate(self, value, path, registry):
        if not isinstance(value, (list, tuple)):
            raise _fail("should be an array", path, actual=_type_name(value))
        if self.min_length is not None and len(value) < self.min_length:
            raise _fail(
                f"should have at least {self.min_length} items",
                path,
                min_length=self.min_length,
                actual=len(value),
            )
        if self.max_length is not None and len(value) > self.max_length:
            raise _fail(
                f"should have at most {self.max_length} items",
                path,
                max_length=self.max_length,
                actual=len(value),
            )
        return [
            self.items._validate(item, (*path, i), registry)
            for i, item in enumerate(value)
        ]


class MapSchema(Schema):
    """Object with arbitrary string keys and uniformly typed values."""

    def __init__(self, values: Schema, keys: Schema | None = None):
        self.values = values
        self.keys = keys

    def _validate(self, value, path, registry):
        if not isinstance(value, Mapping):
            raise _fail("should be an object", path, actual=_type_name(value))
        out = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise _fail("object keys should be strings", path, actual=key)
            if self.keys is not None:
                self.keys._validate(key, (*path, key), registry)
            out[key] = self.values._validate(item, (*path, key), registry)
        return out


class ObjectSchema(Schema):
    """Object with declared fields, walked in declaration order.

    Absent fields take their default when one is declared, fail when they
    are :class:`Required`, and are otherwise left out. An explicit ``null``
    counts as present.

    Args:
        fields: Field name to schema, in declaration order.
        extra: Schema applied to every undeclared key.
        closed: Reject undeclared keys instead of passing them through.
    """

    def __init__(
        self,
        fields: Mapping[str, Schema],
        extra: Schema | None = None,
        closed: bool = False,
    ):
        self.fields = dict(fields)
        self.extra = extra
        self.closed = closed

    def _validate(self, value, path, registry):
        if not isinstance(value, Mapping):
            raise _fail("should be an object", path, actual=_type_name(value))

        out: dict[str, Any] = {}
        for key, field in self.fields.items():
            if key in value:
                out[key] = field._validate(value[key], (*path, key), registry)
            elif field.default is not MISSING:
                out[key] = copy.deepcopy(field.default)
            elif field.is_required:
                raise _fail("is required", (*path, key))

        for key, item in value.items():
            if key in self.fields:
                continue
            if self.closed:
                raise _fail("is not an allowed key", (*path, key))
            if self.extra is not None:
                out[key] = self.extra._validate(item, (*path, key), registry)
            else:
                out[key] = item
        return out

    def __repr__(self) -> str:
        return f"ObjectSchema({list(self.fields)!r})"


class _Wrapper(Schema):
    def __init__(self, inner: Schema):
        self.inner = inner

    @property
    def default(self) -> Any:
        return self.inner.default

    @property
    def is_required(self) -> bool:
        return self.inner.is_required

    def _validate(self, value, path, registry):
        return self.inner._validate(value, path, registry)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.inner!r})"


class Required(_Wrapper):
    """Marks an object field as mandatory."""

    @property
    def is_required(self) -> bool:
        return True


class Nullable(_Wrapper):
    """Either ``null`` or the inner schema."""

    def _validate(self, value, path, registry):
        if value is None:
            return None
        return self.inner._validate(value, path, registry)


class WithDefault(_Wrapper):
    """Supplies ``default`` when the enclosing object lacks the field."""

    def __init__(self, inner: Schema, default: Any):
        super().__init__(inner)
        self._default = default

    @property
    def default(self) -> Any:
        return self._default


class Bound(_Wrapper):
    """Resolves refs against ``registry`` unless a caller supplies one."""

    def __init__(self, inner: Schema, registry: LexiconRegistry):
        super().__init__(inner)
        self.registry = registry

    def _validate(self, value, path, registry):
        return self.inner._validate(
            value, path, self.registry if registry is None else registry
        )


class AnyOf(Schema):
    """First alternative that accepts the value wins."""

    def __init__(self, alternatives: Sequence[Schema], description: str = "value"):
        self.alternatives = tuple(alternatives)
        self.description = description

    def _validate(self, value, path, registry):
        last: LexiconValidationError | None = None
        for alternative in self.alternatives:
            try:
                return alternative._validate(value, path, registry)
            except LexiconValidationError as e:
                last = e
        raise _fail(
            f"should be a valid {self.description}",
            path,
            alternatives=len(self.alternatives),
            last_error=last,
        )


def decode_base64(data: str) -> bytes:
    """Decode standard base64, with or without ``=`` padding.

    Raises:
        ValueError: If ``data`` is not valid base64.
    """
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except binascii.Error as e:
        raise ValueError(str(e)) from e


def encode_base64(data: bytes) -> str:
    """Encode as unpadded standard base64, the ``$bytes`` wire form."""
    return base64.b64encode(data).decode("ascii").rstrip("=")


class BytesSchema(Schema):
    """``{"$bytes": <base64>}`` wrapper, normalized to raw ``bytes``."""

    def __init__(self, min_length: int | None = None, max_length: int | None = None):
        self.min_length = min_length
        self.max_length = max_length

    def _validate(self, value, path, registry):
        if isinstance(value, (bytes, bytearray)):
            data = bytes(value)
        elif isinstance(value, Mapping) and isinstance(value.get("$bytes"), str):
            try:
                data = decode_base64(value["$bytes"])
            except ValueError:
                raise _fail("should be valid base64", (*path, "$bytes")) from None
        else:
            raise _fail(
                'should be an object of the form {"$bytes": <base64>}',
                path,
                actual=_type_name(value),
            )

        if self.min_length is not None and len(data) < self.min_length:
            raise _fail(
                f"should be at least {self.min_length} bytes",
                path,
                min_length=self.min_length,
                actual=len(data),
            )
        if self.max_length is not None and len(data) > self.max_length:
            raise _fail(
                f"should be at most {self.max_length} bytes",
                path,
                max_length=self.max_length,
                actual=len(data),
            )
        return data


class RefSchema(Schema):
    """Lazy reference to a def in some Lexicon, looked up at validation time.

    Only the ``(nsid, fragment)`` pair is stored; the target is fetched from
    the registry passed to :meth:`validate` (or the default registry), so
    documents may reference each other in any order, including cyclically.
    """

    def __init__(self, nsid: str, fragment: str = "main"):
        self.nsid = nsid
        self.fragment = fragment

    @property
    def ref(self) -> str:
        return self.nsid if self.fragment == "main" else f"{self.nsid}#{self.fragment}"

    def _validate(self, value, path, registry):
        if registry is None:
            from ._registry import default_registry

            registry = default_registry()
        target = registry.schema(self.nsid, self.fragment)
        return target.validator._validate(value, path, registry)

    def __repr__(self) -> str:
        return f"RefSchema({self.ref!r})"


class UnionSchema(Schema):
    """Ordered lazy references; the value must match at least one.

    An empty union accepts any object.
    """

    def __init__(self, refs: Sequence[RefSchema]):
        self.refs = tuple(refs)

    def _validate(self, value, path, registry):
        if not isinstance(value, Mapping):
            raise _fail("should be an object", path, actual=_type_name(value))
        if not self.refs:
            return dict(value)

        last: LexiconValidationError | None = None
        for ref in self.refs:
            try:
                return ref._validate(value, path, registry)
            except LexiconValidationError as e:
                last = e
        names = [ref.ref for ref in self.refs]
        raise _fail(
            f"should match one of {names!r}",
            path,
            expected=names,
            last_error=last,
        )


class TaggedSchema(Schema):
    """Object whose shape is chosen by the value of a tag key.

    Args:
        tag: Key holding the discriminator (e.g. ``"type"``).
        variants: Tag value to schema.
        fallback: Schema used for unknown tag values; without one they fail.
    """

    def __init__(
        self,
        tag: str,
        variants: Mapping[str, Schema],
        fallback: Schema | None = None,
    ):
        self.tag = tag
        self.variants = dict(variants)
        self.fallback = fallback

    def _validate(self, value, path, registry):
        if not isinstance(value, Mapping):
            raise _fail("should be an object", path, actual=_type_name(value))
        if self.tag not in value:
            raise _fail("is required", (*path, self.tag))

        kind = value[self.tag]
        schema = self.variants.get(kind) if isinstance(kind, str) else None
        if schema is None:
            schema = self.fallback
        if schema is None:
            raise _fail(
                f"should be one of {sorted(self.variants)!r}",
                (*path, self.tag),
                expected=sorted(self.variants),
                actual=kind,
            )
        return schema._validate(value, path, registry)
