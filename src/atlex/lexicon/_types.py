"""Type descriptors for compiled Lexicon definitions.

Each compiled field or def carries a ``LexType`` next to its validator. The
descriptor says what shape a validated value has: the code generator renders
it as a Python annotation, and value classes use the runtime form for their
dataclass fields.

``RefType`` and ``UnionType`` only hold ``(nsid, fragment)`` pairs; the
target may not be compiled yet.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

# Maps (nsid, fragment) to a class name visible in the generated module.
LocalNames = Mapping[tuple[str, str], str]


class LexType:
    """Base class for type descriptors."""

    def annotation(self, local: LocalNames | None = None) -> str:
        """Python annotation source for this type."""
        raise NotImplementedError

    def runtime_annotation(self) -> Any:
        """Annotation object usable with ``dataclasses.make_dataclass``."""
        raise NotImplementedError


@dataclass(frozen=True)
class _Simple(LexType):
    _source = "Any"
    _runtime = Any

    def annotation(self, local=None):
        return self._source

    def runtime_annotation(self):
        return self._runtime


@dataclass(frozen=True)
class AnyType(_Simple):
    """No shape information (unrecognized field types)."""


@dataclass(frozen=True)
class UnknownType(_Simple):
    """Arbitrary JSON (the ``unknown`` field type)."""


@dataclass(frozen=True)
class StringType(_Simple):
    _source = "str"
    _runtime = str

    format: str | None = None
    known_values: tuple[str, ...] = ()


@dataclass(frozen=True)
class TokenType(_Simple):
    _source = "str"
    _runtime = str

    name: str = ""
    """Canonical name of the token def."""


@dataclass(frozen=True)
class IntegerType(_Simple):
    _source = "int"
    _runtime = int


@dataclass(frozen=True)
class BooleanType(_Simple):
    _source = "bool"
    _runtime = bool


@dataclass(frozen=True)
class BytesType(_Simple):
    _source = "bytes"
    _runtime = bytes


@dataclass(frozen=True)
class BlobType(_Simple):
    _source = "dict[str, Any]"
    _runtime = dict

    accept: tuple[str, ...] = ()
    max_size: int | None = None


@dataclass(frozen=True)
class CidLinkType(_Simple):
    _source = "dict[str, str]"
    _runtime = dict


@dataclass(frozen=True)
class ArrayType(LexType):
    items: LexType

    def annotation(self, local=None):
        return f"list[{self.items.annotation(local)}]"

    def runtime_annotation(self):
        return list[self.items.runtime_annotation()]


@dataclass(frozen=True)
class RefType(LexType):
    nsid: str
    fragment: str = "main"

    def annotation(self, local=None):
        if local and (self.nsid, self.fragment) in local:
            return local[(self.nsid, self.fragment)]
        return "Any"

    def runtime_annotation(self):
        return Any


@dataclass(frozen=True)
class UnionType(LexType):
    refs: tuple[tuple[str, str], ...]

    def annotation(self, local=None):
        if not self.refs or not local or any(ref not in local for ref in self.refs):
            return "Any"
        return " | ".join(local[ref] for ref in self.refs)

    def runtime_annotation(self):
        return Any


@dataclass(frozen=True)
class NullableType(LexType):
    inner: LexType

    def annotation(self, local=None):
        inner = self.inner.annotation(local)
        if inner == "Any":
            return inner
        return f"{inner} | None"

    def runtime_annotation(self):
        return Optional[self.inner.runtime_annotation()]


@dataclass(frozen=True)
class Property:
    name: str
    type: LexType
    required: bool = False
    description: str | None = None


@dataclass(frozen=True)
class ObjectType(LexType):
    """Shape of an object-like def: its properties in declaration order."""

    properties: tuple[Property, ...] = ()

    def annotation(self, local=None):
        return "dict[str, Any]"

    def runtime_annotation(self):
        return dict

    def get(self, name: str) -> Property | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None
