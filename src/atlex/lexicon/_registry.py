"""Registry of compiled Lexicon bundles, keyed by NSID.

``ref`` and ``union`` fields store ``(nsid, fragment)`` pairs and look their
target up here when a value is validated. Bundles that were never registered
explicitly are loaded from the registry's sources on first use; loading is
memoize-once, so concurrent first lookups of one NSID compile it a single
time.

Examples:
    >>> registry = LexiconRegistry([DirectorySource("./lexicons")])
    >>> registry.validate("app.bsky.richtext.facet#link", {"uri": "https://example.com"}).ok
    True
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .._exceptions import LexiconCompileError, LexiconReferenceError
from .._logging import get_logger
from ..identifiers import nsid as nsid_codec
from ._compiler import LexiconBundle, compile_lexicon
from ._defs import CompiledSchema
from ._document import LexiconDocument
from ._schema import ValidationResult


@runtime_checkable
class LexiconSource(Protocol):
    """Somewhere Lexicon documents can be loaded from on demand."""

    def load(self, nsid: str) -> LexiconDocument | None:
        """Return the document for ``nsid``, or ``None`` if not available."""
        ...


class DirectorySource:
    """Lexicon JSON files under a directory.

    Both the nested layout (``app/bsky/feed/post.json``) and the flat layout
    (``app.bsky.feed.post.json``) are looked up.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def candidates(self, nsid: str) -> list[Path]:
        parts = nsid.split(".")
        return [
            self.root.joinpath(*parts[:-1], f"{parts[-1]}.json"),
            self.root / f"{nsid}.json",
        ]

    def load(self, nsid: str) -> LexiconDocument | None:
        if not nsid_codec.match(nsid):
            return None
        for path in self.candidates(nsid):
            if not path.is_file():
                continue
            document = LexiconDocument.from_file(path)
            if document.id != nsid:
                raise LexiconCompileError(
                    document.id, f"{path} was expected to define '{nsid}'"
                )
            return document
        return None

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.root)!r})"


class BundledSource:
    """The Lexicons shipped in :mod:`atlex.lexicons`."""

    def load(self, nsid: str) -> LexiconDocument | None:
        from .. import lexicons

        if nsid not in lexicons.LEXICON_IDS:
            return None
        return LexiconDocument.from_dict(lexicons.load_lexicon(nsid))

    def __repr__(self) -> str:
        return "BundledSource()"


class LexiconRegistry:
    """Write-once, read-many map from NSID to :class:`LexiconBundle`.

    Args:
        sources: Where to look for Lexicons that were not registered
            explicitly, in priority order.
        strict: Reject unrecognized field types when compiling. ``None``
            defers to the ``strict_field_types`` setting.
    """

    def __init__(
        self,
        sources: Iterable[LexiconSource] = (),
        *,
        strict: bool | None = None,
    ) -> None:
        self._bundles: dict[str, LexiconBundle] = {}
        self._sources: list[LexiconSource] = list(sources)
        self._strict = strict
        self._lock = threading.RLock()

    @property
    def sources(self) -> tuple[LexiconSource, ...]:
        return tuple(self._sources)

    def add_source(self, source: LexiconSource) -> None:
        with self._lock:
            self._sources.append(source)

    def register(self, document: LexiconDocument | Mapping[str, Any]) -> LexiconBundle:
        """Compile ``document`` and make it resolvable by its id.

        Registering the same document again returns the existing bundle.

        Raises:
            LexiconCompileError: If the document does not compile, or a
                different document with the same id is already registered.
        """
        if not isinstance(document, LexiconDocument):
            document = LexiconDocument.from_dict(document)

        with self._lock:
            existing = self._bundles.get(document.id)
            if existing is not None:
                if existing.document != document:
                    raise LexiconCompileError(
                        document.id,
                        "a different document with this id is already registered",
                    )
                return existing
            bundle = compile_lexicon(document, self, strict=self._strict)
            self._bundles[document.id] = bundle
            return bundle

    def get(self, nsid: str) -> LexiconBundle:
        """Return the bundle for ``nsid``, loading it from a source if needed.

        Raises:
            LexiconReferenceError: If no source provides ``nsid``.
            LexiconCompileError: If the loaded document does not compile.
        """
        bundle = self._bundles.get(nsid)
        if bundle is not None:
            return bundle

        with self._lock:
            bundle = self._bundles.get(nsid)
            if bundle is not None:
                return bundle
            for source in self._sources:
                document = source.load(nsid)
                if document is not None:
                    get_logger().debug("Loading lexicon %s from %r", nsid, source)
                    bundle = compile_lexicon(document, self, strict=self._strict)
                    self._bundles[nsid] = bundle
                    return bundle
        raise LexiconReferenceError(nsid)

    def schema(self, nsid: str, fragment: str = nsid_codec.MAIN) -> CompiledSchema:
        """Return one compiled def.

        Raises:
            LexiconReferenceError: If the Lexicon or the def is missing.
        """
        return self.get(nsid).schema(fragment)

    def resolve(self, ref: str, base: str | None = None) -> CompiledSchema:
        """Resolve ``nsid``, ``nsid#fragment`` or ``#fragment`` (against ``base``)."""
        target, fragment = nsid_codec.split(ref, base)
        return self.schema(target, fragment)

    def validate(self, ref: str, value: Any) -> ValidationResult:
        """Validate ``value`` against the def named by ``ref``."""
        return self.resolve(ref).validator.validate(value, self)

    def __contains__(self, nsid: object) -> bool:
        return nsid in self._bundles

    def __len__(self) -> int:
        return len(self._bundles)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._bundles))

    def __repr__(self) -> str:
        return f"LexiconRegistry({len(self)} lexicons, sources={self._sources!r})"


_default: LexiconRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> LexiconRegistry:
    """Return the process-wide registry.

    Built on first use from :func:`atlex.load_config`: configured Lexicon
    directories first, then the bundled Lexicons (unless disabled).
    Generated modules register themselves here on import.
    """
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                from .._config import load_config

                config = load_config()
                sources: list[LexiconSource] = [
                    DirectorySource(path) for path in config.lexicon_paths
                ]
                if config.include_bundled:
                    sources.append(BundledSource())
                _default = LexiconRegistry(sources, strict=config.strict_field_types)
    return _default


def reset_default_registry() -> None:
    """Drop the process-wide registry so the next use rebuilds it from config."""
    global _default
    with _default_lock:
        _default = None
