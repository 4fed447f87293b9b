"""Namespaced identifiers (NSIDs) and Lexicon reference strings.

An NSID is a reversed domain authority followed by a name, e.g.
``app.bsky.feed.post``. Lexicon references extend it with an optional
``#fragment`` naming a definition inside the document; ``main`` is implied
when the fragment is absent.
"""

from __future__ import annotations

import re

from .._exceptions import IdentifierFormatError

NSID_RE = re.compile(
    r"^[a-zA-Z](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+"
    r"(?:\.[a-zA-Z](?:[a-zA-Z0-9]{0,62})?)$"
)

FRAGMENT_RE = re.compile(r"^[a-zA-Z](?:[a-zA-Z0-9_-]{0,62})?$")

MAX_LENGTH = 317
MAIN = "main"


def match(value: str) -> bool:
    """Check whether ``value`` is a syntactically valid NSID."""
    return (
        isinstance(value, str)
        and len(value) <= MAX_LENGTH
        and NSID_RE.match(value) is not None
    )


def authority(value: str) -> str:
    """Return the domain authority of an NSID, in normal (non-reversed) order.

    Examples:
        >>> authority("app.bsky.feed.post")
        'feed.bsky.app'
    """
    if not match(value):
        raise IdentifierFormatError("NSID", value)
    return ".".join(reversed(value.split(".")[:-1]))


def name(value: str) -> str:
    """Return the final name segment of an NSID."""
    if not match(value):
        raise IdentifierFormatError("NSID", value)
    return value.rsplit(".", 1)[1]


def to_module_path(value: str) -> tuple[str, ...]:
    """Map an NSID to the nested namespace used for generated modules.

    Hyphens are not valid in Python module names and become underscores;
    case is preserved.

    Examples:
        >>> to_module_path("com.atproto.repo.getRecord")
        ('com', 'atproto', 'repo', 'getRecord')
    """
    if not match(value):
        raise IdentifierFormatError("NSID", value)
    return tuple(part.replace("-", "_") for part in value.split("."))


def split(ref: str, base: str | None = None) -> tuple[str, str]:
    """Split ``nsid#fragment`` into ``(nsid, fragment)``.

    The fragment defaults to ``main``. A bare ``#fragment`` refers to the
    document ``base``.

    Raises:
        IdentifierFormatError: If the reference is malformed, or is a bare
            fragment without a ``base``.

    Examples:
        >>> split("app.bsky.feed.post")
        ('app.bsky.feed.post', 'main')
        >>> split("#replyRef", base="app.bsky.feed.post")
        ('app.bsky.feed.post', 'replyRef')
    """
    if ref.startswith("#"):
        if base is None:
            raise IdentifierFormatError("lexicon reference", ref)
        target, fragment = base, ref[1:]
    elif "#" in ref:
        target, fragment = ref.split("#", 1)
    else:
        target, fragment = ref, MAIN

    if not match(target) or not FRAGMENT_RE.match(fragment):
        raise IdentifierFormatError("lexicon reference", ref)
    return target, fragment


def canonical_name(nsid: str, fragment: str) -> str:
    """Inverse of :func:`split`: ``nsid`` for ``main``, else ``nsid#fragment``."""
    if fragment == MAIN:
        return nsid
    return f"{nsid}#{fragment}"
