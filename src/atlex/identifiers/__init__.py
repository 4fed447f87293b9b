"""Identifier codecs for the AT Protocol.

Each identifier grammar lives in its own module exposing ``match()``; the
ones that decompose into parts (``TID``, ``AtUri``) also offer ``decode()``
returning ``None`` on malformed input and ``parse()`` raising
``IdentifierFormatError``.

Modules:
    base32
        The base32-sortable codec used by TIDs.
    tid
        Timestamp identifiers.
    did
        Decentralized identifiers.
    handle
        DNS-style account handles.
    nsid
        Namespaced identifiers and ``nsid#fragment`` references.
    aturi
        ``at://`` URIs.
    record_key
        Record keys.

Examples:
    >>> from atlex.identifiers import TID, AtUri, nsid
    >>> TID.parse("3jzfcijpj2z2a").clock_id
    6
    >>> nsid.split("app.bsky.feed.post#replyRef")
    ('app.bsky.feed.post', 'replyRef')
"""

from . import base32, did, handle, nsid, record_key
from .aturi import AtUri
from .tid import TID

__all__ = [
    "base32",
    "did",
    "handle",
    "nsid",
    "record_key",
    "AtUri",
    "TID",
]
