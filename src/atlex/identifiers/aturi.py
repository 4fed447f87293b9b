"""Parsed ``at://`` URIs.

Only the restricted syntax used by the Lexicon ``at-uri`` format is
supported: an authority (blessed DID or handle), optionally followed by a
collection NSID and a record key. Query strings and fragments are rejected.

See https://atproto.com/specs/at-uri-scheme.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .._exceptions import IdentifierFormatError

_DID = r"did:(?:plc|web):[a-zA-Z0-9._:%-]*[a-zA-Z0-9._-]"
_HANDLE = (
    r"(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+"
    r"[a-zA-Z](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
)
_NSID = (
    r"[a-zA-Z](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+"
    r"(?:\.[a-zA-Z](?:[a-zA-Z0-9]{0,62})?)"
)
_RKEY = r"[a-zA-Z0-9._:~-]{1,512}"

AT_URI_RE = re.compile(
    rf"^at://(?P<authority>{_DID}|{_HANDLE})"
    rf"(?:/(?P<collection>{_NSID})(?:/(?P<rkey>{_RKEY}))?)?$"
)


def match(value: str) -> bool:
    """Check whether ``value`` is a valid ``at://`` URI.

    Examples:
        >>> match("at://did:web:comet.sh")
        True
        >>> match("gobbledy gook")
        False
    """
    return isinstance(value, str) and AT_URI_RE.match(value) is not None


@dataclass(frozen=True)
class AtUri:
    """Parsed AT Protocol URI.

    AT URIs follow the format: ``at://<authority>[/<collection>[/<rkey>]]``

    Examples:
        >>> uri = AtUri.parse("at://did:plc:44ybard66vv44zksje25o7dz/app.bsky.feed.post/3jwdwj2ctlk26")
        >>> uri.authority
        'did:plc:44ybard66vv44zksje25o7dz'
        >>> uri.collection
        'app.bsky.feed.post'
        >>> uri.rkey
        '3jwdwj2ctlk26'
    """

    authority: str
    """The DID or handle of the repository owner."""

    collection: str | None = None
    """The NSID of the record collection."""

    rkey: str | None = None
    """The record key within the collection."""

    def __post_init__(self) -> None:
        if self.rkey is not None and self.collection is None:
            raise ValueError("An at:// URI with a record key must have a collection")

    @classmethod
    def decode(cls, uri: str) -> AtUri | None:
        """Parse an AT URI string, returning ``None`` if it is malformed."""
        if not isinstance(uri, str):
            return None
        m = AT_URI_RE.match(uri)
        if m is None:
            return None
        return cls(
            authority=m.group("authority"),
            collection=m.group("collection"),
            rkey=m.group("rkey"),
        )

    @classmethod
    def parse(cls, uri: str) -> AtUri:
        """Parse an AT URI string into components.

        Raises:
            IdentifierFormatError: If the URI format is invalid.
        """
        parsed = cls.decode(uri)
        if parsed is None:
            raise IdentifierFormatError("at:// URI", uri)
        return parsed

    def __str__(self) -> str:
        """Format as AT URI string, leaving out absent trailing parts."""
        return f"at://{self.authority}/{self.collection or ''}/{self.rkey or ''}".rstrip("/")
