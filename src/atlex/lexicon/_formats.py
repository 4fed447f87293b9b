"""String ``format`` predicates for Lexicon string fields.

The set of formats is closed; each maps to exactly one predicate. Formats
with a bespoke AT Protocol grammar use the identifier codecs, the rest use
generic datetime / URI / BCP 47 checks.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime
from urllib.parse import urlsplit

import regex

from ..identifiers import aturi, did, handle, nsid, record_key, tid

# RFC 3339 date-time; the timezone is mandatory and "-00:00" is rejected.
_DATETIME_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2})$"
)

_URI_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:(?://)?[^\s/][^\s]*$")

# RFC 5646 language tag, minus the irregular grandfathered tags.
_LANGUAGE_RE = re.compile(
    r"""^(?:
        (?:[a-z]{2,3}(?:-[a-z]{3}){0,3}|[a-z]{4}|[a-z]{5,8})   # language
        (?:-[a-z]{4})?                                         # script
        (?:-(?:[a-z]{2}|[0-9]{3}))?                            # region
        (?:-(?:[a-z0-9]{5,8}|[0-9][a-z0-9]{3}))*               # variants
        (?:-[0-9a-wy-z](?:-[a-z0-9]{2,8})+)*                   # extensions
        (?:-x(?:-[a-z0-9]{1,8})+)?                             # private use
      |
        x(?:-[a-z0-9]{1,8})+
      |
        i-[a-z]{2,8}
    )$""",
    re.IGNORECASE | re.VERBOSE,
)

_GRAPHEME_RE = regex.compile(r"\X")


def grapheme_length(value: str) -> int:
    """Count user-perceived characters (extended grapheme clusters)."""
    return len(_GRAPHEME_RE.findall(value))


def utf8_length(value: str) -> int:
    """Length of ``value`` in UTF-8 bytes."""
    return len(value.encode("utf-8", "surrogatepass"))


def is_datetime(value: str) -> bool:
    if _DATETIME_RE.match(value) is None or value.endswith("-00:00"):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_uri(value: str) -> bool:
    if len(value) > 8192 or _URI_RE.match(value) is None:
        return False
    try:
        urlsplit(value)
    except ValueError:
        return False
    return True


def is_language(value: str) -> bool:
    return _LANGUAGE_RE.match(value) is not None


def is_cid(value: str) -> bool:
    """Check that ``value`` decodes as a CID using the atproto SDK codec."""
    from atproto_core.cid import CID

    try:
        CID.decode(value)
    except Exception:
        # The decoder reports malformed input with codec-specific error types.
        return False
    return True


def is_at_identifier(value: str) -> bool:
    return did.match(value) or handle.match(value)


FORMATS: dict[str, tuple[Callable[[str], bool], str]] = {
    "at-identifier": (is_at_identifier, "should be a valid DID or handle"),
    "at-uri": (aturi.match, "should be a valid at:// URI"),
    "cid": (is_cid, "should be a valid CID"),
    "datetime": (is_datetime, "should be a valid datetime"),
    "did": (did.match, "should be a valid DID"),
    "handle": (handle.match, "should be a valid handle"),
    "language": (is_language, "should be a valid BCP 47 language tag"),
    "nsid": (nsid.match, "should be a valid NSID"),
    "record-key": (record_key.match, "should be a valid record key"),
    "tid": (tid.match, "should be a valid TID"),
    "uri": (is_uri, "should be a valid URI"),
}
"""Format name -> (predicate, failure message)."""
