"""Decentralized identifiers (DIDs).

Only the generic ``did:<method>:<identifier>`` syntax is checked here; no
method-specific validation or resolution happens in this module.
"""

import re

DID_RE = re.compile(r"^did:[a-z]+:[a-zA-Z0-9._:%-]*[a-zA-Z0-9._-]$")

# Methods the AT Protocol currently supports.
BLESSED_DID_RE = re.compile(r"^did:(?:plc|web):[a-zA-Z0-9._:%-]*[a-zA-Z0-9._-]$")

MAX_LENGTH = 2048


def match(value: str) -> bool:
    """Check whether ``value`` is a syntactically valid DID."""
    return (
        isinstance(value, str)
        and len(value) <= MAX_LENGTH
        and DID_RE.match(value) is not None
    )


def match_blessed(value: str) -> bool:
    """Check whether ``value`` is a valid ``did:plc`` or ``did:web`` DID."""
    return (
        isinstance(value, str)
        and len(value) <= MAX_LENGTH
        and BLESSED_DID_RE.match(value) is not None
    )


def method(value: str) -> str | None:
    """Return the DID method (``"plc"``, ``"web"``, ...) or ``None`` if invalid."""
    if not match(value):
        return None
    return value.split(":", 2)[1]
