"""Account handles: DNS-style hostnames such as ``alice.bsky.social``."""

import re

HANDLE_RE = re.compile(
    r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+"
    r"[a-zA-Z](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$"
)

MAX_LENGTH = 253


def match(value: str) -> bool:
    """Check whether ``value`` is a syntactically valid handle.

    Labels are 1-63 characters of ASCII letters, digits and hyphens, never
    starting or ending with a hyphen; the final label starts with a letter.
    """
    return (
        isinstance(value, str)
        and len(value) <= MAX_LENGTH
        and HANDLE_RE.match(value) is not None
    )
