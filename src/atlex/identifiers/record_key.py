"""Record keys, the final segment of an ``at://`` URI."""

import re

RECORD_KEY_RE = re.compile(r"^[a-zA-Z0-9._:~-]{1,512}$")


def match(value: str) -> bool:
    """Check whether ``value`` is a valid record key (``.`` and ``..`` excluded)."""
    return (
        isinstance(value, str)
        and value not in (".", "..")
        and RECORD_KEY_RE.match(value) is not None
    )
