"""Standard AT Protocol Lexicon documents shipped with atlex.

The default registry can load these by NSID without any configuration,
which is enough to validate strong references, rich-text facets and labels
out of the box.

Lexicons:
    com.atproto.repo.strongRef
        A URI with a content-hash fingerprint.
    com.atproto.repo.getRecord
        XRPC query fetching a single record.
    com.atproto.repo.uploadBlob
        XRPC procedure with a raw (non-JSON) input body.
    com.atproto.label.defs
        Label and self-label objects.
    app.bsky.richtext.facet
        Rich-text annotations (mentions, links, hashtags).

Examples:
    >>> from atlex.lexicons import load_lexicon
    >>> load_lexicon("com.atproto.repo.strongRef")["id"]
    'com.atproto.repo.strongRef'
"""

import json
from functools import lru_cache
from importlib import resources
from typing import Any

LEXICON_IDS = (
    "com.atproto.repo.strongRef",
    "com.atproto.repo.getRecord",
    "com.atproto.repo.uploadBlob",
    "com.atproto.label.defs",
    "app.bsky.richtext.facet",
)


@lru_cache(maxsize=32)
def load_lexicon(lexicon_id: str) -> dict[str, Any]:
    """Load a bundled Lexicon document by its NSID.

    Dots become directory separators, with the final segment as the file
    name: ``app.bsky.richtext.facet`` resolves to
    ``app/bsky/richtext/facet.json``.

    Args:
        lexicon_id: The Lexicon NSID.

    Returns:
        The decoded JSON document. Treat it as read-only; it is cached.

    Raises:
        FileNotFoundError: If no bundled Lexicon has that id.
    """
    parts = lexicon_id.split(".")
    path_parts = parts[:-1]
    filename = f"{parts[-1]}.json"

    ref = resources.files(__package__)
    for part in path_parts:
        ref = ref.joinpath(part)
    ref = ref.joinpath(filename)

    try:
        text = ref.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(
            f"No bundled lexicon for '{lexicon_id}'. "
            f"Expected {'/'.join(path_parts)}/{filename} in {__package__}."
        ) from None
    return json.loads(text)


def list_lexicons() -> tuple[str, ...]:
    """Return the NSIDs of all bundled Lexicons."""
    return LEXICON_IDS


__all__ = [
    "LEXICON_IDS",
    "load_lexicon",
    "list_lexicons",
]
