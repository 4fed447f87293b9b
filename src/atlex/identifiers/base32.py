"""Codec for the base32-sortable encoding used by TIDs.

The alphabet ``234567abcdefghijklmnopqrstuvwxyz`` is ordered so that
lexicographic order of equal-length strings matches numeric order. It leaves
out ``0``, ``1``, ``8``, ``9`` and all uppercase letters.
"""

ALPHABET = "234567abcdefghijklmnopqrstuvwxyz"

_BASE = len(ALPHABET)
_INDEX = {char: i for i, char in enumerate(ALPHABET)}


def encode(value: int) -> str:
    """Encode a non-negative integer as a base32-sortable string.

    No padding is applied, so ``encode(0)`` is the empty string; callers
    that need a fixed width pad on the left with ``"2"``.

    Raises:
        ValueError: If ``value`` is negative.

    Examples:
        >>> encode(32)
        '32'
    """
    if value < 0:
        raise ValueError(f"Cannot base32-sortable encode a negative integer: {value}")

    chars = []
    while value:
        value, remainder = divmod(value, _BASE)
        chars.append(ALPHABET[remainder])
    return "".join(reversed(chars))


def decode(encoded: str) -> int:
    """Decode a base32-sortable string to an integer.

    Raises:
        ValueError: If ``encoded`` contains a character outside the alphabet.

    Examples:
        >>> decode("32")
        32
    """
    value = 0
    for char in encoded:
        try:
            value = value * _BASE + _INDEX[char]
        except KeyError:
            raise ValueError(
                f"Invalid base32-sortable character {char!r} in {encoded!r}"
            ) from None
    return value
