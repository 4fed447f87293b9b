"""Timestamp identifiers (TIDs).

A TID is a 13-character base32-sortable rendering of a 64-bit integer: the
top bit is always zero, the next 53 bits hold a Unix timestamp in
microseconds and the low 10 bits hold a random "clock identifier" that
helps avoid collisions between writers.

See https://atproto.com/specs/tid.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from .._exceptions import IdentifierFormatError
from . import base32

MAX_CLOCK_ID = 1023

# Decoded strings may exceed 53 bits; the top bit of the 64-bit value stays unset.
_TIMESTAMP_LIMIT = 2**54

# First character limited to the lower half of the alphabet: high bit unset.
_TID_RE = re.compile(r"^[234567abcdefghij][234567abcdefghijklmnopqrstuvwxyz]{12}$")


def match(value: str) -> bool:
    """Check whether ``value`` is a syntactically valid TID string."""
    return isinstance(value, str) and _TID_RE.match(value) is not None


def _random_clock_id() -> int:
    return random.randint(0, MAX_CLOCK_ID)


@dataclass(frozen=True, order=True)
class TID:
    """A decoded TID.

    Examples:
        >>> TID.decode("3jzfcijpj2z2a")
        TID(timestamp=1688137381887007, clock_id=6)
        >>> str(TID(timestamp=0, clock_id=0))
        '2222222222222'
    """

    timestamp: int
    """Unix timestamp in microseconds (53 bits)."""

    clock_id: int
    """Collision-avoidance identifier (10 bits)."""

    def __post_init__(self) -> None:
        if not 0 <= self.timestamp < _TIMESTAMP_LIMIT:
            raise ValueError(
                f"TID timestamp must be within 0..{_TIMESTAMP_LIMIT - 1}, got {self.timestamp}"
            )
        if not 0 <= self.clock_id <= MAX_CLOCK_ID:
            raise ValueError(
                f"TID clock_id must be within 0..{MAX_CLOCK_ID}, got {self.clock_id}"
            )

    @classmethod
    def now(cls) -> TID:
        """Return a TID for the current moment with a random clock id."""
        return cls.new(datetime.now(timezone.utc))

    @classmethod
    def new(cls, source: datetime | int, clock_id: int | None = None) -> TID:
        """Create a TID from a datetime or a microsecond Unix timestamp.

        Args:
            source: An aware ``datetime`` or an integer timestamp in
                microseconds.
            clock_id: Clock identifier; a random one is generated when
                omitted.
        """
        if isinstance(source, datetime):
            if source.tzinfo is None:
                raise ValueError("TID.new() requires a timezone-aware datetime")
            delta = source - datetime(1970, 1, 1, tzinfo=timezone.utc)
            timestamp = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
        else:
            timestamp = source

        if clock_id is None:
            clock_id = _random_clock_id()
        return cls(timestamp=timestamp, clock_id=clock_id)

    @classmethod
    def decode(cls, value: str) -> TID | None:
        """Decode a TID string, returning ``None`` if it is malformed.

        Decoding is fixed width (11 timestamp characters, 2 clock id
        characters) and fails closed: wrong length, characters outside the
        base32-sortable alphabet, uppercase, or a set high bit all yield
        ``None``.
        """
        if not match(value):
            return None
        return cls(
            timestamp=base32.decode(value[:11]),
            clock_id=base32.decode(value[11:]),
        )

    @classmethod
    def parse(cls, value: str) -> TID:
        """Like :meth:`decode` but raises ``IdentifierFormatError``."""
        tid = cls.decode(value)
        if tid is None:
            raise IdentifierFormatError("TID", value)
        return tid

    def encode(self) -> str:
        """Encode to the canonical 13-character string."""
        timestamp = base32.encode(self.timestamp).rjust(11, "2")
        clock_id = base32.encode(self.clock_id & MAX_CLOCK_ID).rjust(2, "2")
        return timestamp + clock_id

    def to_datetime(self) -> datetime:
        """Convert the timestamp to an aware UTC ``datetime``."""
        seconds, micros = divmod(self.timestamp, 1_000_000)
        return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(
            microsecond=micros
        )

    def __str__(self) -> str:
        return self.encode()
