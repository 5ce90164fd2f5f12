"""Encoding of lock records into store values."""

from __future__ import annotations

import math
from typing import Optional, Union

from .errors import MalformedLockRecord
from .models import LockRecord


DEFAULT_DELIMITER = "-:-:-"

# every character `repr` can produce for a finite or non-finite float
_FLOAT_REPR_CHARS = frozenset("0123456789.+-einfa")


class RecordCodec:
    """Encodes ``LockRecord`` values as ``"<expires_at><delimiter><owner_id>"``.

    The expiry is written with ``repr`` so it decodes to the exact same float.
    The delimiter must contain at least one character a float repr never
    produces, so its first occurrence always ends the expiry. ``encode`` keeps
    it out of owner ids.
    """

    def __init__(self, delimiter: str = DEFAULT_DELIMITER) -> None:
        self.delimiter = validate_delimiter(delimiter)

    def encode(self, owner_id: str, expires_at: float) -> str:
        if not owner_id:
            raise ValueError("Owner id must not be empty")
        if self.delimiter in owner_id:
            raise ValueError(f"Owner id {owner_id!r} contains the record delimiter {self.delimiter!r}")
        expires_at = float(expires_at)
        if not math.isfinite(expires_at):
            raise ValueError(f"Lock expiry must be finite, got {expires_at!r}")
        return f"{expires_at!r}{self.delimiter}{owner_id}"

    def decode(self, value: Optional[Union[str, bytes]]) -> Optional[LockRecord]:
        """Decode a stored value; ``None`` means there is no record."""
        if value is None:
            return None
        if isinstance(value, bytes):
            try:
                value = value.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedLockRecord(repr(value), "not valid UTF-8") from exc

        expiry, sep, owner_id = value.partition(self.delimiter)
        if not sep:
            raise MalformedLockRecord(value, "missing delimiter")
        if not owner_id or self.delimiter in owner_id:
            raise MalformedLockRecord(value, "invalid owner id")
        try:
            expires_at = float(expiry)
        except ValueError as exc:
            raise MalformedLockRecord(value, "expiry is not a number") from exc
        if not math.isfinite(expires_at):
            raise MalformedLockRecord(value, "expiry is not finite")
        return LockRecord(owner_id=owner_id, expires_at=expires_at)


def validate_delimiter(delimiter: str) -> str:
    """Return ``delimiter`` if records written with it decode unambiguously."""
    if not delimiter:
        raise ValueError("Lock record delimiter must not be empty")
    if set(delimiter) <= _FLOAT_REPR_CHARS:
        raise ValueError(
            f"Lock record delimiter {delimiter!r} only uses characters that can appear in an expiry"
        )
    return delimiter
