"""Exceptions raised by the lock protocol."""

from __future__ import annotations


class LockError(Exception):
    """Base class for lockkey errors."""


class LockAcquisitionTimeout(LockError):
    """The lock could not be claimed or renewed before the wait deadline."""

    def __init__(self, key: str, wait_for: float) -> None:
        super().__init__(f"Could not lock {key} within {wait_for}s")
        self.key = key
        self.wait_for = wait_for


class MalformedLockRecord(LockError, ValueError):
    """A stored lock value could not be decoded.

    Callers inside the package treat such a record as expired so it can be
    overwritten by the next claimant.
    """

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"Malformed lock record {value!r}: {reason}")
        self.value = value
        self.reason = reason
