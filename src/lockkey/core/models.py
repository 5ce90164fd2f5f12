"""Data models shared across the lock protocol."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class LockRecord(BaseModel):
    """The decoded value stored under a lock key."""

    model_config = ConfigDict(frozen=True)

    owner_id: str = Field(min_length=1)
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at

    def owned_by(self, owner_id: str) -> bool:
        return self.owner_id == owner_id


class LockOptions(BaseModel):
    """Per-call lock options.

    ``ttl`` may also be given as ``expire``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    wait_for: float = Field(default=60.0, ge=0)
    ttl: float = Field(default=60.0, gt=0, alias="expire")
    raise_on_timeout: bool = True
    poll_interval: float = Field(default=0.5, gt=0)

    def merged(self, **overrides: Any) -> "LockOptions":
        """Return a validated copy with ``overrides`` applied."""
        if not overrides:
            return self
        data = self.model_dump()
        if "expire" in overrides:
            overrides["ttl"] = overrides.pop("expire")
        data.update(overrides)
        try:
            return LockOptions.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock options: {exc}") from exc
