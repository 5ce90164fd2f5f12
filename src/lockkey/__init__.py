"""Distributed mutex locks backed by a shared key-value store."""

from .core import (
    AcquisitionEngine,
    IdentityProvider,
    InMemoryLockStore,
    LockAcquisitionTimeout,
    LockError,
    LockManager,
    LockOptions,
    LockRecord,
    LockSettings,
    LockStore,
    MalformedLockRecord,
    RecordCodec,
    RedisLockStore,
    ScopedResult,
    configure_defaults,
    current_owner_id,
    get_default_options,
    reset_default_options,
)

__all__ = [
    "__version__",
    "AcquisitionEngine",
    "IdentityProvider",
    "InMemoryLockStore",
    "LockAcquisitionTimeout",
    "LockError",
    "LockManager",
    "LockOptions",
    "LockRecord",
    "LockSettings",
    "LockStore",
    "MalformedLockRecord",
    "RecordCodec",
    "RedisLockStore",
    "ScopedResult",
    "configure_defaults",
    "current_owner_id",
    "get_default_options",
    "reset_default_options",
]

__version__ = "0.1.0"
