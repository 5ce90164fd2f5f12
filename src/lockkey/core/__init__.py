"""Core lock protocol primitives."""

from .codec import RecordCodec
from .defaults import configure_defaults, get_default_options, reset_default_options
from .engine import AcquisitionEngine
from .errors import LockAcquisitionTimeout, LockError, MalformedLockRecord
from .identity import IdentityProvider, current_owner_id
from .manager import LockManager, ScopedResult
from .models import LockOptions, LockRecord
from .settings import LockSettings
from .store import LockStore
from .store_memory import InMemoryLockStore
from .store_redis import RedisLockStore

__all__ = [
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
