"""Owner identities for execution contexts.

An execution context is the running asyncio task, or the current thread
when no task is running. Each context gets one id the first time it asks
and keeps it for its lifetime. Tasks do not inherit the id of the task that
created them.
"""

from __future__ import annotations

import asyncio
import threading
import uuid
import weakref
from typing import Callable, Optional


IdFactory = Callable[[], str]


def _uuid4() -> str:
    return str(uuid.uuid4())


def _running_task() -> Optional["asyncio.Task"]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class IdentityProvider:
    """Hands out one stable owner id per thread or asyncio task."""

    def __init__(self, id_factory: Optional[IdFactory] = None) -> None:
        self._id_factory = id_factory or _uuid4
        # Every thread only ever touches its own slot.
        self._local = threading.local()

    def current(self) -> str:
        task = _running_task()
        if task is None:
            owner_id = getattr(self._local, "owner_id", None)
            if owner_id is None:
                owner_id = self._local.owner_id = self._id_factory()
            return owner_id

        tasks = getattr(self._local, "tasks", None)
        if tasks is None:
            tasks = self._local.tasks = weakref.WeakKeyDictionary()
        owner_id = tasks.get(task)
        if owner_id is None:
            owner_id = tasks[task] = self._id_factory()
        return owner_id


_default_provider = IdentityProvider()


def default_identity() -> IdentityProvider:
    return _default_provider


def current_owner_id() -> str:
    """Owner id of the calling context from the process default provider."""
    return _default_provider.current()
